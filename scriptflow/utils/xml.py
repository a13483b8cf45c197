"""
XML to plain-object conversion.

Produces JSON-compatible structures:
    <feed a="1"><item>x</item><item>y</item></feed>
    -> {"feed": {"@a": "1", "item": ["x", "y"]}}

Attributes are prefixed with "@", mixed text content is stored under
"#text", repeated child tags become lists, and leaf elements without
attributes collapse to their text.
"""

from __future__ import annotations

from typing import Any
from xml.etree import ElementTree


def parse_xml(text: str) -> dict[str, Any]:
    """
    Parse an XML document into nested dicts/lists/strings.

    Raises:
        ValueError: If the text is not well-formed XML
    """
    try:
        root = ElementTree.fromstring(text)
    except ElementTree.ParseError as e:
        raise ValueError(f"Invalid XML: {e}") from e
    return {_local_name(root.tag): _convert(root)}


def _convert(element: ElementTree.Element) -> Any:
    text = (element.text or "").strip()
    children = list(element)

    if not children and not element.attrib:
        return text or None

    result: dict[str, Any] = {f"@{_local_name(k)}": v for k, v in element.attrib.items()}
    for child in children:
        name = _local_name(child.tag)
        value = _convert(child)
        if name not in result:
            result[name] = value
        elif isinstance(result[name], list):
            result[name].append(value)
        else:
            result[name] = [result[name], value]
    if text:
        result["#text"] = text
    return result


def _local_name(tag: str) -> str:
    # "{http://www.w3.org/2005/Atom}entry" -> "entry"
    return tag.rsplit("}", 1)[-1]

"""
HTML extraction operations.

Inputs are HTML fragments (strings) addressed with CSS selectors.
Non-string input yields None for single-value operations and an empty
list for the plural ones.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from bs4 import BeautifulSoup, Tag

from scriptflow.errors import TransformationError
from scriptflow.transform.registry import register_function

if TYPE_CHECKING:
    from scriptflow.transform.evaluator import Transformation


def _selector(options: Any, function: str) -> str:
    if not isinstance(options, str):
        raise TransformationError(f'Value of "{function}" function must be a string', function=function)
    return options


def _select(html: str, selector: str) -> list[Tag]:
    return BeautifulSoup(html, "html.parser").select(selector)


@register_function("htmlTag")
async def html_tag(t: Transformation, value: Any, options: Any) -> Any:
    selector = _selector(options, "htmlTag")
    if isinstance(value, str):
        found = _select(value, selector)
        if found:
            return str(found[0])
    return None


@register_function("htmlTags")
async def html_tags(t: Transformation, value: Any, options: Any) -> Any:
    selector = _selector(options, "htmlTags")
    if not isinstance(value, str):
        return []
    return [str(tag) for tag in _select(value, selector)]


@register_function("htmlTagText")
async def html_tag_text(t: Transformation, value: Any, options: Any) -> Any:
    selector = _selector(options, "htmlTagText")
    if isinstance(value, str):
        found = _select(value, selector)
        if found:
            return found[0].get_text()
    return None


@register_function("htmlTagsText")
async def html_tags_text(t: Transformation, value: Any, options: Any) -> Any:
    selector = _selector(options, "htmlTagsText")
    if not isinstance(value, str):
        return []
    return [tag.get_text() for tag in _select(value, selector)]


@register_function("htmlAttribute")
async def html_attribute(t: Transformation, value: Any, options: Any) -> Any:
    """Attribute of the first element in the fragment."""
    name = _selector(options, "htmlAttribute")
    if not isinstance(value, str):
        return None
    element = BeautifulSoup(value, "html.parser").find(True)
    if element is None:
        return None
    attribute = element.get(name)
    if isinstance(attribute, list):
        # Multi-valued attributes such as class
        return " ".join(attribute)
    return attribute


@register_function("htmlTable")
async def html_table(t: Transformation, value: Any, options: Any) -> Any:
    """
    Find a table row by cell text.

    Options:
        cell: Index of the cell to compare
        text: Text to look for (trimmed, case insensitive)
        selector: Optional table selector, defaults to any row
        returnCell: Return the text of this cell instead of the row HTML
    """
    if (
        not isinstance(options, dict)
        or not isinstance(options.get("cell"), int)
        or not isinstance(options.get("text"), str)
    ):
        raise TransformationError(
            'Value of "htmlTable" function must be an object with cell and text properties',
            function="htmlTable",
        )
    if not isinstance(value, str):
        return None

    table = options.get("selector")
    selector = f"{table} > tr, {table} > tbody > tr" if isinstance(table, str) else "tr"
    wanted = options["text"].strip().lower()
    cell = options["cell"]
    return_cell = options.get("returnCell")

    for row in _select(value, selector):
        cells = row.select("td")
        if len(cells) > cell and cells[cell].get_text().strip().lower() == wanted:
            if isinstance(return_cell, int):
                return cells[return_cell].get_text() if len(cells) > return_cell else None
            return str(row)
    return None

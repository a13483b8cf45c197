"""
Case conversion helpers used by the transformation string family.

Words are split on separators, lower→upper transitions, acronym
boundaries and digit runs, so "fooBar", "foo_bar" and "Foo Bar" all
yield ["foo", "Bar"]-style word lists.
"""

from __future__ import annotations

import re
import unicodedata

_WORD = re.compile(
    r"[A-ZÀ-Þ]+(?=[A-ZÀ-Þ][a-zß-ÿ])"
    r"|[A-ZÀ-Þ]?[a-zß-ÿ]+"
    r"|[A-ZÀ-Þ]+"
    r"|[0-9]+"
)
_APOSTROPHES = re.compile(r"['’]")

# Letters that have no decomposition but do have a conventional ASCII form
_LIGATURES = {
    "Æ": "Ae", "æ": "ae", "Ø": "O", "ø": "o", "Œ": "Oe", "œ": "oe",
    "ß": "ss", "Ð": "D", "ð": "d", "Þ": "Th", "þ": "th", "Ł": "L", "ł": "l",
    "Đ": "D", "đ": "d", "ı": "i",
}


def deburr(text: str) -> str:
    """Strip diacritics: "déjà vu" -> "deja vu"."""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(c for c in decomposed if unicodedata.category(c) != "Mn")
    return "".join(_LIGATURES.get(c, c) for c in stripped)


def words(text: str) -> list[str]:
    """Split text into words after deburring and dropping apostrophes."""
    return _WORD.findall(_APOSTROPHES.sub("", deburr(text)))


def capitalize(text: str) -> str:
    """First character upper case, remainder lower case."""
    return text[:1].upper() + text[1:].lower()


def camel_case(text: str) -> str:
    parts = [w.lower() for w in words(text)]
    if not parts:
        return ""
    return parts[0] + "".join(capitalize(w) for w in parts[1:])


def kebab_case(text: str) -> str:
    return "-".join(w.lower() for w in words(text))


def snake_case(text: str) -> str:
    return "_".join(w.lower() for w in words(text))


def lower_case(text: str) -> str:
    return " ".join(w.lower() for w in words(text))


def upper_case(text: str) -> str:
    return " ".join(w.upper() for w in words(text))


def name_case(text: str) -> str:
    """Capitalize every whitespace separated word: "JOHN doe" -> "John Doe"."""
    return " ".join(w[:1].upper() + w[1:] for w in re.split(r"\s", text.lower()))

"""
Built-in transformation operations.

Importing this package registers every operation in the default
function registry.
"""

from . import codecs, dates, html, strings, structure

__all__ = ["codecs", "dates", "html", "strings", "structure"]

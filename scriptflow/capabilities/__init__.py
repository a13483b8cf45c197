"""
Host capabilities for query and request steps.
"""

from .base import QueryCapability, RequestCapability
from .http import HttpxRequester, collect_headers

__all__ = [
    "QueryCapability",
    "RequestCapability",
    "HttpxRequester",
    "collect_headers",
]

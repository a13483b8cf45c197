"""
Host capabilities injected into scripts.

Scripts never talk to a database or the network themselves. The host
passes in callables for the query and request steps; both may be
invoked concurrently by different scripts and must be safe for that.
"""

from __future__ import annotations

from typing import Any, Protocol


class QueryCapability(Protocol):
    """
    Executes a query on behalf of a script.

    Args:
        query: Query text or descriptor from the step definition
        context: Caller context, or None unless runInContext is set
        arguments: Resolved argument bindings
    """

    async def __call__(self, query: Any, context: Any, arguments: dict[str, Any]) -> Any:
        ...


class RequestCapability(Protocol):
    """
    Performs an HTTP request on behalf of a script.

    Returns a mapping with:
        headers: lowercased header name -> list of values
        body: raw response text
        cookies: cookie name -> value
    """

    async def __call__(
        self,
        method: str,
        url: str,
        headers: dict[str, Any],
        body: Any,
        cookies: dict[str, str] | None,
    ) -> dict[str, Any]:
        ...

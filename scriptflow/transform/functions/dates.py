"""
Date parsing and formatting.

Formats use moment-style tokens ("D MMMM YYYY", "YYYY-MM-DD HH:mm")
with optional locale, e.g. parseDate {format: "D MMMM YYYY", locale: nl}
turns "3 mei 2017" into "2017-05-03T00:00:00.000Z".
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import arrow
from arrow.locales import get_locale

from scriptflow.errors import TransformationError
from scriptflow.transform.registry import register_function
from scriptflow.utils import is_number

if TYPE_CHECKING:
    from scriptflow.transform.evaluator import Transformation


def _date_options(options: Any, function: str) -> tuple[str | None, str, str | None]:
    options = options if isinstance(options, dict) else {}
    locale = options.get("locale") or "en"
    try:
        get_locale(locale)
    except ValueError as e:
        raise TransformationError(f"Unsupported locale {locale}", function=function) from e
    return options.get("format"), locale, options.get("timezone")


def to_iso(moment: arrow.Arrow) -> str:
    """ISO-8601 in UTC with millisecond precision and a Z suffix."""
    dt = moment.to("UTC").datetime
    return f"{dt:%Y-%m-%dT%H:%M:%S}.{dt.microsecond // 1000:03d}Z"


@register_function("parseDate")
async def parse_date(t: Transformation, value: Any, options: Any) -> Any:
    fmt, locale, timezone = _date_options(options, "parseDate")
    if not isinstance(value, str):
        return None
    zone = {"tzinfo": timezone} if timezone else {}
    try:
        if fmt:
            moment = arrow.get(value, fmt, locale=locale, **zone)
        else:
            moment = arrow.get(value, **zone)
    except (ValueError, TypeError):
        return None
    return to_iso(moment)


@register_function("formatDate")
async def format_date(t: Transformation, value: Any, options: Any) -> Any:
    fmt, locale, timezone = _date_options(options, "formatDate")
    if not isinstance(value, str) and not is_number(value):
        return None
    try:
        moment = arrow.get(value)
    except (ValueError, TypeError):
        return None
    if timezone:
        moment = moment.to(timezone)
    return moment.format(fmt or "YYYY-MM-DDTHH:mm:ssZZ", locale=locale)

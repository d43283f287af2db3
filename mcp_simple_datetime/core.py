"""
Calendar engine shared by the stdio and web MCP variants.

This module contains:
- Date and timezone parameter parsing
- Locale-aware rendering of instants (Babel / CLDR)
- Calendar arithmetic with signed, unit-typed durations
- Day-level metadata (weekday, weekend flag, day of year, week number)
- The tool implementation functions the servers call
"""
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo, UTC
from typing import Literal, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging
import math
import re

from babel import Locale
from babel.dates import (
    format_date,
    format_datetime,
    get_datetime_format,
    match_skeleton,
    tokenize_pattern,
    untokenize_pattern,
)
from babel.localtime import get_localzone
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from .calendars import render_calendars
from .config import get_settings
from .errors import InvalidDate, InvalidTimezone, InvalidUnit
from .models import TIME_UNITS, DateTimeFormat, DateTimeResult, DayInfo


log = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_ONE_MILLISECOND = timedelta(milliseconds=1)

ZoneParam = Union[str, tzinfo, None]


@dataclass(frozen=True)
class Duration:
    """A signed magnitude paired with one of the six calendar units."""

    value: float
    unit: str

    def __post_init__(self):
        if self.unit not in TIME_UNITS:
            raise InvalidUnit(self.unit)

    def negated(self) -> "Duration":
        return Duration(-self.value, self.unit)


# Timezone and date parsing

def parse_timezone_param(tz_str: str) -> tzinfo:
    """
    Parse a timezone parameter string into a tzinfo object.

    Supports:
    - IANA timezone names (e.g., "Europe/Warsaw", "America/New_York")
    - UTC offset format (e.g., "+02:00", "-05:00", "+0530")

    :param tz_str: Timezone string to parse.
    :return: ZoneInfo for IANA names, a fixed-offset timezone otherwise.
    :raises InvalidTimezone: if the string matches neither form.
    """
    tz_str = tz_str.strip()

    try:
        return ZoneInfo(tz_str)
    except (ZoneInfoNotFoundError, KeyError, ValueError):
        pass

    # +HH:MM, -HH:MM, +HHMM, -HHMM
    match = re.match(r'^([+-])(\d{2}):?(\d{2})$', tz_str)
    if match:
        sign = 1 if match.group(1) == '+' else -1
        hours = int(match.group(2))
        minutes = int(match.group(3))
        if hours < 24 and minutes < 60:
            return timezone(sign * timedelta(hours=hours, minutes=minutes))

    raise InvalidTimezone(tz_str)


def system_timezone() -> tzinfo:
    """The configured override zone, or the host's system timezone."""
    override = get_settings().timezone
    if override:
        return parse_timezone_param(override)
    return get_localzone()


def resolve_timezone(tz: ZoneParam = None) -> tzinfo:
    if isinstance(tz, tzinfo):
        return tz
    if tz and tz.strip():
        return parse_timezone_param(tz)
    return system_timezone()


def parse_date(text: Optional[str] = None) -> datetime:
    """
    Parse caller-supplied date text into a timezone-aware instant.

    Empty text and "now" mean the current instant. A bare ISO date is
    midnight UTC; any other text without an offset is read as local time
    in the system timezone.

    :raises InvalidDate: if the text cannot be parsed.
    """
    if text is None or not text.strip() or text.strip().lower() == "now":
        return datetime.now(tz=UTC)
    text = text.strip()

    try:
        day = date.fromisoformat(text)
    except ValueError:
        pass
    else:
        return datetime(day.year, day.month, day.day, tzinfo=UTC)

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            parsed = date_parser.parse(text)
        except (ValueError, OverflowError) as exc:
            raise InvalidDate(text) from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=system_timezone())
    return parsed


def to_iso(instant: datetime) -> str:
    """ISO-8601 UTC rendering with millisecond precision, e.g. 2025-02-04T15:30:45.000Z."""
    return instant.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def to_timestamp(instant: datetime) -> int:
    """Epoch milliseconds."""
    return (instant - _EPOCH) // _ONE_MILLISECOND


def from_timestamp(milliseconds: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=milliseconds)


# Locale-aware formatting

# Option value -> CLDR skeleton field, listed in canonical skeleton order.
_DATE_FIELDS = (
    ("year", {"numeric": "y", "2-digit": "yy"}),
    ("month", {"numeric": "M", "2-digit": "MM", "long": "MMMM", "short": "MMM", "narrow": "MMMMM"}),
    ("weekday", {"long": "EEEE", "short": "EEE", "narrow": "EEEEE"}),
    ("day", {"numeric": "d", "2-digit": "dd"}),
)
_TIME_FIELDS = (
    ("hour", {"numeric": "h", "2-digit": "hh"}),
    ("minute", {"numeric": "m", "2-digit": "mm"}),
    ("second", {"numeric": "s", "2-digit": "ss"}),
)

# Pattern character -> the requested field it renders.
_FIELD_GROUPS = {
    "y": "y", "M": "M", "L": "M", "E": "E", "c": "E", "d": "d",
    "h": "h", "H": "h", "K": "h", "k": "h", "m": "m", "s": "s",
}

# Minutes and seconds keep the locale's padding inside composite patterns.
_FIXED_WIDTH_GROUPS = frozenset("ms")

_DEFAULT_DATE_CODES = ["y", "M", "d"]


def _hour_symbol(locale: Locale) -> str:
    """'h' for locales that use a 12-hour clock, 'H' for 24-hour ones."""
    short_time = locale.time_formats["short"].pattern
    return "h" if ("h" in short_time or "K" in short_time) else "H"


def _field_codes(fields, fmt: DateTimeFormat, locale: Locale) -> list[str]:
    codes = []
    for option, symbols in fields:
        value = getattr(fmt, option)
        if value is None:
            continue
        code = symbols[value]
        if option == "hour":
            code = code.replace("h", _hour_symbol(locale))
        codes.append(code)
    return codes


def _groups(text: str) -> tuple[frozenset, bool]:
    """Requested-field groups rendered by a skeleton or pattern, and whether it renders anything else."""
    groups = set()
    extra = False
    for kind, value in tokenize_pattern(text):
        if kind != "field":
            continue
        group = _FIELD_GROUPS.get(value[0])
        if group is None:
            extra = True
        else:
            groups.add(group)
    return frozenset(groups), extra


def _adjust_widths(pattern: str, widths: dict[str, int]) -> str:
    tokens = []
    for kind, value in tokenize_pattern(pattern):
        if kind == "field":
            char, width = value
            group = _FIELD_GROUPS.get(char)
            if group in widths and group not in _FIXED_WIDTH_GROUPS and widths[group] != width:
                value = (char, widths[group])
        tokens.append((kind, value))
    return untokenize_pattern(tokens)


def _part_pattern(codes: list[str], locale: Locale) -> str:
    """
    Best locale pattern rendering every field in ``codes``.

    Tries the exact skeleton, then the same fields at other widths, then the
    closest skeleton covering all requested fields. A single field with no
    skeleton of its own is rendered bare.
    """
    skeleton = "".join(codes)
    widths = {_FIELD_GROUPS[code[0]]: len(code) for code in codes}
    wanted = frozenset(widths)
    bare = " ".join(codes)
    options = locale.datetime_skeletons

    if skeleton in options:
        match = skeleton
    else:
        match = match_skeleton(skeleton, options)
        if match is None and len(codes) > 1:
            covering = []
            for key in options:
                groups, extra = _groups(key)
                if wanted <= groups and not extra:
                    covering.append(key)
            match = match_skeleton(skeleton, covering, allow_different_fields=True)

    if match is None:
        return bare
    pattern = options[match].pattern
    if not wanted <= _groups(pattern)[0]:
        return bare
    return _adjust_widths(pattern, widths)


def _join_width(fmt: DateTimeFormat) -> str:
    """Width of the locale's date+time glue pattern, chosen from the month and weekday widths."""
    if fmt.month == "long":
        return "full" if fmt.weekday else "long"
    if fmt.month == "short":
        return "medium"
    return "short"


def render_instant(instant: datetime, fmt: DateTimeFormat, tz: tzinfo, locale: Locale) -> str:
    """
    Render an instant the way Intl.DateTimeFormat-style options describe.

    Field options become CLDR skeletons, one for the date fields and one for
    the time fields, each matched against the locale's available formats.
    When both are present they are joined with the locale's date-time
    pattern. ``style`` alone selects a bundled date+time preset.
    """
    date_codes = _field_codes(_DATE_FIELDS, fmt, locale)
    time_codes = _field_codes(_TIME_FIELDS, fmt, locale)
    if not date_codes and not time_codes:
        if fmt.style:
            return format_datetime(instant, fmt.style, tzinfo=tz, locale=locale)
        date_codes = _DEFAULT_DATE_CODES

    rendered = [
        format_datetime(instant, _part_pattern(codes, locale), tzinfo=tz, locale=locale)
        for codes in (date_codes, time_codes)
        if codes
    ]
    if len(rendered) == 1:
        return rendered[0]

    date_text, time_text = rendered
    glue = get_datetime_format(_join_width(fmt), locale=locale).replace("'", "")
    return glue.replace("{0}", time_text).replace("{1}", date_text)


def _locale(locale: Optional[str]) -> Locale:
    return Locale.parse(locale or get_settings().locale)


def format_instant(
    instant: datetime,
    format: Optional[DateTimeFormat] = None,
    tz: ZoneParam = None,
    locale: Optional[str] = None,
) -> DateTimeResult:
    """
    Render an instant as ISO-8601 UTC, epoch milliseconds and a localized string.

    Only ``formatted`` depends on the timezone; ``iso`` and ``timestamp``
    denote the same instant regardless of it.
    """
    return DateTimeResult(
        iso=to_iso(instant),
        formatted=render_instant(
            instant, format or DateTimeFormat(), resolve_timezone(tz), _locale(locale)
        ),
        timestamp=to_timestamp(instant),
    )


# Calendar arithmetic

def add_duration(instant: datetime, duration: Duration, tz: ZoneParam = None) -> datetime:
    """
    Apply a signed duration to an instant.

    Years and months move the wall-clock date in ``tz`` (month-length
    clamped, so Jan 31 + 1 month is the last day of February); fractional
    years and months truncate toward zero. Days and smaller units are
    absolute-time offsets.
    """
    if duration.unit in ("years", "months"):
        local = instant.astimezone(resolve_timezone(tz))
        shifted = local + relativedelta(**{duration.unit: int(duration.value)})
        return shifted.astimezone(instant.tzinfo)

    delta = timedelta(**{duration.unit: duration.value})
    return (instant.astimezone(UTC) + delta).astimezone(instant.tzinfo)


def subtract_duration(instant: datetime, duration: Duration, tz: ZoneParam = None) -> datetime:
    return add_duration(instant, duration.negated(), tz)


# Day metadata

def day_info(instant: datetime, tz: ZoneParam = None, locale: Optional[str] = None) -> DayInfo:
    """
    Day-level facts about an instant in the given (default: system) timezone.

    ``week_number`` is ceil((day_of_year + weekday_of_jan1) / 7) with Sunday
    as weekday 0. It is not an ISO week number.
    """
    local = instant.astimezone(resolve_timezone(tz))
    day_of_year = local.timetuple().tm_yday
    jan1_weekday = date(local.year, 1, 1).isoweekday() % 7
    weekday = local.isoweekday() % 7

    return DayInfo(
        day_of_week=format_date(local.date(), "EEEE", locale=_locale(locale)),
        is_weekend=weekday in (0, 6),
        day_of_month=local.day,
        day_of_year=day_of_year,
        week_number=math.ceil((day_of_year + jan1_weekday) / 7),
    )


# Shared tool implementation functions

@contextmanager
def _representable(date_text: str):
    """Report instants that cannot be shown in the requested timezone as bad dates."""
    try:
        yield
    except OverflowError as exc:
        raise InvalidDate(date_text) from exc


def get_time_result(
    tz: str = "",
    date_text: str = "",
    format: Optional[DateTimeFormat] = None,
    info: bool = False,
    calendar: str = "",
) -> DateTimeResult:
    """
    Generate the result for the get_time tool.

    :param tz: IANA timezone or UTC offset for display; system zone when empty.
    :param date_text: Date to render; "now" when empty.
    :param format: Display options for the formatted string.
    :param info: Include day-level metadata.
    :param calendar: Comma-separated alternative calendars to include.
    """
    zone = resolve_timezone(tz)
    instant = parse_date(date_text)

    with _representable(date_text):
        result = format_instant(instant, format, zone)
        if info:
            result.info = day_info(instant, zone)
        local_time = instant.astimezone(zone)
    if calendar.strip():
        sections, warnings = render_calendars(calendar, local_time)
        result.calendars = sections or None
        result.warnings = warnings or None
    return result


def calculate_time_result(
    date_text: str,
    operation: Literal["add", "subtract"],
    amount: float,
    unit: str,
    tz: str = "",
    format: Optional[DateTimeFormat] = None,
) -> DateTimeResult:
    """
    Generate the result for the calculate_time tool.

    :param date_text: Base date.
    :param operation: "add" or "subtract".
    :param amount: Magnitude of the offset (may be negative or fractional).
    :param unit: years, months, days, hours, minutes or seconds.
    :param tz: Timezone for calendar fields and display.
    :param format: Display options for the formatted string.
    """
    duration = Duration(amount, unit)
    zone = resolve_timezone(tz)
    instant = parse_date(date_text)

    if operation == "add":
        apply = add_duration
    elif operation == "subtract":
        apply = subtract_duration
    else:
        raise ValueError(f"Unknown operation: {operation!r}")

    try:
        shifted = apply(instant, duration, zone)
    except (OverflowError, ValueError) as exc:
        # result falls outside the representable date range
        raise InvalidDate(date_text) from exc

    log.debug("%s %s %s to %s -> %s", operation, amount, unit, to_iso(instant), to_iso(shifted))
    with _representable(date_text):
        return format_instant(shifted, format, zone)


def day_info_result(date_text: str = "", tz: str = "") -> DayInfo:
    """Generate the result for the get_day_info tool."""
    zone = resolve_timezone(tz)
    instant = parse_date(date_text)
    with _representable(date_text):
        return day_info(instant, zone)

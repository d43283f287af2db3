"""
Renderings of an instant in calendar systems other than the Gregorian one.

Each renderer receives a timezone-aware datetime already converted to the
display timezone and returns a flat mapping of labelled strings.
"""
from datetime import datetime
import logging

from hijridate import Gregorian
from japanera import EraDateTime
from persiantools.jdatetime import JalaliDateTime
from pyluach import dates as hebrew_dates


log = logging.getLogger(__name__)


def format_unix(local_time: datetime) -> dict[str, str]:
    """Unix timestamp in whole seconds."""
    return {"timestamp": str(int(local_time.timestamp()))}


def format_isodate(local_time: datetime) -> dict[str, str]:
    """ISO 8601 week date (YYYY-Www-D)."""
    return {"date": local_time.strftime("%G-W%V-%u")}


def calendar_hijri(local_time: datetime) -> dict[str, str]:
    hijri = Gregorian.fromdate(local_time.date()).to_hijri()
    return {
        "date": f"{hijri.isoformat()} {hijri.notation()}",
        "month": hijri.month_name(),
        "day": hijri.day_name(),
    }


def calendar_japanese(local_time: datetime) -> dict[str, str]:
    era_datetime = EraDateTime.from_datetime(local_time)
    return {
        # Reiwa 7, January 15, 14:00
        "english": era_datetime.strftime("%-E %-Y, %B %d, %H:%M"),
        # 令和7年01月15日 14時
        "kanji": era_datetime.strftime("%-K%-y年%m月%d日 %H時"),
        "era": f"{era_datetime.era.english} ({era_datetime.era.kanji})",
    }


def calendar_persian(local_time: datetime) -> dict[str, str]:
    jalali_dt = JalaliDateTime(local_time)
    return {
        "english": jalali_dt.strftime("%A %d %B %Y", locale="en"),
        "farsi": jalali_dt.strftime("%A %d %B %Y", locale="fa"),
    }


def calendar_hebrew(local_time: datetime) -> dict[str, str]:
    hebrew_date = hebrew_dates.GregorianDate(
        local_time.year, local_time.month, local_time.day
    ).to_heb()
    rendered = {
        "english": f"{hebrew_date.day} {hebrew_date.month_name()} {hebrew_date.year}",
        "hebrew": hebrew_date.hebrew_date_string(),
    }
    holiday_en = hebrew_date.holiday(hebrew=False)
    if holiday_en:
        rendered["holiday"] = f"{holiday_en} ({hebrew_date.holiday(hebrew=True)})"
    return rendered


CALENDAR_FORMATTERS = {
    "unix": format_unix,
    "isodate": format_isodate,
    "hijri": calendar_hijri,
    "japanese": calendar_japanese,
    "persian": calendar_persian,
    "hebrew": calendar_hebrew,
}


def render_calendars(
    calendar: str, local_time: datetime
) -> tuple[dict[str, dict[str, str]], list[str]]:
    """
    Render every calendar named in a comma-separated list.

    :param calendar: Names such as "hijri,japanese" (case-insensitive).
    :param local_time: Instant converted to the display timezone.
    :return: (renderings keyed by calendar name, warnings for unknown or unavailable calendars).
    """
    sections: dict[str, dict[str, str]] = {}
    warnings: list[str] = []
    for cal_name in (c.strip().lower() for c in calendar.split(",")):
        if not cal_name:
            continue
        formatter = CALENDAR_FORMATTERS.get(cal_name)
        if formatter is None:
            warnings.append(f"Unknown calendar format ignored: {cal_name}")
            continue
        try:
            sections[cal_name] = formatter(local_time)
        except (OverflowError, ValueError) as exc:
            # hijridate, for one, only covers 1924-2077
            log.debug("Calendar %s failed for %s: %s", cal_name, local_time, exc)
            warnings.append(f"{cal_name} calendar unavailable for this date")
    return sections, warnings

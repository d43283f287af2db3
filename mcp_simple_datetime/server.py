"""
MCP Simple Datetime - Local (stdio) variant.

This server provides date/time tools and persistent named timers to AI
assistants via the Model Context Protocol (MCP) using stdio transport.
"""
import json
from contextlib import contextmanager
from functools import lru_cache
from importlib.metadata import version
from typing import Literal, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from .config import get_settings
from .core import calculate_time_result, day_info_result, get_time_result
from .errors import DateTimeError
from .logger import configure_logging
from .models import DateTimeFormat, TimerFormat, TimeUnit
from .store import TimerStore
from .timers import DEFAULT_TIMER_ID, TimerCommand, TimerService


# Get package version dynamically from pyproject.toml via importlib.metadata
_version = version("mcp-simple-datetime")

app = FastMCP("mcp-simple-datetime", version=_version)


@lru_cache(maxsize=1)
def get_timer_service() -> TimerService:
    """Timer service bound to the configured state file, created on first use."""
    return TimerService(TimerStore(get_settings().state_file))


def _to_text(payload: dict) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


@contextmanager
def _client_errors():
    """Report bad caller input as a tool error; internal failures propagate."""
    try:
        yield
    except DateTimeError as exc:
        if not exc.client_error:
            raise
        raise ToolError(f"{exc.kind}: {exc}") from exc


# Note: in this context the docstrings are meant for the client AI
# to understand the tools and their purpose.

@app.tool(
    annotations={
        "title": "Get Time in a Timezone",
        "readOnlyHint": True
    }
)
def get_time(
    timezone: str = "",
    date: str = "",
    format: Optional[DateTimeFormat] = None,
    info: bool = False,
    calendar: str = ""
) -> str:
    """
    Returns the current time, or a given date, rendered for a timezone.

    :param timezone: IANA timezone or UTC offset. Examples: "America/New_York", "+05:30"
        Defaults to the system timezone of the machine running this tool.

    :param date: Date to render (ISO 8601 preferred, e.g. "2025-02-04T15:30:45Z").
        Defaults to now.

    :param format: Display options for the "formatted" field:
        - style: "full" | "long" | "medium" | "short" (date+time preset)
        - weekday: "long" | "short" | "narrow"
        - year: "numeric" | "2-digit"
        - month: "numeric" | "2-digit" | "long" | "short" | "narrow"
        - day, hour, minute, second: "numeric" | "2-digit"
        Example: {"weekday": "long", "year": "numeric", "month": "long", "day": "numeric"}

    :param info: Also return day of week, weekend flag, day of month,
        day of year and week number.

    :param calendar: Comma-separated additional calendars: "unix", "isodate",
        "hijri", "japanese", "persian", "hebrew". Unknown names are reported
        as warnings.

    The response is JSON with "iso" (UTC), "timestamp" (epoch milliseconds)
    and "formatted" (localized to the timezone).
    """
    with _client_errors():
        result = get_time_result(timezone, date, format, info, calendar)
    return _to_text(result.to_wire())


@app.tool(
    annotations={
        "title": "Add or Subtract Time from a Date",
        "readOnlyHint": True
    }
)
def calculate_time(
    date: str,
    operation: Literal["add", "subtract"],
    amount: float,
    unit: TimeUnit,
    timezone: str = "",
    format: Optional[DateTimeFormat] = None
) -> str:
    """
    Adds or subtracts an amount of time from a date, respecting month and
    year rollovers.

    :param date: Base date (ISO 8601 preferred) or "now".
    :param operation: "add" or "subtract".
    :param amount: How many units to move.
    :param unit: "years" | "months" | "days" | "hours" | "minutes" | "seconds".
        Adding months keeps the day of month when possible and otherwise
        clamps to the month's last day (Jan 31 + 1 month = Feb 28/29).
    :param timezone: IANA timezone or UTC offset used for calendar fields and display.
    :param format: Display options, same as get_time.
    """
    with _client_errors():
        result = calculate_time_result(date, operation, amount, unit, timezone, format)
    return _to_text(result.to_wire())


@app.tool(
    annotations={
        "title": "Get Day Information for a Date",
        "readOnlyHint": True
    }
)
def get_day_info(date: str = "", timezone: str = "") -> str:
    """
    Returns day of week, weekend flag, day of month, day of year and week
    number for a date (defaults to today).

    :param date: Date (ISO 8601 preferred) or "now".
    :param timezone: IANA timezone or UTC offset that decides which calendar day it is.
    """
    with _client_errors():
        result = day_info_result(date, timezone)
    return _to_text(result.to_wire())


@app.tool(
    annotations={
        "title": "Start, Stop or Delete a Named Timer",
        "readOnlyHint": False,
        "destructiveHint": True
    }
)
def timer(
    action: Literal["start", "stop", "delete"],
    id: str = "",
    description: str = "",
    format: Optional[TimerFormat] = None
) -> str:
    """
    Controls named stopwatches that persist across restarts.

    :param action:
        - "start": start the timer. Starting a timer that already exists
          resets it to zero and replaces its description.
        - "stop": stop a running timer and report the elapsed time.
        - "delete": remove the timer. The reported elapsed time is always 0.
    :param id: Timer name (default: "default"). Several timers can run at once.
    :param description: Optional note stored with the timer on start.
    :param format: Elapsed time display:
        - style: "compact" (HH:MM:SS, default) or "verbose" ("1 hour, 5 seconds")
        - includeMilliseconds: true to add milliseconds
    """
    command = TimerCommand(
        action=action,
        timer_id=id or DEFAULT_TIMER_ID,
        description=description or None,
        format=format,
    )
    with _client_errors():
        result = get_timer_service().handle(command)
    return _to_text(result.to_wire())


@app.tool(
    annotations={
        "title": "List Named Timers",
        "readOnlyHint": True
    }
)
def list_timers() -> str:
    """
    Returns every stored timer with its status ("running" or "stopped"),
    description and start time (epoch milliseconds).
    """
    with _client_errors():
        timers = get_timer_service().list_timers()
    return _to_text({"timers": [record.to_wire() for record in timers.values()]})


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level, log_path=settings.log_file)
    app.run()


if __name__ == "__main__":
    main()

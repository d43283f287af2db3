"""
Error kinds raised by the calendar engine and the timer subsystem.

Client errors describe bad input from the caller (unparseable dates, unknown
units, timers in the wrong state). StoreIOError is an internal failure and is
never reported as the caller's fault.
"""


class DateTimeError(Exception):
    """Base class for every error the core raises."""

    kind = "DateTimeError"
    client_error = True


class InvalidDate(DateTimeError):
    kind = "InvalidDate"

    def __init__(self, text: str):
        super().__init__(f"Invalid date format: {text!r}")
        self.text = text


class InvalidUnit(DateTimeError):
    kind = "InvalidUnit"

    def __init__(self, unit: str):
        super().__init__(
            f"Invalid time unit: {unit!r} "
            "(expected years, months, days, hours, minutes or seconds)"
        )
        self.unit = unit


class InvalidTimezone(DateTimeError):
    kind = "InvalidTimezone"

    def __init__(self, tz: str):
        super().__init__(
            f'Could not parse timezone "{tz}". '
            'Use IANA format (e.g., "Europe/Warsaw") or UTC offset (e.g., "+02:00").'
        )
        self.tz = tz


class NoRunningTimer(DateTimeError):
    kind = "NoRunningTimer"

    def __init__(self, timer_id: str):
        super().__init__(f"No running timer found with id: {timer_id}")
        self.timer_id = timer_id


class NoTimerFound(DateTimeError):
    kind = "NoTimerFound"

    def __init__(self, timer_id: str):
        super().__init__(f"No timer found with id: {timer_id}")
        self.timer_id = timer_id


class StoreIOError(DateTimeError):
    kind = "StoreIOError"
    client_error = False

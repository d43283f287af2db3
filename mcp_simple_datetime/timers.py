"""
Named stopwatches whose state survives process restarts.

Per timer id the lifecycle is::

    absent --start--> running --stop--> stopped --start--> running
    running/stopped --delete--> absent

``apply_timer_command`` holds all transition rules and never touches the
filesystem; ``TimerService`` runs it inside one TimerStore read-modify-write
cycle per call.
"""
import logging
import time
from dataclasses import dataclass
from typing import Callable, Literal, Mapping, Optional

from .core import from_timestamp, to_iso
from .errors import NoRunningTimer, NoTimerFound
from .models import ElapsedTime, TimerFormat, TimerRecord, TimerResult, TimerStatus
from .store import TimerMap, TimerStore


log = logging.getLogger(__name__)

DEFAULT_TIMER_ID = "default"

TimerAction = Literal["start", "stop", "delete"]


def format_elapsed(milliseconds: int, format: Optional[TimerFormat] = None) -> str:
    """
    Format a flat duration in milliseconds.

    compact: ``HH:MM:SS`` plus ``:mmm`` when milliseconds are included.
    verbose: ``"1 hour, 2 minutes, 3 seconds"``; zero components are left
    out and an all-zero duration reads ``"0 seconds"``.
    """
    fmt = format or TimerFormat()
    milliseconds = int(milliseconds)
    hours = milliseconds // 3_600_000
    minutes = milliseconds % 3_600_000 // 60_000
    seconds = milliseconds % 60_000 // 1000
    ms = milliseconds % 1000

    if fmt.style == "verbose":
        components = [(hours, "hour"), (minutes, "minute"), (seconds, "second")]
        if fmt.include_milliseconds:
            components.append((ms, "millisecond"))
        parts = [f"{n} {name}{'' if n == 1 else 's'}" for n, name in components if n > 0]
        return ", ".join(parts) or "0 seconds"

    parts = [f"{hours:02d}", f"{minutes:02d}", f"{seconds:02d}"]
    if fmt.include_milliseconds:
        parts.append(f"{ms:03d}")
    return ":".join(parts)


@dataclass(frozen=True)
class TimerCommand:
    action: TimerAction
    timer_id: str = DEFAULT_TIMER_ID
    description: Optional[str] = None
    format: Optional[TimerFormat] = None


def _timer_result(
    timer_id: str,
    record: TimerRecord,
    elapsed_ms: int,
    status: TimerStatus,
    fmt: Optional[TimerFormat],
    end_ms: Optional[int] = None,
) -> TimerResult:
    return TimerResult(
        id=timer_id,
        description=record.description,
        elapsed_time=ElapsedTime(
            milliseconds=elapsed_ms,
            formatted=format_elapsed(elapsed_ms, fmt),
        ),
        start_time=to_iso(from_timestamp(record.start_time)),
        end_time=to_iso(from_timestamp(end_ms)) if end_ms is not None else None,
        status=status,
    )


def apply_timer_command(
    timers: Mapping[str, TimerRecord], command: TimerCommand, now_ms: int
) -> tuple[TimerMap, TimerResult]:
    """
    Apply one command to a snapshot of the timer records.

    :param timers: Current records; left unmodified.
    :param command: The action and its arguments.
    :param now_ms: Current wall-clock time in epoch milliseconds.
    :return: (new records, result to report to the caller).
    :raises NoRunningTimer: stop on an absent or already stopped timer.
    :raises NoTimerFound: delete on an absent timer.
    """
    updated = dict(timers)
    timer_id = command.timer_id or DEFAULT_TIMER_ID

    if command.action == "start":
        # Always a fresh record: a running timer is reset, the old description dropped.
        record = TimerRecord(
            id=timer_id,
            description=command.description,
            start_time=now_ms,
            status="running",
        )
        updated[timer_id] = record
        return updated, _timer_result(timer_id, record, 0, "running", command.format)

    if command.action == "stop":
        record = updated.get(timer_id)
        if record is None or record.status != "running":
            raise NoRunningTimer(timer_id)
        # wall clock may have moved backwards since start
        elapsed_ms = max(0, now_ms - record.start_time)
        updated[timer_id] = record.model_copy(update={"status": "stopped"})
        return updated, _timer_result(
            timer_id, record, elapsed_ms, "stopped", command.format, end_ms=now_ms
        )

    if command.action == "delete":
        record = updated.pop(timer_id, None)
        if record is None:
            raise NoTimerFound(timer_id)
        # Deletion never reports the time the timer actually ran.
        return updated, _timer_result(timer_id, record, 0, "stopped", command.format)

    raise ValueError(f"Unknown timer action: {command.action!r}")


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class TimerService:
    """Timer operations backed by a TimerStore."""

    def __init__(self, store: TimerStore, clock: Callable[[], int] = _now_ms):
        self.store = store
        self.clock = clock

    def handle(self, command: TimerCommand) -> TimerResult:
        result = self.store.update(
            lambda timers: apply_timer_command(timers, command, self.clock())
        )
        log.info(
            "Timer %r %s: status=%s elapsed=%dms",
            result.id, command.action, result.status, result.elapsed_time.milliseconds,
        )
        return result

    def start(
        self,
        timer_id: str = DEFAULT_TIMER_ID,
        description: Optional[str] = None,
        format: Optional[TimerFormat] = None,
    ) -> TimerResult:
        return self.handle(TimerCommand("start", timer_id, description, format))

    def stop(self, timer_id: str = DEFAULT_TIMER_ID, format: Optional[TimerFormat] = None) -> TimerResult:
        return self.handle(TimerCommand("stop", timer_id, format=format))

    def delete(self, timer_id: str = DEFAULT_TIMER_ID, format: Optional[TimerFormat] = None) -> TimerResult:
        return self.handle(TimerCommand("delete", timer_id, format=format))

    def list_timers(self) -> TimerMap:
        """Read-only snapshot of every stored timer."""
        return self.store.read()

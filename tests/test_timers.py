"""Tests for elapsed-time formatting and the timer state machine."""

import pytest

from mcp_simple_datetime.errors import NoRunningTimer, NoTimerFound
from mcp_simple_datetime.models import TimerFormat, TimerRecord
from mcp_simple_datetime.store import TimerStore
from mcp_simple_datetime.timers import (
    DEFAULT_TIMER_ID,
    TimerCommand,
    TimerService,
    apply_timer_command,
    format_elapsed,
)


NOW = 1_738_683_045_000  # 2025-02-04T15:30:45Z
ONE_H_TWO_M_THREE_S_FOUR_MS = 3_723_004

COMPACT_MS = TimerFormat(style="compact", include_milliseconds=True)
VERBOSE = TimerFormat(style="verbose")
VERBOSE_MS = TimerFormat(style="verbose", include_milliseconds=True)


# ---- format_elapsed ----

class TestFormatElapsed:
    def test_zero_compact(self):
        assert format_elapsed(0) == "00:00:00"

    def test_zero_verbose(self):
        assert format_elapsed(0, VERBOSE) == "0 seconds"
        assert format_elapsed(0, VERBOSE_MS) == "0 seconds"

    def test_compact(self):
        assert format_elapsed(ONE_H_TWO_M_THREE_S_FOUR_MS) == "01:02:03"

    def test_compact_with_milliseconds(self):
        assert format_elapsed(ONE_H_TWO_M_THREE_S_FOUR_MS, COMPACT_MS) == "01:02:03:004"

    def test_hours_do_not_roll_into_days(self):
        assert format_elapsed(25 * 3_600_000) == "25:00:00"

    def test_verbose(self):
        assert format_elapsed(ONE_H_TWO_M_THREE_S_FOUR_MS, VERBOSE) == "1 hour, 2 minutes, 3 seconds"

    def test_verbose_with_milliseconds(self):
        assert (
            format_elapsed(ONE_H_TWO_M_THREE_S_FOUR_MS, VERBOSE_MS)
            == "1 hour, 2 minutes, 3 seconds, 4 milliseconds"
        )

    def test_verbose_skips_zero_components(self):
        assert format_elapsed(2 * 3_600_000 + 1000, VERBOSE) == "2 hours, 1 second"

    def test_verbose_singular(self):
        assert format_elapsed(61_001, VERBOSE_MS) == "1 minute, 1 second, 1 millisecond"

    def test_verbose_milliseconds_only_when_requested(self):
        assert format_elapsed(999, VERBOSE) == "0 seconds"
        assert format_elapsed(999, VERBOSE_MS) == "999 milliseconds"


# ---- apply_timer_command (no I/O) ----

def record(timer_id="t1", start=NOW, status="running", description=None):
    return TimerRecord(id=timer_id, description=description, start_time=start, status=status)


class TestApplyTimerCommand:
    def test_start_creates_running_record(self):
        timers, result = apply_timer_command({}, TimerCommand("start", "t1", "Test timer"), NOW)
        assert timers == {"t1": record(description="Test timer")}
        assert result.status == "running"
        assert result.description == "Test timer"
        assert result.elapsed_time.milliseconds == 0
        assert result.elapsed_time.formatted == "00:00:00"
        assert result.start_time == "2025-02-04T15:30:45.000Z"
        assert result.end_time is None

    def test_start_defaults_to_default_id(self):
        timers, result = apply_timer_command({}, TimerCommand("start"), NOW)
        assert result.id == DEFAULT_TIMER_ID == "default"
        assert list(timers) == ["default"]

    def test_start_resets_running_timer_and_clears_description(self):
        existing = {"t1": record(start=NOW - 60_000, description="old")}
        timers, result = apply_timer_command(existing, TimerCommand("start", "t1"), NOW)
        assert timers["t1"] == record()
        assert result.elapsed_time.milliseconds == 0

    def test_restart_stopped_timer(self):
        existing = {"t1": record(start=NOW - 60_000, status="stopped")}
        timers, _ = apply_timer_command(existing, TimerCommand("start", "t1"), NOW)
        assert timers["t1"].status == "running"
        assert timers["t1"].start_time == NOW

    def test_stop_reports_elapsed(self):
        existing = {"t1": record(start=NOW - ONE_H_TWO_M_THREE_S_FOUR_MS, description="d")}
        timers, result = apply_timer_command(
            existing, TimerCommand("stop", "t1", format=VERBOSE), NOW
        )
        assert timers["t1"].status == "stopped"
        assert timers["t1"].description == "d"
        assert result.status == "stopped"
        assert result.elapsed_time.milliseconds == ONE_H_TWO_M_THREE_S_FOUR_MS
        assert result.elapsed_time.formatted == "1 hour, 2 minutes, 3 seconds"
        assert result.start_time == "2025-02-04T14:28:41.996Z"
        assert result.end_time == "2025-02-04T15:30:45.000Z"

    def test_stop_clamps_backwards_clock(self):
        existing = {"t1": record(start=NOW + 5000)}
        _, result = apply_timer_command(existing, TimerCommand("stop", "t1"), NOW)
        assert result.elapsed_time.milliseconds == 0

    def test_stop_missing_timer(self):
        with pytest.raises(NoRunningTimer, match="No running timer found with id: nope"):
            apply_timer_command({}, TimerCommand("stop", "nope"), NOW)

    def test_stop_already_stopped_timer(self):
        existing = {"t1": record(status="stopped")}
        with pytest.raises(NoRunningTimer):
            apply_timer_command(existing, TimerCommand("stop", "t1"), NOW)

    def test_delete_reports_zero_elapsed(self):
        existing = {"t1": record(start=NOW - 3_600_000, description="gone")}
        timers, result = apply_timer_command(existing, TimerCommand("delete", "t1"), NOW)
        assert timers == {}
        assert result.elapsed_time.milliseconds == 0
        assert result.elapsed_time.formatted == "00:00:00"
        assert result.status == "stopped"
        assert result.description == "gone"
        assert result.start_time == "2025-02-04T14:30:45.000Z"

    def test_delete_missing_timer(self):
        with pytest.raises(NoTimerFound, match="No timer found with id: nope"):
            apply_timer_command({}, TimerCommand("delete", "nope"), NOW)

    def test_input_snapshot_is_not_modified(self):
        existing = {"t1": record(), "t2": record("t2")}
        apply_timer_command(existing, TimerCommand("stop", "t1"), NOW)
        apply_timer_command(existing, TimerCommand("delete", "t2"), NOW)
        assert existing == {"t1": record(), "t2": record("t2")}

    def test_other_ids_untouched(self):
        existing = {"a": record("a"), "b": record("b")}
        timers, _ = apply_timer_command(existing, TimerCommand("stop", "a"), NOW + 10)
        assert timers["a"].status == "stopped"
        assert timers["b"] == record("b")


# ---- TimerService (with a real store) ----

class TestTimerService:
    def test_start_stop_persists_stopped_record(self, service, clock, store):
        service.start("t1", "Test timer")
        clock.advance(1500)
        result = service.stop("t1")

        assert result.elapsed_time.milliseconds == 1500
        assert result.elapsed_time.formatted == "00:00:01"
        assert store.read()["t1"].status == "stopped"
        assert store.read()["t1"].description == "Test timer"

    def test_restart_is_destructive(self, service, clock):
        service.start("t1")
        clock.advance(10_000)
        service.start("t1")
        clock.advance(2_000)
        assert service.stop("t1").elapsed_time.milliseconds == 2_000

    def test_stop_twice_fails(self, service):
        service.start("t1")
        service.stop("t1")
        with pytest.raises(NoRunningTimer):
            service.stop("t1")

    def test_never_started(self, service):
        with pytest.raises(NoRunningTimer):
            service.stop("ghost")
        with pytest.raises(NoTimerFound):
            service.delete("ghost")

    def test_delete_after_running(self, service, clock, store):
        service.start()
        clock.advance(90_000)
        result = service.delete()
        assert result.id == "default"
        assert result.elapsed_time.milliseconds == 0
        assert store.read() == {}
        with pytest.raises(NoTimerFound):
            service.delete()

    def test_multiple_timers_are_independent(self, service, clock):
        service.start("a", "First timer")
        service.start("b", "Second timer")
        clock.advance(500)
        result_a = service.stop("a")

        timers = service.list_timers()
        assert result_a.id == "a"
        assert timers["a"].status == "stopped"
        assert timers["b"].status == "running"
        assert timers["b"].description == "Second timer"

        clock.advance(500)
        assert service.stop("b").elapsed_time.milliseconds == 1000

    def test_survives_restart(self, state_path, clock):
        TimerService(TimerStore(state_path), clock=clock).start("long", "across restarts")
        clock.advance(3_600_000)

        restarted = TimerService(TimerStore(state_path), clock=clock)
        result = restarted.stop("long", format=TimerFormat(style="verbose"))
        assert result.elapsed_time.formatted == "1 hour"
        assert result.description == "across restarts"

    def test_failed_command_writes_nothing(self, service, state_path):
        with pytest.raises(NoRunningTimer):
            service.stop("t1")
        assert not state_path.exists()

    def test_default_clock_is_epoch_milliseconds(self, store):
        result = TimerService(store).start()
        assert result.start_time.endswith("Z")
        assert store.read()["default"].start_time > 1_700_000_000_000

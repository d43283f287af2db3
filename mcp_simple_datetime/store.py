"""
Durable timer storage.

All timer records live in one JSON document. Every change is a full
read-modify-write of that document: the write goes to a temporary file that
is then renamed over the target, and in-process callers are serialised by a
lock, so concurrent writers can only ever lose to each other (last writer
wins), never corrupt the file.
"""
import contextlib
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, TypeVar

from pydantic import ValidationError

from .errors import StoreIOError
from .models import TimerRecord


log = logging.getLogger(__name__)

SCHEMA_VERSION = 1

TimerMap = dict[str, TimerRecord]
T = TypeVar("T")


def decode_document(raw: Any) -> TimerMap:
    """
    Turn a parsed JSON document into timer records.

    Accepts the versioned shape ``{"schemaVersion": 1, "timers": {...}}`` as
    well as the legacy bare mapping of timer id to record. Records that fail
    validation are dropped individually.

    :raises ValueError: if the document as a whole is not usable.
    :raises StoreIOError: if the document declares a schema version this
        release does not understand.
    """
    if not isinstance(raw, dict):
        raise ValueError("timer document must be a JSON object")

    if "schemaVersion" in raw:
        if raw["schemaVersion"] != SCHEMA_VERSION:
            # never overwrite timers written by another release
            raise StoreIOError(
                f"Timer state uses unsupported schemaVersion {raw['schemaVersion']!r}"
            )
        entries = raw.get("timers", {})
        if not isinstance(entries, dict):
            raise ValueError("'timers' must be a JSON object")
    else:
        entries = raw

    timers: TimerMap = {}
    for timer_id, entry in entries.items():
        try:
            timers[timer_id] = TimerRecord.model_validate(entry)
        except ValidationError as exc:
            log.warning("Dropping invalid timer record %r: %s", timer_id, exc)
    return timers


def encode_document(timers: TimerMap) -> dict:
    return {
        "schemaVersion": SCHEMA_VERSION,
        "timers": {timer_id: record.to_wire() for timer_id, record in timers.items()},
    }


class TimerStore:
    """The single owner of the on-disk timer document."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def read(self) -> TimerMap:
        """
        Load every timer record.

        A missing file (first run) or an unparseable document yields an
        empty mapping. A document from an unknown schema version, or any
        other read failure, raises StoreIOError.
        """
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except FileNotFoundError:
            log.debug("No timer state at '%s' yet, starting empty", self.path)
            return {}
        except ValueError:
            log.warning("Timer state at '%s' is not valid JSON, treating it as empty", self.path)
            return {}
        except OSError as exc:
            raise StoreIOError(f"Could not read timer state from '{self.path}': {exc}") from exc

        try:
            return decode_document(raw)
        except ValueError as exc:
            log.warning("Ignoring unusable timer state at '%s': %s", self.path, exc)
            return {}

    def write(self, timers: TimerMap) -> None:
        """Replace the stored document with ``timers``."""
        document = encode_document(timers)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(document, f, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            raise StoreIOError(f"Could not write timer state to '{self.path}': {exc}") from exc
        log.debug("Saved %d timer(s) to '%s'", len(timers), self.path)

    def update(self, mutation: Callable[[TimerMap], tuple[TimerMap, T]]) -> T:
        """
        Run one read-modify-write cycle.

        ``mutation`` receives a fresh copy of the stored records and returns
        the new records together with a result, which is passed back to the
        caller once the new records are on disk. Nothing is written if the
        mutation raises.
        """
        with self._lock:
            timers, result = mutation(self.read())
            self.write(timers)
        return result

"""Accelerated simulated time.

A time accelerator maps (simulated instant at start, real nanoseconds
elapsed since the first frame) to a new simulated instant. The
:class:`TimeAnimator` is driven by the embedding application, which calls
:meth:`TimeAnimator.tick` once per rendered frame with a monotonic
timestamp (e.g. ``time.monotonic_ns()``).
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Protocol

from skyview.state import DateTimeBean

LOG = logging.getLogger(__name__)

NANOS_PER_SECOND = 1_000_000_000
NANOS_PER_MICROSECOND = 1_000


def _plus(instant: datetime, delta: timedelta) -> datetime:
    """Absolute-time addition: DST changes do not shift the result."""
    return (instant.astimezone(timezone.utc) + delta).astimezone(instant.tzinfo)


class TimeAccelerator(Protocol):
    def adjust(self, initial: datetime, elapsed_ns: int) -> datetime: ...


@dataclass(frozen=True)
class ContinuousAccelerator:
    """initial + elapsed * factor.

    ``datetime`` stops at the microsecond, so the accelerated offset is
    floored to whole microseconds rather than kept to the nanosecond:
    ``continuous(1).adjust(t0, 999) == t0``.
    """

    factor: int

    def __post_init__(self) -> None:
        if self.factor < 0:
            raise ValueError(f"acceleration factor must be non-negative, got {self.factor}")

    def adjust(self, initial: datetime, elapsed_ns: int) -> datetime:
        return _plus(initial, timedelta(microseconds=(elapsed_ns * self.factor) // NANOS_PER_MICROSECOND))


@dataclass(frozen=True)
class DiscreteAccelerator:
    """initial + floor(frequency * elapsed seconds) * step.

    Simulated time moves by whole ``step``s, ``frequency`` times per real second.
    """

    frequency: float
    step: timedelta

    def __post_init__(self) -> None:
        if not self.frequency > 0:
            raise ValueError(f"advancement frequency must be positive, got {self.frequency}")
        if self.step <= timedelta(0):
            raise ValueError(f"discrete step must be positive, got {self.step}")

    def ticks(self, elapsed_ns: int) -> int:
        return int((self.frequency * elapsed_ns) // NANOS_PER_SECOND)

    def adjust(self, initial: datetime, elapsed_ns: int) -> datetime:
        return _plus(initial, self.step * self.ticks(elapsed_ns))


def continuous(factor: int) -> ContinuousAccelerator:
    return ContinuousAccelerator(factor)


def discrete(frequency: float, step: timedelta) -> DiscreteAccelerator:
    return DiscreteAccelerator(frequency, step)


SIDEREAL_DAY_LENGTH = timedelta(hours=23, minutes=56, seconds=4)


class NamedTimeAccelerator(Enum):
    TIMES_1 = ("1×", continuous(1))
    TIMES_30 = ("30×", continuous(30))
    TIMES_300 = ("300×", continuous(300))
    TIMES_3000 = ("3000×", continuous(3000))
    DAY = ("day", discrete(60, timedelta(days=1)))
    SIDEREAL_DAY = ("sidereal day", discrete(60, SIDEREAL_DAY_LENGTH))

    def __init__(self, display_name: str, accelerator: TimeAccelerator) -> None:
        self.display_name = display_name
        self.accelerator = accelerator

    @classmethod
    def from_name(cls, name: str) -> "NamedTimeAccelerator":
        """Look up by display name ('300×', 'x300', 'day', ...) or member name."""
        key = name.strip()
        if key.lower().startswith("x") and key[1:].isdigit():
            key = f"{key[1:]}×"
        for member in cls:
            if key in (member.display_name, member.name) or key.lower() == member.display_name:
                return member
        raise ValueError(f"Unknown time accelerator: {name}")

    def __str__(self) -> str:
        return self.display_name


class TimeAnimator:
    """Two-state clock (stopped / running) writing into a DateTimeBean.

    The first tick after :meth:`start` only records the frame-zero
    timestamp. Later ticks set the simulated time to
    ``accelerator.adjust(baseline, now - frame_zero)``.
    All state changes happen under one lock, so ticks from one thread and
    start/stop from another never see a half-updated clock.
    """

    def __init__(self, date_time: DateTimeBean, accelerator: TimeAccelerator | None = None) -> None:
        self.date_time = date_time
        self._accelerator = accelerator if accelerator is not None else NamedTimeAccelerator.TIMES_300.accelerator
        self._running = False
        self._baseline: datetime | None = None
        self._frame_zero_ns: int | None = None
        self._first_frame_pending = True
        self._lock = threading.RLock()

    @property
    def accelerator(self) -> TimeAccelerator:
        return self._accelerator

    @accelerator.setter
    def accelerator(self, accelerator: TimeAccelerator) -> None:
        if not callable(getattr(accelerator, "adjust", None)):
            raise TypeError(f"not a time accelerator: {accelerator!r}")
        with self._lock:
            self._accelerator = accelerator
        LOG.info("Time accelerator set to %r", accelerator)

    @property
    def running(self) -> bool:
        return self._running

    @property
    def baseline(self) -> datetime | None:
        """Simulated instant captured by the last start()."""
        return self._baseline

    @property
    def frame_zero_ns(self) -> int | None:
        return self._frame_zero_ns

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._baseline = self.date_time.zoned_date_time
            self._first_frame_pending = True
            self._frame_zero_ns = None
            self._running = True
        LOG.info("Time animation started at %s", self._baseline.isoformat())

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._first_frame_pending = True
        LOG.info("Time animation stopped at %s", self.date_time.zoned_date_time.isoformat())

    def toggle(self) -> bool:
        """Start if stopped, stop if running; return the new running state."""
        with self._lock:
            if self._running:
                self.stop()
            else:
                self.start()
            return self._running

    def tick(self, now_ns: int) -> None:
        """Advance simulated time for the frame at monotonic time ``now_ns``."""
        with self._lock:
            if not self._running:
                return
            if self._first_frame_pending:
                self._frame_zero_ns = now_ns
                self._first_frame_pending = False
                return
            self.date_time.zoned_date_time = self._accelerator.adjust(self._baseline, now_ns - self._frame_zero_ns)


__all__ = [
    "ContinuousAccelerator",
    "DiscreteAccelerator",
    "NamedTimeAccelerator",
    "SIDEREAL_DAY_LENGTH",
    "TimeAccelerator",
    "TimeAnimator",
    "continuous",
    "discrete",
]

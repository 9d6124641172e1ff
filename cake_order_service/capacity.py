"""
capacity.py — Per-Day Booking Limits

The bakery can only produce a fixed number of cakes per delivery date. A
`CapacityChecker` is created once per process and shared by all requests; its
counters are guarded by a lock so that concurrent orders for the same date can
never over-book it.
"""

import threading
from datetime import date
from enum import Enum
from typing import Callable

from .logging_config import get_logger

log = get_logger(__name__)


class ReservationStatus(str, Enum):
    ALLOWED = "ALLOWED"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"


class CapacityChecker:
    """
    Counts reservations per delivery date against a fixed daily maximum.

    Counts live in memory and start from zero on every process start. Counters for
    dates before today are dropped whenever a new reservation is made.
    """

    def __init__(self, max_per_day: int, today: Callable[[], date] = date.today):
        if max_per_day < 1:
            raise ValueError("max_per_day must be at least 1")
        self.max_per_day = max_per_day
        self._today = today
        self._counts = {}
        self._lock = threading.Lock()

    def _prune(self, keep: date):
        today = self._today()
        for day in [day for day in self._counts if day < today and day != keep]:
            del self._counts[day]

    def reserve(self, day: date) -> ReservationStatus:
        """
        Takes one slot for `day` if any are left.

        Args:
            day (date): Delivery date.

        Returns:
            ReservationStatus: ALLOWED if a slot was taken, CAPACITY_EXCEEDED otherwise.
        """
        with self._lock:
            self._prune(keep=day)
            booked = self._counts.get(day, 0)
            if booked >= self.max_per_day:
                log.warning(f"[Capacity] {day.isoformat()} is fully booked ({self.max_per_day} orders).")
                return ReservationStatus.CAPACITY_EXCEEDED
            self._counts[day] = booked + 1
            log.info(f"[Capacity] Reserved slot {booked + 1}/{self.max_per_day} for {day.isoformat()}.")
            return ReservationStatus.ALLOWED

    def release(self, day: date):
        """Gives back a slot taken by `reserve`, e.g. when the gateway order could not be created."""
        with self._lock:
            booked = self._counts.get(day, 0)
            if booked <= 0:
                return
            if booked == 1:
                del self._counts[day]
            else:
                self._counts[day] = booked - 1
            log.info(f"[Capacity] Released slot for {day.isoformat()} ({booked - 1}/{self.max_per_day} in use).")

    def booked(self, day: date) -> int:
        with self._lock:
            return self._counts.get(day, 0)

    def tracked_dates(self) -> int:
        with self._lock:
            return len(self._counts)

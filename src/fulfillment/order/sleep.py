"""Sleep schedule — deferred re-examination markers stored on an order.

An external poller scans for entries whose stop date has passed or that
need a reset, re-examines the order, and acknowledges the entry. An order
holds at most one entry per ``SleepState``.

``TimedSleep`` entries carry a deterministic wake time and never need a
reset; every other state is (re)armed with ``reset_needed=True`` whenever it
is written.
"""

from datetime import datetime

from protean.fields import Boolean, DateTime, Integer, String

from fulfillment.domain import fulfillment
from fulfillment.order.vocabulary import SleepState
from fulfillment.utils.dates import as_utc


@fulfillment.entity(part_of="Order")
class SleepStatus:
    state = String(required=True, max_length=50, choices=SleepState)
    sleep_start_date = DateTime()
    sleep_stop_date = DateTime()
    reset_needed = Boolean(default=False)
    sleep_reset_count = Integer(default=0)

    def is_due(self, now: datetime) -> bool:
        if self.reset_needed:
            return True
        stop = as_utc(self.sleep_stop_date)
        return stop is not None and stop <= as_utc(now)

    def rearm(self, start: datetime | None, stop: datetime | None) -> None:
        self.sleep_start_date = as_utc(start)
        self.sleep_stop_date = as_utc(stop)
        if self.state != SleepState.TIMED_SLEEP.value:
            self.reset_needed = True

    def acknowledge_reset(self) -> None:
        if self.reset_needed:
            self.reset_needed = False
            self.sleep_reset_count = (self.sleep_reset_count or 0) + 1

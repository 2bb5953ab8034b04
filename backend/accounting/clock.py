# accounting/clock.py
"""
Clocks injected into the engines.

Age and snapshot dates are calendar dates, so engines ask the clock for
``today()`` rather than reading the wall clock themselves. Tests pass a
FixedClock.
"""

from datetime import date, datetime, time

from django.utils import timezone


class SystemClock:
    """Wall clock in the configured TIME_ZONE."""

    def now(self) -> datetime:
        return timezone.now()

    def today(self) -> date:
        return timezone.localdate()


class FixedClock:
    """Clock frozen at a given moment."""

    def __init__(self, moment):
        if isinstance(moment, datetime):
            if timezone.is_naive(moment):
                moment = timezone.make_aware(moment)
        elif isinstance(moment, date):
            moment = timezone.make_aware(datetime.combine(moment, time(12, 0)))
        else:
            raise TypeError(f"FixedClock needs a date or datetime, got {type(moment).__name__}")
        self._moment = moment

    def now(self) -> datetime:
        return self._moment

    def today(self) -> date:
        return timezone.localdate(self._moment)

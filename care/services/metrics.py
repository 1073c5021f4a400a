"""
Utilization summaries over a patient's timeline.

Only entry types, dates and booking status are looked at; the clinical
content of an entry never is.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from django.utils import timezone

from care.constants import BOOKING_STATUS_CONFIRMED, TIMELINE_BOOKING, TIMELINE_TYPES

RECENT_DAYS = 7


@dataclass
class MetricsSummary:
    counts: dict
    total: int
    recent_activity_count: int
    upcoming_appointments: int
    last_activity: Optional[datetime] = None

    def as_dict(self) -> dict:
        return {
            'totalEvents': self.total,
            'counts': dict(self.counts),
            'recentActivityCount': self.recent_activity_count,
            'upcomingAppointments': self.upcoming_appointments,
            'lastActivity': self.last_activity.isoformat() if self.last_activity else None,
        }


@dataclass
class TrendPoint:
    date: date
    counts: dict = field(default_factory=dict)
    total: int = 0

    def as_dict(self) -> dict:
        return {'date': self.date.isoformat(), 'counts': dict(self.counts), 'total': self.total}


def _local_day(dt: datetime) -> date:
    if timezone.is_aware(dt):
        dt = timezone.localtime(dt)
    return dt.date()


def aggregate_metrics(entries: Iterable, *, now=None) -> MetricsSummary:
    """Counts per type, recent activity and upcoming confirmed bookings."""
    now = now or timezone.now()
    entries = list(entries)
    counts = Counter({t: 0 for t in TIMELINE_TYPES})
    recent_since = now - timedelta(days=RECENT_DAYS)
    today = _local_day(now)
    recent = upcoming = 0
    last = None
    for entry in entries:
        counts[entry.type] += 1
        if recent_since <= entry.date <= now:
            recent += 1
        if (entry.type == TIMELINE_BOOKING and entry.status == BOOKING_STATUS_CONFIRMED
                and _local_day(entry.date) >= today):
            upcoming += 1
        if entry.date <= now and (last is None or entry.date > last):
            last = entry.date
    return MetricsSummary(
        counts={t: counts[t] for t in TIMELINE_TYPES},
        total=len(entries),
        recent_activity_count=recent,
        upcoming_appointments=upcoming,
        last_activity=last,
    )


def aggregate_trend(entries: Iterable, *, start: Optional[date] = None, end: Optional[date] = None) -> list[TrendPoint]:
    """One point per local calendar day that has activity, oldest first.

    ``start``/``end`` zoom the result to an inclusive day window.
    """
    buckets: dict[date, TrendPoint] = {}
    for entry in entries:
        day = _local_day(entry.date)
        if start is not None and day < start:
            continue
        if end is not None and day > end:
            continue
        point = buckets.get(day)
        if point is None:
            point = buckets[day] = TrendPoint(date=day, counts={t: 0 for t in TIMELINE_TYPES})
        point.counts[entry.type] = point.counts.get(entry.type, 0) + 1
        point.total += 1
    return [buckets[d] for d in sorted(buckets)]

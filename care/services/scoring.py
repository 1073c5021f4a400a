"""
Priority scoring for patients waiting on an inpatient bed.

Each priority level owns a fixed band of 100 points.  Inside a band the
score grows with time spent in the queue (one point per 2.4 hours, at
most 30), so a long wait can reorder patients of the same level but can
never lift a lower level above a higher one.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from django.utils import timezone

BAND_WIDTH = 100.0
PRIORITY_BASE = {
    'CRITICAL': 300.0,
    'HIGH': 200.0,
    'MEDIUM': 100.0,
    'LOW': 0.0,
}
WAIT_HOURS_PER_POINT = 2.4
MAX_WAIT_POINTS = 30.0


def _wait_hours(wait_duration) -> float:
    if isinstance(wait_duration, timedelta):
        hours = wait_duration.total_seconds() / 3600
    else:
        hours = float(wait_duration or 0)
    return max(hours, 0.0)


def wait_points(wait_duration) -> float:
    """Points earned for time in queue; accepts a timedelta or hours."""
    return min(_wait_hours(wait_duration) / WAIT_HOURS_PER_POINT, MAX_WAIT_POINTS)


def compute_score(priority_level: str, wait_duration, bed_type_matches: bool = True) -> float:
    """Return the queue score for one waiting patient.

    ``bed_type_matches`` is accepted for interface symmetry with the
    allocator but does not affect the score: bed type is a hard filter at
    allocation time, not a ranking factor.
    """
    try:
        base = PRIORITY_BASE[priority_level]
    except KeyError:
        raise ValueError(f'unknown priority level: {priority_level!r}') from None
    return round(base + wait_points(wait_duration), 4)


def score_breakdown(priority_level: str, wait_duration, *, now=None) -> dict:
    now = now or timezone.now()
    return {
        'base': PRIORITY_BASE[priority_level],
        'waitingTime': round(wait_points(wait_duration), 2),
        'calculatedAt': now.isoformat(),
    }


def assess_priority(medical_urgency: float = 0, patient_age: Optional[int] = None,
                    other_factors: float = 0, waited=None) -> tuple[str, int]:
    """Derive a priority level from an intake assessment.

    Urgency (0-10) is worth up to 40 points, age up to 20, other factors
    up to 10 and time already waited since booking up to 30.  Returns
    ``(level, points)`` with points in 0..100.
    """
    points = min(max(float(medical_urgency or 0), 0.0) * 4, 40.0)
    if patient_age:
        if patient_age > 65 or patient_age < 5:
            points += 20
        elif patient_age > 50 or patient_age < 12:
            points += 10
    points += min(max(float(other_factors or 0), 0.0), 10.0)
    points += wait_points(waited)
    total = int(round(min(points, 100.0)))
    if total >= 90:
        level = 'CRITICAL'
    elif total >= 70:
        level = 'HIGH'
    elif total < 40:
        level = 'LOW'
    else:
        level = 'MEDIUM'
    return level, total


@dataclass
class WaitEstimate:
    hours: int
    days: int
    readable: str


def estimate_wait_time(queue_position: int, turnover_hours: int = 48) -> WaitEstimate:
    """Rough wait for a queue position given the average bed turnover."""
    hours = max(int(queue_position), 1) * int(turnover_hours)
    days = math.ceil(hours / 24)
    return WaitEstimate(hours=hours, days=days, readable=f'{days // 7}-{days} days')

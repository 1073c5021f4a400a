from datetime import timedelta

import pytest

from care.services.scoring import (
    MAX_WAIT_POINTS,
    PRIORITY_BASE,
    assess_priority,
    compute_score,
    estimate_wait_time,
    score_breakdown,
    wait_points,
)

LEVELS = ['CRITICAL', 'HIGH', 'MEDIUM', 'LOW']
WAITS = [timedelta(0), timedelta(hours=1), timedelta(days=3), timedelta(days=365), timedelta(days=10_000)]


def test_priority_bands_never_overlap():
    for hi, lo in zip(LEVELS, LEVELS[1:]):
        lowest_hi = min(compute_score(hi, w) for w in WAITS)
        highest_lo = max(compute_score(lo, w) for w in WAITS)
        assert lowest_hi > highest_lo


def test_score_grows_with_wait_and_is_capped():
    assert compute_score('HIGH', timedelta(hours=24)) > compute_score('HIGH', timedelta(hours=1))
    assert compute_score('HIGH', timedelta(days=1000)) == PRIORITY_BASE['HIGH'] + MAX_WAIT_POINTS


def test_one_point_per_2_4_hours():
    assert wait_points(timedelta(hours=24)) == pytest.approx(10)
    assert wait_points(12) == pytest.approx(5)


def test_negative_wait_counts_as_zero():
    assert compute_score('LOW', timedelta(hours=-5)) == 0


def test_bed_type_match_does_not_change_score():
    w = timedelta(hours=30)
    assert compute_score('MEDIUM', w, True) == compute_score('MEDIUM', w, False)


def test_unknown_level_rejected():
    with pytest.raises(ValueError):
        compute_score('URGENT', timedelta(0))


def test_score_breakdown_fields():
    b = score_breakdown('CRITICAL', timedelta(hours=24))
    assert b['base'] == 300
    assert b['waitingTime'] == 10
    assert 'calculatedAt' in b


@pytest.mark.parametrize('urgency,age,other,waited,expected', [
    (0, None, 0, None, 'LOW'),
    (10, 30, 0, None, 'MEDIUM'),
    (10, 70, 10, None, 'HIGH'),
    (10, 70, 0, timedelta(hours=72), 'CRITICAL'),
    (5, 3, 0, None, 'MEDIUM'),
])
def test_assess_priority_levels(urgency, age, other, waited, expected):
    level, points = assess_priority(urgency, age, other, waited=waited)
    assert level == expected
    assert 0 <= points <= 100


def test_estimate_wait_time():
    est = estimate_wait_time(3, 48)
    assert est.hours == 144
    assert est.days == 6
    assert est.readable == '0-6 days'

"""Derived channel metrics computed from snapshot history.

History passed to these functions is ordered newest-first. Windows are
counted in captures, not calendar days: the 7-window is the 7 most recent
snapshots regardless of when they were taken.
"""
import math
from typing import Optional, Sequence

from analysis.schemas import ChannelSummary, EarningsEstimate, HistoryPoint, SnapshotView

SHORT_WINDOW = 7
LONG_WINDOW = 30
SUMMARY_HISTORY_LIMIT = 60

# Assumed RPM range in dollars per 1000 views
EARNINGS_RPM_LOW = 0.5
EARNINGS_RPM_HIGH = 4.0

# (exclusive lower bound on subscribers, grade), checked top-down
GRADE_THRESHOLDS = (
    (10_000_000, "A+"),
    (5_000_000, "A"),
    (1_000_000, "A-"),
    (500_000, "B+"),
    (100_000, "B"),
    (50_000, "B-"),
    (10_000, "C+"),
    (1_000, "C"),
)
LOWEST_GRADE = "D"


def window_delta(history_desc: Sequence, size: int, field: str) -> int:
    """newest - oldest value of `field` within the first `size` snapshots"""
    window = list(history_desc[:size])
    if len(window) < 2:
        return 0
    return getattr(window[0], field) - getattr(window[-1], field)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def estimate_earnings(view_delta: int) -> EarningsEstimate:
    """Earnings range for a view delta; negative deltas give negative estimates"""
    thousands = view_delta / 1000
    return EarningsEstimate(
        low=_round_half_up(thousands * EARNINGS_RPM_LOW),
        high=_round_half_up(thousands * EARNINGS_RPM_HIGH)
    )


def compute_grade(subscriber_count: int, view_count: Optional[int] = None) -> str:
    # view_count is accepted for callers but does not affect the tier
    for threshold, grade in GRADE_THRESHOLDS:
        if subscriber_count > threshold:
            return grade
    return LOWEST_GRADE


def build_summary(latest, history_desc: Sequence) -> ChannelSummary:
    views30 = window_delta(history_desc, LONG_WINDOW, "view_count")

    return ChannelSummary(
        latest=SnapshotView.model_validate(latest),
        subs7=window_delta(history_desc, SHORT_WINDOW, "subscriber_count"),
        subs30=window_delta(history_desc, LONG_WINDOW, "subscriber_count"),
        views30=views30,
        estimated_monthly_earnings=estimate_earnings(views30),
        grade=compute_grade(latest.subscriber_count, latest.view_count),
        history=[HistoryPoint.model_validate(s) for s in reversed(list(history_desc))]
    )

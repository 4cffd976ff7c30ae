"""Statistical summary and classification of latency samples."""

from __future__ import annotations

import math
from typing import Optional, Sequence

from embyprobe.config import ACCEPTABLE_MAX_MS, EXCELLENT_BELOW_MS, VERY_GOOD_MAX_MS
from embyprobe.models import Verdict


def median(values: Sequence[float]) -> Optional[float]:
    """Median of *values*; None when there are none.

    Odd counts take the middle element, even counts the mean of the two
    central elements.
    """
    if not values:
        return None

    sorted_vals = sorted(values)
    n = len(sorted_vals)
    mid = n // 2
    if n % 2 == 1:
        return sorted_vals[mid]
    return (sorted_vals[mid - 1] + sorted_vals[mid]) / 2


def classify_latency(median_ms: Optional[float]) -> Optional[Verdict]:
    """Map a median round-trip time to a streaming verdict."""
    if median_ms is None or not math.isfinite(median_ms):
        return None
    if median_ms < EXCELLENT_BELOW_MS:
        return Verdict.EXCELLENT
    elif median_ms <= VERY_GOOD_MAX_MS:
        return Verdict.VERY_GOOD
    elif median_ms <= ACCEPTABLE_MAX_MS:
        return Verdict.ACCEPTABLE
    return Verdict.POOR


def format_ms(value: Optional[float]) -> str:
    """One decimal below 100ms, whole milliseconds above."""
    if value is None or math.isnan(value):
        return ""
    if value < 100:
        return f"{value:.1f} ms"
    return f"{round(value)} ms"

from __future__ import annotations

import pytest

from embyprobe.models import Verdict
from embyprobe.stats import classify_latency, format_ms, median


def test_median_odd() -> None:
    assert median([10, 20, 30]) == 20


def test_median_even() -> None:
    assert median([10, 20, 30, 40]) == 25


def test_median_unsorted_input() -> None:
    assert median([30, 10, 20]) == 20
    assert median((40.0, 10.0, 30.0, 20.0)) == 25.0


def test_median_empty_is_none() -> None:
    assert median([]) is None


def test_median_single() -> None:
    assert median([42.5]) == 42.5


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0.0, Verdict.EXCELLENT),
        (19.9, Verdict.EXCELLENT),
        (20, Verdict.VERY_GOOD),
        (50, Verdict.VERY_GOOD),
        (50.1, Verdict.ACCEPTABLE),
        (80, Verdict.ACCEPTABLE),
        (80.1, Verdict.POOR),
        (950, Verdict.POOR),
    ],
)
def test_classify_latency(value, expected) -> None:
    assert classify_latency(value) is expected


def test_classify_latency_undefined() -> None:
    assert classify_latency(None) is None
    assert classify_latency(float("nan")) is None


def test_verdict_severity() -> None:
    assert Verdict.EXCELLENT.severity == "success"
    assert Verdict.VERY_GOOD.severity == "success"
    assert Verdict.ACCEPTABLE.severity == "warn"
    assert Verdict.POOR.severity == "error"
    assert "buffering" in Verdict.POOR.description


def test_format_ms() -> None:
    assert format_ms(12.345) == "12.3 ms"
    assert format_ms(99.94) == "99.9 ms"
    assert format_ms(123.6) == "124 ms"
    assert format_ms(None) == ""

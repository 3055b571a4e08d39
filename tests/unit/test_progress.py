"""Unit tests for phase progress calculation."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from waymark.roadmap.progress import calculate_progress


def milestones(*flags: bool) -> list[SimpleNamespace]:
    return [SimpleNamespace(is_completed=flag) for flag in flags]


def test_no_milestones_is_zero() -> None:
    assert calculate_progress([]) == 0.0


@pytest.mark.parametrize(
    ("flags", "expected"),
    [
        ((False, False, False), 0.0),
        ((True, True, False, False), 50.0),
        ((True, False, False), 33.33),
        ((True, True, False), 66.67),
        ((True, True, True, True, True, True, False), 85.71),
        ((True,), 100.0),
    ],
)
def test_ratio_rounded_to_two_decimals(flags: tuple[bool, ...], expected: float) -> None:
    assert calculate_progress(milestones(*flags)) == expected


def test_result_is_float() -> None:
    assert isinstance(calculate_progress(milestones(True, False)), float)

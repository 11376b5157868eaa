"""
tests/test_cost_and_reporting.py

Fee estimates, duration formatting and summary rendering.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from updater.domain.outcomes import UpdateOutcome
from updater.domain.records import RecordFields
from updater.domain.run import RunSummary, format_duration
from updater.reporting import summary_lines
from updater.services.cost_estimator import (
    AVG_FEE_PER_TX,
    calculate_total_cost,
    estimate_cost,
    is_balance_sufficient,
    lamports_to_sol,
    recommended_balance,
)

START = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _summary(**overrides) -> RunSummary:
    values = dict(
        total_processed=3,
        successfully_updated=2,
        skipped=1,
        failed=0,
        total_cost=0.00001,
        start_time=START,
        end_time=START + timedelta(seconds=42),
    )
    values.update(overrides)
    return RunSummary(**values)


class TestCost:
    def test_estimate(self) -> None:
        assert estimate_cost(3) == pytest.approx(3 * AVG_FEE_PER_TX)
        assert estimate_cost(0) == 0

    def test_total_counts_only_confirmed_updates(self, address_factory) -> None:
        fields = RecordFields("a", "b", "c")
        outcomes = [
            UpdateOutcome.updated(id=address_factory(1), old=fields, new=fields, confirmation_id="sig"),
            UpdateOutcome.updated(id=address_factory(2), old=fields, new=fields, simulated=True),
            UpdateOutcome.skipped(id=address_factory(3), reason="same"),
            UpdateOutcome.failed(id=address_factory(4), reason="boom"),
        ]
        assert calculate_total_cost(outcomes) == pytest.approx(AVG_FEE_PER_TX)

    def test_lamports(self) -> None:
        assert lamports_to_sol(1_500_000_000) == pytest.approx(1.5)

    def test_balance_headroom(self) -> None:
        assert recommended_balance(100) == pytest.approx(100 * AVG_FEE_PER_TX * 1.5)
        assert is_balance_sufficient(1.0, 100)
        assert not is_balance_sufficient(0.0001, 100)


@pytest.mark.parametrize(
    "seconds, expected",
    [(0, "0s"), (59.9, "59s"), (61, "1m 1s"), (3723, "1h 2m 3s"), (-5, "0s")],
)
def test_format_duration(seconds: float, expected: str) -> None:
    assert format_duration(seconds) == expected


class TestSummary:
    def test_duration_properties(self) -> None:
        summary = _summary()
        assert summary.duration_seconds == pytest.approx(42.0)
        assert summary.duration == "42s"

    def test_lines_include_counts(self) -> None:
        text = "\n".join(summary_lines(_summary()))
        assert "Total processed:      3" in text
        assert "Successfully updated: 2" in text
        assert "0.000010 SOL" in text
        assert "DRY RUN" not in text

    def test_dry_run_and_cancelled_markers(self) -> None:
        lines = summary_lines(_summary(dry_run=True, cancelled=True))
        assert "DRY RUN" in lines[1]
        assert "CANCELLED" in lines[1]
        assert any("--resume" in line for line in lines)

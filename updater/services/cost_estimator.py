"""
updater/services/cost_estimator.py

Fee estimates for update runs. Every transaction is costed at the network's
average base fee; priority fees and rent are ignored.
"""

from __future__ import annotations

from typing import Iterable

from updater.domain.outcomes import UpdateOutcome

LAMPORTS_PER_SOL = 1_000_000_000
AVG_FEE_PER_TX = 0.000005
BALANCE_HEADROOM = 1.5


def lamports_to_sol(lamports: int) -> float:
    return lamports / LAMPORTS_PER_SOL


def estimate_cost(record_count: int, avg_fee_per_tx: float = AVG_FEE_PER_TX) -> float:
    """Estimated SOL spend for submitting ``record_count`` updates."""
    return max(0, record_count) * avg_fee_per_tx


def calculate_total_cost(
    outcomes: Iterable[UpdateOutcome],
    avg_fee_per_tx: float = AVG_FEE_PER_TX,
) -> float:
    """
    Cost of a finished run: one fee per confirmed update.

    Simulated (dry-run) updates carry no confirmation id and cost nothing.
    """

    confirmed = sum(
        1 for outcome in outcomes if outcome.is_updated and outcome.confirmation_id
    )
    return confirmed * avg_fee_per_tx


def recommended_balance(record_count: int, avg_fee_per_tx: float = AVG_FEE_PER_TX) -> float:
    return estimate_cost(record_count, avg_fee_per_tx) * BALANCE_HEADROOM


def is_balance_sufficient(
    balance_sol: float,
    record_count: int,
    avg_fee_per_tx: float = AVG_FEE_PER_TX,
) -> bool:
    return balance_sol >= recommended_balance(record_count, avg_fee_per_tx)

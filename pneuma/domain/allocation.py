"""Allocation engine - buffer fund sizing and daily spending recommendation"""

from datetime import date
from typing import Optional
from pneuma.domain.models import (
    Allocation,
    Configuration,
    LedgerSnapshot,
    PoolsSummary,
    TodaySummary,
)
from pneuma.domain.aggregation import aggregate_ledger


def clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(value, upper))


def compute_allocation(
    net_balance: int,
    min_floor: int,
    max_ceil: int,
    resilience_days: int,
    today_out: int,
) -> Allocation:
    """
    Derive buffer target and today's budget from the net balance.

    All arithmetic is integer floor division; nothing is ever rounded up.

    Steps:
    - buffer_target = min_floor * resilience_days
    - flexible_fund = max(0, net_balance - buffer_target)
    - raw_daily = flexible_fund // resilience_days
    - recommended_spend_today = raw_daily clamped into [min_floor, max_ceil]
    - today_remaining = recommended - today_out, clamped copy floored at 0
    - resilience_estimate = net_balance // min_floor, None when min_floor is 0

    Example:
        min_floor=20000, max_ceil=100000, resilience_days=30, net_balance=900000
        buffer 600000, flexible 300000, raw 10000 -> recommended 20000
    """
    buffer_target = min_floor * resilience_days
    flexible_fund = max(0, net_balance - buffer_target)
    raw_daily = flexible_fund // resilience_days

    # Floor first so the recommendation never drops below the daily baseline
    recommended = clamp(raw_daily, min_floor, max_ceil)

    today_remaining = recommended - today_out

    resilience_estimate: Optional[int] = None
    if min_floor > 0:
        resilience_estimate = net_balance // min_floor

    return Allocation(
        buffer_target=buffer_target,
        flexible_fund=flexible_fund,
        raw_daily=raw_daily,
        recommended_spend_today=recommended,
        today_remaining=today_remaining,
        today_remaining_clamped=max(0, today_remaining),
        overspent_today=today_remaining < 0,
        resilience_estimate=resilience_estimate,
    )


def compute_pools_summary(snapshot: LedgerSnapshot, today: date) -> PoolsSummary:
    """Main entry point: aggregate the ledger and allocate for the given local date."""
    config: Configuration = snapshot.configuration
    totals = aggregate_ledger(snapshot.transactions, today)
    allocation = compute_allocation(
        net_balance=totals.net_balance,
        min_floor=config.min_floor,
        max_ceil=config.max_ceil,
        resilience_days=config.resilience_days,
        today_out=totals.today_out,
    )

    return PoolsSummary(
        date_local=today,
        total_in=totals.total_in,
        total_out=totals.total_out,
        net_balance=totals.net_balance,
        min_floor=config.min_floor,
        max_ceil=config.max_ceil,
        resilience_days=config.resilience_days,
        buffer_target=allocation.buffer_target,
        flexible_fund=allocation.flexible_fund,
        raw_daily=allocation.raw_daily,
        recommended_spend_today=allocation.recommended_spend_today,
        today_out=totals.today_out,
        today_remaining=allocation.today_remaining,
        today_remaining_clamped=allocation.today_remaining_clamped,
        overspent_today=allocation.overspent_today,
        resilience_estimate=allocation.resilience_estimate,
    )


def compute_today_summary(snapshot: LedgerSnapshot, today: date) -> TodaySummary:
    summary = compute_pools_summary(snapshot, today)
    return TodaySummary(
        date_local=today,
        recommended_spend_today=summary.recommended_spend_today,
        today_out=summary.today_out,
        today_remaining=summary.today_remaining,
        today_remaining_clamped=summary.today_remaining_clamped,
        overspent_today=summary.overspent_today,
    )

"""Ledger aggregator - folds transaction history into totals"""

from datetime import date
from typing import Iterable
from pneuma.domain.models import ActivityWindow, LedgerTotals, Transaction, TransactionKind
from pneuma.utils.date_utils import trailing_window


def aggregate_ledger(transactions: Iterable[Transaction], target_date: date) -> LedgerTotals:
    """
    Fold the full transaction set into cumulative and per-day totals.

    - total_in / total_out: all-time sums by kind
    - net_balance: total_in - total_out (may be negative)
    - today_out: outflows dated on target_date
    """
    total_in = 0
    total_out = 0
    today_out = 0
    count = 0
    today_count = 0

    for txn in transactions:
        count += 1
        if txn.date_local == target_date:
            today_count += 1

        if txn.kind == TransactionKind.INFLOW:
            total_in += txn.amount
        else:
            total_out += txn.amount
            if txn.date_local == target_date:
                today_out += txn.amount

    return LedgerTotals(
        total_in=total_in,
        total_out=total_out,
        net_balance=total_in - total_out,
        today_out=today_out,
        transaction_count=count,
        today_transaction_count=today_count,
    )


def summarize_activity(transactions: Iterable[Transaction], target_date: date, days: int = 7) -> ActivityWindow:
    """Outflow total, floored daily average and distinct logging days over the trailing window"""
    start, end = trailing_window(target_date, days)

    in_window = [t for t in transactions if start <= t.date_local <= end]
    total_out = sum(t.amount for t in in_window if t.kind == TransactionKind.OUTFLOW)
    active_days = {t.date_local for t in in_window}

    return ActivityWindow(
        start_date=start,
        end_date=end,
        total_out=total_out,
        avg_out=total_out // days,
        days_with_transactions=len(active_days),
    )

"""Coaching insight rule engine - fixed-priority guards over allocation output"""

from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Tuple
from pneuma.domain.models import (
    CoachMode,
    CoachingInsight,
    FixedCost,
    InsightDebugMeta,
    InsightFacts,
    LedgerSnapshot,
    Tone,
)
from pneuma.domain.aggregation import aggregate_ledger, summarize_activity
from pneuma.domain.allocation import compute_pools_summary
from pneuma.utils.date_utils import period_of
from pneuma.utils.money import format_rupiah as rp

# Near-limit fires at 80% of the recommendation (integer compare, no floats)
NEAR_LIMIT_NUMERATOR = 8
NEAR_LIMIT_DENOMINATOR = 10

CONSISTENCY_WINDOW_DAYS = 7
CONSISTENCY_MIN_DAYS = 6

WATCHFUL_RULES = frozenset({"overspent_today", "low_buffer", "near_limit"})


@dataclass(frozen=True)
class InsightRule:
    rule_id: str
    guard: Callable[[InsightFacts], bool]
    render: Callable[[InsightFacts], CoachingInsight]


def mode_for_rule(rule_id: str) -> CoachMode:
    return CoachMode.WATCHFUL if rule_id in WATCHFUL_RULES else CoachMode.CALM


def gather_facts(snapshot: LedgerSnapshot, today: date) -> InsightFacts:
    """Compute every input the guards read, once, from the snapshot"""
    summary = compute_pools_summary(snapshot, today)
    totals = aggregate_ledger(snapshot.transactions, today)
    activity = summarize_activity(snapshot.transactions, today, CONSISTENCY_WINDOW_DAYS)

    period = period_of(today)
    unpaid: List[FixedCost] = [
        fc for fc in snapshot.fixed_costs if fc.is_active and not fc.is_paid_for(period)
    ]

    return InsightFacts(
        date_local=today,
        summary=summary,
        transaction_count=totals.transaction_count,
        today_transaction_count=totals.today_transaction_count,
        activity=activity,
        unpaid_fixed_costs=unpaid,
    )


def _insight(
    rule_id: str,
    title: str,
    bullets: List[str],
    next_step: str,
    tone: Tone,
    key_numbers: Dict[str, int],
) -> CoachingInsight:
    return CoachingInsight(
        status_title=title,
        bullets=bullets,
        next_step=next_step,
        tone=tone,
        mode=mode_for_rule(rule_id),
        debug_meta=InsightDebugMeta(rule_id=rule_id, key_numbers=key_numbers),
    )


# Guards

def _is_onboarding(facts: InsightFacts) -> bool:
    return facts.transaction_count == 0


def _is_overspent(facts: InsightFacts) -> bool:
    return facts.summary.overspent_today


def _has_no_tx_today(facts: InsightFacts) -> bool:
    return facts.today_transaction_count == 0


def _has_unpaid_fixed_costs(facts: InsightFacts) -> bool:
    return len(facts.unpaid_fixed_costs) > 0


def _is_low_buffer(facts: InsightFacts) -> bool:
    s = facts.summary
    return s.flexible_fund == 0 or s.net_balance < s.buffer_target


def _is_near_limit(facts: InsightFacts) -> bool:
    s = facts.summary
    if s.recommended_spend_today <= 0 or s.overspent_today:
        return False
    return s.today_out * NEAR_LIMIT_DENOMINATOR >= s.recommended_spend_today * NEAR_LIMIT_NUMERATOR


def _is_consistent(facts: InsightFacts) -> bool:
    return facts.activity.days_with_transactions >= CONSISTENCY_MIN_DAYS


def _always(facts: InsightFacts) -> bool:
    return True


# Renderers

def _render_onboarding(facts: InsightFacts) -> CoachingInsight:
    s = facts.summary
    return _insight(
        "onboarding",
        "No transactions yet. Let's set up your starting point.",
        [
            f"Daily baseline {rp(s.min_floor)}, daily ceiling {rp(s.max_ceil)}.",
            f"Buffer target {rp(s.buffer_target)} for {s.resilience_days} days.",
        ],
        "Small step: record your current balance as an income entry.",
        Tone.NEUTRAL,
        {
            "transaction_count": facts.transaction_count,
            "recommended_spend_today": s.recommended_spend_today,
        },
    )


def _render_overspent(facts: InsightFacts) -> CoachingInsight:
    s = facts.summary
    return _insight(
        "overspent_today",
        f"Today went past the {rp(s.recommended_spend_today)} limit.",
        [
            f"Spent today {rp(s.today_out)}.",
            f"Over by {rp(-s.today_remaining)}.",
        ],
        "It happens. Hold off on extra spending for the rest of today; tomorrow starts fresh.",
        Tone.WARN,
        {
            "today_out": s.today_out,
            "recommended_spend_today": s.recommended_spend_today,
            "today_remaining": s.today_remaining,
        },
    )


def _render_no_tx_today(facts: InsightFacts) -> CoachingInsight:
    s = facts.summary
    return _insight(
        "no_tx_today",
        "Nothing logged today yet.",
        [
            f"Today's recommendation {rp(s.recommended_spend_today)}.",
            f"Spent today {rp(s.today_out)}.",
        ],
        "Small step: log your first transaction of the day.",
        Tone.NEUTRAL,
        {
            "today_transaction_count": facts.today_transaction_count,
            "recommended_spend_today": s.recommended_spend_today,
            "today_out": s.today_out,
        },
    )


def _render_fixed_cost_unpaid(facts: InsightFacts) -> CoachingInsight:
    s = facts.summary
    count = len(facts.unpaid_fixed_costs)
    total = facts.unpaid_fixed_cost_total
    noun = "fixed cost" if count == 1 else "fixed costs"

    bullets = [f"{fc.name}: {rp(fc.amount)}." for fc in facts.unpaid_fixed_costs]
    bullets.append(f"Unpaid total {rp(total)}.")
    bullets.append(f"Net balance {rp(s.net_balance)}.")

    # Warn only when the bills would eat past the flexible fund
    tone = Tone.WARN if total > s.flexible_fund else Tone.NEUTRAL

    return _insight(
        "fixed_cost_unpaid",
        f"{count} {noun} still unpaid this month.",
        bullets,
        "Small step: settle the one due soonest and mark it paid.",
        tone,
        {
            "unpaid_count": count,
            "unpaid_total": total,
            "net_balance": s.net_balance,
            "flexible_fund": s.flexible_fund,
        },
    )


def _render_low_buffer(facts: InsightFacts) -> CoachingInsight:
    s = facts.summary
    key_numbers = {
        "net_balance": s.net_balance,
        "buffer_target": s.buffer_target,
        "flexible_fund": s.flexible_fund,
    }
    if s.resilience_estimate is None:
        title = "Buffer is below target."
    else:
        title = f"Buffer is below target, about {s.resilience_estimate} days of resilience."
        key_numbers["resilience_estimate"] = s.resilience_estimate

    return _insight(
        "low_buffer",
        title,
        [
            f"Net balance {rp(s.net_balance)} vs target {rp(s.buffer_target)}.",
            f"Flexible fund {rp(s.flexible_fund)}.",
            f"Today's recommendation {rp(s.recommended_spend_today)}.",
        ],
        f"Tight mode: essentials first, and keep today under {rp(s.recommended_spend_today)}.",
        Tone.WARN,
        key_numbers,
    )


def _render_near_limit(facts: InsightFacts) -> CoachingInsight:
    s = facts.summary
    return _insight(
        "near_limit",
        f"Getting close to today's {rp(s.recommended_spend_today)} limit.",
        [
            f"Spent today {rp(s.today_out)}.",
            f"{rp(s.today_remaining_clamped)} left for today.",
        ],
        f"If you need anything else, pick the most important item under {rp(s.today_remaining_clamped)}.",
        Tone.NEUTRAL,
        {
            "today_out": s.today_out,
            "recommended_spend_today": s.recommended_spend_today,
            "today_remaining_clamped": s.today_remaining_clamped,
        },
    )


def _render_consistency(facts: InsightFacts) -> CoachingInsight:
    a = facts.activity
    return _insight(
        "consistency_praise",
        f"You logged on {a.days_with_transactions} of the last {CONSISTENCY_WINDOW_DAYS} days.",
        [
            f"{CONSISTENCY_WINDOW_DAYS}-day spending {rp(a.total_out)}.",
            f"Average {rp(a.avg_out)} per day.",
            f"{facts.transaction_count} transactions recorded in total.",
        ],
        "Keep it up: one entry a day is all it takes.",
        Tone.PRAISE,
        {
            "days_with_transactions": a.days_with_transactions,
            "avg_out": a.avg_out,
            "total_out": a.total_out,
        },
    )


def _render_normal(facts: InsightFacts) -> CoachingInsight:
    s = facts.summary
    return _insight(
        "normal",
        f"Steady today, balance {rp(s.net_balance)}.",
        [
            f"Flexible fund {rp(s.flexible_fund)} above the buffer.",
            f"Today's recommendation {rp(s.recommended_spend_today)}, {rp(s.today_remaining_clamped)} left.",
        ],
        f"Spending stays safe under {rp(s.today_remaining_clamped)} for the rest of today.",
        Tone.CALM,
        {
            "net_balance": s.net_balance,
            "recommended_spend_today": s.recommended_spend_today,
        },
    )


# Priority order matters: first matching guard wins, last is the catch-all
RULES: Tuple[InsightRule, ...] = (
    InsightRule("onboarding", _is_onboarding, _render_onboarding),
    InsightRule("overspent_today", _is_overspent, _render_overspent),
    InsightRule("no_tx_today", _has_no_tx_today, _render_no_tx_today),
    InsightRule("fixed_cost_unpaid", _has_unpaid_fixed_costs, _render_fixed_cost_unpaid),
    InsightRule("low_buffer", _is_low_buffer, _render_low_buffer),
    InsightRule("near_limit", _is_near_limit, _render_near_limit),
    InsightRule("consistency_praise", _is_consistent, _render_consistency),
    InsightRule("normal", _always, _render_normal),
)


def select_insight(facts: InsightFacts) -> CoachingInsight:
    """Evaluate guards top to bottom and render the first that holds"""
    rule = next(r for r in RULES if r.guard(facts))
    return rule.render(facts)


def snapshot_as_of(snapshot: LedgerSnapshot, cutoff: date) -> LedgerSnapshot:
    """The same ledger seen at the end of `cutoff`: later transactions and payments dropped"""
    transactions = tuple(t for t in snapshot.transactions if t.date_local <= cutoff)
    fixed_costs = tuple(
        replace(fc, payment=None)
        if fc.payment is not None and fc.payment.paid_date_local > cutoff
        else fc
        for fc in snapshot.fixed_costs
    )
    return replace(snapshot, transactions=transactions, fixed_costs=fixed_costs)


def build_continuity_line(previous: Optional[CoachingInsight], current: CoachingInsight) -> Optional[str]:
    if previous is None:
        return None
    if previous.mode == CoachMode.WATCHFUL and current.mode == CoachMode.CALM:
        return "Yesterday was tight; today we start again, one step at a time."
    if previous.mode == CoachMode.CALM and current.mode == CoachMode.WATCHFUL:
        return "Today is tighter than yesterday. Let's take it slowly."
    return None


def build_memory_reflection(previous: Optional[CoachingInsight]) -> Optional[str]:
    if previous is None:
        return None
    return f"Yesterday: {previous.status_title}"


def compute_coaching_insight(snapshot: LedgerSnapshot, today: date) -> CoachingInsight:
    """
    Main entry point: select today's insight and relate it to yesterday's.

    Yesterday's insight is recomputed from the same snapshot cut off at
    yesterday, so no coaching history is stored anywhere.
    """
    insight = select_insight(gather_facts(snapshot, today))

    yesterday = today - timedelta(days=1)
    earlier = snapshot_as_of(snapshot, yesterday)
    previous: Optional[CoachingInsight] = None
    if earlier.transactions:
        previous = select_insight(gather_facts(earlier, yesterday))

    insight.continuity_line = build_continuity_line(previous, insight)
    insight.memory_reflection = build_memory_reflection(previous)
    return insight

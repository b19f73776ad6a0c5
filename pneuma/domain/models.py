"""Domain models - pure Python dataclasses representing ledger entities and derived summaries"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple


class TransactionKind(str, Enum):
    INFLOW = "IN"
    OUTFLOW = "OUT"


class TransactionSource(str, Enum):
    MANUAL = "manual"
    FIXED_COST_SETTLEMENT = "fixed_cost_settlement"


class Tone(str, Enum):
    """Register of the coaching copy"""

    NEUTRAL = "neutral"
    WARN = "warn"
    PRAISE = "praise"
    CALM = "calm"


class CoachMode(str, Enum):
    """Coarse coaching posture, derived from the rule tier that fired"""

    CALM = "calm"
    WATCHFUL = "watchful"


@dataclass(frozen=True)
class Transaction:
    """Single ledger entry, amount in minor currency units"""

    id: int
    occurred_at: datetime
    date_local: date
    kind: TransactionKind
    amount: int
    source: TransactionSource = TransactionSource.MANUAL
    fixed_cost_id: Optional[int] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class FixedCostPayment:
    """Payment record for the current paid cycle of a fixed cost"""

    paid_date_local: date
    paid_at: datetime
    transaction_id: int


@dataclass(frozen=True)
class FixedCost:
    """Recurring monthly obligation"""

    id: int
    name: str
    amount: int
    is_active: bool = True
    payment: Optional[FixedCostPayment] = None

    def is_paid_for(self, period: str) -> bool:
        """True when the payment record falls in the given YYYY-MM period"""
        if self.payment is None:
            return False
        return self.payment.paid_date_local.strftime("%Y-%m") == period


@dataclass(frozen=True)
class Configuration:
    min_floor: int
    max_ceil: int
    resilience_days: int


@dataclass(frozen=True)
class LedgerSnapshot:
    """Everything a derived computation reads, captured in one store session"""

    transactions: Tuple[Transaction, ...]
    fixed_costs: Tuple[FixedCost, ...]
    configuration: Configuration


@dataclass
class LedgerTotals:
    """Output of the ledger aggregator"""

    total_in: int
    total_out: int
    net_balance: int
    today_out: int
    transaction_count: int
    today_transaction_count: int


@dataclass
class ActivityWindow:
    """Outflow and logging activity over the trailing window ending today"""

    start_date: date
    end_date: date
    total_out: int
    avg_out: int
    days_with_transactions: int


@dataclass
class Allocation:
    """Buffer and daily budget figures from the allocation engine"""

    buffer_target: int
    flexible_fund: int
    raw_daily: int
    recommended_spend_today: int
    today_remaining: int
    today_remaining_clamped: int
    overspent_today: bool
    resilience_estimate: Optional[int]  # None when min_floor is 0


@dataclass
class PoolsSummary:
    date_local: date
    total_in: int
    total_out: int
    net_balance: int
    min_floor: int
    max_ceil: int
    resilience_days: int
    buffer_target: int
    flexible_fund: int
    raw_daily: int
    recommended_spend_today: int
    today_out: int
    today_remaining: int
    today_remaining_clamped: int
    overspent_today: bool
    resilience_estimate: Optional[int]


@dataclass
class TodaySummary:
    date_local: date
    recommended_spend_today: int
    today_out: int
    today_remaining: int
    today_remaining_clamped: int
    overspent_today: bool


@dataclass
class InsightDebugMeta:
    """Rule that fired and the numbers that satisfied its guard"""

    rule_id: str
    key_numbers: Dict[str, int]


@dataclass
class CoachingInsight:
    status_title: str
    bullets: List[str]
    next_step: str
    tone: Tone
    mode: CoachMode
    debug_meta: InsightDebugMeta
    continuity_line: Optional[str] = None
    memory_reflection: Optional[str] = None


@dataclass
class InsightFacts:
    """Inputs read by the rule guards, computed once per evaluation"""

    date_local: date
    summary: PoolsSummary
    transaction_count: int
    today_transaction_count: int
    activity: ActivityWindow
    unpaid_fixed_costs: List[FixedCost] = field(default_factory=list)

    @property
    def unpaid_fixed_cost_total(self) -> int:
        return sum(fc.amount for fc in self.unpaid_fixed_costs)

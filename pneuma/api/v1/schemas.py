"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Dict, List, Optional

from pneuma.domain.models import CoachMode, FixedCost, Tone, TransactionKind, TransactionSource


class AmountRequest(BaseModel):
    """Request body for POST /v1/transactions/income and /expense"""

    amount: int = Field(..., gt=0, description="Amount in minor currency units")
    date_local: Optional[date] = Field(None, description="Local calendar date, defaults to today")
    note: Optional[str] = Field(None, max_length=200)


class TransactionSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    occurred_at: datetime
    date_local: date
    kind: TransactionKind
    amount: int
    source: TransactionSource
    fixed_cost_id: Optional[int] = None
    note: Optional[str] = None


class FixedCostCreate(BaseModel):
    """Request body for POST /v1/fixed-costs"""

    name: str = Field(..., min_length=1, max_length=100)
    amount: int = Field(..., gt=0, description="Monthly amount in minor currency units")
    is_active: bool = True


class FixedCostUpdate(BaseModel):
    """Request body for PATCH /v1/fixed-costs/{id}"""

    is_active: bool


class MarkPaidRequest(BaseModel):
    paid_date: Optional[date] = Field(None, description="Local payment date, defaults to today")


class FixedCostSchema(BaseModel):
    id: int
    name: str
    amount: int
    is_active: bool
    paid_this_period: bool
    paid_date_local: Optional[date] = None
    paid_at: Optional[datetime] = None
    paid_transaction_id: Optional[int] = None

    @classmethod
    def from_domain(cls, fixed_cost: FixedCost, period: str) -> "FixedCostSchema":
        payment = fixed_cost.payment
        return cls(
            id=fixed_cost.id,
            name=fixed_cost.name,
            amount=fixed_cost.amount,
            is_active=fixed_cost.is_active,
            paid_this_period=fixed_cost.is_paid_for(period),
            paid_date_local=payment.paid_date_local if payment else None,
            paid_at=payment.paid_at if payment else None,
            paid_transaction_id=payment.transaction_id if payment else None,
        )


class ConfigSchema(BaseModel):
    """Request/response body for /v1/config; cross-field checks happen in the domain"""

    model_config = ConfigDict(from_attributes=True)

    min_floor: int = Field(..., ge=0, description="Daily baseline spend")
    max_ceil: int = Field(..., ge=0, description="Daily spend ceiling")
    resilience_days: int = Field(..., ge=1, description="Buffer horizon in days")


class TodaySummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date_local: date
    recommended_spend_today: int
    today_out: int
    today_remaining: int
    today_remaining_clamped: int
    overspent_today: bool


class PoolsSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

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
    resilience_estimate: Optional[int] = Field(None, description="Null when min_floor is 0")


class InsightDebugSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rule_id: str
    key_numbers: Dict[str, int]


class InsightResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    status_title: str
    bullets: List[str]
    next_step: str
    tone: Tone
    mode: CoachMode
    continuity_line: Optional[str] = None
    memory_reflection: Optional[str] = None
    debug_meta: InsightDebugSchema

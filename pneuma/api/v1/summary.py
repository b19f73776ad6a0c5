"""GET /v1/summary/* and /v1/insight - derived, read-only views of the ledger"""

import time
from datetime import date
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from pneuma.api.v1.schemas import InsightResponse, PoolsSummaryResponse, TodaySummaryResponse
from pneuma.api.dependencies import get_request_id, get_today
from pneuma.api.errors import unit_of_work
from pneuma.infrastructure.database.session import get_db
from pneuma.infrastructure.database.repositories import SnapshotRepository
from pneuma.infrastructure.observability.logging import log_insight
from pneuma.infrastructure.observability.metrics import record_insight, record_summary
from pneuma.domain.allocation import compute_pools_summary, compute_today_summary
from pneuma.domain.insights import compute_coaching_insight

router = APIRouter()


@router.get("/summary/today", response_model=TodaySummaryResponse)
def get_today_summary(
    request: Request,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    with unit_of_work(db, get_request_id(request), commit=False):
        snapshot = SnapshotRepository(db).load_snapshot()

    summary = compute_today_summary(snapshot, today)
    record_summary(summary.overspent_today)
    return TodaySummaryResponse.model_validate(summary)


@router.get("/summary/pools", response_model=PoolsSummaryResponse)
def get_pools_summary(
    request: Request,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    """
    Buffer target, flexible fund and today's recommendation.

    Safe to poll: identical ledger, config and date give identical output.
    """
    with unit_of_work(db, get_request_id(request), commit=False):
        snapshot = SnapshotRepository(db).load_snapshot()

    summary = compute_pools_summary(snapshot, today)
    record_summary(summary.overspent_today)
    return PoolsSummaryResponse.model_validate(summary)


@router.get("/insight", response_model=InsightResponse)
def get_coaching_insight(
    request: Request,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    start_time = time.time()
    request_id = get_request_id(request)

    with unit_of_work(db, request_id, commit=False):
        snapshot = SnapshotRepository(db).load_snapshot()

    insight = compute_coaching_insight(snapshot, today)

    duration_ms = (time.time() - start_time) * 1000
    rule_id = insight.debug_meta.rule_id
    record_insight(rule_id, insight.mode.value)
    log_insight(request_id, today.isoformat(), rule_id, insight.mode.value, duration_ms)

    return InsightResponse.model_validate(insight)

"""/v1/fixed-costs - monthly obligations and their paid/unpaid toggle"""

from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from pneuma.api.v1.schemas import FixedCostCreate, FixedCostSchema, FixedCostUpdate, MarkPaidRequest
from pneuma.api.dependencies import get_request_id, get_today
from pneuma.api.errors import unit_of_work
from pneuma.infrastructure.database.session import get_db
from pneuma.infrastructure.database.repositories import FixedCostRepository
from pneuma.infrastructure.observability.logging import log_ledger_mutation
from pneuma.infrastructure.observability.metrics import record_mutation
from pneuma.utils.date_utils import period_of

router = APIRouter()


@router.get("/fixed-costs", response_model=List[FixedCostSchema])
def list_fixed_costs(
    request: Request,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    with unit_of_work(db, get_request_id(request), commit=False):
        costs = FixedCostRepository(db).list_fixed_costs()
    period = period_of(today)
    return [FixedCostSchema.from_domain(fc, period) for fc in costs]


@router.post("/fixed-costs", response_model=FixedCostSchema, status_code=201)
def add_fixed_cost(
    body: FixedCostCreate,
    request: Request,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    request_id = get_request_id(request)
    with unit_of_work(db, request_id):
        fixed_cost = FixedCostRepository(db).add_fixed_cost(body.name, body.amount, body.is_active)

    record_mutation("add_fixed_cost")
    log_ledger_mutation(request_id, "add_fixed_cost", fixed_cost.id, fixed_cost.amount)
    return FixedCostSchema.from_domain(fixed_cost, period_of(today))


@router.patch("/fixed-costs/{fixed_cost_id}", response_model=FixedCostSchema)
def update_fixed_cost(
    fixed_cost_id: int,
    body: FixedCostUpdate,
    request: Request,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    request_id = get_request_id(request)
    with unit_of_work(db, request_id):
        fixed_cost = FixedCostRepository(db).set_fixed_cost_active(fixed_cost_id, body.is_active)

    record_mutation("set_fixed_cost_active")
    log_ledger_mutation(request_id, "set_fixed_cost_active", fixed_cost.id)
    return FixedCostSchema.from_domain(fixed_cost, period_of(today))


@router.delete("/fixed-costs/{fixed_cost_id}", status_code=204)
def delete_fixed_cost(
    fixed_cost_id: int,
    request: Request,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    """Delete a fixed cost; refused while it is paid for the current month"""
    request_id = get_request_id(request)
    with unit_of_work(db, request_id):
        FixedCostRepository(db).delete_fixed_cost(fixed_cost_id, today)

    record_mutation("delete_fixed_cost")
    log_ledger_mutation(request_id, "delete_fixed_cost", fixed_cost_id)
    return Response(status_code=204)


@router.post("/fixed-costs/{fixed_cost_id}/payment", response_model=FixedCostSchema)
def mark_fixed_cost_paid(
    fixed_cost_id: int,
    request: Request,
    body: Optional[MarkPaidRequest] = None,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    """
    Mark a fixed cost paid for the month of paid_date.

    Writes the payment record and its settlement expense in one commit.
    """
    request_id = get_request_id(request)
    paid_date = body.paid_date if body and body.paid_date else today
    with unit_of_work(db, request_id):
        fixed_cost = FixedCostRepository(db).mark_fixed_cost_paid(fixed_cost_id, paid_date)

    record_mutation("mark_fixed_cost_paid")
    log_ledger_mutation(request_id, "mark_fixed_cost_paid", fixed_cost.id, fixed_cost.amount)
    return FixedCostSchema.from_domain(fixed_cost, period_of(today))


@router.delete("/fixed-costs/{fixed_cost_id}/payment", response_model=FixedCostSchema)
def mark_fixed_cost_unpaid(
    fixed_cost_id: int,
    request: Request,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    """Undo this month's payment and delete its settlement expense in one commit"""
    request_id = get_request_id(request)
    with unit_of_work(db, request_id):
        fixed_cost = FixedCostRepository(db).mark_fixed_cost_unpaid(fixed_cost_id, today)

    record_mutation("mark_fixed_cost_unpaid")
    log_ledger_mutation(request_id, "mark_fixed_cost_unpaid", fixed_cost.id, fixed_cost.amount)
    return FixedCostSchema.from_domain(fixed_cost, period_of(today))

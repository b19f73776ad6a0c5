"""/v1/transactions - record, list and delete ledger entries"""

from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from pneuma.api.v1.schemas import AmountRequest, TransactionSchema
from pneuma.api.dependencies import get_request_id, get_today
from pneuma.api.errors import unit_of_work
from pneuma.config import settings
from pneuma.infrastructure.database.session import get_db
from pneuma.infrastructure.database.repositories import TransactionRepository
from pneuma.infrastructure.observability.logging import log_ledger_mutation
from pneuma.infrastructure.observability.metrics import record_mutation
from pneuma.domain.models import TransactionKind

router = APIRouter()


def _record(
    kind: TransactionKind,
    body: AmountRequest,
    request: Request,
    today: date,
    db: Session,
) -> TransactionSchema:
    request_id = get_request_id(request)
    operation = "add_income" if kind == TransactionKind.INFLOW else "add_expense"

    with unit_of_work(db, request_id):
        txn = TransactionRepository(db).insert_transaction(
            kind=kind,
            amount=body.amount,
            date_local=body.date_local or today,
            note=body.note,
        )

    record_mutation(operation)
    log_ledger_mutation(request_id, operation, txn.id, txn.amount)
    return TransactionSchema.model_validate(txn)


@router.post("/transactions/income", response_model=TransactionSchema, status_code=201)
def add_income(
    body: AmountRequest,
    request: Request,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    return _record(TransactionKind.INFLOW, body, request, today, db)


@router.post("/transactions/expense", response_model=TransactionSchema, status_code=201)
def add_expense(
    body: AmountRequest,
    request: Request,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    return _record(TransactionKind.OUTFLOW, body, request, today, db)


@router.get("/transactions", response_model=List[TransactionSchema])
def list_transactions(
    request: Request,
    start_date: Optional[date] = Query(None, description="Inclusive lower bound on local date"),
    end_date: Optional[date] = Query(None, description="Inclusive upper bound on local date"),
    kind: Optional[TransactionKind] = Query(None, description="IN or OUT; omit for both"),
    limit: int = Query(30, ge=1, le=settings.page_size_max),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """Page through history, newest first"""
    with unit_of_work(db, get_request_id(request), commit=False):
        txns = TransactionRepository(db).list_transactions(
            start_date=start_date,
            end_date=end_date,
            kind=kind,
            limit=limit,
            offset=offset,
        )
    return [TransactionSchema.model_validate(t) for t in txns]


@router.get("/transactions/recent", response_model=List[TransactionSchema])
def list_recent_transactions(
    request: Request,
    limit: int = Query(settings.recent_transactions_limit, ge=1, le=settings.page_size_max),
    db: Session = Depends(get_db),
):
    with unit_of_work(db, get_request_id(request), commit=False):
        txns = TransactionRepository(db).list_recent_transactions(limit)
    return [TransactionSchema.model_validate(t) for t in txns]


@router.delete("/transactions/{transaction_id}", response_model=TransactionSchema)
def delete_transaction(transaction_id: int, request: Request, db: Session = Depends(get_db)):
    """Remove a manual entry; settlement entries are undone via their fixed cost"""
    request_id = get_request_id(request)
    with unit_of_work(db, request_id):
        deleted = TransactionRepository(db).delete_transaction(transaction_id)

    record_mutation("delete_transaction")
    log_ledger_mutation(request_id, "delete_transaction", deleted.id, deleted.amount)
    return TransactionSchema.model_validate(deleted)

"""Data access layer for the ledger and configuration stores

Repositories flush but never commit; the caller owns the unit of work so
compound operations (mark paid / unpaid) land atomically or not at all.
"""

from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Iterator, List, Optional
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from pneuma.config import settings
from pneuma.infrastructure.database.models import ConfigRecord, FixedCostRecord, TransactionRecord
from pneuma.domain.models import (
    Configuration,
    FixedCost,
    FixedCostPayment,
    LedgerSnapshot,
    Transaction,
    TransactionKind,
    TransactionSource,
)
from pneuma.domain.exceptions import NotFoundError, StoreError, ValidationError
from pneuma.domain.validation import validate_amount, validate_configuration, validate_name
from pneuma.utils.date_utils import period_of


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Re-raise driver failures as StoreError so callers see one error type"""
    try:
        yield
    except SQLAlchemyError as e:
        raise StoreError(f"{operation} failed: {e}") from e


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_transaction(record: TransactionRecord) -> Transaction:
    return Transaction(
        id=record.id,
        occurred_at=record.occurred_at,
        date_local=record.date_local,
        kind=TransactionKind(record.kind),
        amount=record.amount,
        source=TransactionSource(record.source),
        fixed_cost_id=record.fixed_cost_id,
        note=record.note,
    )


def to_fixed_cost(record: FixedCostRecord) -> FixedCost:
    payment = None
    if record.paid_transaction_id is not None:
        payment = FixedCostPayment(
            paid_date_local=record.paid_date_local,
            paid_at=record.paid_at,
            transaction_id=record.paid_transaction_id,
        )
    return FixedCost(
        id=record.id,
        name=record.name,
        amount=record.amount,
        is_active=record.is_active,
        payment=payment,
    )


class TransactionRepository:
    """Repository for ledger transactions"""

    def __init__(self, db: Session):
        self.db = db

    def insert_transaction(
        self,
        kind: TransactionKind,
        amount: int,
        date_local: date,
        note: Optional[str] = None,
    ) -> Transaction:
        """Record a manual income or expense"""
        validate_amount(amount)
        with store_errors("insert_transaction"):
            record = TransactionRecord(
                occurred_at=_utcnow(),
                date_local=date_local,
                kind=kind.value,
                amount=amount,
                source=TransactionSource.MANUAL.value,
                note=note,
            )
            self.db.add(record)
            self.db.flush()
            return to_transaction(record)

    def get_record(self, transaction_id: int) -> TransactionRecord:
        with store_errors("get_transaction"):
            record = self.db.get(TransactionRecord, transaction_id)
        if record is None:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        return record

    def delete_transaction(self, transaction_id: int) -> Transaction:
        """
        Delete a manual transaction.

        Raises:
            NotFoundError: Unknown id
            ValidationError: Settlement rows belong to their fixed cost; mark it unpaid instead
        """
        record = self.get_record(transaction_id)
        if record.source == TransactionSource.FIXED_COST_SETTLEMENT.value:
            raise ValidationError(
                "Settlement transactions are removed by marking the fixed cost unpaid"
            )
        deleted = to_transaction(record)
        with store_errors("delete_transaction"):
            self.db.delete(record)
            self.db.flush()
        return deleted

    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        kind: Optional[TransactionKind] = None,
        limit: int = 30,
        offset: int = 0,
    ) -> List[Transaction]:
        """Page of transactions in [start_date, end_date], newest local date first"""
        with store_errors("list_transactions"):
            query = self.db.query(TransactionRecord)
            if start_date is not None:
                query = query.filter(TransactionRecord.date_local >= start_date)
            if end_date is not None:
                query = query.filter(TransactionRecord.date_local <= end_date)
            if kind is not None:
                query = query.filter(TransactionRecord.kind == kind.value)
            records = (
                query.order_by(
                    TransactionRecord.date_local.desc(),
                    TransactionRecord.occurred_at.desc(),
                    TransactionRecord.id.desc(),
                )
                .offset(offset)
                .limit(limit)
                .all()
            )
        return [to_transaction(r) for r in records]

    def list_recent_transactions(self, limit: int) -> List[Transaction]:
        return self.list_transactions(limit=limit)

    def list_all(self) -> List[Transaction]:
        with store_errors("list_all_transactions"):
            records = (
                self.db.query(TransactionRecord)
                .order_by(TransactionRecord.date_local, TransactionRecord.id)
                .all()
            )
        return [to_transaction(r) for r in records]


class FixedCostRepository:
    """Repository for fixed costs and their settlement linkage"""

    def __init__(self, db: Session):
        self.db = db

    def get_record(self, fixed_cost_id: int) -> FixedCostRecord:
        with store_errors("get_fixed_cost"):
            record = self.db.get(FixedCostRecord, fixed_cost_id)
        if record is None:
            raise NotFoundError(f"Fixed cost {fixed_cost_id} not found")
        return record

    def list_fixed_costs(self) -> List[FixedCost]:
        with store_errors("list_fixed_costs"):
            records = self.db.query(FixedCostRecord).order_by(FixedCostRecord.id).all()
        return [to_fixed_cost(r) for r in records]

    def add_fixed_cost(self, name: str, amount: int, is_active: bool = True) -> FixedCost:
        name = validate_name(name)
        validate_amount(amount)
        with store_errors("add_fixed_cost"):
            record = FixedCostRecord(name=name, amount=amount, is_active=is_active)
            self.db.add(record)
            self.db.flush()
            return to_fixed_cost(record)

    def set_fixed_cost_active(self, fixed_cost_id: int, is_active: bool) -> FixedCost:
        record = self.get_record(fixed_cost_id)
        with store_errors("set_fixed_cost_active"):
            record.is_active = is_active
            self.db.flush()
        return to_fixed_cost(record)

    def delete_fixed_cost(self, fixed_cost_id: int, today: date) -> None:
        """
        Delete a fixed cost that is not paid for the period containing today.

        Settlement transactions from earlier periods stay in the ledger with
        the back-reference cleared.
        """
        record = self.get_record(fixed_cost_id)
        if record.paid_transaction_id is not None and period_of(record.paid_date_local) >= period_of(today):
            raise ValidationError("Mark the fixed cost unpaid before deleting it")
        with store_errors("delete_fixed_cost"):
            (
                self.db.query(TransactionRecord)
                .filter(TransactionRecord.fixed_cost_id == fixed_cost_id)
                .update({TransactionRecord.fixed_cost_id: None}, synchronize_session=False)
            )
            self.db.delete(record)
            self.db.flush()

    def latest_settlement_date(self, fixed_cost_id: int) -> Optional[date]:
        """Local date of the newest settlement still linked to the fixed cost"""
        with store_errors("latest_settlement_date"):
            return (
                self.db.query(func.max(TransactionRecord.date_local))
                .filter(
                    TransactionRecord.fixed_cost_id == fixed_cost_id,
                    TransactionRecord.source == TransactionSource.FIXED_COST_SETTLEMENT.value,
                )
                .scalar()
            )

    def mark_fixed_cost_paid(self, fixed_cost_id: int, paid_date: date) -> FixedCost:
        """
        Record payment for the period containing paid_date.

        Writes the payment record and inserts exactly one linked Outflow
        settlement transaction in the same session.

        Raises:
            NotFoundError: Unknown id
            ValidationError: Inactive, already paid for that period, or paid
                for a later period
        """
        record = self.get_record(fixed_cost_id)
        if not record.is_active:
            raise ValidationError("Inactive fixed costs cannot be marked paid")
        latest = self.latest_settlement_date(fixed_cost_id)
        if latest is not None and period_of(paid_date) == period_of(latest):
            raise ValidationError(f"{record.name} is already paid for {period_of(paid_date)}")
        if latest is not None and period_of(paid_date) < period_of(latest):
            raise ValidationError(
                f"{record.name} is already paid for {period_of(latest)}; "
                f"cannot record a payment for {period_of(paid_date)}"
            )

        now = _utcnow()
        with store_errors("mark_fixed_cost_paid"):
            settlement = TransactionRecord(
                occurred_at=now,
                date_local=paid_date,
                kind=TransactionKind.OUTFLOW.value,
                amount=record.amount,
                source=TransactionSource.FIXED_COST_SETTLEMENT.value,
                fixed_cost_id=record.id,
                note=record.name,
            )
            self.db.add(settlement)
            self.db.flush()

            record.paid_date_local = paid_date
            record.paid_at = now
            record.paid_transaction_id = settlement.id
            self.db.flush()

        return to_fixed_cost(record)

    def mark_fixed_cost_unpaid(self, fixed_cost_id: int, today: date) -> FixedCost:
        """
        Clear the payment record and delete its settlement transaction.

        Only a payment for the period containing today (or later) can be
        undone; settlements of closed periods are ledger history.
        """
        record = self.get_record(fixed_cost_id)
        if record.paid_transaction_id is None:
            raise ValidationError(f"{record.name} has no payment to undo")
        if period_of(record.paid_date_local) < period_of(today):
            raise ValidationError(
                f"{record.name} was paid for {period_of(record.paid_date_local)}, which is closed"
            )

        with store_errors("mark_fixed_cost_unpaid"):
            settlement = self.db.get(TransactionRecord, record.paid_transaction_id)
            if settlement is not None:
                self.db.delete(settlement)

            record.paid_date_local = None
            record.paid_at = None
            record.paid_transaction_id = None
            self.db.flush()

        return to_fixed_cost(record)


class ConfigRepository:
    """Repository for the three allocation tunables"""

    def __init__(self, db: Session):
        self.db = db

    def get_config(self) -> Configuration:
        """Stored configuration, or the settings defaults when none was saved yet"""
        with store_errors("get_config"):
            record = self.db.get(ConfigRecord, 1)
        if record is None:
            return validate_configuration(
                Configuration(
                    min_floor=settings.default_min_floor,
                    max_ceil=settings.default_max_ceil,
                    resilience_days=settings.default_resilience_days,
                )
            )
        return Configuration(
            min_floor=record.min_floor,
            max_ceil=record.max_ceil,
            resilience_days=record.resilience_days,
        )

    def set_config(self, config: Configuration) -> Configuration:
        """Replace the configuration wholesale; invalid combinations never reach the table"""
        validate_configuration(config)
        with store_errors("set_config"):
            record = self.db.get(ConfigRecord, 1)
            if record is None:
                record = ConfigRecord(id=1)
                self.db.add(record)
            record.min_floor = config.min_floor
            record.max_ceil = config.max_ceil
            record.resilience_days = config.resilience_days
            self.db.flush()
        return config


class SnapshotRepository:
    """Reads everything derived computations need within one session"""

    def __init__(self, db: Session):
        self.db = db

    def load_snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            transactions=tuple(TransactionRepository(self.db).list_all()),
            fixed_costs=tuple(FixedCostRepository(self.db).list_fixed_costs()),
            configuration=ConfigRepository(self.db).get_config(),
        )

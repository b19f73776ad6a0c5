"""Integration tests for the SQLAlchemy ledger and configuration stores"""

import pytest
from datetime import date
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from pneuma.infrastructure.database.repositories import (
    ConfigRepository,
    FixedCostRepository,
    SnapshotRepository,
    TransactionRepository,
)
from pneuma.domain.aggregation import aggregate_ledger
from pneuma.domain.models import Configuration, TransactionKind, TransactionSource
from pneuma.domain.exceptions import NotFoundError, StoreError, ValidationError

TODAY = date(2025, 5, 10)


def test_mark_paid_and_unpaid_round_trip(db: Session):
    """Test settlement adds exactly one outflow and undo removes that same one"""
    txns = TransactionRepository(db)
    costs = FixedCostRepository(db)
    txns.insert_transaction(TransactionKind.INFLOW, 1_000_000, TODAY)
    rent = costs.add_fixed_cost("Rent", 150_000)
    db.commit()

    before = aggregate_ledger(txns.list_all(), TODAY).total_out

    paid = costs.mark_fixed_cost_paid(rent.id, TODAY)
    db.commit()

    settlement = txns.get_record(paid.payment.transaction_id)
    assert settlement.source == TransactionSource.FIXED_COST_SETTLEMENT.value
    assert settlement.fixed_cost_id == rent.id
    assert settlement.amount == 150_000
    assert aggregate_ledger(txns.list_all(), TODAY).total_out == before + 150_000

    unpaid = costs.mark_fixed_cost_unpaid(rent.id, TODAY)
    db.commit()

    assert unpaid.payment is None
    assert aggregate_ledger(txns.list_all(), TODAY).total_out == before
    with pytest.raises(NotFoundError):
        txns.get_record(paid.payment.transaction_id)


def test_mark_paid_twice_in_same_period_rejected(db: Session):
    costs = FixedCostRepository(db)
    rent = costs.add_fixed_cost("Rent", 150_000)
    costs.mark_fixed_cost_paid(rent.id, date(2025, 5, 1))

    with pytest.raises(ValidationError, match="already paid for 2025-05"):
        costs.mark_fixed_cost_paid(rent.id, date(2025, 5, 20))


def test_mark_paid_next_period_keeps_previous_settlement(db: Session):
    txns = TransactionRepository(db)
    costs = FixedCostRepository(db)
    rent = costs.add_fixed_cost("Rent", 150_000)
    april = costs.mark_fixed_cost_paid(rent.id, date(2025, 4, 30))
    may = costs.mark_fixed_cost_paid(rent.id, date(2025, 5, 30))

    assert april.payment.transaction_id != may.payment.transaction_id
    assert len(txns.list_all()) == 2


def test_back_dated_payment_rejected(db: Session):
    """Test paying an earlier month than the latest payment keeps one settlement per month"""
    txns = TransactionRepository(db)
    costs = FixedCostRepository(db)
    rent = costs.add_fixed_cost("Rent", 150_000)
    november = costs.mark_fixed_cost_paid(rent.id, date(2025, 11, 3))

    with pytest.raises(ValidationError, match="cannot record a payment for 2025-10"):
        costs.mark_fixed_cost_paid(rent.id, date(2025, 10, 28))
    with pytest.raises(ValidationError, match="already paid for 2025-11"):
        costs.mark_fixed_cost_paid(rent.id, date(2025, 11, 5))

    current = costs.list_fixed_costs()[0]
    assert current.payment.transaction_id == november.payment.transaction_id
    assert current.payment.paid_date_local == date(2025, 11, 3)
    assert [t.date_local for t in txns.list_all()] == [date(2025, 11, 3)]


def test_undo_then_repay_earlier_month_rejected(db: Session):
    """Test undoing this month does not reopen a month that already has a settlement"""
    txns = TransactionRepository(db)
    costs = FixedCostRepository(db)
    rent = costs.add_fixed_cost("Rent", 150_000)
    costs.mark_fixed_cost_paid(rent.id, date(2025, 4, 30))
    costs.mark_fixed_cost_paid(rent.id, date(2025, 5, 2))
    costs.mark_fixed_cost_unpaid(rent.id, TODAY)

    with pytest.raises(ValidationError, match="already paid for 2025-04"):
        costs.mark_fixed_cost_paid(rent.id, date(2025, 4, 29))

    assert [t.date_local for t in txns.list_all()] == [date(2025, 4, 30)]


def test_unpay_last_month_payment_rejected(db: Session):
    """Test a closed month's settlement stays in the ledger"""
    txns = TransactionRepository(db)
    costs = FixedCostRepository(db)
    txns.insert_transaction(TransactionKind.INFLOW, 1_000_000, date(2025, 4, 1))
    rent = costs.add_fixed_cost("Rent", 150_000)
    paid = costs.mark_fixed_cost_paid(rent.id, date(2025, 4, 30))
    db.commit()

    before = aggregate_ledger(txns.list_all(), TODAY)

    with pytest.raises(ValidationError, match="2025-04, which is closed"):
        costs.mark_fixed_cost_unpaid(rent.id, TODAY)

    after = aggregate_ledger(txns.list_all(), TODAY)
    assert after.net_balance == before.net_balance == 850_000
    assert txns.get_record(paid.payment.transaction_id).amount == 150_000
    assert costs.list_fixed_costs()[0].payment is not None


def test_delete_fixed_cost_paid_last_month(db: Session):
    """Test a cost paid in a closed month can be deleted and its settlement kept"""
    txns = TransactionRepository(db)
    costs = FixedCostRepository(db)
    rent = costs.add_fixed_cost("Rent", 150_000)
    paid = costs.mark_fixed_cost_paid(rent.id, date(2025, 4, 30))
    db.commit()

    before = aggregate_ledger(txns.list_all(), TODAY).total_out

    costs.delete_fixed_cost(rent.id, TODAY)
    db.commit()

    assert costs.list_fixed_costs() == []
    settlement = txns.get_record(paid.payment.transaction_id)
    assert settlement.fixed_cost_id is None
    assert settlement.source == TransactionSource.FIXED_COST_SETTLEMENT.value
    assert aggregate_ledger(txns.list_all(), TODAY).total_out == before == 150_000


def test_mark_unpaid_without_payment_rejected(db: Session):
    costs = FixedCostRepository(db)
    rent = costs.add_fixed_cost("Rent", 150_000)

    with pytest.raises(ValidationError, match="no payment to undo"):
        costs.mark_fixed_cost_unpaid(rent.id, TODAY)


def test_inactive_fixed_cost_cannot_be_paid(db: Session):
    costs = FixedCostRepository(db)
    gym = costs.add_fixed_cost("Gym", 50_000, is_active=False)

    with pytest.raises(ValidationError):
        costs.mark_fixed_cost_paid(gym.id, TODAY)


def test_settlement_transaction_cannot_be_deleted_directly(db: Session):
    txns = TransactionRepository(db)
    costs = FixedCostRepository(db)
    rent = costs.add_fixed_cost("Rent", 150_000)
    paid = costs.mark_fixed_cost_paid(rent.id, TODAY)

    with pytest.raises(ValidationError):
        txns.delete_transaction(paid.payment.transaction_id)


def test_delete_fixed_cost_clears_back_references(db: Session):
    txns = TransactionRepository(db)
    costs = FixedCostRepository(db)
    rent = costs.add_fixed_cost("Rent", 150_000)
    costs.mark_fixed_cost_paid(rent.id, TODAY)

    with pytest.raises(ValidationError, match="unpaid before deleting"):
        costs.delete_fixed_cost(rent.id, TODAY)

    # A fresh record with no payment can go
    water = costs.add_fixed_cost("Water", 20_000)
    costs.delete_fixed_cost(water.id, TODAY)
    db.commit()

    assert [fc.name for fc in costs.list_fixed_costs()] == ["Rent"]
    assert len(txns.list_all()) == 1


def test_insert_rejects_non_positive_amount(db: Session):
    with pytest.raises(ValidationError):
        TransactionRepository(db).insert_transaction(TransactionKind.OUTFLOW, 0, TODAY)
    assert TransactionRepository(db).list_all() == []


def test_list_transactions_filters_and_pages(db: Session):
    txns = TransactionRepository(db)
    txns.insert_transaction(TransactionKind.INFLOW, 100, date(2025, 5, 1))
    txns.insert_transaction(TransactionKind.OUTFLOW, 200, date(2025, 5, 5))
    txns.insert_transaction(TransactionKind.OUTFLOW, 300, date(2025, 5, 9))
    txns.insert_transaction(TransactionKind.OUTFLOW, 400, date(2025, 5, 10))

    outflows = txns.list_transactions(
        start_date=date(2025, 5, 4), end_date=TODAY, kind=TransactionKind.OUTFLOW
    )
    assert [t.amount for t in outflows] == [400, 300, 200]

    page = txns.list_transactions(limit=2, offset=1)
    assert [t.amount for t in page] == [300, 200]


def test_list_transactions_orders_by_local_date_before_entry_time(db: Session):
    """Test a back-dated entry lists after newer-dated ones entered before it"""
    txns = TransactionRepository(db)
    txns.insert_transaction(TransactionKind.OUTFLOW, 100, TODAY)
    txns.insert_transaction(TransactionKind.OUTFLOW, 200, date(2025, 5, 9))
    txns.insert_transaction(TransactionKind.OUTFLOW, 300, date(2025, 5, 2))
    txns.insert_transaction(TransactionKind.INFLOW, 400, TODAY)

    listed = txns.list_transactions()

    assert [t.amount for t in listed] == [400, 100, 200, 300]
    assert [t.amount for t in txns.list_recent_transactions(2)] == [400, 100]


def test_config_defaults_then_replace(db: Session):
    repo = ConfigRepository(db)

    assert repo.get_config() == Configuration(min_floor=20_000, max_ceil=100_000, resilience_days=30)

    repo.set_config(Configuration(min_floor=10_000, max_ceil=50_000, resilience_days=14))
    db.commit()

    assert repo.get_config() == Configuration(min_floor=10_000, max_ceil=50_000, resilience_days=14)


def test_invalid_config_never_written(db: Session):
    repo = ConfigRepository(db)

    with pytest.raises(ValidationError):
        repo.set_config(Configuration(min_floor=60_000, max_ceil=50_000, resilience_days=14))

    assert repo.get_config().min_floor == 20_000


def test_store_failure_surfaces_as_store_error(db: Session, monkeypatch):
    """Test driver errors propagate as StoreError without being swallowed"""

    def broken_flush(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db, "flush", broken_flush)

    with pytest.raises(StoreError) as exc_info:
        TransactionRepository(db).insert_transaction(TransactionKind.INFLOW, 100, TODAY)
    assert isinstance(exc_info.value.__cause__, OperationalError)


def test_load_snapshot(db: Session):
    TransactionRepository(db).insert_transaction(TransactionKind.INFLOW, 100, TODAY)
    FixedCostRepository(db).add_fixed_cost("Rent", 50)
    db.commit()

    snapshot = SnapshotRepository(db).load_snapshot()

    assert len(snapshot.transactions) == 1
    assert snapshot.fixed_costs[0].name == "Rent"
    assert snapshot.configuration.resilience_days == 30

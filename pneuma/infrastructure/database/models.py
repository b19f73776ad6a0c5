"""SQLAlchemy ORM models for the ledger and configuration stores"""

from sqlalchemy import Column, String, BigInteger, Boolean, DateTime, Date, Integer, ForeignKey, Text, CheckConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class TransactionRecord(Base):
    """Ledger entry; settlement rows point back at their fixed cost"""

    __tablename__ = "transactions"
    __table_args__ = (CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    occurred_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    date_local = Column(Date, nullable=False, index=True)
    kind = Column(String(8), nullable=False)
    amount = Column(BigInteger, nullable=False)
    source = Column(String(32), nullable=False, default="manual")
    fixed_cost_id = Column(Integer, ForeignKey("fixed_costs.id", ondelete="SET NULL"), nullable=True)
    note = Column(Text, nullable=True)


class FixedCostRecord(Base):
    """Recurring obligation with its current payment record inlined"""

    __tablename__ = "fixed_costs"
    __table_args__ = (CheckConstraint("amount > 0", name="ck_fixed_costs_amount_positive"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    amount = Column(BigInteger, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    paid_date_local = Column(Date, nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    paid_transaction_id = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ConfigRecord(Base):
    """Single-row tunables table (id is always 1)"""

    __tablename__ = "config"
    __table_args__ = (CheckConstraint("id = 1", name="ck_config_single_row"),)

    id = Column(Integer, primary_key=True, default=1)
    min_floor = Column(BigInteger, nullable=False)
    max_ceil = Column(BigInteger, nullable=False)
    resilience_days = Column(Integer, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

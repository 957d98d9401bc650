"""SQLAlchemy models for recurmatch database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Account(Base):
    """Bank account model."""

    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True)
    name = Column(String, unique=True, nullable=False)
    bank_name = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="account", cascade="all, delete-orphan")
    recurring_transactions = relationship(
        "RecurringTransaction", back_populates="account", cascade="all, delete-orphan"
    )


class Transaction(Base):
    """Imported bank transaction model."""

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True)
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    description = Column(String, nullable=False)
    category = Column(String, nullable=True)
    imported_at = Column(DateTime, default=_utcnow, nullable=False)
    # Either a recurring transaction or a recurring transfer
    recurring_transaction_id = Column(String(36), nullable=True)
    recurring_instance_date = Column(Date, nullable=True)

    # Relationships
    account = relationship("Account", back_populates="transactions")
    matches = relationship("ReconciliationMatch", back_populates="transaction", cascade="all, delete-orphan")


class _ScheduleColumns:
    """Columns shared by both schedule tables."""

    id = Column(String(36), primary_key=True)
    description = Column(String, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    frequency = Column(String, nullable=False)
    interval = Column(Integer, nullable=False, default=1)
    day_of_month = Column(Integer, nullable=True)
    day_of_week = Column(Integer, nullable=True)
    month_of_year = Column(Integer, nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    next_occurrence = Column(Date, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_generated_date = Column(Date, nullable=True)
    scope = Column(String, nullable=False, default="shared")
    owner_user_id = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, nullable=False)


class RecurringTransaction(_ScheduleColumns, Base):
    """Recurring transaction schedule model."""

    __tablename__ = "recurring_transactions"

    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False)
    category = Column(String, nullable=True)

    # Relationships
    account = relationship("Account", back_populates="recurring_transactions")


class RecurringTransfer(_ScheduleColumns, Base):
    """Recurring transfer schedule model."""

    __tablename__ = "recurring_transfers"

    source_account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False)
    destination_account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False)


class ScheduleOverride(Base):
    """Per-occurrence override model (for either schedule kind)."""

    __tablename__ = "schedule_overrides"

    id = Column(String(36), primary_key=True)
    schedule_id = Column(String(36), nullable=False, index=True)
    original_date = Column(Date, nullable=False)
    override_type = Column(String, nullable=False)
    modified_amount = Column(Numeric(10, 2), nullable=True)
    modified_description = Column(String, nullable=True)
    modified_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, nullable=False)

    # One override per occurrence
    __table_args__ = (
        UniqueConstraint("schedule_id", "original_date", name="uq_override_schedule_date"),
    )


class ReconciliationMatch(Base):
    """Reconciliation match model."""

    __tablename__ = "reconciliation_matches"

    id = Column(String(36), primary_key=True)
    imported_transaction_id = Column(String(36), ForeignKey("transactions.id"), nullable=False)
    schedule_id = Column(String(36), nullable=False, index=True)
    instance_date = Column(Date, nullable=False)
    confidence_score = Column(Numeric(10, 6), nullable=False)
    confidence_level = Column(String, nullable=False)
    amount_variance = Column(Numeric(10, 2), nullable=False)
    date_offset_days = Column(Integer, nullable=False)
    status = Column(String, nullable=False, default="suggested", index=True)
    scope = Column(String, nullable=False, default="shared")
    owner_user_id = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    resolved_at = Column(DateTime, nullable=True)

    # At most one match per transaction/instance pair
    __table_args__ = (
        UniqueConstraint(
            "imported_transaction_id",
            "schedule_id",
            "instance_date",
            name="uq_match_transaction_instance",
        ),
    )

    # Relationships
    transaction = relationship("Transaction", back_populates="matches")


class MatchingTolerancesSetting(Base):
    """Single-row table holding the matching tolerances."""

    __tablename__ = "matching_tolerances"

    id = Column(Integer, primary_key=True)
    date_tolerance_days = Column(Integer, nullable=False)
    amount_tolerance_percent = Column(Numeric(6, 4), nullable=False)
    amount_tolerance_absolute = Column(Numeric(10, 2), nullable=False)
    description_similarity_threshold = Column(Numeric(6, 4), nullable=False)
    auto_match_threshold = Column(Numeric(6, 4), nullable=False)
    updated_at = Column(DateTime, default=_utcnow, nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)

"""Domain model entities for recurmatch.

These are pure data classes representing business concepts, independent of
database schema. Entities with a lifecycle (schedules, overrides and
reconciliation matches) live in their own modules; everything here is an
immutable record.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


HIGH_CONFIDENCE_THRESHOLD = Decimal("0.85")
MEDIUM_CONFIDENCE_THRESHOLD = Decimal("0.60")


class BudgetScope(Enum):
    """Visibility of a schedule or match within a household."""

    SHARED = "shared"
    PERSONAL = "personal"


class MatchConfidenceLevel(Enum):
    """Coarse bucket derived from a confidence score."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ReconciliationMatchStatus(Enum):
    """Adjudication state of a reconciliation match."""

    SUGGESTED = "suggested"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    AUTO_MATCHED = "auto_matched"


class OverrideType(Enum):
    """Kind of per-occurrence override applied to a schedule."""

    MODIFIED = "modified"
    SKIPPED = "skipped"


class TransferDirection(Enum):
    """Which side of a transfer a projected instance represents."""

    SOURCE = "source"
    DESTINATION = "destination"


class InstanceStatus(Enum):
    """Reconciliation state of one expected occurrence."""

    MATCHED = "matched"
    PENDING = "pending"
    MISSING = "missing"


def confidence_level_for(score: Decimal) -> MatchConfidenceLevel:
    """Bucket a confidence score into High/Medium/Low.

    The thresholds are fixed and independent of any auto-match threshold.
    """
    if score >= HIGH_CONFIDENCE_THRESHOLD:
        return MatchConfidenceLevel.HIGH
    if score >= MEDIUM_CONFIDENCE_THRESHOLD:
        return MatchConfidenceLevel.MEDIUM
    return MatchConfidenceLevel.LOW


@dataclass(frozen=True)
class Account:
    """Bank account domain entity."""

    id: str
    name: str
    bank_name: str
    created_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Imported bank transaction."""

    id: str
    account_id: str
    date: date
    amount: Decimal
    description: str
    category: Optional[str]
    imported_at: datetime
    recurring_transaction_id: Optional[str] = None
    recurring_instance_date: Optional[date] = None

    @property
    def is_from_recurring(self) -> bool:
        return self.recurring_transaction_id is not None


@dataclass(frozen=True)
class RecurringInstanceInfo:
    """One projected occurrence of a recurring transaction."""

    schedule_id: str
    instance_date: date
    account_id: str
    account_name: str
    description: str
    amount: Decimal
    category: Optional[str] = None
    is_modified: bool = False
    is_skipped: bool = False


@dataclass(frozen=True)
class RecurringTransferInstanceInfo:
    """One side of a projected recurring-transfer occurrence."""

    schedule_id: str
    instance_date: date
    account_id: str
    account_name: str
    description: str
    amount: Decimal
    transfer_direction: TransferDirection
    is_modified: bool = False
    is_skipped: bool = False


@dataclass(frozen=True)
class TransactionMatchResult:
    """Score of one candidate instance against one transaction."""

    schedule_id: str
    instance_date: date
    confidence_score: Decimal
    confidence_level: MatchConfidenceLevel
    amount_variance: Decimal
    date_offset_days: int
    description_similarity: Decimal


@dataclass(frozen=True)
class FindMatchesResult:
    """Outcome of a reconciliation run over a batch of transactions."""

    matches_by_transaction: dict = field(default_factory=dict)
    total_matches_found: int = 0
    auto_matched_count: int = 0


@dataclass(frozen=True)
class InstanceReconciliationStatus:
    """Reconciliation state of one expected occurrence in a period."""

    schedule_id: str
    description: str
    instance_date: date
    expected_amount: Decimal
    status: InstanceStatus
    match_id: Optional[str] = None
    matched_transaction_id: Optional[str] = None
    actual_amount: Optional[Decimal] = None
    amount_variance: Optional[Decimal] = None


@dataclass(frozen=True)
class ReconciliationStatus:
    """Monthly reconciliation report."""

    year: int
    month: int
    instances: list[InstanceReconciliationStatus]

    @property
    def total_expected(self) -> int:
        return len(self.instances)

    @property
    def matched_count(self) -> int:
        return sum(1 for i in self.instances if i.status == InstanceStatus.MATCHED)

    @property
    def pending_count(self) -> int:
        return sum(1 for i in self.instances if i.status == InstanceStatus.PENDING)

    @property
    def missing_count(self) -> int:
        return sum(1 for i in self.instances if i.status == InstanceStatus.MISSING)

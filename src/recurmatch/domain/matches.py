"""Reconciliation match aggregate.

A match links one imported transaction to one occurrence of a recurring
schedule. It starts as SUGGESTED and is resolved exactly once:

    SUGGESTED -> ACCEPTED | REJECTED | AUTO_MATCHED
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, UTC
from decimal import Decimal
from typing import Optional

from recurmatch.domain.entities import (
    BudgetScope,
    MatchConfidenceLevel,
    ReconciliationMatchStatus,
    confidence_level_for,
)
from recurmatch.domain.errors import InvalidStateError, ValidationError, match_already_resolved


@dataclass(kw_only=True, eq=False)
class ReconciliationMatch:
    """Outcome of matching an imported transaction to a recurring instance."""

    id: str
    imported_transaction_id: str
    schedule_id: str
    instance_date: date
    confidence_score: Decimal
    confidence_level: MatchConfidenceLevel
    amount_variance: Decimal
    date_offset_days: int
    status: ReconciliationMatchStatus = ReconciliationMatchStatus.SUGGESTED
    scope: BudgetScope = BudgetScope.SHARED
    owner_user_id: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    resolved_at: Optional[datetime] = None

    @classmethod
    def create(
        cls,
        imported_transaction_id: str,
        schedule_id: str,
        instance_date: date,
        confidence_score: Decimal,
        amount_variance: Decimal,
        date_offset_days: int,
        scope: BudgetScope = BudgetScope.SHARED,
        owner_user_id: Optional[str] = None,
    ) -> "ReconciliationMatch":
        """Create a new suggested match.

        The caller is responsible for checking that no match exists yet for the
        same transaction, schedule and instance date.

        Raises:
            ValidationError: If an ID is empty, the score is outside [0, 1], or a
                personal match has no owner
        """
        if not imported_transaction_id:
            raise ValidationError("Imported transaction ID is required.")
        if not schedule_id:
            raise ValidationError("Recurring transaction ID is required.")

        confidence_score = Decimal(confidence_score)
        if confidence_score < 0 or confidence_score > 1:
            raise ValidationError("Confidence score must be between 0 and 1.")

        if scope == BudgetScope.PERSONAL:
            if not owner_user_id:
                raise ValidationError("Owner user ID is required for Personal scope.")
        else:
            owner_user_id = None

        return cls(
            id=str(uuid.uuid4()),
            imported_transaction_id=imported_transaction_id,
            schedule_id=schedule_id,
            instance_date=instance_date,
            confidence_score=confidence_score,
            confidence_level=confidence_level_for(confidence_score),
            amount_variance=Decimal(amount_variance),
            date_offset_days=date_offset_days,
            status=ReconciliationMatchStatus.SUGGESTED,
            scope=scope,
            owner_user_id=owner_user_id,
            created_at=datetime.now(UTC),
            resolved_at=None,
        )

    @property
    def is_resolved(self) -> bool:
        return self.status != ReconciliationMatchStatus.SUGGESTED

    @property
    def is_confirmed(self) -> bool:
        """True once accepted by a person or matched automatically."""
        return self.status in (
            ReconciliationMatchStatus.ACCEPTED,
            ReconciliationMatchStatus.AUTO_MATCHED,
        )

    def accept(self) -> None:
        """Confirm the suggestion."""
        self._resolve(ReconciliationMatchStatus.ACCEPTED)

    def reject(self) -> None:
        """Dismiss the suggestion."""
        self._resolve(ReconciliationMatchStatus.REJECTED)

    def auto_match(self) -> None:
        """Confirm the suggestion without human review."""
        self._resolve(ReconciliationMatchStatus.AUTO_MATCHED)

    def _resolve(self, status: ReconciliationMatchStatus) -> None:
        if self.is_resolved:
            raise InvalidStateError(match_already_resolved())
        self.status = status
        self.resolved_at = datetime.now(UTC)

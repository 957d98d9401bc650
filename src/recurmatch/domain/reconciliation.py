"""Reconciliation domain service.

Ties the pure matching core to storage: projects the expected recurring
instances for a period, scores imported transactions against them and keeps
track of which suggestions were confirmed.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from recurmatch.database.base import Database
from recurmatch.domain.entities import (
    FindMatchesResult,
    InstanceReconciliationStatus,
    InstanceStatus,
    ReconciliationMatchStatus,
    ReconciliationStatus,
)
from recurmatch.domain.errors import (
    NotFoundError,
    ValidationError,
    match_not_found,
    recurring_transaction_not_found,
    transaction_not_found,
)
from recurmatch.domain.matcher import TransactionMatcher
from recurmatch.domain.matches import ReconciliationMatch
from recurmatch.domain.projection import (
    flatten_instances,
    index_overrides,
    project_transaction_instances,
)
from recurmatch.domain.schedules import RecurringTransaction
from recurmatch.domain.tolerances import MatchingTolerances
from recurmatch.utils.date_parser import month_bounds

logger = logging.getLogger(__name__)

MANUAL_MATCH_CONFIDENCE = Decimal("1.0")


class ReconciliationService:
    """Service for matching imported transactions to recurring instances."""

    def __init__(self, db: Database, matcher: Optional[TransactionMatcher] = None):
        """Initialize reconciliation service.

        Args:
            db: Database instance
            matcher: Matcher to score candidates with (default: TransactionMatcher())
        """
        self.db = db
        self.matcher = matcher or TransactionMatcher()

    # Tolerances
    def get_tolerances(self) -> MatchingTolerances:
        """Persisted tolerances, or the defaults if none were saved."""
        return self.db.get_matching_tolerances() or MatchingTolerances.default()

    def update_tolerances(self, tolerances: MatchingTolerances) -> MatchingTolerances:
        """Persist new tolerances."""
        self.db.save_matching_tolerances(tolerances)
        logger.info(f"Updated matching tolerances: {tolerances}")
        return tolerances

    # Matching
    def _project_candidates(
        self, start_date: date, end_date: date
    ) -> tuple[list, dict[str, RecurringTransaction]]:
        schedules = self.db.list_recurring_transactions(active_only=True)
        overrides = index_overrides(
            self.db.list_overrides([s.id for s in schedules], start_date, end_date)
        )
        account_names = {acc.id: acc.name for acc in self.db.list_accounts()}
        projected = project_transaction_instances(
            schedules, overrides, start_date, end_date, account_names=account_names
        )
        return flatten_instances(projected), {s.id: s for s in schedules}

    def find_matches(
        self,
        transaction_ids: Iterable[str],
        start_date: date,
        end_date: date,
        tolerances: Optional[MatchingTolerances] = None,
    ) -> FindMatchesResult:
        """Suggest matches between transactions and the instances due in a range.

        Every viable candidate becomes a suggested match unless a match for the
        same transaction and instance already exists. When the best-ranked
        candidate scores at or above the auto-match threshold and the
        transaction is not linked yet, that match is confirmed straight away
        and the transaction is linked to its instance. Lower-ranked candidates
        always stay suggested.

        Args:
            transaction_ids: Imported transactions to reconcile
            start_date: First date of the projection range
            end_date: Last date of the projection range
            tolerances: Tolerances for this run (default: persisted ones)

        Returns:
            New matches grouped by transaction, with totals

        Raises:
            ValidationError: If start_date is after end_date
        """
        if start_date > end_date:
            raise ValidationError("Start date must be on or before end date.")
        tolerances = tolerances or self.get_tolerances()

        candidates, schedules = self._project_candidates(start_date, end_date)
        logger.debug(
            f"Projected {len(candidates)} instance(s) between {start_date} and {end_date}"
        )

        matches_by_transaction: dict[str, list[ReconciliationMatch]] = {}
        total = 0
        auto_matched = 0

        for transaction_id in transaction_ids:
            transaction = self.db.get_transaction(transaction_id)
            if transaction is None:
                logger.warning(f"Skipping unknown transaction {transaction_id}")
                continue

            created = []
            results = self.matcher.find_matches(transaction, candidates, tolerances)
            for rank, result in enumerate(results):
                if self.db.match_exists(transaction_id, result.schedule_id, result.instance_date):
                    logger.debug(
                        f"Match for {transaction_id} / {result.schedule_id} "
                        f"on {result.instance_date} already exists"
                    )
                    continue

                schedule = schedules[result.schedule_id]
                match = ReconciliationMatch.create(
                    imported_transaction_id=transaction_id,
                    schedule_id=result.schedule_id,
                    instance_date=result.instance_date,
                    confidence_score=result.confidence_score,
                    amount_variance=result.amount_variance,
                    date_offset_days=result.date_offset_days,
                    scope=schedule.scope,
                    owner_user_id=schedule.owner_user_id,
                )

                # One transaction fulfils at most one instance
                if (
                    rank == 0
                    and not transaction.is_from_recurring
                    and result.confidence_score >= tolerances.auto_match_threshold
                ):
                    match.auto_match()
                    auto_matched += 1

                self.db.add_match(match)
                if match.is_confirmed:
                    self.db.link_transaction_to_instance(
                        transaction_id, match.schedule_id, match.instance_date
                    )
                    logger.info(
                        f"Auto-matched {transaction_id} to {schedule.description} "
                        f"on {match.instance_date} ({match.confidence_score:.2f})"
                    )
                else:
                    logger.info(
                        f"Suggested {transaction_id} for {schedule.description} "
                        f"on {match.instance_date} ({match.confidence_score:.2f})"
                    )

                created.append(match)
                total += 1

            if created:
                matches_by_transaction[transaction_id] = created

        return FindMatchesResult(
            matches_by_transaction=matches_by_transaction,
            total_matches_found=total,
            auto_matched_count=auto_matched,
        )

    # Queries
    def get_match(self, match_id: str) -> ReconciliationMatch:
        """Get a match by ID.

        Raises:
            NotFoundError: If the match doesn't exist
        """
        match = self.db.get_match(match_id)
        if match is None:
            raise NotFoundError(match_not_found(match_id))
        return match

    def get_pending_matches(self) -> list[ReconciliationMatch]:
        """Suggested matches awaiting review, best first."""
        return self.db.list_pending_matches()

    def get_matches_for_schedule(
        self,
        schedule_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[ReconciliationMatch]:
        """Matches for one recurring transaction, by instance date."""
        return self.db.list_matches_by_schedule(schedule_id, start_date, end_date)

    def get_matches_for_transaction(self, transaction_id: str) -> list[ReconciliationMatch]:
        """Matches for one imported transaction, best first."""
        return self.db.list_matches_by_transaction(transaction_id)

    # Adjudication
    def accept_match(self, match_id: str) -> ReconciliationMatch:
        """Accept a suggestion and link the transaction to the instance.

        Raises:
            NotFoundError: If the match doesn't exist
            InvalidStateError: If the match is already resolved
        """
        match = self.get_match(match_id)
        match.accept()
        self.db.save_match(match)
        self.db.link_transaction_to_instance(
            match.imported_transaction_id, match.schedule_id, match.instance_date
        )
        logger.info(f"Accepted match {match.id}")
        return match

    def reject_match(self, match_id: str) -> ReconciliationMatch:
        """Reject a suggestion.

        Raises:
            NotFoundError: If the match doesn't exist
            InvalidStateError: If the match is already resolved
        """
        match = self.get_match(match_id)
        match.reject()
        self.db.save_match(match)
        logger.info(f"Rejected match {match.id}")
        return match

    def bulk_accept(self, match_ids: Iterable[str]) -> list[ReconciliationMatch]:
        """Accept several suggestions, skipping IDs that don't exist.

        Raises:
            InvalidStateError: If one of the matches is already resolved
        """
        accepted = []
        for match_id in match_ids:
            if self.db.get_match(match_id) is None:
                logger.warning(f"Skipping unknown match {match_id}")
                continue
            accepted.append(self.accept_match(match_id))
        return accepted

    def create_manual_match(
        self, transaction_id: str, schedule_id: str, instance_date: date
    ) -> ReconciliationMatch:
        """Link a transaction to an instance by hand.

        Returns the existing match when the pair is already matched;
        otherwise records an accepted match with full confidence.

        Raises:
            NotFoundError: If the transaction or recurring transaction doesn't exist
        """
        transaction = self.db.get_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        schedule = self.db.get_recurring_transaction(schedule_id)
        if schedule is None:
            raise NotFoundError(recurring_transaction_not_found(schedule_id))

        existing = self.db.find_match(transaction_id, schedule_id, instance_date)
        if existing is not None:
            return existing

        match = ReconciliationMatch.create(
            imported_transaction_id=transaction_id,
            schedule_id=schedule_id,
            instance_date=instance_date,
            confidence_score=MANUAL_MATCH_CONFIDENCE,
            amount_variance=schedule.amount - transaction.amount,
            date_offset_days=(transaction.date - instance_date).days,
            scope=schedule.scope,
            owner_user_id=schedule.owner_user_id,
        )
        match.accept()
        self.db.add_match(match)
        self.db.link_transaction_to_instance(transaction_id, schedule_id, instance_date)
        logger.info(f"Manually matched {transaction_id} to {schedule.description} on {instance_date}")
        return match

    # Reporting
    def get_reconciliation_status(self, year: int, month: int) -> ReconciliationStatus:
        """Classify every expected instance of a month as matched, pending or missing.

        Args:
            year: Calendar year
            month: Calendar month (1-12)

        Returns:
            Per-instance statuses ordered by date, with counts
        """
        start_date, end_date = month_bounds(year, month)
        candidates, _ = self._project_candidates(start_date, end_date)

        matches_by_instance: dict[tuple[str, date], list[ReconciliationMatch]] = {}
        for match in self.db.list_matches_by_period(year, month):
            matches_by_instance.setdefault((match.schedule_id, match.instance_date), []).append(match)

        statuses = []
        for instance in candidates:
            if instance.is_skipped:
                continue

            matches = matches_by_instance.get((instance.schedule_id, instance.instance_date), [])
            confirmed = next((m for m in matches if m.is_confirmed), None)
            pending = next(
                (m for m in matches if m.status == ReconciliationMatchStatus.SUGGESTED), None
            )

            if confirmed is not None:
                transaction = self.db.get_transaction(confirmed.imported_transaction_id)
                statuses.append(
                    InstanceReconciliationStatus(
                        schedule_id=instance.schedule_id,
                        description=instance.description,
                        instance_date=instance.instance_date,
                        expected_amount=instance.amount,
                        status=InstanceStatus.MATCHED,
                        match_id=confirmed.id,
                        matched_transaction_id=confirmed.imported_transaction_id,
                        actual_amount=transaction.amount if transaction is not None else None,
                        amount_variance=confirmed.amount_variance,
                    )
                )
            elif pending is not None:
                statuses.append(
                    InstanceReconciliationStatus(
                        schedule_id=instance.schedule_id,
                        description=instance.description,
                        instance_date=instance.instance_date,
                        expected_amount=instance.amount,
                        status=InstanceStatus.PENDING,
                        match_id=pending.id,
                    )
                )
            else:
                statuses.append(
                    InstanceReconciliationStatus(
                        schedule_id=instance.schedule_id,
                        description=instance.description,
                        instance_date=instance.instance_date,
                        expected_amount=instance.amount,
                        status=InstanceStatus.MISSING,
                    )
                )

        return ReconciliationStatus(year=year, month=month, instances=statuses)

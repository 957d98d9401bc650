"""Transaction-to-recurring-instance matching.

A candidate is any projected instance exposing ``schedule_id``,
``instance_date``, ``amount`` and ``description`` (both
``RecurringInstanceInfo`` and ``RecurringTransferInstanceInfo`` qualify).

Matching runs three hard filters (date, amount, description) and then blends
the sub-scores into a confidence score:

    confidence = 0.50 * description + 0.30 * amount + 0.20 * date
"""

import logging
import re
from decimal import Decimal
from typing import Iterable, Optional, Protocol

from rapidfuzz.distance import Levenshtein

from recurmatch.domain.entities import Transaction, TransactionMatchResult, confidence_level_for
from recurmatch.domain.tolerances import MatchingTolerances

logger = logging.getLogger(__name__)

DESCRIPTION_WEIGHT = Decimal("0.50")
AMOUNT_WEIGHT = Decimal("0.30")
DATE_WEIGHT = Decimal("0.20")

ZERO = Decimal(0)
ONE = Decimal(1)

_REMOVED_CHARS = str.maketrans({".": None, ",": None, "*": None, "#": None, "-": " ", "_": " "})
_WHITESPACE = re.compile(r" {2,}")


class MatchCandidate(Protocol):
    schedule_id: str
    instance_date: object
    amount: Decimal
    description: str


def normalize_description(description: Optional[str]) -> str:
    """Uppercase, strip punctuation noise and collapse spaces."""
    if not description:
        return ""
    normalized = description.upper().translate(_REMOVED_CHARS)
    return _WHITESPACE.sub(" ", normalized).strip()


def description_similarity(first: Optional[str], second: Optional[str]) -> Decimal:
    """Similarity of two descriptions in [0, 1].

    Identical normalized text scores 1. When one contains the other the score
    is the length ratio, so bank strings with extra noise still rate well.
    Otherwise it falls back to normalized Levenshtein distance.
    """
    a = normalize_description(first)
    b = normalize_description(second)

    if not a or not b:
        return ZERO
    if a == b:
        return ONE

    shorter, longer = sorted((len(a), len(b)))
    if a in b or b in a:
        return Decimal(shorter) / Decimal(longer)

    distance = Levenshtein.distance(a, b)
    return max(ZERO, ONE - Decimal(distance) / Decimal(longer))


def is_amount_within_tolerance(
    actual: Decimal, expected: Decimal, tolerances: MatchingTolerances
) -> bool:
    """Accept when the absolute or the percent tolerance covers the difference."""
    difference = abs(actual - expected)

    if difference <= tolerances.amount_tolerance_absolute:
        return True

    if expected != 0:
        return difference / abs(expected) <= tolerances.amount_tolerance_percent

    return actual == 0


def date_score(date_offset_days: int, max_tolerance_days: int) -> Decimal:
    """Linear decay from 1 on the scheduled date to 0 at the tolerance edge."""
    if max_tolerance_days == 0:
        return ONE if date_offset_days == 0 else ZERO
    return max(ZERO, ONE - Decimal(abs(date_offset_days)) / Decimal(max_tolerance_days))


def _closeness(difference: Decimal, tolerance: Decimal) -> Decimal:
    if tolerance <= 0:
        return ZERO
    return ONE - min(ONE, difference / tolerance)


def amount_score(actual: Decimal, expected: Decimal, tolerances: MatchingTolerances) -> Decimal:
    """Score how close the amount is, using whichever tolerance rates it best."""
    difference = abs(actual - expected)
    if difference == 0:
        return ONE

    if expected != 0:
        percent_score = _closeness(difference / abs(expected), tolerances.amount_tolerance_percent)
        absolute_score = _closeness(difference, tolerances.amount_tolerance_absolute)
        return max(percent_score, absolute_score)

    return _closeness(difference, tolerances.amount_tolerance_absolute)


class TransactionMatcher:
    """Scores imported transactions against projected recurring instances.

    The matcher holds no state; one instance can be shared between threads.
    """

    def calculate_match(
        self,
        transaction: Transaction,
        candidate: MatchCandidate,
        tolerances: MatchingTolerances,
    ) -> Optional[TransactionMatchResult]:
        """Score one candidate, or return None when a hard filter rejects it.

        Args:
            transaction: Imported transaction
            candidate: Projected instance to compare against
            tolerances: Filter and scoring thresholds

        Returns:
            Match result, or None if the candidate is not a viable match
        """
        date_offset_days = (transaction.date - candidate.instance_date).days
        if abs(date_offset_days) > tolerances.date_tolerance_days:
            logger.debug(
                f"Rejected {candidate.schedule_id} on {candidate.instance_date}: "
                f"{date_offset_days} days off"
            )
            return None

        actual = transaction.amount
        expected = candidate.amount
        if not is_amount_within_tolerance(actual, expected, tolerances):
            logger.debug(
                f"Rejected {candidate.schedule_id} on {candidate.instance_date}: "
                f"amount {actual} vs expected {expected}"
            )
            return None

        similarity = description_similarity(transaction.description, candidate.description)
        if similarity < tolerances.description_similarity_threshold:
            logger.debug(
                f"Rejected {candidate.schedule_id} on {candidate.instance_date}: "
                f"description similarity {similarity:.2f}"
            )
            return None

        confidence = (
            similarity * DESCRIPTION_WEIGHT
            + amount_score(actual, expected, tolerances) * AMOUNT_WEIGHT
            + date_score(date_offset_days, tolerances.date_tolerance_days) * DATE_WEIGHT
        )

        return TransactionMatchResult(
            schedule_id=candidate.schedule_id,
            instance_date=candidate.instance_date,
            confidence_score=confidence,
            confidence_level=confidence_level_for(confidence),
            amount_variance=expected - actual,
            date_offset_days=date_offset_days,
            description_similarity=similarity,
        )

    def find_matches(
        self,
        transaction: Transaction,
        candidates: Iterable[MatchCandidate],
        tolerances: MatchingTolerances,
    ) -> list[TransactionMatchResult]:
        """Score all candidates and rank the viable ones, best first.

        Candidates with equal scores keep their input order.
        """
        results = []
        for candidate in candidates:
            result = self.calculate_match(transaction, candidate, tolerances)
            if result is not None:
                results.append(result)

        ranked = sorted(results, key=lambda r: r.confidence_score, reverse=True)
        logger.debug(f"Transaction {transaction.id}: {len(ranked)} viable candidate(s)")
        return ranked

"""Matching tolerance configuration."""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from recurmatch.domain.errors import ValidationError

# Field -> (label, decimal places kept by storage)
_DECIMAL_FIELDS = {
    "amount_tolerance_percent": ("Amount tolerance percent", 4),
    "amount_tolerance_absolute": ("Amount tolerance absolute", 2),
    "description_similarity_threshold": ("Description similarity threshold", 4),
    "auto_match_threshold": ("Auto match threshold", 4),
}


def _to_decimal(value, name: str) -> Decimal:
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{name} must be a number, got '{value}'")
    if not result.is_finite():
        raise ValidationError(f"{name} must be a number, got '{value}'")
    return result


def _check_places(value: Decimal, label: str, places: int) -> None:
    if -value.normalize().as_tuple().exponent > places:
        raise ValidationError(f"{label} allows at most {places} decimal places, got {value}.")


def _check_fraction(value: Decimal, label: str) -> None:
    if value < 0 or value > 1:
        raise ValidationError(f"{label} must be between 0 and 1.")


@dataclass(frozen=True)
class MatchingTolerances:
    """Thresholds that bound and weight transaction matching.

    Numeric values may be given as ints, floats, strings or Decimals; they are
    stored as Decimals. Two instances with the same values are equal and hash
    alike.
    """

    date_tolerance_days: int
    amount_tolerance_percent: Decimal
    amount_tolerance_absolute: Decimal
    description_similarity_threshold: Decimal
    auto_match_threshold: Decimal

    def __post_init__(self):
        for name, (label, places) in _DECIMAL_FIELDS.items():
            value = _to_decimal(getattr(self, name), label)
            _check_places(value, label, places)
            object.__setattr__(self, name, value)

        if self.date_tolerance_days < 0:
            raise ValidationError("Date tolerance days cannot be negative.")
        _check_fraction(self.amount_tolerance_percent, "Amount tolerance percent")
        if self.amount_tolerance_absolute < 0:
            raise ValidationError("Amount tolerance absolute cannot be negative.")
        _check_fraction(self.description_similarity_threshold, "Description similarity threshold")
        _check_fraction(self.auto_match_threshold, "Auto match threshold")

    @classmethod
    def create(
        cls,
        date_tolerance_days: int,
        amount_tolerance_percent,
        amount_tolerance_absolute,
        description_similarity_threshold,
        auto_match_threshold,
    ) -> "MatchingTolerances":
        """Build validated tolerances, accepting a day count given as a string.

        Raises:
            ValidationError: If any value is out of range or too precise
        """
        try:
            days = int(date_tolerance_days)
        except (TypeError, ValueError):
            raise ValidationError(
                f"Date tolerance days must be an integer, got '{date_tolerance_days}'"
            )

        return cls(
            date_tolerance_days=days,
            amount_tolerance_percent=amount_tolerance_percent,
            amount_tolerance_absolute=amount_tolerance_absolute,
            description_similarity_threshold=description_similarity_threshold,
            auto_match_threshold=auto_match_threshold,
        )

    @classmethod
    def default(cls) -> "MatchingTolerances":
        """7 days, 10%, 10.00, 0.6 similarity, 0.85 auto-match."""
        return DEFAULT_TOLERANCES

    def with_changes(self, **changes) -> "MatchingTolerances":
        """Return a copy with some values replaced, re-validated."""
        values = {
            "date_tolerance_days": self.date_tolerance_days,
            "amount_tolerance_percent": self.amount_tolerance_percent,
            "amount_tolerance_absolute": self.amount_tolerance_absolute,
            "description_similarity_threshold": self.description_similarity_threshold,
            "auto_match_threshold": self.auto_match_threshold,
        }
        values.update({key: value for key, value in changes.items() if value is not None})
        return MatchingTolerances.create(**values)


DEFAULT_TOLERANCES = MatchingTolerances(
    date_tolerance_days=7,
    amount_tolerance_percent=Decimal("0.10"),
    amount_tolerance_absolute=Decimal("10.00"),
    description_similarity_threshold=Decimal("0.6"),
    auto_match_threshold=Decimal("0.85"),
)

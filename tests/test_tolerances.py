"""Tests for matching tolerances."""

import pytest
from decimal import Decimal

from recurmatch.domain.errors import ValidationError
from recurmatch.domain.tolerances import MatchingTolerances


class TestMatchingTolerances:
    """Tests for MatchingTolerances validation and equality."""

    def test_default_values(self):
        tolerances = MatchingTolerances.default()
        assert tolerances.date_tolerance_days == 7
        assert tolerances.amount_tolerance_percent == Decimal("0.10")
        assert tolerances.amount_tolerance_absolute == Decimal("10.00")
        assert tolerances.description_similarity_threshold == Decimal("0.6")
        assert tolerances.auto_match_threshold == Decimal("0.85")

    def test_create_converts_values(self):
        tolerances = MatchingTolerances.create("3", 0.05, "2.50", "0.7", "0.9")
        assert tolerances.date_tolerance_days == 3
        assert tolerances.amount_tolerance_percent == Decimal("0.05")
        assert tolerances.amount_tolerance_absolute == Decimal("2.50")

    def test_value_equality(self):
        first = MatchingTolerances.create(7, "0.10", "10.00", "0.6", "0.85")
        assert first == MatchingTolerances.default()
        assert hash(first) == hash(MatchingTolerances.default())

    @pytest.mark.parametrize(
        "changes",
        [
            {"date_tolerance_days": -1},
            {"amount_tolerance_percent": "1.5"},
            {"amount_tolerance_percent": "-0.1"},
            {"amount_tolerance_absolute": "-1"},
            {"description_similarity_threshold": "2"},
            {"auto_match_threshold": "-0.01"},
        ],
    )
    def test_out_of_range_rejected(self, changes):
        with pytest.raises(ValidationError):
            MatchingTolerances.default().with_changes(**changes)

    def test_non_numeric_rejected(self):
        with pytest.raises(ValidationError):
            MatchingTolerances.create("soon", "0.1", "10", "0.6", "0.85")
        with pytest.raises(ValidationError):
            MatchingTolerances.create(7, "lots", "10", "0.6", "0.85")

    def test_boundaries_allowed(self):
        tolerances = MatchingTolerances.create(0, 0, 0, 1, 1)
        assert tolerances.date_tolerance_days == 0
        assert tolerances.auto_match_threshold == 1

    def test_with_changes_ignores_none(self):
        tolerances = MatchingTolerances.default().with_changes(date_tolerance_days=3, auto_match_threshold=None)
        assert tolerances.date_tolerance_days == 3
        assert tolerances.auto_match_threshold == Decimal("0.85")

    def test_direct_construction_converts_floats(self):
        tolerances = MatchingTolerances(7, 0.1, 10.0, 0.6, 0.85)
        assert tolerances.amount_tolerance_percent == Decimal("0.1")
        assert isinstance(tolerances.amount_tolerance_absolute, Decimal)
        assert tolerances == MatchingTolerances.default()

    def test_direct_construction_validates(self):
        with pytest.raises(ValidationError):
            MatchingTolerances(7, "abc", 10, 0.6, 0.85)
        with pytest.raises(ValidationError):
            MatchingTolerances(7, "NaN", 10, 0.6, 0.85)

    @pytest.mark.parametrize(
        "changes",
        [
            {"amount_tolerance_percent": "0.12345"},
            {"amount_tolerance_absolute": "1.005"},
            {"auto_match_threshold": 0.85001},
        ],
    )
    def test_too_many_decimal_places_rejected(self, changes):
        with pytest.raises(ValidationError, match="decimal places"):
            MatchingTolerances.default().with_changes(**changes)

    def test_trailing_zeros_allowed(self):
        tolerances = MatchingTolerances.create(7, "0.100000", "10.0000", "0.6", "0.85")
        assert tolerances == MatchingTolerances.default()

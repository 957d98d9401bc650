"""Tests for ID and name resolution."""

import pytest
from dataclasses import dataclass

from recurmatch.domain.errors import NotFoundError, ValidationError
from recurmatch.utils.id_resolver import resolve_account, resolve_id


@dataclass
class Item:
    id: str


ITEMS = [Item("3f2a9c1e-0000"), Item("3f2b7d44-0000"), Item("a1b2c3d4-0000")]


def test_exact_id():
    """Test that a full ID always wins."""
    assert resolve_id(ITEMS, "a1b2c3d4-0000", "match").id == "a1b2c3d4-0000"


def test_unique_prefix():
    """Test resolving a unique prefix, case-insensitively."""
    assert resolve_id(ITEMS, "A1B2", "match").id == "a1b2c3d4-0000"
    assert resolve_id(ITEMS, "3f2a", "match").id == "3f2a9c1e-0000"


def test_ambiguous_prefix():
    """Test that a prefix shared by several IDs is rejected."""
    with pytest.raises(ValidationError, match="ambiguous"):
        resolve_id([Item("3f2a-1"), Item("3f2a-2")], "3f2a", "match")


def test_short_prefix():
    """Test that prefixes under four characters are rejected."""
    with pytest.raises(ValidationError, match="too short"):
        resolve_id(ITEMS, "a1b", "match")


def test_unknown():
    """Test that an unknown ID raises NotFoundError."""
    with pytest.raises(NotFoundError, match="Match 'ffff' not found"):
        resolve_id(ITEMS, "ffff", "match")


def test_resolve_account_by_name(account_service, sample_account):
    """Test resolving an account by exact name."""
    assert resolve_account(account_service, "Test Account") == sample_account.id


def test_resolve_account_by_prefix(account_service, sample_account):
    """Test resolving an account by ID prefix."""
    assert resolve_account(account_service, sample_account.id[:8]) == sample_account.id


def test_resolve_account_unknown(account_service, sample_account):
    """Test that unknown names raise NotFoundError."""
    with pytest.raises(NotFoundError):
        resolve_account(account_service, "Nope")
    with pytest.raises(NotFoundError):
        resolve_account(account_service, "Brokerage")

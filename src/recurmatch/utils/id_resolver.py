"""Resolve user-typed identifiers (names, full IDs or ID prefixes)."""

from typing import Iterable, TypeVar

from recurmatch.domain.account import AccountService
from recurmatch.domain.errors import NotFoundError, ValidationError

T = TypeVar("T")

MIN_PREFIX_LENGTH = 4


def resolve_id(candidates: Iterable[T], value: str, label: str) -> T:
    """Pick the item whose ``id`` equals or uniquely starts with ``value``.

    IDs are UUIDs, so the CLI lets users type the first few characters
    as shown in listings.

    Args:
        candidates: Items with an ``id`` attribute
        value: Full ID or prefix
        label: Item kind, for error messages

    Returns:
        The matching item

    Raises:
        NotFoundError: If nothing matches
        ValidationError: If the prefix is too short or ambiguous
    """
    value = value.strip().lower()
    items = list(candidates)

    for item in items:
        if item.id == value:
            return item

    if len(value) < MIN_PREFIX_LENGTH:
        raise ValidationError(
            f"{label.capitalize()} ID prefix '{value}' is too short "
            f"(use at least {MIN_PREFIX_LENGTH} characters)"
        )

    matches = [item for item in items if item.id.startswith(value)]
    if not matches:
        raise NotFoundError(f"{label.capitalize()} '{value}' not found")
    if len(matches) > 1:
        raise ValidationError(f"{label.capitalize()} ID prefix '{value}' is ambiguous")
    return matches[0]


def resolve_account(account_service: AccountService, account: str) -> str:
    """Resolve account name, ID or ID prefix to account ID.

    Args:
        account_service: AccountService instance
        account: Account name, full ID or ID prefix

    Returns:
        Account ID

    Raises:
        NotFoundError: If account is not found
        ValidationError: If an ID prefix is ambiguous
    """
    accounts = account_service.list_accounts()

    for acc in accounts:
        if acc.name == account:
            return acc.id

    try:
        return resolve_id(accounts, account, "account").id
    except ValidationError:
        # Too short to be a prefix; report it as an unknown name
        if len(account.strip()) < MIN_PREFIX_LENGTH:
            raise NotFoundError(f"Account '{account}' not found")
        raise

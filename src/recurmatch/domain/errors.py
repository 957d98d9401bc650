"""Shared domain error messages and error types."""

from datetime import date


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class InvalidStateError(DomainError):
    """Operation not allowed in the entity's current state."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


def account_not_found(account_id: str) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def transaction_not_found(transaction_id: str) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def recurring_transaction_not_found(schedule_id: str) -> str:
    """Return message for missing recurring transaction."""
    return f"Recurring transaction {schedule_id} not found"


def recurring_transfer_not_found(schedule_id: str) -> str:
    """Return message for missing recurring transfer."""
    return f"Recurring transfer {schedule_id} not found"


def match_not_found(match_id: str) -> str:
    """Return message for missing reconciliation match."""
    return f"Reconciliation match {match_id} not found"


def match_already_resolved() -> str:
    """Return message when resolving a match that is no longer suggested."""
    return "Match is already resolved and cannot be modified."


def duplicate_match(transaction_id: str, schedule_id: str, instance_date: date) -> str:
    """Return message for a second match on the same transaction/instance pair."""
    return (
        f"A match between transaction {transaction_id} and schedule {schedule_id} "
        f"on {instance_date.isoformat()} already exists"
    )


def duplicate_account_name(name: str) -> str:
    """Return message for duplicate account name."""
    return f"Account with name '{name}' already exists"


def inactive_schedule(kind: str, action: str) -> str:
    """Return message when an inactive schedule is advanced or skipped."""
    return f"Cannot {action} inactive {kind}."

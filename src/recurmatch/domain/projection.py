"""Projection of schedules into flat, override-resolved occurrence instances.

The functions here are pure: they take schedules, their overrides and lookup
tables, and return new instance records without touching any input.
"""

from collections import defaultdict
from datetime import date
from typing import Iterable, Mapping, Optional

from recurmatch.domain.entities import (
    OverrideType,
    RecurringInstanceInfo,
    RecurringTransferInstanceInfo,
    TransferDirection,
)
from recurmatch.domain.schedules import RecurringTransaction, RecurringTransfer, ScheduleOverride


def index_overrides(overrides: Iterable[ScheduleOverride]) -> dict[str, dict[date, ScheduleOverride]]:
    """Group overrides by schedule ID, then by the occurrence date they replace."""
    index: dict[str, dict[date, ScheduleOverride]] = defaultdict(dict)
    for override in overrides:
        index[override.schedule_id][override.original_date] = override
    return index


def build_transaction_instance(
    schedule: RecurringTransaction,
    instance_date: date,
    override: Optional[ScheduleOverride],
    account_names: Mapping[str, str],
) -> RecurringInstanceInfo:
    """Merge one occurrence of a recurring transaction with its override, if any."""
    is_modified = override is not None and override.override_type == OverrideType.MODIFIED
    amount = schedule.amount
    description = schedule.description
    if is_modified:
        if override.modified_amount is not None:
            amount = override.modified_amount
        if override.modified_description is not None:
            description = override.modified_description

    return RecurringInstanceInfo(
        schedule_id=schedule.id,
        instance_date=instance_date,
        account_id=schedule.account_id,
        account_name=account_names.get(schedule.account_id, ""),
        description=description,
        amount=amount,
        category=schedule.category,
        is_modified=is_modified,
        is_skipped=override is not None and override.is_skipped,
    )


def project_transaction_instances(
    schedules: Iterable[RecurringTransaction],
    overrides: Mapping[str, Mapping[date, ScheduleOverride]],
    from_date: date,
    to_date: date,
    account_names: Optional[Mapping[str, str]] = None,
    include_skipped: bool = False,
) -> dict[date, list[RecurringInstanceInfo]]:
    """Project active recurring transactions into instances keyed by date.

    Skipped occurrences are left out unless ``include_skipped`` is set, in
    which case they are kept and flagged. Modified ones carry the override
    values.

    Args:
        schedules: Recurring transactions to project
        overrides: Overrides as returned by ``index_overrides``
        from_date: First date of the range (inclusive)
        to_date: Last date of the range (inclusive)
        account_names: Optional account ID to name lookup
        include_skipped: Keep skipped occurrences, flagged ``is_skipped``

    Returns:
        Dict mapping each occurrence date to the instances due that day
    """
    account_names = account_names or {}
    result: dict[date, list[RecurringInstanceInfo]] = {}

    for schedule in schedules:
        if not schedule.is_active:
            continue
        schedule_overrides = overrides.get(schedule.id, {})
        for occurrence in schedule.get_occurrences_between(from_date, to_date):
            override = schedule_overrides.get(occurrence)
            if override is not None and override.is_skipped and not include_skipped:
                continue
            instance = build_transaction_instance(
                schedule, occurrence, override, account_names
            )
            result.setdefault(occurrence, []).append(instance)

    return result


def _transfer_sides(
    transfer: RecurringTransfer,
    instance_date: date,
    override: Optional[ScheduleOverride],
    account_names: Mapping[str, str],
    account_id: Optional[str],
) -> list[RecurringTransferInstanceInfo]:
    is_modified = override is not None and override.override_type == OverrideType.MODIFIED
    is_skipped = override is not None and override.is_skipped
    amount = transfer.amount
    description = transfer.description
    if is_modified:
        if override.modified_amount is not None:
            amount = override.modified_amount
        if override.modified_description is not None:
            description = override.modified_description

    source_name = account_names.get(transfer.source_account_id, "")
    destination_name = account_names.get(transfer.destination_account_id, "")
    sides = []

    if account_id is None or account_id == transfer.source_account_id:
        sides.append(
            RecurringTransferInstanceInfo(
                schedule_id=transfer.id,
                instance_date=instance_date,
                account_id=transfer.source_account_id,
                account_name=source_name,
                description=f"Transfer to {destination_name}: {description}",
                amount=-amount,
                transfer_direction=TransferDirection.SOURCE,
                is_modified=is_modified,
                is_skipped=is_skipped,
            )
        )

    if account_id is None or account_id == transfer.destination_account_id:
        sides.append(
            RecurringTransferInstanceInfo(
                schedule_id=transfer.id,
                instance_date=instance_date,
                account_id=transfer.destination_account_id,
                account_name=destination_name,
                description=f"Transfer from {source_name}: {description}",
                amount=amount,
                transfer_direction=TransferDirection.DESTINATION,
                is_modified=is_modified,
                is_skipped=is_skipped,
            )
        )

    return sides


def project_transfer_instances(
    transfers: Iterable[RecurringTransfer],
    overrides: Mapping[str, Mapping[date, ScheduleOverride]],
    from_date: date,
    to_date: date,
    account_names: Optional[Mapping[str, str]] = None,
    account_id: Optional[str] = None,
    include_skipped: bool = False,
) -> dict[date, list[RecurringTransferInstanceInfo]]:
    """Project active recurring transfers into two-sided instances keyed by date.

    Each occurrence yields an outgoing (negative) instance on the source
    account and an incoming (positive) one on the destination account. When
    ``account_id`` is given only the side touching that account is kept.
    """
    account_names = account_names or {}
    result: dict[date, list[RecurringTransferInstanceInfo]] = {}

    for transfer in transfers:
        if not transfer.is_active:
            continue
        transfer_overrides = overrides.get(transfer.id, {})
        for occurrence in transfer.get_occurrences_between(from_date, to_date):
            override = transfer_overrides.get(occurrence)
            if override is not None and override.is_skipped and not include_skipped:
                continue
            sides = _transfer_sides(transfer, occurrence, override, account_names, account_id)
            if sides:
                result.setdefault(occurrence, []).extend(sides)

    return result


def project_instances_for_date(
    schedules: Iterable[RecurringTransaction],
    overrides: Mapping[str, Mapping[date, ScheduleOverride]],
    on_date: date,
    account_names: Optional[Mapping[str, str]] = None,
) -> list[RecurringInstanceInfo]:
    """Instances due on a single date, keeping skipped ones flagged ``is_skipped``."""
    account_names = account_names or {}
    instances = []

    for schedule in schedules:
        if not schedule.is_active:
            continue
        if on_date not in schedule.get_occurrences_between(on_date, on_date):
            continue
        override = overrides.get(schedule.id, {}).get(on_date)
        instances.append(
            build_transaction_instance(schedule, on_date, override, account_names)
        )

    return instances


def flatten_instances(instances_by_date: Mapping[date, list]) -> list:
    """Flatten a date-keyed projection into one list ordered by date."""
    return [
        instance
        for day in sorted(instances_by_date)
        for instance in instances_by_date[day]
    ]

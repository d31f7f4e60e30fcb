"""Projection of a cluster into its consolidated public view."""

from typing import Iterable

from .types import ConsolidatedView, ContactRecord


def _append_unique(values: list[str], value: str | None) -> None:
    if value and value not in values:
        values.append(value)


def project(primary: ContactRecord, secondaries: Iterable[ContactRecord]) -> ConsolidatedView:
    """
    Build the consolidated view of one cluster.

    The primary's email/phone come first, then each secondary's values in the
    order given (callers pass them oldest first), skipping values already seen.
    Every secondary id is listed, whether or not it contributed anything new.
    """
    emails: list[str] = []
    phone_numbers: list[str] = []
    secondary_ids: list[int] = []

    _append_unique(emails, primary.email)
    _append_unique(phone_numbers, primary.phone_number)

    for secondary in secondaries:
        secondary_ids.append(secondary.id)
        _append_unique(emails, secondary.email)
        _append_unique(phone_numbers, secondary.phone_number)

    return ConsolidatedView(
        primary_contact_id=primary.id,
        emails=emails,
        phone_numbers=phone_numbers,
        secondary_contact_ids=secondary_ids,
    )

"""
Cluster Merger

Fuses clusters that turned out to describe the same identity. The oldest
primary survives; every other primary is demoted and its secondaries are
re-pointed at the survivor inside one transaction, so no secondary ever links
to another secondary.

Root ids come from a resolve that ran outside the transaction, so a concurrent
merge may already have demoted some of them. The election therefore runs
inside the transaction and follows each demoted candidate to its current
primary before choosing a survivor.
"""

from typing import Iterable

import structlog

from reconciliation.kernel.errors import PersistenceError
from reconciliation.monitoring import get_metrics
from .store import ContactStore
from .types import ConsolidatedView, ContactRecord
from .updater import update

logger = structlog.get_logger()


async def current_primaries(store: ContactStore, ids: Iterable[int]) -> list[ContactRecord]:
    """
    Live primaries currently heading the clusters of `ids`, oldest first.

    A candidate that has been demoted is replaced by the row it links to,
    repeatedly, until only primaries remain. Deleted candidates drop out.
    """
    pending = set(ids)
    visited: set[int] = set()
    primaries: dict[int, ContactRecord] = {}

    while pending:
        visited |= pending
        followed: set[int] = set()
        for record in await store.find_primaries(sorted(pending)):
            if record.is_primary:
                primaries[record.id] = record
            elif record.linked_id is not None and record.linked_id not in visited:
                logger.info(
                    "Merge candidate was demoted, following link",
                    contact_id=record.id,
                    linked_id=record.linked_id,
                )
                followed.add(record.linked_id)
        pending = followed

    return sorted(primaries.values(), key=lambda p: (p.created_at, p.id))


async def merge(
    store: ContactStore,
    root_ids: Iterable[int],
    email: str | None,
    phone_number: str | None,
) -> ConsolidatedView:
    """
    Merge the clusters rooted at `root_ids` and apply the observation.

    Candidates are ordered by creation time with ties broken by id, so the
    same survivor is chosen on every retry.
    """
    candidate_ids = sorted(set(root_ids))

    async with store.transaction() as tx:
        primaries = await current_primaries(tx, candidate_ids)
        demoted_ids = [p.id for p in primaries[1:]]
        if demoted_ids:
            survivor = primaries[0]
            demoted = await tx.bulk_demote(demoted_ids, survivor.id)
            relinked = await tx.bulk_relink(demoted_ids, survivor.id)

    if not primaries:
        raise PersistenceError(
            message="None of the clusters to merge exist",
            code="persistence.cluster_missing",
            meta={"root_ids": candidate_ids},
        )

    survivor = primaries[0]
    if demoted_ids:
        get_metrics().track_merge(len(demoted_ids))
        logger.info(
            "Merged contact clusters",
            primary_id=survivor.id,
            demoted_ids=demoted_ids,
            demoted=demoted,
            relinked=relinked,
        )
    else:
        logger.warning(
            "Merge collapsed to a single live cluster",
            primary_id=survivor.id,
            requested_ids=candidate_ids,
        )

    return await update(store, survivor.id, email, phone_number)

"""
Cluster Resolver

Maps an observation to the cluster roots it touches. Read-only.
"""

import structlog

from .store import ContactStore
from .types import ClusterResolution, ContactRecord, MultiCluster, NoMatch, SingleCluster

logger = structlog.get_logger()


def collect_root_ids(matches: list[ContactRecord]) -> list[int]:
    """Distinct cluster roots of the matched rows, in first-seen order."""
    roots: list[int] = []
    seen: set[int] = set()
    for record in matches:
        root_id = record.root_id
        if root_id is None:
            # A secondary without a link breaks the cluster invariant; it
            # cannot be routed anywhere so it is skipped.
            logger.warning("Secondary contact without linked_id", contact_id=record.id)
            continue
        if root_id not in seen:
            seen.add(root_id)
            roots.append(root_id)
    return roots


async def resolve(
    store: ContactStore,
    email: str | None,
    phone_number: str | None,
) -> ClusterResolution:
    """Find every live contact sharing the email or phone and reduce to cluster roots."""
    matches = await store.find_matching(email, phone_number)
    roots = collect_root_ids(matches)

    logger.debug(
        "Resolved observation",
        matched_contacts=len(matches),
        root_ids=roots,
    )

    if not roots:
        return NoMatch()
    if len(roots) == 1:
        return SingleCluster(root_id=roots[0])
    return MultiCluster(root_ids=tuple(roots))

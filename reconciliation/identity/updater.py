"""
Single-Cluster Updater

Appends a secondary to a cluster when an observation brings new information,
then returns the cluster's consolidated view.
"""

import structlog

from reconciliation.kernel.errors import PersistenceError
from reconciliation.monitoring import get_metrics
from .store import ContactStore
from .types import ConsolidatedView, ContactRecord, LinkPrecedence
from .view import project

logger = structlog.get_logger()


def has_new_information(
    cluster: list[ContactRecord],
    email: str | None,
    phone_number: str | None,
) -> bool:
    """
    True when the observation should become a new secondary.

    Both fields must be present, and at least one of them must be missing from
    the cluster. Single-field observations never qualify, even with a value
    the cluster has not seen.
    """
    if not email or not phone_number:
        return False

    existing_emails = {c.email for c in cluster if c.email}
    existing_phones = {c.phone_number for c in cluster if c.phone_number}

    return email not in existing_emails or phone_number not in existing_phones


def _novel_single_field(
    cluster: list[ContactRecord],
    email: str | None,
    phone_number: str | None,
) -> str | None:
    if email and not phone_number and all(c.email != email for c in cluster):
        return "email"
    if phone_number and not email and all(c.phone_number != phone_number for c in cluster):
        return "phone_number"
    return None


async def _load_cluster(
    store: ContactStore, root_id: int
) -> tuple[ContactRecord, list[ContactRecord]]:
    """
    Load the cluster headed by `root_id`, following demotions.

    A root demoted by a concurrent merge is replaced by the primary it now
    links to.
    """
    visited: set[int] = set()
    current = root_id
    while current not in visited:
        visited.add(current)
        cluster = await store.find_cluster(current)
        head = next((c for c in cluster if c.id == current), None)
        if head is None:
            break
        if head.is_primary:
            return head, [c for c in cluster if c.id != current]
        if head.linked_id is None:
            break
        logger.info(
            "Cluster root was demoted, following link",
            root_id=current,
            linked_id=head.linked_id,
        )
        current = head.linked_id

    raise PersistenceError(
        message=f"Cluster root {root_id} not found",
        code="persistence.cluster_missing",
        meta={"root_id": root_id},
    )


async def update(
    store: ContactStore,
    root_id: int,
    email: str | None,
    phone_number: str | None,
) -> ConsolidatedView:
    """Grow the cluster rooted at `root_id` if needed and project it."""
    primary, secondaries = await _load_cluster(store, root_id)
    cluster = [primary, *secondaries]
    root_id = primary.id

    if has_new_information(cluster, email, phone_number):
        created = await store.insert(
            email=email,
            phone_number=phone_number,
            linked_id=root_id,
            precedence=LinkPrecedence.SECONDARY,
        )
        secondaries.append(created)
        get_metrics().track_secondary_created()
        logger.info(
            "Appended secondary contact",
            root_id=root_id,
            contact_id=created.id,
        )
    else:
        dropped = _novel_single_field(cluster, email, phone_number)
        if dropped:
            # Current policy needs both fields before linking a new record.
            get_metrics().track_dropped_observation(dropped)
            logger.warning(
                "identity.single_field_observation_dropped",
                root_id=root_id,
                field=dropped,
            )

    return project(primary, secondaries)

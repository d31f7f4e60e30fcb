"""
Identify

Entry point of the identity core: routes one observation to the resolver,
updater or merger and returns the consolidated view.

Resolution, decision and write are not one atomic unit. Two concurrent
observations carrying the same unseen email can both see no match and each
create a primary. The next observation touching both rows resolves to two
clusters and merges them, so the state converges, but callers that need
strict single-cluster creation must serialise per attribute upstream.
"""

import time

import structlog

from reconciliation.kernel.errors import InvalidInputError, ReconciliationError
from reconciliation.monitoring import get_metrics
from .merger import merge
from .resolver import resolve
from .store import ContactStore
from .types import ConsolidatedView, LinkPrecedence, MultiCluster, NoMatch, SingleCluster
from .updater import update
from .view import project

logger = structlog.get_logger()


def _clean(value: str | None) -> str | None:
    # Blank strings count as absent.
    if value is None or value == "":
        return None
    return value


async def identify(
    store: ContactStore,
    email: str | None = None,
    phone_number: str | None = None,
) -> ConsolidatedView:
    """
    Resolve an (email, phone number) observation into its consolidated identity.

    Raises:
        InvalidInputError: neither attribute was supplied.
        PersistenceError: the contact store failed; nothing partial is left behind.
    """
    email = _clean(email)
    phone_number = _clean(phone_number)
    if email is None and phone_number is None:
        raise InvalidInputError()

    started = time.perf_counter()
    outcome = "failed"
    try:
        resolution = await resolve(store, email, phone_number)

        if isinstance(resolution, NoMatch):
            created = await store.insert(
                email=email,
                phone_number=phone_number,
                linked_id=None,
                precedence=LinkPrecedence.PRIMARY,
            )
            logger.info("Created primary contact", contact_id=created.id)
            view = project(created, [])
            outcome = "created"
        elif isinstance(resolution, SingleCluster):
            view = await update(store, resolution.root_id, email, phone_number)
            outcome = "matched"
        elif isinstance(resolution, MultiCluster):
            view = await merge(store, resolution.root_ids, email, phone_number)
            outcome = "merged"
        else:
            raise TypeError(f"Unexpected resolution: {resolution!r}")
        return view
    except ReconciliationError as exc:
        logger.warning("Identify failed", code=exc.code, error=exc.message)
        raise
    finally:
        get_metrics().track_identify(outcome, time.perf_counter() - started)

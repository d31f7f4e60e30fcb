"""
Contact Store

The port the identity core depends on, plus the SQLAlchemy implementation.

Outside `transaction()` every call is its own short unit of work, so a single
insert or read is atomic on its own. Inside `transaction()` all calls share
one session and commit (or roll back) together.
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager, asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Callable, Iterable, Protocol, Sequence

import structlog
from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from reconciliation.db.client import get_session_factory
from reconciliation.db.models import Contact
from reconciliation.kernel.errors import PersistenceError
from reconciliation.kernel.time import coerce_utc, utc_now
from .types import ContactRecord, LinkPrecedence

logger = structlog.get_logger()


class ContactStore(Protocol):
    """Query/transaction interface over persisted contact rows."""

    async def find_matching(
        self, email: str | None, phone_number: str | None
    ) -> list[ContactRecord]:
        """Live rows whose email OR phone number matches, oldest first."""
        ...

    async def find_cluster(self, root_id: int) -> list[ContactRecord]:
        """The root row plus live rows linked to it, oldest first."""
        ...

    async def find_primaries(self, ids: Iterable[int]) -> list[ContactRecord]:
        """Live rows with the given ids, oldest first (ties by id); locked inside a transaction."""
        ...

    async def insert(
        self,
        email: str | None,
        phone_number: str | None,
        linked_id: int | None,
        precedence: LinkPrecedence,
    ) -> ContactRecord:
        ...

    async def bulk_demote(self, ids: Sequence[int], new_linked_id: int) -> int:
        ...

    async def bulk_relink(self, old_linked_ids: Sequence[int], new_linked_id: int) -> int:
        ...

    def transaction(self) -> AbstractAsyncContextManager["ContactStore"]:
        ...


def _to_record(row: Contact) -> ContactRecord:
    return ContactRecord(
        id=row.id,
        email=row.email,
        phone_number=row.phone_number,
        linked_id=row.linked_id,
        link_precedence=LinkPrecedence(row.link_precedence),
        created_at=coerce_utc(row.created_at),
        updated_at=coerce_utc(row.updated_at),
        deleted_at=coerce_utc(row.deleted_at) if row.deleted_at else None,
    )


_OLDEST_FIRST = (Contact.created_at.asc(), Contact.id.asc())


class SQLContactStore:
    """ContactStore backed by the `contact` table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        session: AsyncSession | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._session_factory = session_factory
        self._session = session
        self._clock = clock

    @asynccontextmanager
    async def _unit(self, operation: str) -> AsyncIterator[AsyncSession]:
        if self._session is not None:
            yield self._session
            return

        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as exc:
            logger.error("Contact store operation failed", operation=operation, error=str(exc))
            raise PersistenceError(
                message=f"Contact store {operation} failed",
                meta={"operation": operation},
            ) from exc

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["SQLContactStore"]:
        """Run the enclosed writes atomically; nested use joins the outer transaction."""
        if self._session is not None:
            yield self
            return

        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield SQLContactStore(
                        self._session_factory,
                        session=session,
                        clock=self._clock,
                    )
        except SQLAlchemyError as exc:
            logger.error("Contact store transaction rolled back", error=str(exc))
            raise PersistenceError(
                message="Contact store transaction failed",
                code="persistence.transaction_failed",
            ) from exc

    async def find_matching(
        self, email: str | None, phone_number: str | None
    ) -> list[ContactRecord]:
        conditions = []
        if email:
            conditions.append(Contact.email == email)
        if phone_number:
            conditions.append(Contact.phone_number == phone_number)
        if not conditions:
            return []

        stmt = (
            select(Contact)
            .where(or_(*conditions), Contact.deleted_at.is_(None))
            .order_by(*_OLDEST_FIRST)
        )
        async with self._unit("find_matching") as session:
            rows = (await session.scalars(stmt)).all()
            return [_to_record(row) for row in rows]

    async def find_cluster(self, root_id: int) -> list[ContactRecord]:
        stmt = (
            select(Contact)
            .where(
                or_(Contact.id == root_id, Contact.linked_id == root_id),
                Contact.deleted_at.is_(None),
            )
            .order_by(*_OLDEST_FIRST)
        )
        async with self._unit("find_cluster") as session:
            rows = (await session.scalars(stmt)).all()
            return [_to_record(row) for row in rows]

    async def find_primaries(self, ids: Iterable[int]) -> list[ContactRecord]:
        id_list = list(ids)
        if not id_list:
            return []
        stmt = (
            select(Contact)
            .where(Contact.id.in_(id_list), Contact.deleted_at.is_(None))
            .order_by(*_OLDEST_FIRST)
        )
        if self._session is not None:
            stmt = stmt.with_for_update()
        async with self._unit("find_primaries") as session:
            rows = (await session.scalars(stmt)).all()
            return [_to_record(row) for row in rows]

    async def insert(
        self,
        email: str | None,
        phone_number: str | None,
        linked_id: int | None,
        precedence: LinkPrecedence,
    ) -> ContactRecord:
        now = self._clock()
        row = Contact(
            email=email,
            phone_number=phone_number,
            linked_id=linked_id,
            link_precedence=precedence.value,
            created_at=now,
            updated_at=now,
        )
        async with self._unit("insert") as session:
            session.add(row)
            await session.flush()
            return _to_record(row)

    async def bulk_demote(self, ids: Sequence[int], new_linked_id: int) -> int:
        if not ids:
            return 0
        stmt = (
            update(Contact)
            .where(Contact.id.in_(list(ids)))
            .values(
                link_precedence=LinkPrecedence.SECONDARY.value,
                linked_id=new_linked_id,
                updated_at=self._clock(),
            )
            .execution_options(synchronize_session=False)
        )
        async with self._unit("bulk_demote") as session:
            result = await session.execute(stmt)
            return result.rowcount or 0

    async def bulk_relink(self, old_linked_ids: Sequence[int], new_linked_id: int) -> int:
        if not old_linked_ids:
            return 0
        stmt = (
            update(Contact)
            .where(Contact.linked_id.in_(list(old_linked_ids)))
            .values(linked_id=new_linked_id, updated_at=self._clock())
            .execution_options(synchronize_session=False)
        )
        async with self._unit("bulk_relink") as session:
            result = await session.execute(stmt)
            return result.rowcount or 0


def get_contact_store() -> ContactStore:
    """FastAPI dependency: a store bound to the global session factory."""
    return SQLContactStore(get_session_factory())

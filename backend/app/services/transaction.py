"""Per-property transactional boundary for availability-changing writes.

Every write that can create or free a booked day or visit slot runs through
:func:`property_transaction`. Inside it, the caller re-reads existing
commitments, runs the overlap check and inserts, and all of that commits
before any other writer for the same property can start:

* an in-process ``asyncio.Lock`` keyed by property id serializes requests
  handled by this worker;
* ``SELECT … FOR UPDATE`` on the property row serializes writers across
  workers on PostgreSQL (SQLite ignores it and relies on the lock above);
* the store's own constraints catch anything that slips through, and the
  resulting ``IntegrityError`` is reported as a conflict.

Host-wide writes (blocks that apply to every property) hold the host lock and
lock every property row. Writes that create commitments pass
``guard_host_blocks=True`` to take the host lock before their own, so a
host-wide block and a booking on the same day are serialized.
"""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable
from contextlib import AsyncExitStack
from typing import TypeVar
from weakref import WeakValueDictionary

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import settings
from app.errors import ConflictError, NotFoundError
from app.models.property import Property

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Host-wide blocks have no property row; they share one lock key.
HOST_SCOPE = uuid.UUID(int=0)

_locks: "WeakValueDictionary[uuid.UUID, asyncio.Lock]" = WeakValueDictionary()


def property_lock(property_id: uuid.UUID) -> asyncio.Lock:
    """Return the process-wide lock guarding ``property_id``."""
    lock = _locks.get(property_id)
    if lock is None:
        lock = asyncio.Lock()
        _locks[property_id] = lock
    return lock


def _is_transient(exc: DBAPIError) -> bool:
    if isinstance(exc, IntegrityError):
        return False
    return exc.connection_invalidated or isinstance(exc, (OperationalError, InterfaceError))


async def lock_property_row(session: AsyncSession, property_id: uuid.UUID) -> Property:
    """Lock and return the property row, raising ``NotFoundError`` if absent."""
    result = await session.execute(select(Property).where(Property.id == property_id).with_for_update())
    prop = result.scalar_one_or_none()
    if prop is None:
        raise NotFoundError("Property not found")
    return prop


async def lock_all_property_rows(session: AsyncSession) -> None:
    """Lock every property row, in id order, for a host-wide write."""
    await session.execute(select(Property.id).order_by(Property.id).with_for_update())


def _scope_locks(property_id: uuid.UUID | None, guard_host_blocks: bool) -> list[asyncio.Lock]:
    if property_id is None:
        return [property_lock(HOST_SCOPE)]
    if guard_host_blocks:
        # Always host lock, then property lock.
        return [property_lock(HOST_SCOPE), property_lock(property_id)]
    return [property_lock(property_id)]


async def property_transaction(
    session_factory: async_sessionmaker[AsyncSession],
    property_id: uuid.UUID | None,
    work: Callable[[AsyncSession, Property | None], Awaitable[T]],
    *,
    guard_host_blocks: bool = False,
) -> T:
    """Run ``work`` in one transaction while holding the property's lock.

    ``work`` receives the session and the locked property row (``None`` for
    host-wide scope when ``property_id`` is ``None``). Transient store errors
    are retried ``settings.transaction_retry_attempts`` times with a linear
    backoff; the whole unit of work is re-executed on each attempt.

    With ``guard_host_blocks`` the host-wide lock is held as well, so the
    write is serialized against host-wide blocks in this process; across
    processes the host-wide write's row locks do the same.

    Raises:
        NotFoundError: If ``property_id`` does not exist.
        ConflictError: If the store rejects the write with a uniqueness or
            exclusion violation.
    """
    attempts = settings.transaction_retry_attempts + 1
    locks = _scope_locks(property_id, guard_host_blocks)

    for attempt in range(1, attempts + 1):
        try:
            async with AsyncExitStack() as stack:
                for lock in locks:
                    await stack.enter_async_context(lock)
                async with session_factory() as session:
                    async with session.begin():
                        if property_id is None:
                            await lock_all_property_rows(session)
                            prop = None
                        else:
                            prop = await lock_property_row(session, property_id)
                        result = await work(session, prop)
                    return result
        except IntegrityError as exc:
            logger.info("Store rejected concurrent write for property %s: %s", property_id, exc.orig)
            raise ConflictError("The requested dates or time slot are no longer available") from exc
        except DBAPIError as exc:
            if not _is_transient(exc) or attempt == attempts:
                raise
            logger.warning(
                "Transient store error on property %s (attempt %d/%d), retrying: %s",
                property_id,
                attempt,
                attempts,
                exc,
            )
            await asyncio.sleep(settings.transaction_retry_backoff_seconds * attempt)

    raise AssertionError("unreachable")  # pragma: no cover

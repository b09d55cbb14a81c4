"""Unit-of-work helper for engine operations."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.ext.asyncio import AsyncSession

from garage.errors import StaleWrite

logger = logging.getLogger(__name__)


@asynccontextmanager
async def atomic(db: AsyncSession):
    """Commit on success, roll back on any failure.

    A lost optimistic-concurrency race (version stamp mismatch) surfaces as
    ``StaleWrite``; nothing the losing operation wrote is kept.
    """
    try:
        yield
        await db.commit()
    except StaleDataError as exc:
        await db.rollback()
        logger.warning("Stale write rejected: %s", exc)
        raise StaleWrite("The record was changed by another request; reload and retry") from exc
    except Exception:
        await db.rollback()
        raise

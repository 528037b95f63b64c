"""Thin data-access helpers shared by the route handlers.

Handlers build their own ``select`` statements; these helpers cover the
recurring shapes: fetch-or-404, partial update, insert, and cascade delete.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, Optional, Sequence, TypeVar

from sqlalchemy import Select, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from libs.common.datetime_utils import utc_now
from libs.common.errors import NotFoundError, StoreError
from libs.common.logging import get_logger
from libs.db.base import Base

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Commit everything issued inside the block, or roll all of it back.
    Store failures surface as ``StoreError``.
    """
    try:
        yield db
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Transaction rolled back: %s", exc)
        raise StoreError() from exc
    except Exception:
        await db.rollback()
        raise


async def fetch_all(db: AsyncSession, query: Select) -> Sequence[Any]:
    result = await db.execute(query)
    return result.scalars().all()


async def fetch_one(db: AsyncSession, query: Select) -> Optional[Any]:
    result = await db.execute(query)
    return result.scalars().first()


async def get_or_404(
    db: AsyncSession, model: type[ModelT], *criteria: Any, message: str
) -> ModelT:
    """Return the single row matching ``criteria`` or raise ``NotFoundError``."""
    row = await fetch_one(db, select(model).where(*criteria))
    if row is None:
        raise NotFoundError(message)
    return row


async def insert_row(db: AsyncSession, row: ModelT) -> ModelT:
    async with atomic(db):
        db.add(row)
    await db.refresh(row)
    return row


def apply_changes(row: Base, changes: dict[str, Any]) -> Base:
    """
    Write only the given columns and stamp ``updated_at``. Columns missing
    from ``changes`` are left untouched.
    """
    for field, value in changes.items():
        setattr(row, field, value)
    if hasattr(row, "updated_at"):
        row.updated_at = utc_now()
    return row


async def update_row(db: AsyncSession, row: ModelT, changes: dict[str, Any]) -> ModelT:
    async with atomic(db):
        apply_changes(row, changes)
    await db.refresh(row)
    return row


async def delete_row(db: AsyncSession, row: Base) -> None:
    async with atomic(db):
        await db.delete(row)


async def delete_with_children(
    db: AsyncSession,
    parent: Base,
    children: Iterable[InstrumentedAttribute],
) -> None:
    """
    Delete every child row whose foreign-key column equals the parent's id,
    then the parent itself, in a single transaction. Children are removed in
    the order given.
    """
    async with atomic(db):
        for fk_column in children:
            child_model = fk_column.class_
            await db.execute(delete(child_model).where(fk_column == parent.id))
        await db.delete(parent)

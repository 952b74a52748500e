"""Embedded key-value collection for product records.

The collection lives in a local SQLite file opened through aiosqlite. Each row
holds one JSON document keyed by its ``id``; ``seq`` preserves insertion order.
Whether storage can be used is decided once per handle: ``open_backend``
returns either ``Connected`` with a live engine or an inert ``Unavailable``.
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from sqlalchemy import JSON, Column, Integer, MetaData, String, Table
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from .config import Settings
from .errors import BackendUnavailableError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
STORE_NAME = "products"

metadata = MetaData()

products_table = Table(
    STORE_NAME,
    metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String, nullable=False, unique=True),
    Column("value", JSON, nullable=False),
)


@dataclass(frozen=True)
class Connected:
    engine: AsyncEngine


@dataclass(frozen=True)
class Unavailable:
    reason: str


Backend = Union[Connected, Unavailable]


def _check_capability(settings: Settings) -> str:
    """Return the database URL, or raise if local storage can't be used here."""
    if not settings.storage_enabled or not settings.db_path:
        raise BackendUnavailableError("local storage disabled")
    if settings.db_path == ":memory:":
        return "sqlite+aiosqlite:///:memory:"
    path = Path(settings.db_path).expanduser().resolve()
    parent = path.parent
    if not parent.is_dir():
        raise BackendUnavailableError(f"directory {parent} does not exist")
    if not os.access(parent, os.W_OK):
        raise BackendUnavailableError(f"directory {parent} is not writable")
    return f"sqlite+aiosqlite:///{path}"


async def _ensure_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        version = (await conn.exec_driver_sql("PRAGMA user_version")).scalar_one()
        if version > SCHEMA_VERSION:
            raise BackendUnavailableError(
                f"schema version {version} is newer than {SCHEMA_VERSION}"
            )
        if version < SCHEMA_VERSION:
            await conn.run_sync(metadata.create_all)
            await conn.exec_driver_sql(f"PRAGMA user_version = {SCHEMA_VERSION}")
            logger.debug("created '%s' collection at schema version %d", STORE_NAME, SCHEMA_VERSION)


async def open_backend(settings: Settings) -> Backend:
    engine = None
    try:
        url = _check_capability(settings)
        engine = create_async_engine(url, echo=settings.echo_sql)
        await _ensure_schema(engine)
    except BackendUnavailableError as e:
        if engine is not None:
            await engine.dispose()
        logger.warning("catalog storage unavailable: %s", e.reason)
        return Unavailable(e.reason)
    except SQLAlchemyError as e:
        if engine is not None:
            await engine.dispose()
        logger.warning("catalog storage unavailable: %s", e)
        return Unavailable(str(e))
    return Connected(engine)

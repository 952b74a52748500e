import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Iterable, List, Optional, Union

from sqlalchemy import delete as sql_delete
from sqlalchemy import func, insert, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from .config import Settings, get_settings
from .core import ProductIn, _make_product
from .database import Backend, Connected, Unavailable, open_backend, products_table
from .errors import DuplicateKeyError, NotFoundError, StorageError
from .models import Product
from .seed import load_reference_catalog

logger = logging.getLogger(__name__)

ProductPayload = Union[ProductIn, Product]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_input(product: ProductPayload) -> ProductIn:
    if isinstance(product, ProductIn):
        return product
    return ProductIn.model_validate(product.model_dump())


class CatalogStore:
    """Persistence boundary for the product collection.

    Every operation first resolves the backend (once, lazily). When storage is
    unavailable reads return empty results and writes are dropped.
    """

    def __init__(self, settings: Optional[Settings] = None, backend: Optional[Backend] = None):
        self._settings = settings or get_settings()
        self._backend = backend
        self._lock = asyncio.Lock()

    async def backend(self) -> Backend:
        if self._backend is None:
            async with self._lock:
                if self._backend is None:
                    self._backend = await open_backend(self._settings)
        return self._backend

    async def is_available(self) -> bool:
        return isinstance(await self.backend(), Connected)

    async def aclose(self) -> None:
        if isinstance(self._backend, Connected):
            await self._backend.engine.dispose()

    @asynccontextmanager
    async def _transaction(self, backend: Connected, operation: str) -> AsyncIterator[AsyncConnection]:
        try:
            async with backend.engine.begin() as conn:
                yield conn
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            logger.error("storage %s failed: %s", operation, e)
            raise StorageError(operation, str(e)) from e

    # ---------------------------
    # Reads
    # ---------------------------
    async def list_all(self) -> List[Product]:
        backend = await self.backend()
        if isinstance(backend, Unavailable):
            return []
        async with self._transaction(backend, "list") as conn:
            rows = await conn.execute(
                select(products_table.c.value).order_by(products_table.c.seq)
            )
            return [Product.model_validate(value) for value in rows.scalars()]

    async def get_by_id(self, product_id: str) -> Optional[Product]:
        backend = await self.backend()
        if isinstance(backend, Unavailable):
            return None
        async with self._transaction(backend, "get") as conn:
            value = await self._fetch(conn, product_id)
        return Product.model_validate(value) if value is not None else None

    async def count(self) -> int:
        backend = await self.backend()
        if isinstance(backend, Unavailable):
            return 0
        async with self._transaction(backend, "count") as conn:
            result = await conn.execute(select(func.count()).select_from(products_table))
            return result.scalar_one()

    @staticmethod
    async def _fetch(conn: AsyncConnection, product_id: str):
        result = await conn.execute(
            select(products_table.c.value).where(products_table.c.id == product_id)
        )
        return result.scalar_one_or_none()

    # ---------------------------
    # Writes
    # ---------------------------
    async def add(self, product: ProductPayload) -> Optional[str]:
        payload = _as_input(product)
        backend = await self.backend()
        if isinstance(backend, Unavailable):
            return None

        product_id = payload.id or uuid.uuid4().hex
        record = _make_product(product_id, payload, payload.created_at or _now())
        try:
            async with self._transaction(backend, "add") as conn:
                await conn.execute(
                    insert(products_table).values(id=product_id, value=record.to_document())
                )
        except IntegrityError as e:
            raise DuplicateKeyError(product_id) from e
        logger.debug("added product %s", product_id)
        return product_id

    async def update(self, product_id: str, product: ProductPayload, upsert: bool = True) -> None:
        """Replace the record at ``product_id``; the stored id always equals the key.

        Creates the record when absent unless ``upsert`` is False, in which
        case ``NotFoundError`` is raised.
        """
        payload = _as_input(product)
        backend = await self.backend()
        if isinstance(backend, Unavailable):
            return

        async with self._transaction(backend, "update") as conn:
            existing = await self._fetch(conn, product_id)
            if existing is None and not upsert:
                raise NotFoundError("product", product_id)

            created_at = payload.created_at
            if created_at is None:
                created_at = Product.model_validate(existing).created_at if existing else _now()
            record = _make_product(product_id, payload, created_at)

            stmt = sqlite_insert(products_table).values(id=product_id, value=record.to_document())
            stmt = stmt.on_conflict_do_update(
                index_elements=[products_table.c.id],
                set_={"value": stmt.excluded.value},
            )
            await conn.execute(stmt)
        logger.debug("%s product %s", "replaced" if existing else "created", product_id)

    async def delete(self, product_id: str) -> None:
        backend = await self.backend()
        if isinstance(backend, Unavailable):
            return
        async with self._transaction(backend, "delete") as conn:
            await conn.execute(sql_delete(products_table).where(products_table.c.id == product_id))
        logger.debug("deleted product %s", product_id)

    async def seed_if_empty(self, initial_set: Optional[Iterable[ProductPayload]] = None) -> int:
        """Insert the reference catalog only when the collection holds no records.

        Records are added one at a time; a failure part-way leaves the ones
        already added in place.
        """
        if not await self.is_available():
            return 0
        if await self.count() != 0:
            return 0

        products = list(initial_set) if initial_set is not None else load_reference_catalog()
        for p in products:
            await self.add(p)
        logger.debug("seeded %d products", len(products))
        return len(products)


# ---------------------------
# Process-wide store
# ---------------------------
_STORE: Optional[CatalogStore] = None


def get_store() -> CatalogStore:
    global _STORE
    if _STORE is None:
        _STORE = CatalogStore()
    return _STORE


async def list_all() -> List[Product]:
    return await get_store().list_all()


async def get_by_id(product_id: str) -> Optional[Product]:
    return await get_store().get_by_id(product_id)


async def add(product: ProductPayload) -> Optional[str]:
    return await get_store().add(product)


async def update(product_id: str, product: ProductPayload) -> None:
    await get_store().update(product_id, product)


async def delete(product_id: str) -> None:
    await get_store().delete(product_id)


async def seed_if_empty(initial_set: Optional[Iterable[ProductPayload]] = None) -> int:
    return await get_store().seed_if_empty(initial_set)

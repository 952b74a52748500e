import pytest
import pytest_asyncio

from catalog.config import Settings
from catalog.core import _make_product
from catalog.seed import load_reference_catalog
from catalog.store import CatalogStore


@pytest.fixture
def settings(tmp_path):
    return Settings(db_path=str(tmp_path / "catalog.db"))


@pytest_asyncio.fixture
async def store(settings):
    s = CatalogStore(settings)
    yield s
    await s.aclose()


@pytest.fixture
def reference_products():
    return [_make_product(p.id, p, p.created_at) for p in load_reference_catalog()]

import json
from pathlib import Path
from typing import List

from pydantic import TypeAdapter

from .core import ProductIn

REFERENCE_CATALOG = Path(__file__).parent / "data" / "seed_products.json"

_catalog_adapter = TypeAdapter(List[ProductIn])


def load_reference_catalog(path: Path = REFERENCE_CATALOG) -> List[ProductIn]:
    with open(path, encoding="utf-8") as f:
        return _catalog_adapter.validate_python(json.load(f))

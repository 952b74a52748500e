# catalog/models.py
from datetime import datetime
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class SortMode(str, Enum):
    NONE = "none"
    PRICE_ASC = "price-asc"
    PRICE_DESC = "price-desc"


class Product(BaseModel):
    """A stored catalog record. Persisted under the camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    category: str = Field(..., min_length=1)
    image_url: str = Field("", alias="imageUrl")
    created_at: datetime = Field(..., alias="createdAt")

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

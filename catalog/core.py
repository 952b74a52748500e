from datetime import datetime
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .models import Product, SortMode

# Input schemas and filter state. Nothing here touches storage.

class ProductIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    category: str = Field(..., min_length=1)
    image_url: str = Field("", alias="imageUrl")
    created_at: Optional[datetime] = Field(None, alias="createdAt")


class PriceFilter(BaseModel):
    is_custom: bool = False
    range: Tuple[float, float] = (0, 1000)

    @property
    def bounds(self) -> Tuple[float, float]:
        # slider handles may cross, so order the endpoints
        low, high = self.range
        return min(low, high), max(low, high)


class FilterState(BaseModel):
    price: PriceFilter = Field(default_factory=PriceFilter)
    sort: SortMode = SortMode.NONE


def _make_product(product_id: str, p: ProductIn, created_at: datetime) -> Product:
    return Product(
        id=product_id,
        name=p.name,
        description=p.description,
        price=p.price,
        category=p.category,
        image_url=p.image_url,
        created_at=created_at,
    )

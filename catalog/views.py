# catalog/views.py
from operator import attrgetter
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .core import FilterState
from .models import Product, SortMode

# Pure transforms from (products, filter state) to the displayed list.
# None of these mutate their input or touch storage.

SORT_OPTIONS: Sequence[Tuple[str, SortMode]] = (
    ("None", SortMode.NONE),
    ("Price: Low to High", SortMode.PRICE_ASC),
    ("Price: High to Low", SortMode.PRICE_DESC),
)

PRICE_PRESETS: Sequence[Tuple[str, Tuple[float, float]]] = (
    ("Any price", (0, 1000)),
    ("Under 200$", (0, 200)),
    ("Under 400$", (0, 400)),
)

DEFAULT_CUSTOM_PRICE: Tuple[float, float] = (0, 1000)
CUSTOM_PRICE_STEP = 100

CATEGORIES: Sequence[str] = (
    "Electronics",
    "Footwear",
    "Accessories",
    "Appliances",
    "Personal Care",
    "Fitness",
    "Clothing",
    "Home Office",
)


def snap_to_step(value: float, step: float = CUSTOM_PRICE_STEP) -> float:
    """Round a custom-range endpoint to the nearest step, never below zero."""
    return max(0.0, float(round(value / step) * step))


def filter_by_price(products: Iterable[Product], price_range: Tuple[float, float]) -> List[Product]:
    low, high = price_range
    return [p for p in products if low <= p.price <= high]


def filter_by_category(products: Iterable[Product], category: Optional[str] = None) -> List[Product]:
    if category is None:
        return list(products)
    return [p for p in products if p.category == category]


def sort_by_price(products: Iterable[Product], mode: Union[SortMode, str] = SortMode.NONE) -> List[Product]:
    mode = SortMode(mode)
    if mode is SortMode.NONE:
        return list(products)
    # sorted() is stable in both directions, so equal prices keep their order
    return sorted(products, key=attrgetter("price"), reverse=mode is SortMode.PRICE_DESC)


def derive_view(
    products: Iterable[Product],
    filter_state: Optional[FilterState] = None,
    category: Optional[str] = None,
) -> List[Product]:
    """Category, then price, then sort. The order is fixed."""
    filter_state = filter_state or FilterState()
    out = filter_by_category(products, category)
    out = filter_by_price(out, filter_state.price.bounds)
    return sort_by_price(out, filter_state.sort)

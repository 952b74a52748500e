import pytest

from catalog.core import FilterState, PriceFilter
from catalog.models import SortMode
from catalog.views import (
    CUSTOM_PRICE_STEP, PRICE_PRESETS, derive_view, filter_by_category, filter_by_price,
    snap_to_step, sort_by_price,
)


def names(products):
    return [p.name for p in products]


def test_reference_catalog_shape(reference_products):
    assert len(reference_products) == 15
    prices = [p.price for p in reference_products]
    assert min(prices) == 29.99
    assert max(prices) == 1500.00


def test_any_price_preset_excludes_gaming_laptop(reference_products):
    out = filter_by_price(reference_products, (0, 1000))
    assert len(out) == 14
    assert "Gaming Laptop" not in names(out)


def test_price_bounds_are_inclusive(reference_products):
    assert names(filter_by_price(reference_products, (29.99, 29.99))) == ["Yoga Mat"]
    assert names(filter_by_price(reference_products, (1500, 1500))) == ["Gaming Laptop"]


def test_price_filter_preserves_order(reference_products):
    out = filter_by_price(reference_products, (0, 200))
    ids = [p.id for p in out]
    assert ids == sorted(ids, key=int)


def test_sort_descending(reference_products):
    out = sort_by_price(reference_products, "price-desc")
    assert out[0].name == "Gaming Laptop"
    assert out[-1].name == "Yoga Mat"


def test_sort_ascending(reference_products):
    out = sort_by_price(reference_products, SortMode.PRICE_ASC)
    assert out[0].name == "Yoga Mat"
    assert out[-1].name == "Gaming Laptop"


def test_sort_is_stable_for_equal_prices(reference_products):
    # Wireless Headphones and Leather Jacket are both 199.99
    for mode in (SortMode.PRICE_ASC, SortMode.PRICE_DESC):
        tied = [p.name for p in sort_by_price(reference_products, mode) if p.price == 199.99]
        assert tied == ["Wireless Headphones", "Leather Jacket"]


def test_sort_none_keeps_order_and_copies(reference_products):
    out = sort_by_price(reference_products, SortMode.NONE)
    assert out == reference_products
    assert out is not reference_products


def test_unknown_sort_mode_rejected(reference_products):
    with pytest.raises(ValueError):
        sort_by_price(reference_products, "name-asc")


def test_category_filter(reference_products):
    assert filter_by_category(reference_products, None) == reference_products
    electronics = filter_by_category(reference_products, "Electronics")
    assert len(electronics) == 6
    assert {p.category for p in electronics} == {"Electronics"}
    assert filter_by_category(reference_products, "electronics") == []


def test_derive_view_composes_category_price_sort(reference_products):
    state = FilterState(price=PriceFilter(range=PRICE_PRESETS[2][1]), sort=SortMode.PRICE_DESC)
    out = derive_view(reference_products, state, "Electronics")
    assert names(out) == ["LED Monitor", "Smartwatch", "Wireless Headphones", "Bluetooth Speaker"]


def test_derive_view_defaults(reference_products):
    out = derive_view(reference_products)
    assert len(out) == 14
    assert [p.id for p in out] == [p.id for p in reference_products if p.price <= 1000]


def test_custom_range_endpoints_are_ordered(reference_products):
    state = FilterState(price=PriceFilter(is_custom=True, range=(100, 0)))
    assert state.price.bounds == (0, 100)
    out = derive_view(reference_products, state)
    assert all(p.price <= 100 for p in out)
    assert len(out) == 8


def test_inputs_not_mutated(reference_products):
    before = list(reference_products)
    derive_view(reference_products, FilterState(sort=SortMode.PRICE_DESC), "Electronics")
    assert reference_products == before


@pytest.mark.parametrize("value,expected", [
    (0, 0.0),
    (149, 100.0),
    (151, 200.0),
    (1000, 1000.0),
    (-30, 0.0),
])
def test_custom_range_snaps_to_slider_step(value, expected):
    assert snap_to_step(value) == expected
    assert snap_to_step(value) % CUSTOM_PRICE_STEP == 0

import asyncio
import gc

import pytest

from catalog.debounce import CatalogView, Debouncer
from catalog.models import SortMode


@pytest.mark.asyncio
async def test_burst_collapses_to_latest_call():
    calls = []
    debounced = Debouncer(calls.append, wait=0.3)
    for value in range(5):
        debounced(value)
        await asyncio.sleep(0.05)
    assert calls == []
    assert debounced.pending

    await asyncio.sleep(0.45)
    assert calls == [4]
    assert not debounced.pending


@pytest.mark.asyncio
async def test_separate_bursts_each_fire():
    calls = []
    debounced = Debouncer(calls.append, wait=0.05)
    debounced("a")
    await debounced.wait_done()
    debounced("b")
    debounced("c")
    await debounced.wait_done()
    assert calls == ["a", "c"]


@pytest.mark.asyncio
async def test_flush_and_cancel():
    calls = []
    debounced = Debouncer(calls.append, wait=10)
    debounced(1)
    debounced.flush()
    assert calls == [1]

    debounced(2)
    debounced.cancel()
    assert await debounced.wait_done() is None
    await asyncio.sleep(0)
    assert calls == [1]


@pytest.mark.asyncio
async def test_view_recomputes_once_for_rapid_filter_edits(reference_products):
    seen = []
    view = CatalogView(reference_products, wait=0.3, on_change=seen.append)

    for high in (900, 700, 500, 300, 100):
        view.set_custom_range(0, high)
        await asyncio.sleep(0.05)
    assert view.recomputations == 0

    visible = await view.wait()
    assert view.recomputations == 1
    assert len(seen) == 1
    assert visible == seen[0]
    assert all(p.price <= 100 for p in visible)
    assert len(visible) == 8


@pytest.mark.asyncio
async def test_view_initial_state_uses_default_filters(reference_products):
    view = CatalogView(reference_products, wait=0.01)
    assert len(view.visible) == 14
    assert view.category is None
    assert not view.filter.price.is_custom


@pytest.mark.asyncio
async def test_toggle_category_twice_clears_it(reference_products):
    view = CatalogView(reference_products, wait=0.01)
    view.toggle_category("Fitness")
    assert [p.name for p in await view.wait()] == ["Yoga Mat"]
    view.toggle_category("Fitness")
    assert view.category is None
    assert len(await view.wait()) == 14


@pytest.mark.asyncio
async def test_refresh_skips_the_window(reference_products):
    view = CatalogView(reference_products, wait=10)
    view.set_sort(SortMode.PRICE_ASC)
    view.select_preset((0, 400))
    visible = view.refresh()
    assert not view.pending
    assert visible[0].name == "Yoga Mat"
    assert visible[-1].name == "LED Monitor"


@pytest.mark.asyncio
async def test_set_products_and_reset(reference_products):
    view = CatalogView([], wait=0.01)
    assert view.visible == []
    view.set_products(reference_products)
    view.set_sort("price-desc")
    view.select_category("Appliances")
    assert [p.name for p in await view.wait()] == ["Coffee Maker", "Blender"]

    view.reset_filters()
    assert len(await view.wait()) == 14


@pytest.mark.asyncio
async def test_failed_call_reaches_waiter():
    def boom(value):
        raise ValueError(value)

    debounced = Debouncer(boom, wait=0.01)
    debounced("bad")
    with pytest.raises(ValueError):
        await debounced.wait_done()


@pytest.mark.asyncio
async def test_failed_call_without_waiter_is_not_reported_as_unretrieved():
    loop = asyncio.get_running_loop()
    reported = []
    previous = loop.get_exception_handler()
    loop.set_exception_handler(lambda _loop, context: reported.append(context))
    try:
        calls = []

        def first_fails(value):
            if not calls:
                calls.append(value)
                raise ValueError(value)
            calls.append(value)

        debounced = Debouncer(first_fails, wait=0.01)
        debounced("bad")
        await asyncio.sleep(0.05)
        # replacing the settled future releases the failed one
        debounced("good")
        await debounced.wait_done()
        gc.collect()
        await asyncio.sleep(0)
    finally:
        loop.set_exception_handler(previous)

    assert calls == ["bad", "good"]
    assert not [c for c in reported if "never retrieved" in c.get("message", "")]

import asyncio
import logging
from typing import Any, Callable, Iterable, List, Optional, Tuple, Union

from .config import get_settings
from .core import FilterState, PriceFilter
from .models import Product, SortMode
from .views import DEFAULT_CUSTOM_PRICE, derive_view

logger = logging.getLogger(__name__)


class Debouncer:
    """Defers ``fn`` until no call has arrived for ``wait`` seconds.

    Each call replaces the pending arguments; superseded ones are dropped,
    never queued. Must be called from inside a running event loop.
    """

    def __init__(self, fn: Callable[..., Any], wait: float):
        self._fn = fn
        self.wait = wait
        self._handle: Optional[asyncio.TimerHandle] = None
        self._done: Optional[asyncio.Future] = None
        self._args: Tuple[Any, ...] = ()
        self._kwargs: dict = {}

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def __call__(self, *args, **kwargs) -> None:
        loop = asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
        if self._done is None or self._done.done():
            self._done = loop.create_future()
        self._args, self._kwargs = args, kwargs
        self._handle = loop.call_later(self.wait, self._fire)

    def _fire(self) -> None:
        self._handle = None
        done = self._done
        args, kwargs = self._args, self._kwargs
        self._args, self._kwargs = (), {}
        try:
            result = self._fn(*args, **kwargs)
        except Exception as e:
            logger.exception("debounced call failed")
            if done is not None and not done.done():
                done.set_exception(e)
                # already logged; waiters still see it through wait_done()
                done.exception()
            return
        if done is not None and not done.done():
            done.set_result(result)

    def flush(self) -> None:
        """Run the pending call now, if there is one."""
        if self._handle is not None:
            self._handle.cancel()
            self._fire()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._done is not None and not self._done.done():
            self._done.set_result(None)
        self._args, self._kwargs = (), {}

    async def wait_done(self) -> Any:
        """Wait for the pending call (if any) and return its result."""
        if self._done is None:
            return None
        return await asyncio.shield(self._done)


class CatalogView:
    """In-memory product set plus filter state, re-derived after quiescence.

    ``visible`` always holds the last derived list; ``on_change`` is called
    with it after every recomputation.
    """

    def __init__(
        self,
        products: Iterable[Product] = (),
        wait: Optional[float] = None,
        on_change: Optional[Callable[[List[Product]], Any]] = None,
    ):
        if wait is None:
            wait = get_settings().debounce_ms / 1000
        self.products: List[Product] = list(products)
        self.category: Optional[str] = None
        self.filter = FilterState()
        self.on_change = on_change
        self.recomputations = 0
        self.visible: List[Product] = derive_view(self.products, self.filter, self.category)
        self._debouncer = Debouncer(self._recompute, wait)

    @property
    def pending(self) -> bool:
        return self._debouncer.pending

    def _recompute(self, products: List[Product], filter_state: FilterState,
                   category: Optional[str]) -> List[Product]:
        self.visible = derive_view(products, filter_state, category)
        self.recomputations += 1
        if self.on_change is not None:
            self.on_change(self.visible)
        return self.visible

    def _schedule(self) -> None:
        self._debouncer(list(self.products), self.filter, self.category)

    # ---------------------------
    # Inputs
    # ---------------------------
    def set_products(self, products: Iterable[Product]) -> None:
        self.products = list(products)
        self._schedule()

    def toggle_category(self, category: str) -> None:
        self.category = None if self.category == category else category
        self._schedule()

    def select_category(self, category: Optional[str]) -> None:
        self.category = category
        self._schedule()

    def select_preset(self, price_range: Tuple[float, float]) -> None:
        self.filter = self.filter.model_copy(
            update={"price": PriceFilter(is_custom=False, range=tuple(price_range))}
        )
        self._schedule()

    def set_custom_range(self, low: float = DEFAULT_CUSTOM_PRICE[0],
                         high: float = DEFAULT_CUSTOM_PRICE[1]) -> None:
        self.filter = self.filter.model_copy(
            update={"price": PriceFilter(is_custom=True, range=(low, high))}
        )
        self._schedule()

    def set_sort(self, mode: Union[SortMode, str]) -> None:
        self.filter = self.filter.model_copy(update={"sort": SortMode(mode)})
        self._schedule()

    def reset_filters(self) -> None:
        self.category = None
        self.filter = FilterState()
        self._schedule()

    # ---------------------------
    # Output
    # ---------------------------
    def refresh(self) -> List[Product]:
        """Recompute immediately, dropping the debounce delay."""
        if self._debouncer.pending:
            self._debouncer.flush()
        else:
            self._recompute(list(self.products), self.filter, self.category)
        return self.visible

    async def wait(self) -> List[Product]:
        """Wait out the pending recomputation and return the visible list."""
        if self._debouncer.pending:
            await self._debouncer.wait_done()
        return self.visible

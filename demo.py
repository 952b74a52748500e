#!/usr/bin/env python
import asyncio
import tempfile
from pathlib import Path

from rich import print

from catalog.config import Settings
from catalog.core import ProductIn
from catalog.debounce import CatalogView
from catalog.store import CatalogStore
from catalog.views import PRICE_PRESETS


async def main():
    with tempfile.TemporaryDirectory() as tmp:
        store = CatalogStore(Settings(db_path=str(Path(tmp) / "demo.db")))

        # -----------------------------
        # Seed (twice, second is a no-op)
        # -----------------------------
        print("Seeding catalog...")
        print(await store.seed_if_empty())
        print(await store.seed_if_empty())

        # -----------------------------
        # Add / update / delete
        # -----------------------------
        print("\nAdding a product...")
        pid = await store.add(ProductIn(
            name="Trail Socks", description="Merino hiking socks.",
            price=19.5, category="Footwear",
        ))
        print(await store.get_by_id(pid))

        print("\nUpdating it...")
        await store.update(pid, ProductIn(
            name="Trail Socks (3-pack)", description="Merino hiking socks.",
            price=49.0, category="Footwear",
        ))
        print(await store.get_by_id(pid))

        print("\nDeleting it...")
        await store.delete(pid)
        print(await store.get_by_id(pid))

        # -----------------------------
        # Derived views
        # -----------------------------
        view = CatalogView(await store.list_all(), on_change=lambda v: print(f"  recomputed: {len(v)} products"))

        print("\nElectronics under 400$, priciest first (one burst of edits)...")
        view.toggle_category("Electronics")
        view.select_preset(PRICE_PRESETS[2][1])
        view.set_sort("price-desc")
        for p in await view.wait():
            print(f"  {p.name:<22} ${p.price:>8.2f}")

        print("\nDragging a custom price range...")
        view.select_category(None)
        for high in (900, 700, 500, 300, 100):
            view.set_custom_range(0, high)
            await asyncio.sleep(0.05)
        for p in await view.wait():
            print(f"  {p.name:<22} ${p.price:>8.2f}")

        await store.aclose()


if __name__ == "__main__":
    asyncio.run(main())

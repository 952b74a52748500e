# cli.py
import argparse
import asyncio
import sys
from datetime import datetime
from typing import Any, Awaitable, List, Optional

from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.prompt import Confirm, FloatPrompt, Prompt
from rich.table import Table
from rich.text import Text

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.styles import Style as PromptStyle

from catalog.core import FilterState, PriceFilter, ProductIn
from catalog.debounce import CatalogView
from catalog.errors import CatalogError
from catalog.log import configure_logging
from catalog.models import Product, SortMode
from catalog.store import CatalogStore, get_store
from catalog.views import (
    CATEGORIES, CUSTOM_PRICE_STEP, DEFAULT_CUSTOM_PRICE, PRICE_PRESETS, SORT_OPTIONS, derive_view, snap_to_step,
)

console = Console()

status_message = "Ready"

custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
    'scrollbar.background': 'bg:#88aaaa',
    'scrollbar.button': 'bg:#222222',
})


# ---------------------------
# Display helpers
# ---------------------------
def show_products(products: List[Product], title: str = "📦 Products Catalog"):
    if not products:
        console.print("[italic yellow]No products found[/italic yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        header_style="bold cyan",
        title_style="bold magenta",
        show_lines=True
    )
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name", style="bold", no_wrap=True)
    table.add_column("Price", justify="right", no_wrap=True)
    table.add_column("Category", no_wrap=True)
    table.add_column("Created", no_wrap=True)

    for p in products:
        table.add_row(
            p.id,
            p.name,
            f"${p.price:.2f}",
            p.category,
            p.created_at.strftime("%Y-%m-%d"),
        )
    console.print(table)


def show_product(product: Product):
    body = Text()
    body.append(f"{product.description}\n\n")
    body.append("Price: ", style="bold")
    body.append(f"${product.price:.2f}\n", style="green")
    body.append("Category: ", style="bold")
    body.append(f"{product.category}\n")
    body.append("Image: ", style="bold")
    body.append(f"{product.image_url or '-'}\n")
    body.append("Created: ", style="bold")
    body.append(product.created_at.strftime("%Y-%m-%d %H:%M"))
    console.print(Panel(body, title=f"🏷️ {product.name} [dim]({product.id})[/dim]", border_style="cyan"))


def describe_filters(view: CatalogView) -> str:
    low, high = view.filter.price.bounds
    price = "Custom" if view.filter.price.is_custom else next(
        (label for label, rng in PRICE_PRESETS if tuple(rng) == (low, high)), "Custom"
    )
    sort = next(label for label, mode in SORT_OPTIONS if mode is view.filter.sort)
    return (
        f"Category: [bold]{view.category or 'All'}[/bold]  "
        f"Price: [bold]{price}[/bold] ({low:.0f} $ - {high:.0f} $)  "
        f"Sort: [bold]{sort}[/bold]"
    )


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


# ---------------------------
# Store wrapper with error reporting
# ---------------------------
async def try_store(awaitable: Awaitable[Any], success_msg: Optional[str] = None):
    """
    Awaits a store call behind a spinner. Catalog and validation errors are
    reported in the status panel and turned into a None result.
    """
    global status_message
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            console=console,
        ) as progress:
            progress.add_task(description="Processing...", total=None)
            result = await awaitable

        if success_msg:
            status_message = success_msg
            console.print(show_status(success_msg, True))
        return result
    except (CatalogError, ValidationError) as e:
        status_message = f"Error: {e}"
        console.print(show_status(f"Error: {e}", False))
        return None


# ---------------------------
# Header
# ---------------------------
def create_header():
    header = Table(show_header=False, box=box.ROUNDED)
    header.add_column("left", width=30)
    header.add_column("center", width=40)
    header.add_column("right", width=30)

    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    header.add_row(
        "🛍️ Catalog",
        "[bold blue]Local Product Catalog[/bold blue]",
        f"[dim]{now}[/dim]"
    )
    return Panel(header, style="bold blue")


# ---------------------------
# Input helpers
# ---------------------------
def ask_product(current: Optional[Product] = None) -> ProductIn:
    """Collect product fields; raises ValidationError on bad input."""
    name = Prompt.ask("Name", default=current.name if current else None)
    description = Prompt.ask("Description", default=current.description if current else None)
    price = FloatPrompt.ask("💰 Price in dollars", default=current.price if current else 10.0)
    category = Prompt.ask("🏷️ Category", default=current.category if current else CATEGORIES[0])
    image_url = Prompt.ask("Image URL", default=current.image_url if current else "")
    return ProductIn(
        name=name or "",
        description=description or "",
        price=price,
        category=category or "",
        image_url=image_url or "",
        created_at=current.created_at if current else None,
    )


async def load_view(store: CatalogStore) -> CatalogView:
    """Initial view over the stored catalog; empty when the read fails."""
    products = await try_store(store.list_all())
    return CatalogView(products or [])


# ---------------------------
# Interactive menu
# ---------------------------
async def menu(store: CatalogStore):
    global status_message

    session = PromptSession(style=custom_style)
    console.clear()
    console.print(create_header())

    if not await store.is_available():
        status_message = "Error: local storage unavailable, changes will not be saved"
    await try_store(store.seed_if_empty())

    view = await load_view(store)

    async def reload():
        products = await try_store(store.list_all())
        if products is not None:
            view.set_products(products)

    def id_completer():
        return WordCompleter([p.id for p in view.products], ignore_case=True)

    while True:
        if status_message:
            console.print(show_status(status_message, "Error" not in status_message))
        console.print(describe_filters(view))

        menu_table = Table.grid(padding=(0, 2))
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)

        options = [
            ("1", "📦 List products", "6", "➕ Add product"),
            ("2", "🏷️ Category filter", "7", "✏️ Edit product"),
            ("3", "💲 Price filter", "8", "🗑️ Delete product"),
            ("4", "↕️ Sort", "9", "🔄 Clear filters"),
            ("5", "ℹ️ Product details", "q", "👋 Quit"),
        ]
        for row in options:
            menu_table.add_row(*row)
        console.print(Panel(menu_table, title="📋 Menu", border_style="yellow"))

        choice = (await session.prompt_async(
            "\nChoose an option ",
            completer=WordCompleter([str(i) for i in range(1, 10)] + ["q", "quit", "exit"]),
        )).strip()

        if choice == "1":
            show_products(await view.wait())

        elif choice == "2":
            name = (await session.prompt_async(
                "Category (blank for all) ",
                completer=WordCompleter(list(CATEGORIES), ignore_case=True),
            )).strip()
            if name:
                view.toggle_category(name)
            else:
                view.select_category(None)
            show_products(await view.wait())

        elif choice == "3":
            for i, (label, rng) in enumerate(PRICE_PRESETS, start=1):
                console.print(f"  [cyan]{i}[/cyan] {label}")
            console.print("  [cyan]c[/cyan] Custom")
            pick = Prompt.ask("Price filter", default="1")
            if pick.lower() == "c":
                console.print(f"  [dim]rounded to steps of {CUSTOM_PRICE_STEP} $[/dim]")
                low = FloatPrompt.ask("Min $", default=float(DEFAULT_CUSTOM_PRICE[0]))
                high = FloatPrompt.ask("Max $", default=float(DEFAULT_CUSTOM_PRICE[1]))
                view.set_custom_range(snap_to_step(low), snap_to_step(high))
            elif pick.isdigit() and 1 <= int(pick) <= len(PRICE_PRESETS):
                view.select_preset(PRICE_PRESETS[int(pick) - 1][1])
            else:
                console.print("[red]Unknown price filter.[/red]")
                continue
            show_products(await view.wait())

        elif choice == "4":
            for i, (label, _) in enumerate(SORT_OPTIONS, start=1):
                console.print(f"  [cyan]{i}[/cyan] {label}")
            pick = Prompt.ask("Sort", choices=[str(i) for i in range(1, len(SORT_OPTIONS) + 1)], default="1")
            view.set_sort(SORT_OPTIONS[int(pick) - 1][1])
            show_products(await view.wait())

        elif choice == "5":
            pid = (await session.prompt_async("Product ID ", completer=id_completer())).strip()
            product = await try_store(store.get_by_id(pid))
            if product:
                show_product(product)
            else:
                console.print(f"[italic yellow]Product {pid} not found[/italic yellow]")

        elif choice == "6":
            try:
                payload = ask_product()
            except ValidationError as e:
                console.print(show_status(f"Error: {e}", False))
                continue
            pid = await try_store(store.add(payload), success_msg=f"Product '{payload.name}' added")
            if pid:
                console.print(Panel(f"Added product: [green]{pid}[/green]"))
            await reload()

        elif choice == "7":
            pid = (await session.prompt_async("Product ID ", completer=id_completer())).strip()
            current = await try_store(store.get_by_id(pid))
            if not current:
                console.print(f"[italic yellow]Product {pid} not found[/italic yellow]")
                continue
            try:
                payload = ask_product(current)
            except ValidationError as e:
                console.print(show_status(f"Error: {e}", False))
                continue
            await try_store(store.update(pid, payload), success_msg=f"Product {pid} updated")
            await reload()

        elif choice == "8":
            pid = (await session.prompt_async("Product ID ", completer=id_completer())).strip()
            current = await try_store(store.get_by_id(pid))
            if not current:
                console.print(f"[italic yellow]Product {pid} not found[/italic yellow]")
                continue
            if Confirm.ask(f"[red]Delete \"{current.name}\"?[/red]"):
                await try_store(store.delete(pid), success_msg=f"Product {pid} deleted")
                await reload()

        elif choice == "9":
            view.reset_filters()
            status_message = "Filters cleared"

        elif choice.lower() in ("q", "quit", "exit"):
            if Confirm.ask("Are you sure you want to quit?"):
                console.print(Panel.fit("[bold green]Goodbye! 👋[/bold green]", title="Catalog"))
                return

        console.print()
        console.rule(style="dim")


# ---------------------------
# Subcommands
# ---------------------------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="catalog", description="Local product catalog")
    parser.add_argument("--log-level", help="Logging level (default from CATALOG_LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("interactive", help="Browse the catalog interactively (default)")

    lp = subparsers.add_parser("list", help="List products")
    lp.add_argument("--category", help="Only products in this category")
    lp.add_argument("--min", type=float, default=0.0, help="Minimum price")
    lp.add_argument("--max", type=float, default=float("inf"), help="Maximum price")
    lp.add_argument("--sort", choices=[m.value for m in SortMode], default=SortMode.NONE.value)

    gp = subparsers.add_parser("get", help="Show one product")
    gp.add_argument("product_id")

    def product_fields(p: argparse.ArgumentParser):
        p.add_argument("--name", required=True)
        p.add_argument("--description", required=True)
        p.add_argument("--price", type=float, required=True, help="Price in dollars")
        p.add_argument("--category", required=True)
        p.add_argument("--image-url", default="")

    ap = subparsers.add_parser("add", help="Add a product")
    ap.add_argument("--id", help="Product ID (generated when omitted)")
    product_fields(ap)

    up = subparsers.add_parser("update", help="Replace a product")
    up.add_argument("product_id")
    product_fields(up)

    dp = subparsers.add_parser("delete", help="Delete a product")
    dp.add_argument("product_id")

    subparsers.add_parser("seed", help="Load the reference catalog into an empty store")
    return parser


def _payload_from_args(args: argparse.Namespace) -> ProductIn:
    return ProductIn(
        id=getattr(args, "id", None),
        name=args.name,
        description=args.description,
        price=args.price,
        category=args.category,
        image_url=args.image_url,
    )


async def run_command(args: argparse.Namespace, store: CatalogStore) -> int:
    try:
        if args.command == "list":
            filter_state = FilterState(
                price=PriceFilter(is_custom=True, range=(args.min, args.max)),
                sort=SortMode(args.sort),
            )
            show_products(derive_view(await store.list_all(), filter_state, args.category))

        elif args.command == "get":
            product = await store.get_by_id(args.product_id)
            if product is None:
                console.print(show_status(f"Product {args.product_id} not found", False))
                return 1
            show_product(product)

        elif args.command == "add":
            pid = await store.add(_payload_from_args(args))
            if pid is None:
                console.print(show_status("Storage unavailable, product not saved", False))
                return 1
            console.print(show_status(f"Added product {pid}"))

        elif args.command == "update":
            await store.update(args.product_id, _payload_from_args(args))
            console.print(show_status(f"Product {args.product_id} updated"))

        elif args.command == "delete":
            await store.delete(args.product_id)
            console.print(show_status(f"Product {args.product_id} deleted"))

        elif args.command == "seed":
            count = await store.seed_if_empty()
            console.print(show_status(f"Seeded {count} products" if count else "Catalog already populated"))

    except (CatalogError, ValidationError) as e:
        console.print(show_status(f"Error: {e}", False))
        return 1
    return 0


async def _run(args: argparse.Namespace, store: CatalogStore) -> int:
    try:
        if args.command in (None, "interactive"):
            await menu(store)
            return 0
        return await run_command(args, store)
    finally:
        await store.aclose()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    try:
        return asyncio.run(_run(args, get_store()))
    except (KeyboardInterrupt, EOFError):
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())

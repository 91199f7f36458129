"""CLI for the order system.

Browse the catalog, price add-on services, check out with a simulated
payment method, inspect stock and review the orders placed this session.
"""

from decimal import Decimal
from typing import List, Optional, Tuple

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from order_system.catalog import all_products, get_product
from order_system.checkout import CheckoutResult, CheckoutService
from order_system.config import get_settings
from order_system.domain.orders import (
    SERVICES,
    Order,
    ServiceKind,
    create_base_order,
    with_express_shipping,
    with_gift_wrap,
    with_greeting_card,
)
from order_system.exceptions import OrderSystemError
from order_system.inventory import InventoryLedger
from order_system.monitoring import get_logger, setup_logging
from order_system.payments import PaymentMethod, PayPalPayment
from order_system.payments.strategies import STRATEGIES

# Initialize Typer app
app = typer.Typer(
    name="order-system",
    help="Order System - add-on services, simulated payments and stock",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)

# One service (and so one ledger) per process
_service: Optional[CheckoutService] = None


def configure_logging(verbose: bool = False) -> None:
    """Configure logging from settings, DEBUG when verbose."""
    settings = get_settings()
    if verbose:
        settings = settings.model_copy(update={"log_level": "DEBUG"})
    setup_logging(settings)


def get_service() -> CheckoutService:
    """Get or create the checkout service instance."""
    global _service
    if _service is None:
        settings = get_settings()
        ledger = InventoryLedger(low_stock_threshold=settings.low_stock_threshold)
        ledger.subscribe(
            lambda event: console.print(
                f"[yellow]Low stock:[/yellow] product {event.product_id} "
                f"has {event.remaining} left"
            )
        )
        _service = CheckoutService(ledger)
    return _service


@app.command()
def catalog(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
) -> None:
    """List the products for sale."""
    configure_logging(verbose)
    ledger = get_service().ledger

    table = Table(title="Catalog")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Product")
    table.add_column("Price", justify="right")
    table.add_column("In stock", justify="right")
    table.add_column("Description", style="dim")

    for product in all_products():
        table.add_row(
            str(product.id),
            product.name,
            product.price.format(),
            str(ledger.get_stock(product.id)),
            product.description,
        )

    console.print(table)


@app.command()
def services(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
) -> None:
    """List add-on services and payment methods."""
    configure_logging(verbose)

    table = Table(title="Add-on services")
    table.add_column("Kind", style="cyan")
    table.add_column("Service")
    table.add_column("Surcharge", justify="right")
    for kind, definition in SERVICES.items():
        table.add_row(kind.value, definition.fragment, f"+{definition.surcharge} EUR")
    console.print(table)

    methods = Table(title="Payment methods")
    methods.add_column("Method", style="cyan")
    methods.add_column("Name")
    methods.add_column("Limit", justify="right")
    methods.add_column("Success rate", justify="right")
    for method, strategy in STRATEGIES.items():
        methods.add_row(
            method.value,
            strategy.method_name,
            f"{strategy.max_transaction_amount:,.2f} EUR",
            f"{strategy.success_rate}%",
        )
    console.print(methods)
    console.print(
        f"[dim]PayPal charges an informational "
        f"{PayPalPayment.TRANSACTION_FEE_PERCENTAGE}% fee.[/dim]"
    )


@app.command()
def inventory(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
) -> None:
    """Show current stock per product."""
    configure_logging(verbose)
    ledger = get_service().ledger

    table = Table(title="Inventory")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Product")
    table.add_column("Quantity", justify="right")

    for product_id, quantity in sorted(ledger.snapshot().items()):
        product = get_product(product_id)
        name = product.name if product else "-"
        shown = str(quantity)
        if quantity < ledger.low_stock_threshold:
            shown = f"[red]{quantity}[/red]"
        table.add_row(str(product_id), name, shown)

    console.print(table)


@app.command()
def checkout(
    product_id: int = typer.Argument(..., help="Catalog product id"),
    gift_wrap: int = typer.Option(0, "--gift-wrap", "-g", min=0, help="Gift wrap layers"),
    express: int = typer.Option(0, "--express", "-e", min=0, help="Express shipping layers"),
    card: bool = typer.Option(False, "--card", "-c", help="Add a greeting card"),
    card_message: Optional[str] = typer.Option(
        None, "--card-message", "-m", help="Greeting card message (implies --card)"
    ),
    method: PaymentMethod = typer.Option(
        PaymentMethod.CREDIT_CARD, "--method", "-p", help="Payment method"
    ),
    retry: bool = typer.Option(
        False, "--retry/--no-retry", help="Offer another payment method when payment fails"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
) -> None:
    """Price an order with add-on services and pay for it."""
    configure_logging(verbose)

    product = get_product(product_id)
    if product is None:
        console.print(f"[red]Error:[/red] Unknown product id: {product_id}")
        raise typer.Exit(1)

    service = get_service()

    try:
        order: Order = service.create_base_order(product.name, product.price)
        for _ in range(gift_wrap):
            order = service.decorate(order, ServiceKind.GIFT_WRAP)
        for _ in range(express):
            order = service.decorate(order, ServiceKind.EXPRESS_SHIPPING)
        if card or card_message is not None:
            order = service.decorate(order, ServiceKind.GREETING_CARD, card_message)
    except OrderSystemError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)

    console.print(f"[blue]Paying[/blue] {order.compute_total().format()} via {method.value}...")
    result = service.checkout(order, product.id, method)
    _print_result(result)

    current = method
    while not result.success and retry:
        others = [m.value for m in PaymentMethod if m != current]
        choice = typer.prompt(
            f"Payment failed. Try another method ({', '.join(others)}) or 'skip'",
            default="skip",
        ).strip().lower()
        if choice == "skip":
            break
        try:
            next_method = PaymentMethod(choice)
        except ValueError:
            console.print(f"[red]Error:[/red] Unknown payment method: {choice}")
            continue
        console.print(f"[blue]Retrying[/blue] via {next_method.value}...")
        current = next_method
        result = service.retry(result.aggregate, next_method)
        _print_result(result)

    logger.info(
        "cli_checkout_finished",
        order_id=result.aggregate.order_id,
        status=result.aggregate.status.value,
        method=result.outcome.method_name,
    )
    _print_summary(service)

    if not result.success:
        if not retry:
            others = " or ".join(f"--method {m.value}" for m in PaymentMethod if m != current)
            console.print(
                f"[yellow]Hint:[/yellow] retry with {others}, "
                f"or pass --retry to choose another method interactively"
            )
        raise typer.Exit(1)


def _print_result(result: CheckoutResult) -> None:
    aggregate = result.aggregate
    outcome = result.outcome

    lines = [
        f"[bold]Order:[/bold] {aggregate.order_id}",
        f"[bold]Items:[/bold] {aggregate.description}",
        f"[bold]Total:[/bold] {aggregate.total.format()}",
        f"[bold]Status:[/bold] {aggregate.status.label}",
        f"[bold]Method:[/bold] {outcome.method_name}",
    ]
    if outcome.success:
        lines.append(f"[bold]Transaction:[/bold] {outcome.transaction_id}")
        if not result.stock_reserved:
            lines.append("[yellow]Warning:[/yellow] product is out of stock")
        style = "green"
    else:
        lines.append(f"[bold]Reason:[/bold] {outcome.message}")
        style = "red"

    console.print(Panel("\n".join(lines), title=outcome.message, border_style=style))


def _print_summary(service: CheckoutService) -> None:
    """Orders placed, paid orders, revenue and average order value."""
    table = Table(title="Session summary")
    table.add_column("Orders", justify="right")
    table.add_column("Paid", justify="right")
    table.add_column("Revenue", justify="right")
    table.add_column("Average order", justify="right")
    table.add_row(
        str(len(service.history())),
        str(len(service.paid_orders())),
        service.revenue().format(),
        service.average_order_value().format(),
    )
    console.print(table)


@app.command()
def history(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
) -> None:
    """List the orders checked out in this session."""
    configure_logging(verbose)
    service = get_service()

    orders = service.history()
    if not orders:
        console.print("[yellow]No orders yet.[/yellow]")
        return

    table = Table(title="Order history")
    table.add_column("Order", style="cyan")
    table.add_column("Items")
    table.add_column("Total", justify="right")
    table.add_column("Status")
    table.add_column("Method")
    for aggregate in orders:
        table.add_row(
            aggregate.order_id,
            aggregate.description,
            aggregate.total.format(),
            aggregate.status.label,
            aggregate.payment_method or "-",
        )
    console.print(table)
    _print_summary(service)


def demo_scenarios() -> List[Tuple[str, Order, Decimal]]:
    """Walkthrough orders with their expected totals."""
    return [
        ("Basic order", create_base_order("Laptop", "899.99"), Decimal("899.99")),
        (
            "Gift wrap (+5)",
            with_gift_wrap(create_base_order("Book", "25.50")),
            Decimal("30.50"),
        ),
        (
            "Express shipping (+10)",
            with_express_shipping(create_base_order("Keyboard", "79.99")),
            Decimal("89.99"),
        ),
        (
            "Greeting card (+2)",
            with_greeting_card(create_base_order("Flowers", "45.00"), "Thank you!"),
            Decimal("47.00"),
        ),
        (
            "Gift wrap + express",
            with_express_shipping(with_gift_wrap(create_base_order("Coffee Machine", "199.00"))),
            Decimal("214.00"),
        ),
        (
            "All services",
            with_greeting_card(
                with_express_shipping(with_gift_wrap(create_base_order("Smartphone", "599.00"))),
                "Happy birthday!",
            ),
            Decimal("616.00"),
        ),
    ]


@app.command()
def demo(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
) -> None:
    """Price the walkthrough orders and check every total."""
    configure_logging(verbose)

    table = Table(title="Order services walkthrough")
    table.add_column("Scenario", style="cyan")
    table.add_column("Order")
    table.add_column("Total", justify="right")
    table.add_column("Check", justify="center")

    failures = 0
    for title, order, expected in demo_scenarios():
        total = order.compute_total()
        ok = total.amount == expected
        if not ok:
            failures += 1
        table.add_row(
            title,
            order.describe(),
            total.format(),
            "[green]OK[/green]" if ok else f"[red]expected {expected}[/red]",
        )

    console.print(table)

    if failures:
        console.print(f"\n[red]{failures} scenario(s) priced incorrectly[/red]")
        raise typer.Exit(1)

    console.print("\n[green]All scenarios priced correctly.[/green]")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()

"""Rich console output for the CLI."""

from __future__ import annotations

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table

from .money import Money
from .products.base import BaseProduct, ProductInventory, ProductRules
from .purchase import (
    EligibilityResult,
    Order,
    PreparedPurchase,
    ProductStatus,
    PurchaseObserver,
    Receipt,
    TransactionStep,
)

_STATUS_STYLES = {
    ProductStatus.ACTIVE: "green",
    ProductStatus.UPCOMING: "yellow",
    ProductStatus.SOLD_OUT: "red",
    ProductStatus.ENDED: "dim",
}


def _truncate_address(address: str) -> str:
    return f"{address[:10]}...{address[-4:]}"


def _money(amount: Money | None) -> str:
    if amount is None:
        return "[dim]<N/A>[/]"
    return amount.to_display_string(include_usd=True)


def _kv_table(style: str = "cyan") -> Table:
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Key", style="dim")
    table.add_column("Value", style=style)
    return table


def format_status(
    product: BaseProduct,
    status: ProductStatus,
    inventory: ProductInventory,
    rules: ProductRules,
    console: Console | None = None,
) -> None:
    console = console or Console()
    table = _kv_table()
    table.add_row("Product", f"{product.name or product.id} ({product.kind.value})")
    provenance = product.get_provenance()
    creator = provenance.creator.name or provenance.creator.slug or str(provenance.creator.id)
    table.add_row("Creator", creator)
    table.add_row("Contract", _truncate_address(provenance.contract.contract_address))
    table.add_row("Network", str(product.network_id))
    table.add_row("Status", f"[{_STATUS_STYLES[status]}]{status.value}[/]")
    supply = "unlimited" if inventory.total_supply is None else f"{inventory.total_supply:,}"
    table.add_row("Supply", f"{inventory.total_purchased:,} / {supply}")
    table.add_row("Starts", rules.start.isoformat() if rules.start else "-")
    table.add_row("Ends", rules.end.isoformat() if rules.end else "-")
    table.add_row("Audience", rules.audience_restriction)
    table.add_row(
        "Max per wallet", str(rules.max_per_wallet) if rules.max_per_wallet else "-"
    )
    console.print(Panel(table, title="[bold]Product[/]", border_style="blue"))


def format_allocation(
    recipient: str, result: EligibilityResult, console: Console | None = None
) -> None:
    console = console or Console()
    table = _kv_table()
    table.add_row("Recipient", _truncate_address(recipient))
    table.add_row(
        "Eligible", "[green]yes[/]" if result.is_eligible else "[red]no[/]"
    )
    table.add_row(
        "Quantity", "unlimited" if result.is_unlimited else str(result.quantity)
    )
    if result.reason:
        table.add_row("Reason", result.reason)
    console.print(Panel(table, title="[bold]Allocation[/]", border_style="cyan"))


def _steps_table(steps: tuple[TransactionStep, ...]) -> Table:
    table = Table(expand=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Step", style="cyan")
    table.add_column("Kind")
    table.add_column("To", style="dim")
    table.add_column("Value (wei)", justify="right")
    table.add_column("Gas", justify="right", style="yellow")
    for index, step in enumerate(steps, start=1):
        table.add_row(
            str(index),
            step.name,
            step.kind.value,
            _truncate_address(step.transaction.to),
            f"{step.transaction.value:,}",
            f"{step.gas_estimate:,}" if step.gas_estimate is not None else "-",
        )
    return table


def format_quote(prepared: PreparedPurchase, console: Console | None = None) -> None:
    console = console or Console()
    cost = prepared.cost

    cost_table = _kv_table("green")
    cost_table.add_row("Quantity", str(prepared.quantity))
    cost_table.add_row("Product", _money(cost.product))
    cost_table.add_row("Platform fee", _money(cost.platform_fee))
    cost_table.add_row("Total (native)", _money(cost.total_native))
    for erc20 in cost.total_erc20s:
        cost_table.add_row(f"Total ({erc20.symbol})", _money(erc20))
    cost_table.add_row("Estimated gas", _money(cost.gas))
    cost_table.add_row("Total USD", f"${cost.total_usd}" if cost.total_usd else "-")

    console.print(
        Panel(
            Group(cost_table, "", _steps_table(prepared.steps)),
            title="[bold]Quote[/]",
            border_style="green",
        )
    )


def format_order(order: Order, console: Console | None = None) -> None:
    console = console or Console()
    table = Table(expand=True)
    table.add_column("Step", style="cyan")
    table.add_column("Tx hash", style="dim", overflow="fold")
    table.add_column("Block", justify="right")
    table.add_column("Gas used", justify="right", style="yellow")
    for receipt in order.receipts:
        table.add_row(
            receipt.step_name,
            receipt.tx_hash,
            str(receipt.block_number) if receipt.block_number is not None else "-",
            f"{receipt.gas_used:,}" if receipt.gas_used is not None else "-",
        )
    console.print(
        Panel(table, title=f"[bold]Order: {order.status.value}[/]", border_style="white")
    )


class ConsolePurchaseObserver(PurchaseObserver):
    """Prints step progress as a purchase executes."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def on_step_started(self, step: TransactionStep) -> None:
        self.console.print(f"[cyan]>[/] {step.name}: {step.description}")

    def on_step_submitted(self, step: TransactionStep, tx_hash: str) -> None:
        self.console.print(f"  submitted [dim]{tx_hash}[/]")

    def on_step_confirmed(self, step: TransactionStep, receipt: Receipt) -> None:
        self.console.print(f"  [green]confirmed[/] in block {receipt.block_number}")

    def on_step_failed(self, step: TransactionStep, error: BaseException) -> None:
        self.console.print(f"  [red]failed[/]: {error}")

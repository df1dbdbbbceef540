"""CLI entrypoint for mintkit."""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Annotated, Any, Awaitable, Callable

import typer
from rich.console import Console

from .client import Client, create_client
from .errors import MintkitError, StepExecutionFailedError
from .formatter import (
    ConsolePurchaseObserver,
    format_allocation,
    format_order,
    format_quote,
    format_status,
)
from .logger import setup_logging
from .purchase import GasBuffer
from .settings import ClientSettings

app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Inspect and purchase on-chain products.",
)


def _parse_rpc_urls(values: list[str]) -> dict[int, list[str]]:
    """Parse repeated ``NETWORK_ID=URL`` options, keeping their order."""
    urls: dict[int, list[str]] = {}
    for value in values:
        network, sep, url = value.partition("=")
        if not sep or not network.strip().isdigit() or not url.strip():
            raise typer.BadParameter(
                f"Expected NETWORK_ID=URL, got {value!r}", param_hint="--rpc-url"
            )
        urls.setdefault(int(network), []).append(url.strip())
    return urls


def _settings(ctx: typer.Context) -> ClientSettings:
    return ctx.obj


def _run(ctx: typer.Context, command: Callable[[Client], Awaitable[None]]) -> None:
    """Run an async command with a fresh client, mapping library errors to exit code 1."""

    async def runner() -> None:
        async with create_client(_settings(ctx)) as client:
            await command(client)

    try:
        asyncio.run(runner())
    except MintkitError as e:
        typer.echo(json.dumps(e.to_dict(), indent=2), err=True)
        raise typer.Exit(code=1)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [mintkit] table).",
        ),
    ] = None,
    rpc_url: Annotated[
        list[str] | None,
        typer.Option(
            "--rpc-url",
            help="RPC endpoint as NETWORK_ID=URL; repeat for fallbacks (primary first).",
        ),
    ] = None,
    confirmations: Annotated[
        int | None,
        typer.Option("--confirmations", help="Blocks to wait for each step."),
    ] = None,
    gas_buffer: Annotated[
        float | None,
        typer.Option(
            "--gas-buffer",
            help="Extra gas headroom as a fraction, e.g. 0.25 for +25%.",
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective config (with secrets redacted) and exit.",
        ),
    ] = False,
):
    """Load configuration shared by every command."""
    if config_path:
        os.environ["MINTKIT_CONFIG"] = str(config_path)

    init_kwargs: dict[str, Any] = {}
    if rpc_url:
        init_kwargs["rpc_urls"] = _parse_rpc_urls(rpc_url)
    if confirmations is not None:
        init_kwargs["confirmations"] = confirmations
    if gas_buffer is not None:
        init_kwargs["gas_buffer_multiplier"] = gas_buffer
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()

    settings = ClientSettings(**init_kwargs)
    secrets = [settings.private_key.get_secret_value()] if settings.private_key else []
    setup_logging(settings.log_level, secrets=secrets)
    ctx.obj = settings

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2, default=str))
        raise typer.Exit(code=0)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


@app.command()
def status(
    ctx: typer.Context,
    product_id: Annotated[str, typer.Argument(help="Instance id or product URL.")],
):
    """Show a product's sale status, supply and rules."""

    async def command(client: Client) -> None:
        product = await client.get_product(product_id)
        current = await product.get_status()
        inventory = await product.get_inventory()
        rules = await product.get_rules()
        format_status(product, current, inventory, rules)

    _run(ctx, command)


@app.command()
def allocation(
    ctx: typer.Context,
    product_id: Annotated[str, typer.Argument(help="Instance id or product URL.")],
    recipient: Annotated[str, typer.Argument(help="Wallet to check.")],
):
    """Show how many units a wallet may still buy, and why not when zero."""

    async def command(client: Client) -> None:
        product = await client.get_product(product_id)
        result = await product.get_allocation(recipient)
        format_allocation(recipient, result)

    _run(ctx, command)


@app.command()
def quote(
    ctx: typer.Context,
    product_id: Annotated[str, typer.Argument(help="Instance id or product URL.")],
    buyer: Annotated[str, typer.Argument(help="Wallet that would pay.")],
    quantity: Annotated[int, typer.Option("--quantity", "-q", min=1)] = 1,
    recipient: Annotated[
        str | None, typer.Option("--recipient", help="Wallet receiving the items.")
    ] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print JSON.")] = False,
):
    """Prepare a purchase without sending anything: cost breakdown and steps."""

    async def command(client: Client) -> None:
        product = await client.get_product(product_id)
        prepared = await product.prepare_purchase(buyer, quantity, recipient)
        if as_json:
            typer.echo(json.dumps(prepared.to_dict(), indent=2))
        else:
            format_quote(prepared)

    _run(ctx, command)


@app.command()
def purchase(
    ctx: typer.Context,
    product_id: Annotated[str, typer.Argument(help="Instance id or product URL.")],
    quantity: Annotated[int, typer.Option("--quantity", "-q", min=1)] = 1,
    recipient: Annotated[
        str | None, typer.Option("--recipient", help="Wallet receiving the items.")
    ] = None,
    yes: Annotated[
        bool, typer.Option("--yes", "-y", help="Skip the confirmation prompt.")
    ] = False,
):
    """Buy with the configured private key (MINTKIT_PRIVATE_KEY)."""
    console = Console()

    async def command(client: Client) -> None:
        product = await client.get_product(product_id)
        account = client.local_account(product.network_id)
        gas_buffer = GasBuffer(client.settings.gas_buffer_multiplier)
        prepared = await product.prepare_purchase(
            account.address, quantity, recipient, gas_buffer
        )
        format_quote(prepared, console)
        if not yes and not typer.confirm(
            f"Send {len(prepared.steps)} transaction(s)?", default=False
        ):
            raise typer.Exit(code=1)

        try:
            order = await product.purchase(
                account, prepared, observer=ConsolePurchaseObserver(console)
            )
        except StepExecutionFailedError as e:
            if e.order is not None:
                format_order(e.order, console)
            raise
        format_order(order, console)

    _run(ctx, command)


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()

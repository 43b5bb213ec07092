"""
Blume command line tools

Offline helpers for inspecting the client config and checking amounts and quotes.
"""
import json
from pathlib import Path

import click

from blume import calculators, codec
from blume.config import BlumeConfig
from blume.core.logging import LOG_LEVELS, configure_logging
from blume.errors import BlumeError


def load_config(config_file: Path | None) -> BlumeConfig:
    if config_file is None:
        return BlumeConfig.default()
    return BlumeConfig.from_config_file(config_file)


@click.group()
@click.option(
    "--config-file",
    type=click.Path(exists=True, resolve_path=True, readable=True, path_type=Path),
    help="TOML config file - defaults to the Sepolia deployment",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="configures console logging at the level",
)
@click.pass_context
def app(ctx: click.Context, config_file: Path | None = None, log_level: str | None = None):
    if log_level:
        configure_logging(log_level)
    try:
        ctx.obj = load_config(config_file)
    except BlumeError as err:
        raise click.ClickException(str(err)) from err


def _asset(config: BlumeConfig, symbol: str):
    try:
        return config.asset(symbol)
    except BlumeError as err:
        raise click.BadParameter(str(err), param_hint="SYMBOL") from err


@app.command
@click.pass_obj
def show_config(config: BlumeConfig):
    """
    Displays the config as JSON
    """
    click.echo(json.dumps(config.to_dict(), indent=3))


@app.command
@click.argument("amount")
@click.argument("symbol")
@click.pass_obj
def to_base_units(config: BlumeConfig, amount: str, symbol: str):
    """
    Converts a display amount to base units
    """
    try:
        click.echo(codec.to_base_units(amount, _asset(config, symbol)))
    except BlumeError as err:
        raise click.BadParameter(str(err), param_hint="AMOUNT") from err


@app.command
@click.argument("base_units", type=click.IntRange(min=0))
@click.argument("symbol")
@click.pass_obj
def to_display(config: BlumeConfig, base_units: int, symbol: str):
    """
    Converts base units to the display amount
    """
    click.echo(codec.to_display(base_units, _asset(config, symbol)))


@app.command
@click.option("--amount-in", required=True, help="Input amount, e.g., 1000")
@click.option("--reserve-in", required=True, help="Input asset reserve, in display units")
@click.option("--reserve-out", required=True, help="Output asset reserve, in display units")
@click.option("--symbol-in", default="BLX", show_default=True)
@click.option("--fee-bps", type=click.IntRange(0, 10_000), default=30, show_default=True)
@click.option("--slippage-bps", type=click.IntRange(0, 9_999), default=None, help="Defaults to the configured slippage")
@click.pass_obj
def swap_quote(
    config: BlumeConfig,
    amount_in: str,
    reserve_in: str,
    reserve_out: str,
    symbol_in: str,
    fee_bps: int,
    slippage_bps: int | None,
):
    """
    Constant product swap quote
    """
    pool = config.pool
    asset_in = _asset(config, symbol_in)
    try:
        asset_out = pool.counter_asset(asset_in)
    except ValueError as err:
        raise click.BadParameter(str(err), param_hint="--symbol-in") from err

    try:
        amount = codec.to_base_units(amount_in, asset_in)
        reserves = (
            codec.to_base_units(reserve_in, asset_in),
            codec.to_base_units(reserve_out, asset_out),
        )
    except BlumeError as err:
        raise click.ClickException(str(err)) from err

    amount_out = calculators.swap_amount_out(amount, *reserves, fee_bps)
    slippage = config.slippage_bps if slippage_bps is None else slippage_bps
    min_out = calculators.min_amount_out(amount_out, slippage)
    click.echo(f"amount out: {codec.to_display(amount_out, asset_out)} {asset_out.symbol}")
    click.echo(
        f"minimum received ({slippage} bps slippage): {codec.to_display(min_out, asset_out)} {asset_out.symbol}"
    )


@app.command
@click.option("--lp-balance", required=True, help="LP token balance, in display units")
@click.option("--total-supply", required=True, help="LP token total supply, in display units")
@click.pass_obj
def pool_share(config: BlumeConfig, lp_balance: str, total_supply: str):
    """
    Share of the pool held by an LP token balance
    """
    lp_token = config.pool.lp_token
    try:
        share = calculators.pool_share_percent(
            codec.to_base_units(lp_balance, lp_token),
            codec.to_base_units(total_supply, lp_token),
        )
    except BlumeError as err:
        raise click.ClickException(str(err)) from err
    click.echo(f"{share.normalize():f}%")


if __name__ == "__main__":
    app()  # pylint: disable=no-value-for-parameter

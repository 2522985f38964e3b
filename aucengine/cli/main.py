"""
AucEngine CLI - Command Line Interface for the Dutch auction ledger

Main entry point for all CLI commands.
"""

import json
from datetime import datetime, timezone
from pathlib import Path

import click

from aucengine.utils.logger import setup_logging
from aucengine.utils.units import DEFAULT_DECIMALS, format_units, parse_units


def _open_ledger(ctx):
    """Build the persistent ledger for this invocation."""
    from aucengine.core.ledger import AuctionLedger
    from aucengine.core.storage import StorageManager

    config = ctx.obj["config"]
    config.ensure_dirs()
    storage = StorageManager(data_dir=config.data_dir, db_name=config.db_name)
    return AuctionLedger(owner=ctx.obj["owner"], config=config, storage_manager=storage)


def _amount(value: str, decimals: int) -> int:
    try:
        return parse_units(value, decimals)
    except ValueError as e:
        raise click.BadParameter(str(e))


def _ts(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _fail(ctx, exc) -> None:
    from aucengine.core.auction import error_code

    click.echo(f"❌ {error_code(exc)}: {exc}", err=True)
    ctx.exit(1)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--data-dir", default=None, help="Data directory (default: $AUCENGINE_DATA_DIR or ./data)")
@click.option("--env-file", default=None, help="Load settings from this .env file")
@click.option("--log-file", is_flag=True, help="Also write logs to $AUCENGINE_LOG_DIR/aucengine.log")
@click.option("--owner", default="admin", help="Ledger owner identity (fixed on first use)")
@click.option("--decimals", default=DEFAULT_DECIMALS, show_default=True, help="Decimal places of one whole unit")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, data_dir, env_file, log_file, owner, decimals):
    """AucEngine - descending-price auction ledger"""
    import logging

    from aucengine.core.config import load_config

    try:
        config = load_config(env_file)
    except ValueError as e:
        raise click.UsageError(f"Invalid configuration: {e}")

    if data_dir:
        config.data_dir = Path(data_dir).expanduser()
    if log_file:
        config.log_to_file = True

    level = logging.DEBUG if debug else getattr(logging, config.log_level, logging.INFO)
    setup_logging(level=level, log_dir=str(config.log_dir), log_to_file=config.log_to_file)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["owner"] = owner
    ctx.obj["decimals"] = decimals


# =============================================================================
# Auction Commands
# =============================================================================


@cli.group()
def auction():
    """Auction commands"""
    pass


@auction.command("create")
@click.option("--seller", required=True, help="Seller identity")
@click.option("--price", required=True, help="Starting price (decimal units)")
@click.option("--discount", required=True, help="Price decrease per second (decimal units)")
@click.option("--item", required=True, help="Item description")
@click.option("--duration", default=0, type=int, help="Duration in seconds (0 = default)")
@click.pass_context
def auction_create(ctx, seller, price, discount, item, duration):
    """List a new auction"""
    from aucengine.core.auction import AuctionError

    decimals = ctx.obj["decimals"]
    ledger = _open_ledger(ctx)
    try:
        index = ledger.create_auction(
            seller=seller,
            starting_price=_amount(price, decimals),
            discount_rate=_amount(discount, decimals),
            item=item,
            duration=duration,
        )
    except AuctionError as e:
        _fail(ctx, e)
    finally:
        ledger.close()

    click.echo(f"✓ Auction {index} created: {item}")


@auction.command("list")
@click.option("--json", "as_json", is_flag=True, help="Print JSON")
@click.pass_context
def auction_list(ctx, as_json):
    """List all auctions"""
    from aucengine.api import AuctionService

    decimals = ctx.obj["decimals"]
    ledger = _open_ledger(ctx)
    try:
        views = AuctionService(ledger).list_auctions()
    finally:
        ledger.close()

    if as_json:
        click.echo(json.dumps([v.model_dump(mode="json") for v in views], indent=2))
        return

    if not views:
        click.echo("No auctions found.")
        return

    for view in views:
        if view.stopped:
            price = f"sold for {format_units(view.final_price, decimals)} to {view.winner}"
        elif view.current_price is None:
            price = "ended unsold"
        else:
            price = f"now {format_units(view.current_price, decimals)}"
        click.echo(f"  [{view.index}] {view.item} by {view.seller}: {price} (ends {_ts(view.ends_at)} UTC)")


@auction.command("price")
@click.argument("index", type=int)
@click.pass_context
def auction_price(ctx, index):
    """Show the current price of an auction"""
    from aucengine.core.auction import AuctionError

    ledger = _open_ledger(ctx)
    try:
        price = ledger.get_price_for(index)
    except AuctionError as e:
        _fail(ctx, e)
    finally:
        ledger.close()

    click.echo(format_units(price, ctx.obj["decimals"]))


@auction.command("buy")
@click.argument("index", type=int)
@click.option("--buyer", required=True, help="Buyer identity")
@click.option("--amount", required=True, help="Amount tendered (decimal units)")
@click.pass_context
def auction_buy(ctx, index, buyer, amount):
    """Buy an auction at its current price"""
    from aucengine.core.auction import AuctionError

    decimals = ctx.obj["decimals"]
    ledger = _open_ledger(ctx)
    try:
        settlement = ledger.buy(index, _amount(amount, decimals), buyer)
    except AuctionError as e:
        _fail(ctx, e)
    finally:
        ledger.close()

    click.echo(f"✅ Auction {index} bought by {buyer}")
    click.echo(f"   Final price: {format_units(settlement.final_price, decimals)}")
    click.echo(f"   Fee: {format_units(settlement.fee, decimals)}")
    click.echo(f"   Seller receives: {format_units(settlement.seller_proceeds, decimals)}")
    click.echo(f"   Refund: {format_units(settlement.refund, decimals)}")


# =============================================================================
# Records
# =============================================================================


@cli.command("events")
@click.pass_context
def events(ctx):
    """Show the AuctionCreated and AuctionEnded records"""
    decimals = ctx.obj["decimals"]
    ledger = _open_ledger(ctx)
    try:
        created = ledger.created_events()
        ended = ledger.ended_events()
    finally:
        ledger.close()

    click.echo("AuctionCreated")
    for e in created:
        click.echo(f"  index={e.index} item={e.item!r} starting_price={format_units(e.starting_price, decimals)} duration={e.duration}")
    click.echo("AuctionEnded")
    for e in ended:
        click.echo(f"  index={e.index} final_price={format_units(e.final_price, decimals)} winner={e.winner}")


@cli.command("balance")
@click.argument("identity")
@click.pass_context
def balance(ctx, identity):
    """Total credited to an identity by settled sales"""
    ledger = _open_ledger(ctx)
    try:
        total = ledger.balance_of(identity)
    finally:
        ledger.close()

    click.echo(f"{identity}: {format_units(total, ctx.obj['decimals'])}")


@cli.command("stats")
@click.pass_context
def stats(ctx):
    """Show ledger statistics"""
    ledger = _open_ledger(ctx)
    try:
        data = ledger.stats()
    finally:
        ledger.close()

    click.echo("AucEngine Ledger Statistics")
    click.echo("-" * 40)
    for key, value in data.items():
        click.echo(f"  {key}: {value}")


# =============================================================================
# Demo Command
# =============================================================================


@cli.command("demo")
@click.pass_context
def demo(ctx):
    """Run a scripted auction lifecycle in memory"""
    from aucengine.core.auction import AuctionError
    from aucengine.core.clock import ManualClock
    from aucengine.core.ledger import AuctionLedger

    decimals = ctx.obj["decimals"]
    unit = 10**decimals

    click.echo("=" * 60)
    click.echo("  AUCENGINE - DEMO")
    click.echo("=" * 60)
    click.echo()

    clock = ManualClock(start=1_700_000_000)
    ledger = AuctionLedger(owner="owner", clock=clock)

    click.echo("🏷️  Seller lists 'Test Item' at 200, dropping 0.001 per second...")
    index = ledger.create_auction("seller", 200 * unit, unit // 1000, "Test Item")
    click.echo(f"  ✓ Auction {index}, price {format_units(ledger.get_price_for(index), decimals)}")
    click.echo()

    click.echo("⏳ One hour passes...")
    clock.advance(3600)
    price = ledger.get_price_for(index)
    click.echo(f"  ✓ Price is now {format_units(price, decimals)}")
    click.echo()

    click.echo("💸 Buyer offers 150...")
    try:
        ledger.buy(index, 150 * unit, "buyer")
    except AuctionError as e:
        click.echo(f"  ✗ Rejected: {e}")
    click.echo()

    click.echo("💰 Buyer offers 200...")
    settlement = ledger.buy(index, 200 * unit, "buyer")
    click.echo(f"  ✓ Sold for {format_units(settlement.final_price, decimals)}")
    click.echo(f"  ✓ Seller receives {format_units(settlement.seller_proceeds, decimals)}")
    click.echo(f"  ✓ Protocol fee {format_units(settlement.fee, decimals)}")
    click.echo(f"  ✓ Refund {format_units(settlement.refund, decimals)}")
    click.echo()

    click.echo("🔁 Second buyer tries the same auction...")
    try:
        ledger.buy(index, 200 * unit, "latecomer")
    except AuctionError as e:
        click.echo(f"  ✗ Rejected: {e}")
    click.echo()

    click.echo("📊 Final Statistics:")
    click.echo(f"  {ledger.stats()}")
    click.echo()
    click.echo("✅ Demo complete!")


if __name__ == "__main__":
    cli()

# Overview: Flask CLI command groups for database setup and inventory maintenance.

# backend/medcure/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to medcure (PowerShell: $env:FLASK_APP="medcure").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Inventory inspection/maintenance:
# - python -m flask inventory alerts
#   Print stock and expiry alerts for active products.
# - python -m flask inventory check-archive [--fix]
#   Report products whose archive flag and metadata disagree; --fix clears stray metadata.
# - python -m flask inventory purge-archived 12 13 14 --actor admin
#   Permanently delete archived products without sales history.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .services import archive_service, deletion_service, expiry_service, stock_service
from .services.product_store import ProductStore, StoreError
from .services.stock_service import StockThresholds
from .validation import ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('inventory')
def inventory_group():
    """Inventory inspection and maintenance commands."""


@inventory_group.command('alerts')
@click.option('--days', type=int, default=None, help='Expiry window in days (default EXPIRY_WARNING_DAYS)')
@with_appcontext
def show_alerts(days):
    """Print stock and expiry alerts for active products."""
    defaults = StockThresholds.from_config(current_app.config)
    if days is None:
        days = current_app.config.get("EXPIRY_WARNING_DAYS", expiry_service.WARNING_MAX_DAYS)

    try:
        products = ProductStore().list_products(archived=False)
        expiring = expiry_service.expiry_alerts(products, within_days=days)
    except (StoreError, ValidationError) as e:
        raise click.ClickException(str(e))

    low = stock_service.filter_by_stock_status(products, stock_service.ALERT_FILTER, defaults=defaults)
    click.echo(f"Stock alerts ({len(low)}):")
    for product in sorted(low, key=lambda p: stock_service.effective_stock(p)):
        status = stock_service.stock_status(product, defaults=defaults)
        click.echo(
            f"  [{status.label:<12}] {product.id:>5}  {product.name}  "
            f"stock={stock_service.effective_stock(product)}"
        )

    click.echo(f"Expiry alerts (within {days} days):")
    for bucket in (expiry_service.TIER_EXPIRED, expiry_service.TIER_CRITICAL, expiry_service.TIER_WARNING):
        for product in expiring[bucket]:
            status = expiry_service.expiry_status(product)
            click.echo(
                f"  [{status.label:<14}] {product.id:>5}  {product.name}  "
                f"days={status.days_until_expiry}"
            )


@inventory_group.command('check-archive')
@click.option('--fix', is_flag=True, help='Clear archive metadata on non-archived products')
@with_appcontext
def check_archive(fix):
    """Report products whose archive flag and metadata disagree."""
    store = ProductStore()
    try:
        anomalies = archive_service.find_archive_anomalies(store=store)
    except StoreError as e:
        raise click.ClickException(str(e))

    if not anomalies:
        click.echo("PASS No archive anomalies found.")
        return

    for anomaly in anomalies:
        click.echo(f"WARN {anomaly['problem']}")

    if fix:
        try:
            repaired = archive_service.repair_archive_anomalies(store=store)
        except StoreError as e:
            raise click.ClickException(str(e))
        click.echo(f"PASS Cleared stray metadata on {len(repaired)} product(s): {repaired}")
        remaining = len(anomalies) - len(repaired)
        if remaining:
            click.echo(f"WARN {remaining} archived product(s) without archived_date need manual review.")


@inventory_group.command('purge-archived')
@click.argument('product_ids', nargs=-1, type=int, required=True)
@click.option('--actor', default='System', help='Name recorded in the archive log')
@with_appcontext
def purge_archived(product_ids, actor):
    """Permanently delete archived products without sales history."""
    try:
        report = deletion_service.bulk_permanently_delete(list(product_ids), actor=actor)
    except (StoreError, ValidationError) as e:
        raise click.ClickException(str(e))

    click.echo(report.message)
    for skipped in report.skipped_products:
        click.echo(f"  SKIP {skipped['id']}: {skipped['reason']}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(inventory_group)

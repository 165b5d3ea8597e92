# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/stockyard/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init
#   Create any missing tables and seed the FARM, MKE and TRANSIT locations.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Catalog:
# - python -m flask catalog seed [--demo]
#   Seed reference locations; --demo also adds sample items with stock.
# - python -m flask catalog below-par
#   Print items whose hub total is below its par level.
#
# Audit:
# - python -m flask audit tail --limit 20
#   Print the newest audit log entries.

import click
from flask.cli import with_appcontext

from .errors import StockyardError
from .extensions import db
from .services import audit_service, catalog_service, reconciliation_service, stock_service


SYSTEM_ACTOR = "system@stockyard.local"

DEMO_ITEMS = (
    {
        "item": {
            "sku": "CDR-2x6x12", "description": "Cedar 2x6 12ft", "category": "Lumber",
            "species": "Cedar", "thickness": "2", "width": "6", "length": "12",
            "farm_par_level": 40, "mke_par_level": 20,
        },
        "stock": {"FARM": 60, "MKE": 12},
    },
    {
        "item": {
            "sku": "WO-8/4-RGH", "description": "White Oak 8/4 rough", "category": "Lumber",
            "species": "White Oak", "thickness": "8/4",
            "farm_par_level": 100, "mke_par_level": 0,
        },
        "stock": {"FARM": 75},
    },
    {
        "item": {
            "sku": "HW-LAG-38", "description": "3/8 in. lag screws (box)", "category": "Hardware",
            "farm_par_level": 0, "mke_par_level": 5,
        },
        "stock": {"MKE": 8},
    },
)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create missing tables and the default locations. Idempotent."""
    db.create_all()
    created = catalog_service.seed_reference_data()
    click.echo(f"PASS Tables ready; {created} location(s) created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('catalog')
def catalog_group():
    """Reference data and par-level inspection."""


@catalog_group.command('seed')
@click.option('--demo', is_flag=True, help='Also create sample items with stock')
@with_appcontext
def seed_catalog(demo):
    created = catalog_service.seed_reference_data()
    click.echo(f"PASS {created} location(s) created")
    if not demo:
        return

    for entry in DEMO_ITEMS:
        sku = entry["item"]["sku"]
        try:
            catalog_service.create_item(SYSTEM_ACTOR, entry["item"])
        except StockyardError as e:
            click.echo(f"WARN  {sku}: {e}")
            continue
        for location_id, quantity in entry["stock"].items():
            stock_service.adjust_stock(SYSTEM_ACTOR, sku, location_id, quantity, "Demo seed")
        click.echo(f"PASS Created {sku}")


@catalog_group.command('below-par')
@with_appcontext
def below_par():
    alerts = reconciliation_service.below_par_alerts()
    if not alerts:
        click.echo("All tracked items are at or above par.")
        return
    for alert in alerts:
        click.echo(
            f"{alert['sku']:<16} {alert['hub']:<5} "
            f"{alert['current_total']:>6} / {alert['par_level']:<6} short {alert['deficit']}"
        )


@click.group('audit')
def audit_group():
    """Audit log inspection."""


@audit_group.command('tail')
@click.option('--limit', default=20, show_default=True, type=click.IntRange(min=1))
@with_appcontext
def audit_tail(limit):
    for entry in audit_service.list_audit_log(limit=limit):
        change = ""
        if entry.quantity_before is not None or entry.quantity_after is not None:
            change = f" {entry.quantity_before} -> {entry.quantity_after}"
        click.echo(
            f"{entry.timestamp:%Y-%m-%d %H:%M:%S} {entry.user_email} {entry.action_type}"
            f" {entry.sku or '-'} @ {entry.location_id or '-'}{change}: {entry.reason}"
        )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(audit_group)

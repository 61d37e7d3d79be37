# Overview: Flask CLI command groups for bootstrap and analytics inspection.

# backend/barpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to barpos (PowerShell: $env:FLASK_APP="barpos").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create any missing tables (use `flask db upgrade` for managed deployments).
# - python -m flask system seed-demo [--days 30] [--seed 7]
#   Insert demo inventory and transactions spread over the last N days.
#
# Analytics inspection:
# - python -m flask analytics dashboard --range month --tz-offset -330
#   Print the dashboard payload as the owner would see it.
# - python -m flask analytics owner --tz-offset 300
#   Print the owner's monthly overview.

import json
import random
from datetime import timedelta

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import InventoryItem, Transaction
from .services import analytics_service
from .services.storage_reader import StorageError
from .services.time_window_service import MAX_OFFSET_MINUTES
from .validation import DASHBOARD_RANGES
from .time_utils import utcnow


DEMO_MENU = [
    ("Lager Pint", 6.50),
    ("IPA Pint", 7.00),
    ("House Red", 8.00),
    ("Gin & Tonic", 9.50),
    ("Nachos", 11.00),
    ("Crisps", 2.00),
]


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables created")


@system_group.command('seed-demo')
@click.option('--days', default=30, show_default=True, type=click.IntRange(1, 366), help='Days of history')
@click.option('--seed', default=7, show_default=True, help='Random seed, for repeatable data')
@with_appcontext
def seed_demo(days, seed):
    """Insert a demo menu and a few transactions per day."""
    rng = random.Random(seed)
    db.create_all()

    for position, (name, price) in enumerate(DEMO_MENU, start=1):
        if db.session.get(InventoryItem, position) is None:
            db.session.add(InventoryItem(id=position, item_name=name, quantity=rng.randint(0, 40), unit_price=price))

    now = utcnow()
    created = 0
    for day in range(days):
        for _ in range(rng.randint(3, 12)):
            lines = []
            for item_id, (name, price) in rng.sample(list(enumerate(DEMO_MENU, start=1)), k=rng.randint(1, 3)):
                quantity = rng.randint(1, 4)
                lines.append({
                    "item_id": str(item_id),
                    "name": name,
                    "quantity": quantity,
                    "unit_price": price,
                    "line_total": round(price * quantity, 2),
                })
            created_at = now - timedelta(days=day, minutes=rng.randint(0, 23 * 60))
            db.session.add(Transaction(
                order_id=f"demo-{created_at:%Y%m%d%H%M%S}-{created}",
                staff_name="demo",
                total_amount=round(sum(line["line_total"] for line in lines), 2),
                payment_method=rng.choice(["CASH", "CARD", "UPI"]),
                items=lines,
                created_at=created_at,
            ))
            created += 1

    db.session.commit()
    click.echo(f"PASS Seeded {len(DEMO_MENU)} inventory items and {created} transactions over {days} days")


@click.group('analytics')
def analytics_group():
    """Analytics inspection commands."""


def _echo_payload(payload: dict) -> None:
    click.echo(json.dumps(payload, indent=2, sort_keys=True))


@analytics_group.command('dashboard')
@click.option('--range', 'range_kind', type=click.Choice(DASHBOARD_RANGES), default='today', show_default=True)
@click.option('--tz-offset', default=0, type=click.IntRange(-MAX_OFFSET_MINUTES, MAX_OFFSET_MINUTES, clamp=True),
              help='Client UTC offset in minutes (UTC-5 is 300), clamped to +/-14h')
@with_appcontext
def dashboard(range_kind, tz_offset):
    """Print the dashboard payload."""
    try:
        payload = analytics_service.dashboard_summary(
            reader=analytics_service.build_reader(),
            range_kind=range_kind,
            offset_minutes=tz_offset,
            include_low_stock=True,
            low_stock_threshold=current_app.config["LOW_STOCK_THRESHOLD"],
            top_limit=current_app.config["DASHBOARD_TOP_ITEMS"],
            attribution=current_app.config["REVENUE_ATTRIBUTION"],
        )
    except StorageError as e:
        raise click.ClickException(f"FAIL Could not load analytics: {e}")
    _echo_payload(payload)


@analytics_group.command('owner')
@click.option('--tz-offset', default=0, type=click.IntRange(-MAX_OFFSET_MINUTES, MAX_OFFSET_MINUTES, clamp=True),
              help='Client UTC offset in minutes (UTC-5 is 300), clamped to +/-14h')
@with_appcontext
def owner(tz_offset):
    """Print the owner's monthly overview."""
    try:
        payload = analytics_service.owner_overview(
            reader=analytics_service.build_reader(),
            offset_minutes=tz_offset,
        )
    except StorageError as e:
        raise click.ClickException(f"FAIL Could not load analytics: {e}")
    _echo_payload(payload)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(analytics_group)

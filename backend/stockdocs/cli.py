# Overview: Flask CLI command groups for bootstrap, inspection, and daily closing.

# backend/stockdocs/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to stockdocs (PowerShell: $env:FLASK_APP="stockdocs").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (idempotent; migrations remain the source of truth).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Numbering:
# - python -m flask sequences list
#   Show every document counter and the next number it will issue.
#
# Shop orders:
# - python -m flask orders sync [--per-page 100]
#   Pull recent orders from the inventory API.
#
# Daily closing:
# - python -m flask cash close --date 2025-01-10 [--notes "..."]
#   Close the cash control for a date.
# - python -m flask journals create --date 2025-01-10
#   Create the sales journal for a closed date.

import click
from flask.cli import with_appcontext

from .errors import StockDocsError
from .extensions import db
from .services import cash_control_service, journal_service, order_sync_service
from .services.document_service import list_sequences


def _fail(exc: StockDocsError):
    raise click.ClickException(exc.message)


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables created.")


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


@click.group('sequences')
def sequences_group():
    """Document number counters."""


@sequences_group.command('list')
@with_appcontext
def list_sequences_cmd():
    """List counters by type and year."""
    rows = list_sequences()
    if not rows:
        click.echo("No sequences yet.")
        return
    for seq in rows:
        click.echo(f"{seq.document_type:<16} {seq.year}  {seq.prefix:<3} next={seq.current_number}")


@click.group('orders')
def orders_group():
    """Shop order mirror."""


@orders_group.command('sync')
@click.option('--per-page', default=100, show_default=True, type=int)
@with_appcontext
def sync_orders_cmd(per_page):
    """Fetch recent orders from the inventory API."""
    try:
        count = order_sync_service.sync_orders(per_page=per_page)
    except StockDocsError as exc:
        _fail(exc)
    click.echo(f"PASS Synced {count} order(s).")


@click.group('cash')
def cash_group():
    """Cash controls."""


@cash_group.command('close')
@click.option('--date', 'control_date', required=True, help='Business date (YYYY-MM-DD)')
@click.option('--notes', default=None)
@with_appcontext
def close_cash_cmd(control_date, notes):
    """Close the cash control for a date."""
    try:
        control, stats = cash_control_service.close_cash_control(control_date, notes)
    except StockDocsError as exc:
        _fail(exc)
    click.echo(f"PASS {control.control_number} closed for {control_date}")
    click.echo(f"  cash:     {stats['cash_total_cents']}")
    click.echo(f"  transfer: {stats['transfer_total_cents']}")
    click.echo(f"  cheque:   {stats['cheque_total_cents']}")
    click.echo(f"  total:    {stats['total_cents']} ({stats['invoices_count']} invoice(s), {stats['orders_count']} order(s))")


@click.group('journals')
def journals_group():
    """Sales journals."""


@journals_group.command('create')
@click.option('--date', 'journal_date', required=True, help='Business date (YYYY-MM-DD)')
@with_appcontext
def create_journal_cmd(journal_date):
    """Create the sales journal for a closed date."""
    try:
        journal, stats = journal_service.create_sales_journal(journal_date)
    except StockDocsError as exc:
        _fail(exc)
    click.echo(
        f"PASS {journal.document_number}: {stats['line_items_count']} line(s) "
        f"from {stats['original_line_items_count']}, total {journal.total_cents}"
    )
    for group in stats["vat_summary"]:
        click.echo(f"  VAT {group['tax_rate_bps'] / 100:g}%: base {group['base_cents']} tax {group['tax_cents']}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(sequences_group)
    app.cli.add_command(orders_group)
    app.cli.add_command(cash_group)
    app.cli.add_command(journals_group)

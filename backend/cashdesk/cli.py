# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/cashdesk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to "cashdesk:create_app".
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (dev); production uses `flask db upgrade`.
# - python -m flask system seed-payment-methods
#   Create the default Efectivo / Tarjeta / Transferencia methods (idempotent).
#
# Locations and registers:
# - python -m flask locations create --name "Sucursal Centro"
# - python -m flask locations list
# - python -m flask registers create --location-id 1 --name "Caja Centro" [--code CAJA-007] [--main]
# - python -m flask registers list [--location-id 1] [--all]
# - python -m flask registers deactivate 3
#
# Shifts:
# - python -m flask shifts list [--register-id 1] [--status open] [--limit 20]
# - python -m flask shifts report 12
# - python -m flask shifts auto-close [--dry-run]
#   Close shifts that outlasted shift_duration_hours where auto-close is enabled.

import json

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import PaymentMethod
from .validation import ConflictError, NotFoundError, StoreError, ValidationError

CLI_ERRORS = (ValidationError, ConflictError, NotFoundError, StoreError)

DEFAULT_PAYMENT_METHODS = (
    ("Efectivo", "cash"),
    ("Tarjeta", "card"),
    ("Transferencia", "transfer"),
)


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables from model metadata."""
    db.create_all()
    click.echo("PASS Database tables created")


@system_group.command('seed-payment-methods')
@with_appcontext
def seed_payment_methods():
    """Create the default payment methods if missing."""
    from .services import payment_method_service

    for name, kind in DEFAULT_PAYMENT_METHODS:
        if db.session.query(PaymentMethod).filter_by(name=name).first():
            click.echo(f"SKIP {name} already exists")
            continue
        method = payment_method_service.create_payment_method(name, kind)
        click.echo(f"PASS Created payment method {method.name} ({method.kind})")


@click.group('locations')
def locations_group():
    """Location management commands."""


@locations_group.command('create')
@click.option('--name', required=True, help='Location name')
@click.option('--no-register', is_flag=True, help='Do not create the default register')
@with_appcontext
def create_location_cli(name, no_register):
    from .services import location_service, register_service

    try:
        location = location_service.create_location(name)
        click.echo(f"PASS Created location: {location.name} (ID: {location.id})")
        if not no_register:
            register = register_service.auto_create_register(location.id)
            click.echo(f"   Register: {register.code} - {register.name}")
    except CLI_ERRORS as e:
        click.echo(f"FAIL Error: {str(e)}")


@locations_group.command('list')
@with_appcontext
def list_locations_cli():
    from .services import location_service

    locations = location_service.list_locations(include_inactive=True)
    if not locations:
        click.echo("No locations found.")
        return

    click.echo(f"{'ID':<5} {'Name':<40} {'Active'}")
    click.echo("-" * 55)
    for loc in locations:
        click.echo(f"{loc.id:<5} {loc.name:<40} {'Yes' if loc.is_active else 'No'}")


@click.group('registers')
def registers_group():
    """Cash register inspection and bootstrap commands."""


@registers_group.command('create')
@click.option('--location-id', type=int, required=True, help='Location ID')
@click.option('--name', required=True, help='Register name')
@click.option('--code', help='Register code (auto-assigned if omitted)')
@click.option('--main', 'is_main', is_flag=True, help='Make it the main register of the location')
@with_appcontext
def create_register_cli(location_id, name, code, is_main):
    """
    Create a new cash register.

    Example:
        flask registers create --location-id 1 --name "Caja Centro" --main
    """
    from .services import register_service

    try:
        register = register_service.create_register(
            location_id=location_id,
            name=name,
            code=code,
            is_main=is_main,
        )
        click.echo(f"PASS Created register: {register.code} - {register.name}")
        click.echo(f"   Location ID: {register.location_id}")
        click.echo(f"   Register ID: {register.id}")
    except CLI_ERRORS as e:
        click.echo(f"FAIL Error: {str(e)}")


@registers_group.command('list')
@click.option('--location-id', type=int, help='Filter by location ID')
@click.option('--all', 'show_all', is_flag=True, help='Show inactive registers too')
@with_appcontext
def list_registers_cli(location_id, show_all):
    from .services import register_service, shift_service

    registers = register_service.list_registers(location_id, include_inactive=show_all)
    if not registers:
        click.echo("No registers found.")
        return

    click.echo(f"{'ID':<5} {'Code':<12} {'Name':<25} {'Main':<6} {'Active':<8} {'Status'}")
    click.echo("-" * 80)
    for reg in registers:
        current = shift_service.get_current_shift(register_id=reg.id)
        status = f"OPEN ({current.shift_number})" if current else "CLOSED"
        click.echo(
            f"{reg.id:<5} {reg.code:<12} {reg.name[:25]:<25} "
            f"{'Yes' if reg.is_main else 'No':<6} {'Yes' if reg.is_active else 'No':<8} {status}"
        )


@registers_group.command('deactivate')
@click.argument('register_id', type=int)
@with_appcontext
def deactivate_register_cli(register_id):
    from .services import register_service

    try:
        register = register_service.deactivate_register(register_id)
        click.echo(f"PASS Deactivated register {register.code}")
    except CLI_ERRORS as e:
        click.echo(f"FAIL Error: {str(e)}")


@click.group('shifts')
def shifts_group():
    """Shift inspection and maintenance commands."""


@shifts_group.command('list')
@click.option('--register-id', type=int, help='Filter by register ID')
@click.option('--status', type=click.Choice(['open', 'closed']), help='Filter by status')
@click.option('--limit', type=int, default=20, help='Max shifts to show')
@with_appcontext
def list_shifts_cli(register_id, status, limit):
    from .services import shift_service

    shifts = shift_service.list_shifts(register_id=register_id, status=status, limit=limit)
    if not shifts:
        click.echo("No shifts found.")
        return

    click.echo(f"{'ID':<6} {'Number':<20} {'Register':<9} {'Opened by':<20} {'Status':<8} {'Discrepancy'}")
    click.echo("-" * 80)
    for s in shifts:
        d = s.to_dict()
        click.echo(
            f"{s.id:<6} {s.shift_number:<20} {s.cash_register_id:<9} {s.opened_by[:20]:<20} "
            f"{s.status:<8} {d['discrepancy'] or '-'}"
        )


@shifts_group.command('report')
@click.argument('shift_id', type=int)
@with_appcontext
def shift_report_cli(shift_id):
    """Print the shift report as JSON."""
    from .services import report_service

    try:
        click.echo(json.dumps(report_service.build_report(shift_id), indent=2))
    except CLI_ERRORS as e:
        click.echo(f"FAIL Error: {str(e)}")


@shifts_group.command('auto-close')
@click.option('--dry-run', is_flag=True, help='Only list overdue shifts')
@with_appcontext
def auto_close_cli(dry_run):
    from .services import shift_service

    if dry_run:
        overdue = shift_service.find_overdue_shifts()
        for s in overdue:
            click.echo(f"OVERDUE {s.shift_number} (register {s.cash_register_id}, opened {s.opened_at})")
        click.echo(f"{len(overdue)} overdue shift(s)")
        return

    closed = shift_service.auto_close_overdue_shifts()
    for s in closed:
        click.echo(f"PASS Closed {s.shift_number}")
    click.echo(f"{len(closed)} shift(s) closed")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(locations_group)
    app.cli.add_command(registers_group)
    app.cli.add_command(shifts_group)

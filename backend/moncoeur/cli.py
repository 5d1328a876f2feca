# Overview: Flask CLI command groups for bootstrap, data repair and maintenance.

# backend/moncoeur/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent seed: default users (Nadia, Jeff admins; Jeannette seller) and bank accounts.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
# - python -m flask users create --email a@moncoeur.app --name Anna --role seller --password secret1
#
# Data:
# - python -m flask data import-excel data/ventes.xlsx --user-email nadia@moncoeur.app
#   Same import as POST /api/import, attributed to the given user.
# - python -m flask data fix-dates --date 2025-12-31 --yes
#   Set every sale date and every sold bag's purchase date to the given day.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --retention-days 30
#   Delete expired or revoked sessions older than the retention window.

import click
from datetime import datetime
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .services import import_service, maintenance_service, session_service, user_service
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create default users and bank accounts if missing.

    SECURITY: Change the seeded passwords immediately in production!
    """
    click.echo("START Initializing MonCoeur...")
    db.create_all()
    created = maintenance_service.seed_defaults()

    for email in created["users"]:
        click.echo(f"PASS Created user: {email}")
    for label in created["bankAccounts"]:
        click.echo(f"PASS Created bank account: {label}")
    if not created["users"] and not created["bankAccounts"]:
        click.echo("PASS Nothing to create, defaults already present")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to seed defaults.")


@click.group('users')
def users_group():
    """User inspection and bootstrap."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their role and active status."""
    users = user_service.list_users()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<20} {'Email':<35} {'Role':<8} {'Active'}")
    click.echo("="*80)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.name:<20} {user.email:<35} {user.role:<8} {active_str}")
    click.echo("="*80 + "\n")


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(['admin', 'seller']), default='seller', show_default=True)
@with_appcontext
def create_user_cli(email, name, password, role):
    """Create a user (password: 6 characters minimum)."""
    try:
        user = user_service.create_user({
            "email": email,
            "name": name,
            "password": password,
            "role": role,
        })
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created user {user.email} (ID: {user.id}, role: {user.role})")


@click.group('data')
def data_group():
    """Bulk import and one-off data repairs."""


@data_group.command('import-excel')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--user-email', required=True, help='User the imported records are attributed to')
@with_appcontext
def import_excel(path, user_email):
    """Import an .xlsx ledger (achats, seller sheets, historique)."""
    user = db.session.query(User).filter_by(email=user_email.strip().lower()).first()
    if not user:
        raise click.ClickException(f"User {user_email} not found")

    with open(path, "rb") as stream:
        try:
            result = import_service.import_workbook(
                stream,
                user.id,
                seller_sheets=current_app.config["IMPORT_SELLER_SHEETS"],
            )
        except import_service.WorkbookImportError as e:
            raise click.ClickException(str(e))

    click.echo(
        f"PASS {result.bags_created} bags, {result.sales_created} sales, "
        f"{result.bank_accounts_created} bank accounts created"
    )
    for error in result.errors:
        click.echo(f"WARN {error}")


@data_group.command('fix-dates')
@click.option('--date', 'target', type=click.DateTime(formats=["%Y-%m-%d"]), default="2025-12-31", show_default=True)
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def fix_dates(target: datetime, yes):
    """Set all sale dates (and sold bags' purchase dates) to one day."""
    if not yes:
        click.confirm(f"WARN This rewrites every sale date to {target:%Y-%m-%d}. Continue?", abort=True)

    sales, bags = maintenance_service.fix_sale_dates(target)
    click.echo(f"PASS Updated {sales} sales and {bags} bags")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--retention-days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions_cli(retention_days):
    """Delete expired or revoked sessions older than the retention window."""
    deleted = session_service.cleanup_expired_sessions(retention_days=retention_days)
    click.echo(f"PASS Deleted {deleted} sessions")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(data_group)
    app.cli.add_command(maintenance_group)

# Overview: Flask CLI command groups for bootstrap, accounts and record maintenance.

# backend/bizbooks/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Accounts:
# - python -m flask users create --username owner --email owner@example.com --password "Password123!"
# - python -m flask users list
# - python -m flask sessions cleanup --retention-days 30
#
# Records (use the configured BIZBOOKS_STORAGE backend):
# - python -m flask records seed-demo --username owner
#   Load demo vendors, customers, orders, invoices, payments and expenses.
# - python -m flask records recompute --username owner
#   Re-derive every sale order and invoice and write the results back.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .services.auth_service import AuthError, PasswordValidationError, create_user, get_user_by_username
from .services import session_service
from .services.demo_service import seed_demo
from .services.record_store import RecordStore
from .services.storage_service import PersistenceError, get_adapter


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create every table that does not exist yet."""
    db.create_all()
    click.echo("PASS Tables created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA! JSON record files are not touched.
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()
    click.echo("BUILD Recreating tables...")
    db.create_all()
    click.echo("PASS Database reset complete")


@click.group('users')
def users_group():
    """Account commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_user_cli(username, email, password):
    """Create an account that owns its own set of records."""
    try:
        user = create_user(username=username, email=email, password=password)
    except (AuthError, PasswordValidationError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created user {user.username} (ID: {user.id})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 72)
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<35} {'Active'}")
    click.echo("=" * 72)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.username:<20} {user.email:<35} {active_str}")
    click.echo("=" * 72 + "\n")


@click.group('sessions')
def sessions_group():
    """Session maintenance."""


@sessions_group.command('cleanup')
@click.option('--retention-days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions(retention_days):
    """Delete expired or revoked sessions older than the retention window."""
    deleted = session_service.cleanup_expired_sessions(retention_days=retention_days)
    click.echo(f"PASS Deleted {deleted} session(s)")


@click.group('records')
def records_group():
    """Record maintenance for one owner."""


def _store_for(username: str) -> RecordStore:
    user = get_user_by_username(username)
    if not user:
        raise click.ClickException(f"User {username} not found")
    return RecordStore(get_adapter(user.id))


@records_group.command('seed-demo')
@click.option('--username', required=True, help='Owner of the demo records')
@with_appcontext
def seed_demo_cli(username):
    """Load demo records for one owner."""
    store = _store_for(username)
    try:
        counts = seed_demo(store)
    except PersistenceError as e:
        raise click.ClickException(f"Storage failure: {e}")
    summary = ", ".join(f"{n} {name.replace('_', ' ')}" for name, n in counts.items())
    click.echo(f"PASS Seeded {summary}")


@records_group.command('recompute')
@click.option('--username', required=True, help='Owner whose records are recomputed')
@with_appcontext
def recompute_cli(username):
    """Re-derive and rewrite every purchase order, sale order and invoice."""
    store = _store_for(username)
    try:
        count = store.recompute_derived()
    except PersistenceError as e:
        raise click.ClickException(f"Storage failure: {e}")
    click.echo(f"PASS Recomputed {count} record(s)")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(sessions_group)
    app.cli.add_command(records_group)

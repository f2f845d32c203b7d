# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/trxdesk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates all tables and the default admin account.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list [--role employee] [--all]
#   List users with role and active status.
# - python -m flask users create --email sara@trxdesk.local --full-name "Sara K" --password "Password123!" --role employee
#   Create a user (prompts if options are omitted).

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .models.auth import ROLE_ADMIN, ROLES
from .services.auth_service import hash_password, PasswordValidationError
from .time_utils import utcnow

DEFAULT_ADMIN_EMAIL = "admin@trxdesk.local"
DEFAULT_ADMIN_PASSWORD = "Password123!"


def _create_user(email: str, full_name: str, password: str, role: str) -> User:
    now = utcnow()
    user = User(
        email=email.strip().lower(),
        full_name=full_name.strip(),
        password_hash=hash_password(password),
        role=role,
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    db.session.add(user)
    db.session.commit()
    return user


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--admin-email', default=DEFAULT_ADMIN_EMAIL, help='Bootstrap admin email')
@with_appcontext
def init_system(admin_email):
    """
    Initialize the trxdesk database.

    Creates:
    - All tables (use `flask db upgrade` instead when running migrations)
    - An admin account if no admin exists yet, password "Password123!"

    SECURITY: Change the password immediately in production!
    """
    click.echo("START Initializing trxdesk...")

    db.create_all()
    click.echo("PASS Tables ready")

    existing = db.session.query(User).filter_by(role=ROLE_ADMIN).first()
    if existing:
        click.echo(f"WARN  Admin already exists ({existing.email}), skipping...")
        return

    user = _create_user(admin_email, "Administrator", DEFAULT_ADMIN_PASSWORD, ROLE_ADMIN)
    click.echo(f"PASS Created admin: {user.email} / {DEFAULT_ADMIN_PASSWORD}")
    click.echo("\nSECURITY WARNING: change this password immediately in production!")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA, including transaction numbers already issued.
    """
    if not yes:
        click.confirm("This will delete ALL data. Continue?", abort=True)

    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--full-name', prompt=True, help='Full name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(ROLES), prompt=True, help='Role')
@with_appcontext
def create_user_cli(email, full_name, password, role):
    """
    Create a new user.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    if db.session.query(User).filter_by(email=email.strip().lower()).first():
        click.echo(f"FAIL Email '{email}' is already registered")
        return

    try:
        user = _create_user(email, full_name, password, role)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
        return

    click.echo(f"PASS Created user: {user.full_name} ({user.email}) with role '{role}'")
    click.echo(f"     User ID: {user.id}")


@users_group.command('list')
@click.option('--role', type=click.Choice(ROLES), help='Filter by role')
@click.option('--all', 'include_inactive', is_flag=True, help='Include inactive users')
@with_appcontext
def list_users(role, include_inactive):
    """List users with their role."""
    query = db.session.query(User)
    if role:
        query = query.filter_by(role=role)
    if not include_inactive:
        query = query.filter_by(is_active=True)

    users = query.order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Name':<25} {'Email':<35} {'Role':<12} {'Active'}")
    click.echo("="*90)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.full_name:<25} {user.email:<35} {user.role:<12} {active_str}")

    click.echo("="*90 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)

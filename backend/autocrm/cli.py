# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/autocrm/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and the default admin account.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with role and active status.
# - python -m flask users create --email ops@wgauto.com --password "secret123" [--admin]
#   Create a user (prompts if options are omitted).

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import User, ROLE_ADMIN, ROLE_USER
from .services.auth_service import create_user, PasswordValidationError
from .validation import ValidationError, ConflictError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize AutoCRM: schema plus a default administrator.

    The admin credentials come from DEFAULT_ADMIN_EMAIL / DEFAULT_ADMIN_PASSWORD.

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing AutoCRM...")

    db.create_all()
    click.echo("PASS Schema ready")

    email = current_app.config["DEFAULT_ADMIN_EMAIL"]
    password = current_app.config["DEFAULT_ADMIN_PASSWORD"]

    existing = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if existing:
        click.echo(f"WARN  Admin '{existing.email}' already exists, skipping...")
    else:
        try:
            admin = create_user(email, password, role=ROLE_ADMIN)
            click.echo(f"PASS Created admin: {admin.email}")
        except PasswordValidationError as e:
            click.echo(f"FAIL Password validation failed for '{email}': {str(e)}")
            return

    click.echo("\n" + "="*60)
    click.echo("DONE AutoCRM Initialized Successfully!")
    click.echo("="*60)
    click.echo("\nSECURITY Change the default admin password in production!")
    click.echo("")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


# =============================================================================
# USER MANAGEMENT COMMANDS
# =============================================================================

@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their role."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Email':<35} {'Role':<8} {'Active':<8} {'Cars'}")
    click.echo("="*80)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.email:<35} {user.role:<8} {active_str:<8} {len(user.cars)}")

    click.echo("="*80 + "\n")


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--admin', 'is_admin', is_flag=True, help='Grant the ADMIN role')
@with_appcontext
def create_user_cli(email, password, is_admin):
    """
    Create a new user.

    Password must be at least 8 characters with one letter and one digit.
    """
    role = ROLE_ADMIN if is_admin else ROLE_USER
    try:
        user = create_user(email, password, role=role)
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL {str(e)}")
        return

    click.echo(f"PASS Created user: {user.email} (ID: {user.id}) with role '{user.role}'")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)

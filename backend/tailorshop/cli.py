# Overview: Flask CLI command groups for bootstrap, catalog seeding, and order inspection.

# backend/tailorshop/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to tailorshop (PowerShell: $env:FLASK_APP="tailorshop").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--admin-email admin@tailorshop.local]
#   Idempotent bootstrap: creates tables, the admin account and the sample catalog.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Accounts:
# - python -m flask users list
# - python -m flask users create --email staff@tailorshop.local --password "Password123!" --role admin
#
# Catalog:
# - python -m flask catalog seed
#   Insert the sample fabrics and garments that are missing (matched by name).
# - python -m flask catalog list
#
# Orders:
# - python -m flask orders list [--status cutting]
# - python -m flask orders advance <order_id>
#   Move an order to its next pipeline stage.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User, Fabric, Garment, ORDER_STATUSES, ROLE_ADMIN, VALID_ROLES
from .policies import Caller
from .services import order_service, seed_service
from .services.auth_service import create_admin, create_user, PasswordValidationError
from .services.lifecycle_service import LifecycleError
from .validation import ConflictError, ConstraintViolation, NotFoundError, ValidationError

DEFAULT_ADMIN_EMAIL = "admin@tailorshop.local"
DEFAULT_PASSWORD = "Password123!"


def _admin_caller() -> Caller:
    return seed_service.SYSTEM_CALLER


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--admin-email', default=DEFAULT_ADMIN_EMAIL, help='Admin account email')
@click.option('--admin-password', default=DEFAULT_PASSWORD, help='Admin account password')
@with_appcontext
def init_system(admin_email, admin_password):
    """
    Initialize the shop: tables, admin account and sample catalog.

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing tailorshop...")

    db.create_all()
    click.echo("PASS Tables ready")

    existing = db.session.query(User).filter_by(email=admin_email.strip().lower()).first()
    if existing:
        click.echo(f"PASS Using existing admin: {existing.email}")
    else:
        try:
            create_admin(admin_email, admin_password)
            click.echo(f"PASS Created admin: {admin_email}")
        except (PasswordValidationError, ValidationError, ConflictError) as e:
            db.session.rollback()
            click.echo(f"FAIL Could not create admin: {e}")
            return

    created = seed_service.seed_catalog()
    click.echo(f"PASS Catalog seeded ({created['fabrics']} fabrics, {created['garments']} garments added)")
    click.echo("")
    if admin_password == DEFAULT_PASSWORD:
        click.echo(f"   admin -> {admin_email} / {DEFAULT_PASSWORD}")


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


@click.group('users')
def users_group():
    """Account inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(sorted(VALID_ROLES)), default=ROLE_ADMIN, show_default=True, help='Role')
@with_appcontext
def create_user_cli(email, password, role):
    """
    Create a staff or customer account.

    Customer accounts created here have no customer row; customers
    normally sign up through POST /api/auth/register.
    """
    try:
        user = create_user(email, password, role)
        db.session.commit()
        click.echo(f"PASS Created {role} account: {user.email} (ID: {user.id})")
        click.echo("SECURITY Password securely hashed with bcrypt")
    except PasswordValidationError as e:
        db.session.rollback()
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
    except (ValidationError, ConflictError) as e:
        db.session.rollback()
        click.echo(f"FAIL Failed to create user: {str(e)}")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all accounts with their roles."""
    users = db.session.query(User).order_by(User.created_at).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<38} {'Email':<32} {'Role':<10} {'Active'}")
    click.echo("="*90)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<38} {user.email:<32} {user.role:<10} {active_str}")
    click.echo("="*90 + "\n")


@click.group('catalog')
def catalog_group():
    """Fabric and garment catalog commands."""


@catalog_group.command('seed')
@with_appcontext
def seed_catalog_cli():
    """Insert the sample catalog rows that are missing (matched by name)."""
    created = seed_service.seed_catalog()
    click.echo(f"PASS Added {created['fabrics']} fabrics and {created['garments']} garments")


@catalog_group.command('list')
@with_appcontext
def list_catalog():
    fabrics = db.session.query(Fabric).order_by(Fabric.name).all()
    garments = db.session.query(Garment).order_by(Garment.name).all()

    click.echo(f"\nFabrics ({len(fabrics)})")
    for f in fabrics:
        star = "*" if f.featured else " "
        click.echo(f" {star} {f.name:<24} {f.material:<10} {f.color:<12} {f.price_per_meter:>10}/m  stock {f.stock}")

    click.echo(f"\nGarments ({len(garments)})")
    for garment in garments:
        click.echo(f"   {garment.name:<24} {garment.category:<16} {garment.base_price:>10}")
    click.echo("")


@click.group('orders')
def orders_group():
    """Order inspection and pipeline commands."""


@orders_group.command('list')
@click.option('--status', type=click.Choice(ORDER_STATUSES), help='Filter by pipeline stage')
@click.option('--limit', type=int, default=50, show_default=True)
@with_appcontext
def list_orders_cli(status, limit):
    result = order_service.list_orders(_admin_caller(), status=status, page=1, per_page=limit)
    orders = result["items"]
    if not orders:
        click.echo("No orders found.")
        return

    click.echo("\n" + "="*96)
    click.echo(f"{'Tracking':<14} {'Status':<14} {'Urgent':<7} {'Price':>10}  {'Created':<22} {'Order ID'}")
    click.echo("="*96)
    for order in orders:
        urgent = "Yes" if order.urgent else ""
        created = order.created_at.strftime("%Y-%m-%d %H:%M:%S") if order.created_at else ""
        click.echo(f"{order.tracking_id:<14} {order.status or '':<14} {urgent:<7} {order.price:>10}  {created:<22} {order.id}")
    click.echo("="*96)
    click.echo(f"{result['pagination']['total']} total\n")


@orders_group.command('advance')
@click.argument('order_id')
@with_appcontext
def advance_order_cli(order_id):
    """Move an order to its next pipeline stage."""
    try:
        order = order_service.advance_order(_admin_caller(), order_id)
    except NotFoundError:
        click.echo(f"FAIL Order {order_id} not found")
        return
    except (LifecycleError, ConstraintViolation) as e:
        click.echo(f"FAIL {e}")
        return
    click.echo(f"PASS Order {order.tracking_id} is now '{order.status}'")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(orders_group)

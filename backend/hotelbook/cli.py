# Overview: Flask CLI command groups for bootstrap, review and catalog maintenance.

# backend/hotelbook/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Use: flask --app hotelbook <group> <command> [options]
#
# System bootstrap/repair:
# - flask --app hotelbook system init-db
#   Create any missing tables (development; production uses "flask db upgrade").
# - flask --app hotelbook system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - flask --app hotelbook users list
#   List all users with admin and active flags.
# - flask --app hotelbook users create --username admin --email admin@hotel.local --password "secret1" --admin
#   Create a user (prompts if options are omitted).
#
# Application review:
# - flask --app hotelbook applications pending --limit 20
#   Show the review queue, newest first.
# - flask --app hotelbook applications decide 12 approve --remark "Looks good"
#   Approve or reject a pending application.
#
# Catalog:
# - flask --app hotelbook catalog add-room-type 3 --name "Deluxe King" --price 399.00 --capacity 2 --inventory 10
#   Add a room type to a hotel.
#
# Maintenance:
# - flask --app hotelbook maintenance cleanup-sessions --retention-days 30
#   Delete expired or revoked session tokens older than the retention window.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .services.auth_service import create_user
from .services.application_service import ApplicationReviewService, NotFoundOrAlreadyProcessed
from .services.catalog_service import HotelCatalogService, HotelNotFound
from .services.pagination import PageRequest
from .services.session_service import cleanup_expired_sessions
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


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


@click.group('users')
def users_group():
    """User inspection and bootstrap."""


@users_group.command('create')
@click.option('--username', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--admin', 'is_admin', is_flag=True, help='Grant admin privileges')
@with_appcontext
def create_user_command(username, email, password, is_admin):
    """Create a user; --admin skips the registration code check."""
    try:
        user = create_user(username=username, email=email, password=password, is_admin=is_admin)
    except (ValidationError, ConflictError) as e:
        db.session.rollback()
        raise click.ClickException(str(e))

    role = "admin" if user.is_admin else "user"
    click.echo(f"PASS Created {role}: {user.username} (ID: {user.id})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<30} {'Admin':<7} {'Active'}")
    click.echo("="*80)

    for user in users:
        admin_str = "Yes" if user.is_admin else "No"
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.username:<20} {user.email:<30} {admin_str:<7} {active_str}")

    click.echo("="*80 + "\n")


@click.group('applications')
def applications_group():
    """Hotel application review."""


@applications_group.command('pending')
@click.option('--limit', default=20, show_default=True, type=click.IntRange(1, 100))
@with_appcontext
def pending_applications(limit):
    """Show pending applications, newest first."""
    page = ApplicationReviewService(db.session).list_pending(PageRequest(page=1, page_size=limit))

    if not page.items:
        click.echo("No pending applications.")
        return

    click.echo(f"{page.total} pending (showing {len(page.items)})")
    for application in page.items:
        click.echo(
            f"  #{application.id:<5} user={application.user_id:<5} "
            f"{application.name_en} / {application.name_zh}  {application.operating_period}"
        )


@applications_group.command('decide')
@click.argument('application_id', type=int)
@click.argument('action', type=click.Choice(['approve', 'reject']))
@click.option('--remark', default=None, help='Admin remark stored with the decision')
@with_appcontext
def decide_application(application_id, action, remark):
    """Approve or reject a pending application."""
    try:
        outcome = ApplicationReviewService(db.session).decide(
            application_id, action, remark, is_admin=True
        )
    except NotFoundOrAlreadyProcessed as e:
        raise click.ClickException(str(e))

    if outcome.hotel_id is not None:
        click.echo(f"PASS Application {application_id} approved; hotel {outcome.hotel_id} created.")
    else:
        click.echo(f"PASS Application {application_id} rejected.")


@click.group('catalog')
def catalog_group():
    """Hotel catalog maintenance."""


@catalog_group.command('add-room-type')
@click.argument('hotel_id', type=int)
@click.option('--name', required=True)
@click.option('--price', required=True, help='Base price per room per night, e.g. 399.00')
@click.option('--capacity', default=2, show_default=True, type=int)
@click.option('--inventory', default=10, show_default=True, type=int)
@with_appcontext
def add_room_type(hotel_id, name, price, capacity, inventory):
    """Add a room type to a hotel."""
    # The CLI operator acts as an admin
    operator = User(username="cli", is_admin=True)
    payload = {
        "name": name,
        "base_price": price,
        "capacity": capacity,
        "total_inventory": inventory,
    }
    try:
        room_type = HotelCatalogService(db.session).add_room_type(hotel_id, payload, actor=operator)
    except (ValidationError, HotelNotFound) as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Added room type {room_type.name} (ID: {room_type.id}) at {room_type.to_dict()['base_price']}")


@click.group('maintenance')
def maintenance_group():
    """Housekeeping commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--retention-days', default=30, show_default=True, type=click.IntRange(0, None))
@with_appcontext
def cleanup_sessions(retention_days):
    """Delete expired or revoked session tokens older than the retention window."""
    deleted = cleanup_expired_sessions(retention_days=retention_days)
    click.echo(f"PASS Deleted {deleted} session token(s).")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(applications_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(maintenance_group)

# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/safetyhub/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (bash: export FLASK_APP=wsgi.py).
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent: creates permissions, roles (admin, seller, customer) and role grants.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with roles and active status.
# - python -m flask users create --email admin@example.com --password "..." --role admin
#   Create a user (prompts if options are omitted).
# - python -m flask users set-role seller@example.com admin
#   Replace a user's role (takes effect at the next login/refresh).
#
# Permission inspection:
# - python -m flask perms list [--role seller]
#
# Session maintenance:
# - python -m flask sessions cleanup --older-than-days 30
#   Delete expired/revoked refresh tokens created before the cutoff.
# - python -m flask sessions revoke-all seller@example.com
#   Force re-login on every device.

import click
from flask.cli import with_appcontext

from .container import get_container
from .errors import AppError
from .extensions import db
from .models import Permission, Role, RolePermission, User, UserRole
from .services import permission_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Seed permissions, roles and default role grants.

    Safe to run on every deploy.
    """
    click.echo("START Initializing permissions and roles...")
    counts = permission_service.seed_roles_and_permissions(db.session)
    click.echo(f"PASS Permissions created: {counts['permissions']}")
    click.echo(f"PASS Roles created: {counts['roles']}")
    click.echo(f"PASS Role grants created: {counts['role_permissions']}")


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
    """User management commands."""


def _user_by_email(email: str) -> User | None:
    return db.session.query(User).filter(User.email == email.strip().lower()).first()


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', prompt=True, help='Role name (admin, seller, customer)')
@click.option('--full-name', default=None, help='Full name')
@with_appcontext
def create_user_cli(email, password, role, full_name):
    """
    Create a new user.

    Password must be 12 to 72 characters.
    """
    try:
        user = get_container().auth.register(
            email=email,
            password=password,
            user_type=role,
            full_name=full_name,
            allow_any_role=True,
        )
    except AppError as e:
        raise click.ClickException(f"Failed to create user: {e.message}")

    click.echo(f"PASS Created user: {user.email} (ID: {user.id}) with role '{role}'")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('set-role')
@click.argument('email')
@click.argument('role_name')
@with_appcontext
def set_role_cli(email, role_name):
    """Replace a user's role."""
    user = _user_by_email(email)
    if not user:
        raise click.ClickException(f"User '{email}' not found")

    try:
        get_container().permissions.set_role(user.id, role_name)
    except AppError as e:
        raise click.ClickException(e.message)

    click.echo(f"PASS {email} now has role '{role_name}' (effective at next login or refresh)")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    rows = (
        db.session.query(User, Role.name)
        .outerjoin(UserRole, UserRole.user_id == User.id)
        .outerjoin(Role, Role.id == UserRole.role_id)
        .order_by(User.created_at.asc())
        .all()
    )

    if not rows:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<38} {'Email':<35} {'Active':<8} {'Role'}")
    click.echo("="*100)

    for user, role_name in rows:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<38} {user.email:<35} {active_str:<8} {role_name or 'none'}")

    click.echo("="*100 + "\n")


@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('list')
@click.option('--role', help='Filter by role name')
@with_appcontext
def list_permissions_cli(role):
    """List all permissions, optionally filtered by role."""
    query = db.session.query(Permission).order_by(Permission.category, Permission.name)
    if role:
        role_obj = db.session.query(Role).filter_by(name=role).first()
        if not role_obj:
            raise click.ClickException(f"Role '{role}' not found")
        query = query.join(RolePermission, RolePermission.permission_id == Permission.id).filter(
            RolePermission.role_id == role_obj.id
        )

    perms = query.all()
    click.echo(f"\n{'Code':<20} {'Category':<12} {'Description'}")
    click.echo("-"*80)
    for perm in perms:
        click.echo(f"{perm.name:<20} {perm.category:<12} {perm.description or ''}")
    click.echo(f"\n Total: {len(perms)} permissions\n")


@click.group('sessions')
def sessions_group():
    """Refresh-session maintenance commands."""


@sessions_group.command('cleanup')
@click.option('--older-than-days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions_cli(older_than_days):
    """Delete expired or revoked refresh tokens older than the cutoff."""
    deleted = get_container().sessions.cleanup_expired(older_than_days=older_than_days)
    click.echo(f"Deleted {deleted} refresh tokens older than {older_than_days} days.")


@sessions_group.command('revoke-all')
@click.argument('email')
@with_appcontext
def revoke_all_sessions_cli(email):
    """Revoke every refresh token of a user."""
    user = _user_by_email(email)
    if not user:
        raise click.ClickException(f"User '{email}' not found")

    count = get_container().sessions.revoke_all(user.id)
    click.echo(f"Revoked {count} sessions for {email}.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(sessions_group)

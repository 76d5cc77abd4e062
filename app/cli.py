# app/cli.py
"""
Flask CLI commands for site administration.
"""

import click
from sqlalchemy import select, or_
from app.extensions import db
from app.models import User, Role, ForumCategory
from app.permissions import coerce_role
from app.services import BanService, FeatureService
from app.utils import forum_slugify, CATEGORY_SLUG_LENGTH


DEFAULT_FORUM_CATEGORIES = [
    ('General Discussion', 'Anything about bees and beekeeping that does not fit elsewhere.'),
    ('Hive Management', 'Inspections, swarming, queens and seasonal work.'),
    ('Honey & Harvest', 'Extraction, storage and selling honey.'),
    ('Pests & Diseases', 'Varroa, foulbrood, wax moths and other problems.'),
]


def register_cli_commands(app):
    """Register CLI commands with the Flask app."""

    @app.cli.command('create-admin')
    @click.argument('username')
    @click.argument('email')
    @click.argument('password')
    def create_admin_command(username, email, password):
        """Create an administrator account."""
        email = email.strip().lower()
        existing = db.session.scalar(
            select(User).where(or_(User.username == username, User.email == email))
        )
        if existing:
            click.echo(f'Error: username or email already in use (user ID {existing.id})')
            return

        if len(password) < 8:
            click.echo('Error: password must be at least 8 characters long')
            return

        user = User(username=username, email=email, role=Role.ADMIN)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        click.echo(f'Created admin {user.username} (ID: {user.id})')

    @app.cli.command('set-role')
    @click.argument('username')
    @click.argument('role', type=click.Choice([r.value for r in Role], case_sensitive=False))
    def set_role_command(username, role):
        """Change a user's role (user, author or admin)."""
        user = db.session.scalar(select(User).where(User.username == username))
        if not user:
            click.echo(f'Error: User {username} not found!')
            return

        previous = user.role
        user.role = coerce_role(role)
        db.session.commit()
        click.echo(f'{user.username}: {previous.value} -> {user.role.value}')

    @app.cli.command('feature')
    @click.argument('name')
    @click.option('--enable/--disable', default=None, help='New state (omit to show the current state)')
    def feature_command(name, enable):
        """Show or switch a feature flag."""
        if enable is None:
            state = 'enabled' if FeatureService.is_enabled(name) else 'disabled'
            click.echo(f"Feature '{name}' is {state}")
            return

        FeatureService.set_enabled(name, enable)
        db.session.commit()
        click.echo(f"Feature '{name}' {'enabled' if enable else 'disabled'}")

    @app.cli.command('seed-features')
    def seed_features_command():
        """Insert the default feature flags that are missing."""
        added = FeatureService.seed_defaults()
        db.session.commit()
        if added:
            click.echo(f"Added features: {', '.join(added)}")
        else:
            click.echo('All default features already exist.')

    @app.cli.command('purge-expired-bans')
    def purge_expired_bans_command():
        """Delete forum bans whose expiry date has passed."""
        removed = BanService.purge_expired()
        db.session.commit()
        click.echo(f'Removed {removed} expired ban(s). Active bans: {BanService.count_active_bans()}')

    @app.cli.command('seed-forum')
    @click.option('--owner', '-o', required=True, help='Username of the admin who owns the categories')
    def seed_forum_command(owner):
        """Create the default forum categories."""
        user = db.session.scalar(select(User).where(User.username == owner))
        if not user:
            click.echo(f'Error: User {owner} not found!')
            return
        if user.role is not Role.ADMIN:
            click.echo(f'Error: {owner} is not an admin')
            return

        for name, description in DEFAULT_FORUM_CATEGORIES:
            slug = forum_slugify(name, CATEGORY_SLUG_LENGTH)
            existing = db.session.scalar(select(ForumCategory).where(ForumCategory.slug == slug))
            if existing:
                click.echo(f"Category '{slug}' already exists, skipping...")
                continue

            db.session.add(ForumCategory(name=name, slug=slug, description=description, user_id=user.id))
            click.echo(f'Added category: {name} ({slug})')

        db.session.commit()
        click.echo('Forum categories seeded successfully!')

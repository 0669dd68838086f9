"""
Flask CLI commands.

Commands:
- flask init-db: Create all tables
- flask create-user: Create a user with any role
- flask check-ledger: Compare stored customer balances with their sales
"""

import sys

import click
from bizdesk.database import create_all, get_session
from bizdesk.exceptions import BusinessLogicError
from bizdesk.models import UserRole
from bizdesk.services import auth_service, customer_service


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create database tables."""
        create_all()
        click.echo(click.style('Database tables created.', fg='green'))

    @app.cli.command('create-user')
    @click.option('--email', prompt=True, help='User email address')
    @click.option('--name', prompt=True, help='Display name')
    @click.option('--role', type=click.Choice([r.value for r in UserRole]), default=UserRole.ADMIN.value,
                  show_default=True, help='User role')
    @click.option('--gender', type=click.Choice(['male', 'female']), default=None, help='Gender (workers)')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
    def create_user(email, name, role, gender, password):
        """Create a user (e.g. the first manager or admin)."""
        try:
            user = auth_service.create_user(get_session(), email, password, name, role=role, gender=gender)
        except BusinessLogicError as e:
            click.echo(click.style(f'Error: {e.message}', fg='red'))
            sys.exit(1)

        click.echo(click.style(f'User created: id={user.id} email={user.email} role={user.role}', fg='green'))

    @app.cli.command('check-ledger')
    def check_ledger():
        """Report customers whose total_due differs from the sum of their sales' due amounts."""
        drift = customer_service.find_ledger_drift(get_session())
        if not drift:
            click.echo(click.style('Ledger consistent: every customer balance matches its sales.', fg='green'))
            return

        click.echo(click.style(f'{len(drift)} customer(s) out of balance:', fg='red', bold=True))
        for row in drift:
            click.echo(
                f"  #{row['customer_id']} {row['name']}: stored={row['stored_total_due']} "
                f"expected={row['expected_total_due']}"
            )
        sys.exit(1)

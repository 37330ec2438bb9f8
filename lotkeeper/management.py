"""
Management commands for deployment and maintenance
"""
import click
from flask.cli import with_appcontext

from .extensions import db
from .services.expiry_sweep import purge_discarded_batches, run_expiry_check
from .utils.timezone_utils import TimezoneUtils


@click.command('init-db')
@with_appcontext
def init_db_command():
    """Create all tables (development only; use `flask db upgrade` elsewhere)"""
    try:
        from . import models  # noqa: F401
        db.create_all()
        click.echo('✅ Database tables created')
    except Exception as e:
        click.echo(f'❌ Database initialization failed: {e}', err=True)
        raise


@click.command('expiry-check')
@click.option('--as-of', 'as_of', default=None, help='Business date to check (YYYY-MM-DD), default today')
@with_appcontext
def expiry_check_command(as_of):
    """Log expired batches and the count expiring within the warning window"""
    try:
        day = TimezoneUtils.parse_date(as_of)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='--as-of')
    report = run_expiry_check(day)
    click.echo(
        f'{len(report.expired)} expired batch(es), '
        f'{report.expiring_soon_count} expiring within {report.warning_days} day(s) as of {report.as_of}'
    )


@click.command('purge-discarded')
@click.option('--days', type=int, default=None, help='Retention period in days (default DISCARD_RETENTION_DAYS)')
@with_appcontext
def purge_discarded_command(days):
    """Delete discarded batches older than the retention period"""
    if days is not None and days < 0:
        raise click.BadParameter('must be zero or more', param_hint='--days')
    deleted = purge_discarded_batches(retention_days=days)
    click.echo(f'🧹 Removed {deleted} discarded batch(es)')


def register_commands(app):
    """Register CLI commands"""
    app.cli.add_command(init_db_command)
    app.cli.add_command(expiry_check_command)
    app.cli.add_command(purge_discarded_command)

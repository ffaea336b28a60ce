# Overview: Flask CLI command groups for database bootstrap, backups, and sample data.

# backend/stockly/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Backups:
# - python -m flask backups export [--password SECRET]
#   Write a full backup into the backups directory.
# - python -m flask backups import PATH [--password SECRET] [--merge]
#   Restore a backup file. Default replaces each family present in the file.
# - python -m flask backups list
#   List backup files, newest first.
# - python -m flask backups delete NAME
#   Delete one backup file from the backups directory.
#
# Sample data:
# - python -m flask sample-data load [--force]
#   Seed the Montecristo Jewellers demo dataset.

import click
from flask.cli import with_appcontext

from .extensions import db
from .services.backup_errors import BackupError
from .services.backup_service import BackupService
from .services.restore_service import ConflictPolicy
from .services.sample_data_service import SampleDataError, load_sample_data
from .services.settings_store import DatabaseSettingsStore


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create missing tables."""
    db.create_all()
    click.echo("PASS Database tables created.")


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


@click.group('backups')
def backups_group():
    """Backup export/import commands."""


@backups_group.command('export')
@click.option('--password', default=None, help='Encrypt the backup with this password')
@with_appcontext
def export_backup_cli(password):
    """Write a full backup file."""
    try:
        path = BackupService().export_all_data(password=password)
    except BackupError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Backup written: {path}")


@backups_group.command('import')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--password', default=None, help='Password for an encrypted backup')
@click.option('--merge', is_flag=True, help='Upsert by id instead of replacing each family')
@with_appcontext
def import_backup_cli(path, password, merge):
    """Restore a backup file."""
    policy = ConflictPolicy.MERGE if merge else ConflictPolicy.REPLACE
    service = BackupService()
    try:
        if password is None and service.is_backup_encrypted(path):
            password = click.prompt("Backup password", hide_input=True)
        report = service.import_all_data(path, password=password, policy=policy)
    except BackupError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Imported ({policy.value}):")
    for family, count in report.imported.items():
        click.echo(f"  {family:<12} {count}")
    if report.auto_created_categories:
        click.echo(f"  auto-created categories: {', '.join(report.auto_created_categories)}")
    for skipped in report.skipped:
        label = "child" if skipped.nested else "row"
        click.echo(f"WARN skipped {label} {skipped.family}[{skipped.index}]: {skipped.reason}")


@backups_group.command('list')
@with_appcontext
def list_backups_cli():
    """List backup files, newest first."""
    service = BackupService()
    try:
        files = service.list_backup_files()
    except BackupError as e:
        raise click.ClickException(str(e))

    if not files:
        click.echo("No backups found.")
        return

    click.echo(f"{'Name':<48} {'Size':>10}  Modified")
    click.echo("-" * 82)
    for path in files:
        info = service.describe(path)
        click.echo(f"{info['name']:<48} {info['size']:>10}  {info['modified']}")


@backups_group.command('delete')
@click.argument('name')
@with_appcontext
def delete_backup_cli(name):
    """Delete a backup file by name."""
    try:
        BackupService().delete_backup_file(name)
    except BackupError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Deleted {name}")


@click.group('sample-data')
def sample_data_group():
    """Demo dataset commands."""


@sample_data_group.command('load')
@click.option('--force', is_flag=True, help='Load even if items already exist')
@with_appcontext
def load_sample_data_cli(force):
    """Seed the Montecristo Jewellers demo dataset."""
    try:
        counts = load_sample_data(settings=DatabaseSettingsStore(), force=force)
    except SampleDataError as e:
        raise click.ClickException(str(e))
    for family, count in counts.items():
        click.echo(f"PASS {family:<12} {count}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(backups_group)
    app.cli.add_command(sample_data_group)

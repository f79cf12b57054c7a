"""Command line interface module."""

import atexit
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

import click

from .aws_client import DynamoDBDescriptionStore
from .collector import HolidayDataCollector
from .config import Config
from .constants import SUPPORTED_COUNTRIES, get_supported_country_codes, is_supported_country
from .datetime_handler import SystemClock
from .dual_cache import DualCache
from .error_handler import BaseApplicationError, ValidationError, handle_error
from .holiday_api import HolidayApiClient
from .logging_config import LogFormat, LogLevel, cleanup_logging, setup_logging
from .migration import CacheToStoreMigrator, MigrationRunLog
from .models import MigrationOptions
from .providers import create_provider_client
from .raw_cache import RawFileCache
from .retry import RetryExecutor
from .security import validate_country_code_input, validate_file_path_input, validate_year_input
from .storage import FileStorage


def build_api_client(config: Config, storage: FileStorage, clock: SystemClock) -> HolidayApiClient:
    """Wire the provider, retry policy and fallback cache from configuration."""
    provider = create_provider_client(config)
    retry = RetryExecutor(
        max_attempts=config.get('retry.max_attempts', 3),
        base_delay=config.get('retry.base_delay', 1.0),
        clock=clock
    )
    raw_cache = RawFileCache(storage, clock=clock, ttl_days=config.get('cache.raw_ttl_days', 30))
    return HolidayApiClient(provider, raw_cache, retry=retry)


def build_collector(config: Config) -> HolidayDataCollector:
    clock = SystemClock()
    storage = FileStorage(config.get_data_directory())
    api_client = build_api_client(config, storage, clock)
    cache = DualCache(
        storage,
        clock=clock,
        ttl_ms=int(config.get('cache.collector_ttl_hours', 24) * 60 * 60 * 1000)
    )
    return HolidayDataCollector(
        api_client,
        storage,
        cache=cache,
        clock=clock,
        request_delay=config.get('collection.request_delay', 0.5),
        year_delay=config.get('collection.year_delay', 5.0)
    )


def resolve_countries(countries: Tuple[str, ...], all_countries: bool) -> List[str]:
    """Validate requested country codes against the supported catalogue."""
    if all_countries:
        return get_supported_country_codes()

    resolved = []
    for code in countries:
        validated = validate_country_code_input(code)
        if not is_supported_country(validated):
            raise ValidationError(
                f"Unsupported country: {validated}. Supported: {', '.join(sorted(SUPPORTED_COUNTRIES))}",
                field='country', value=code
            )
        if validated not in resolved:
            resolved.append(validated)
    return resolved


def report_failure(error: Exception, operation: str, **context):
    """Report an error at the CLI edge and abort."""
    if isinstance(error, ValidationError):
        handle_error(error, {"operation": operation, **context})
        click.echo(f"Validation Error: {error.get_user_message()}", err=True)
    elif isinstance(error, BaseApplicationError):
        handle_error(error, {"operation": operation, **context})
        click.echo(f"Error: {error.get_user_message()}", err=True)
    else:
        wrapped = BaseApplicationError(f"{operation} failed: {error}", operation=operation, cause=error)
        handle_error(wrapped, context)
        click.echo(f"Error: {wrapped.get_user_message()}", err=True)
    raise click.Abort()


@click.group()
@click.option('--config', '-c', help='Configuration file path')
@click.option('--provider', type=click.Choice(['nager', 'calendarific']), help='Holiday API provider')
@click.option('--data-dir', help='Data directory (default: ./data)')
@click.option('--debug', is_flag=True, help='Enable debug mode with verbose logging')
@click.option('--log-level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
              default='WARNING', help='Set logging level')
@click.option('--log-format', type=click.Choice(['simple', 'detailed', 'json', 'structured']),
              default='simple', help='Set log format')
@click.pass_context
def cli(ctx, config: Optional[str], provider: Optional[str], data_dir: Optional[str],
        debug: bool, log_level: str, log_format: str):
    """Holiday data collection and description migration tool.

    Examples:
      python main.py collect -c US -c KR --year 2025
      python main.py collect-catalog --all --start-year 2026 --end-year 2030
      python main.py migrate --dry-run --verbose
    """
    ctx.ensure_object(dict)

    try:
        ctx.obj['logging_manager'] = setup_logging(
            log_level=getattr(LogLevel, log_level),
            log_format=getattr(LogFormat, log_format.upper()),
            debug_mode=debug
        )

        ctx.obj['config'] = Config(config)

        if provider:
            ctx.obj['config'].set('provider.name', provider)
        if data_dir:
            ctx.obj['config'].set('data.directory', str(validate_file_path_input(data_dir)))

    except BaseApplicationError as e:
        handle_error(e, {"operation": "cli_initialization"})
        click.echo(f"Error: {e.get_user_message()}", err=True)
        raise click.Abort()


@cli.command()
@click.option('--country', '-c', 'countries', multiple=True, help='Country code (repeatable)')
@click.option('--year', '-y', type=int, help='Year to collect (default: current year)')
@click.option('--all', 'all_countries', is_flag=True, help='Collect every supported country')
@click.option('--missing', is_flag=True, help='Collect supported countries with no data yet')
@click.option('--force', is_flag=True, help='Re-collect data that already exists')
@click.option('--skip-connection-test', is_flag=True, help='Do not test the provider before collecting')
@click.pass_context
def collect(ctx, countries: Tuple[str, ...], year: Optional[int], all_countries: bool,
            missing: bool, force: bool, skip_connection_test: bool):
    """Collect one year of holidays for one or more countries."""
    config = ctx.obj['config']
    logging_manager = ctx.obj['logging_manager']

    with logging_manager.monitor_operation("collect", {"countries": list(countries), "year": year}):
        try:
            year = validate_year_input(year or datetime.now().year)
            collector = build_collector(config)

            if missing:
                collected = set(collector.get_collected_countries())
                targets = [code for code in get_supported_country_codes() if code not in collected]
            else:
                targets = resolve_countries(countries, all_countries)

            if not targets:
                raise ValidationError("No countries to collect; use --country, --all or --missing")

            if not force:
                existing = [code for code in targets if collector.has_data(code, year)]
                if existing:
                    click.echo(f"Skipping {len(existing)} already collected: {', '.join(existing)}")
                targets = [code for code in targets if code not in existing]
                if not targets:
                    click.echo(f"All requested data for {year} is already collected.")
                    return

            if not skip_connection_test:
                click.echo("Testing provider connection...")
                if not collector.api_client.test_connection():
                    click.echo("Error: Provider connection test failed", err=True)
                    ctx.exit(1)

            click.echo(f"Collecting {year} holidays for {len(targets)} countries: {', '.join(targets)}")
            result = collector.collect_multiple_countries(targets, year)

        except click.exceptions.Exit:
            raise
        except Exception as e:
            report_failure(e, "collect", year=year)

        click.echo(f"Holidays collected: {result.holidays_collected}")
        click.echo(f"Duration: {result.duration:.2f}s")
        if result.errors:
            click.echo(f"Errors ({len(result.errors)}):")
            for error in result.errors:
                click.echo(f"  - {error}")
            ctx.exit(1)
        click.echo("Collection completed successfully")


@cli.command('collect-catalog')
@click.option('--country', '-c', 'countries', multiple=True, help='Country code (repeatable)')
@click.option('--all', 'all_countries', is_flag=True, help='Collect every supported country')
@click.option('--start-year', type=int, required=True, help='First year to collect')
@click.option('--end-year', type=int, required=True, help='Last year to collect (inclusive)')
@click.option('--force', is_flag=True, help='Re-collect data that already exists')
@click.option('--skip-connection-test', is_flag=True, help='Do not test the provider before collecting')
@click.pass_context
def collect_catalog(ctx, countries: Tuple[str, ...], all_countries: bool, start_year: int,
                    end_year: int, force: bool, skip_connection_test: bool):
    """Collect a range of years for many countries."""
    config = ctx.obj['config']

    try:
        start_year = validate_year_input(start_year)
        end_year = validate_year_input(end_year)
        if end_year < start_year:
            raise ValidationError(f"--end-year ({end_year}) is before --start-year ({start_year})",
                                  field='end_year', value=end_year)

        targets = resolve_countries(countries, all_countries)
        if not targets:
            raise ValidationError("No countries to collect; use --country or --all")

        collector = build_collector(config)
        if not skip_connection_test:
            click.echo("Testing provider connection...")
            if not collector.api_client.test_connection():
                click.echo("Error: Provider connection test failed", err=True)
                ctx.exit(1)

        years = list(range(start_year, end_year + 1))
        click.echo(f"Collecting {len(targets)} countries x {len(years)} years")
        result = collector.collect_catalog(targets, years, skip_existing=not force)

    except click.exceptions.Exit:
        raise
    except Exception as e:
        report_failure(e, "collect_catalog")

    click.echo(f"Successful: {result.successful_collections}")
    click.echo(f"Failed: {result.failed_collections}")
    click.echo(f"Skipped (existing): {result.skipped}")
    click.echo(f"Holidays collected: {result.holidays_collected}")
    click.echo(f"Duration: {result.duration:.2f}s")
    if result.errors:
        click.echo("Errors:")
        for error in result.errors:
            click.echo(f"  - {error}")
        ctx.exit(1)


@cli.command()
@click.pass_context
def stats(ctx):
    """Show statistics over collected holiday files."""
    try:
        data_dir = ctx.obj['config'].get_data_directory()
        collector = HolidayDataCollector(None, FileStorage(data_dir))
        statistics = collector.get_data_statistics()
    except Exception as e:
        report_failure(e, "stats")

    click.echo(f"Data directory: {data_dir}")
    click.echo(f"Files: {statistics.total_files}")
    click.echo(f"Holidays: {statistics.total_holidays}")
    click.echo(f"Countries ({len(statistics.countries)}): {', '.join(statistics.countries)}")
    click.echo(f"Years: {', '.join(str(y) for y in statistics.years)}")
    click.echo(f"Last updated: {statistics.last_updated or '-'}")


@cli.command('clear-cache')
@click.pass_context
def clear_cache(ctx):
    """Remove collector cache entries (memory and files)."""
    try:
        storage = FileStorage(ctx.obj['config'].get_data_directory())
        removed = HolidayDataCollector(None, storage).clear_cache()
    except Exception as e:
        report_failure(e, "clear_cache")
    click.echo(f"Cache cleared ({removed} files removed)")


@cli.command()
@click.option('--region', help='Only list countries in this region')
def countries(region: Optional[str]):
    """List supported countries."""
    for code in get_supported_country_codes(region):
        name, country_region = SUPPORTED_COUNTRIES[code]
        click.echo(f"{code}  {name} ({country_region})")


@cli.command()
@click.option('--dry-run', is_flag=True, help='Simulate without writing to the store')
@click.option('--batch-size', type=click.IntRange(min=1), help='Entries per batch (default: 50)')
@click.option('--no-skip-existing', is_flag=True, help='Insert even when a matching record exists')
@click.option('--rollback-on-error', is_flag=True, help='Delete migrated records if a batch fails')
@click.option('--verbose', '-v', is_flag=True, help='Log every migrated or skipped entry')
@click.option('--source', help='Description cache file (default: <data-dir>/ai-cache/holiday-descriptions.json)')
@click.option('--table', help='DynamoDB table name')
@click.pass_context
def migrate(ctx, dry_run: bool, batch_size: Optional[int], no_skip_existing: bool,
            rollback_on_error: bool, verbose: bool, source: Optional[str], table: Optional[str]):
    """Migrate the local description cache into DynamoDB."""
    config = ctx.obj['config']
    logging_manager = ctx.obj['logging_manager']
    migration_config = config.get_migration_config()
    aws_config = config.get_aws_config()

    options = MigrationOptions(
        dry_run=dry_run or migration_config.get('dry_run', False),
        batch_size=batch_size or migration_config.get('batch_size', 50),
        skip_existing=migration_config.get('skip_existing', True) and not no_skip_existing,
        rollback_on_error=rollback_on_error or migration_config.get('rollback_on_error', False),
        verbose=verbose or migration_config.get('verbose', False)
    )

    with logging_manager.monitor_operation("migrate", {"dry_run": options.dry_run}):
        try:
            if source:
                source_path = validate_file_path_input(source)
                storage = FileStorage(source_path.parent)
                source_key = source_path.name
                backup_key = Path(migration_config['backup_file']).name
            else:
                storage = FileStorage(config.get_data_directory())
                source_key = migration_config['source_file']
                backup_key = migration_config['backup_file']

            log_path = validate_file_path_input(migration_config['log_file'])
            clock = SystemClock()
            run_log = MigrationRunLog(FileStorage(log_path.parent), log_path.name, clock=clock)

            store = DynamoDBDescriptionStore(
                table_name=table or aws_config.get('table_name', 'holiday_descriptions'),
                region_name=aws_config.get('region'),
                profile_name=aws_config.get('profile')
            )

            migrator = CacheToStoreMigrator(
                store,
                storage,
                run_log,
                source_key=source_key,
                backup_key=backup_key,
                options=options,
                clock=clock,
                default_locale=migration_config.get('default_locale', 'ko'),
                batch_delay=migration_config.get('batch_delay', 0.1)
            )
            result = migrator.migrate()

        except Exception as e:
            report_failure(e, "migrate", dry_run=options.dry_run)

    if result.failed > 0:
        ctx.exit(1)


def cleanup_on_exit():
    """Cleanup function called on application exit."""
    cleanup_logging()


atexit.register(cleanup_on_exit)


if __name__ == '__main__':
    cli()

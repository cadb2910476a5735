"""CLI interface for S3 directory sync."""

import functools
import logging
from pathlib import Path
from typing import Any, Callable, Optional

import click

from .api import CredentialsProvider, create_s3_client
from .config import DEFAULT_CONFIG_KEY, config
from .exceptions import S3SyncConfigError, S3SyncError
from .output import OutputFormatter
from .plugin import S3Sync
from .protocols import ClientFactory

logger = logging.getLogger(__name__)

# Third-party loggers that are only useful with --verbose
_NOISY_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3")


def target_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every command that works on the configured targets."""
    options = [
        click.option(
            "--config",
            "-c",
            "config_path",
            type=click.Path(dir_okay=False, path_type=Path),
            default="serverless.yml",
            show_default=True,
            help="YAML or JSON document holding the sync targets",
        ),
        click.option(
            "--key",
            default=DEFAULT_CONFIG_KEY,
            show_default=True,
            help="Dotted key of the target list inside the document",
        ),
        click.option(
            "--env",
            "-e",
            envvar="PYS3SYNC_ENV",
            help="Active environment for OnlyForEnv rules",
        ),
        click.option(
            "--service-path",
            type=click.Path(file_okay=False, path_type=Path),
            default=None,
            help="Directory localDir is relative to (default: the config's)",
        ),
        click.option("--profile", "-p", help="AWS profile name"),
        click.option("--region", "-r", help="AWS region"),
        click.option(
            "--endpoint-url",
            help="Endpoint of an S3-compatible store",
        ),
        click.option(
            "--max-async",
            type=click.IntRange(min=1),
            default=None,
            help="Simultaneous transfers per target (default: 5)",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _client_factory(endpoint_url: Optional[str]) -> ClientFactory:
    return functools.partial(create_s3_client, endpoint_url=endpoint_url)


def _build_runner(ctx: Any, **options: Any) -> S3Sync:
    """Create the runner for a command from its options."""
    out: OutputFormatter = ctx.obj["out"]
    config_path: Path = options["config_path"]

    if not config_path.exists():
        raise S3SyncConfigError(f"Configuration file not found: {config_path}")

    kwargs: dict[str, Any] = {
        "output": out,
        "env": options["env"],
        "max_async": options["max_async"],
        "credentials_provider": CredentialsProvider(
            profile=options["profile"], region=options["region"]
        ),
        "client_factory": _client_factory(
            options["endpoint_url"] or config.endpoint_url
        ),
    }
    if options["service_path"] is not None:
        kwargs["service_path"] = options["service_path"]

    logger.debug("Loading targets from %s (key %s)", config_path, options["key"])
    return S3Sync.from_config_file(config_path, options["key"], **kwargs)


@click.group()
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--no-color", is_flag=True, help="Disable coloured output")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(package_name="pys3sync")
@click.pass_context
def main(ctx: Any, quiet: bool, no_color: bool, verbose: bool) -> None:
    """pys3sync - Synchronize local directories with S3 bucket prefixes."""
    ctx.ensure_object(dict)
    ctx.obj["out"] = OutputFormatter(quiet=quiet, no_color=no_color)
    ctx.obj["verbose"] = verbose

    # Configure logging based on verbose flag
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("pys3sync").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


@main.command()
@target_options
@click.option(
    "--dry-run", is_flag=True, help="Show what would be synced without syncing"
)
@click.pass_context
def sync(ctx: Any, dry_run: bool, **options: Any) -> None:
    """Upload changed files and remove deleted ones for every target.

    Examples:
        pys3sync sync                          # Use ./serverless.yml
        pys3sync sync -c site.yml --env prod   # Apply prod-only rules
        pys3sync sync --dry-run                # Preview the changes
    """
    out: OutputFormatter = ctx.obj["out"]

    try:
        runner = _build_runner(ctx, **options)
        all_stats = runner.sync(dry_run=dry_run)
    except S3SyncError as e:
        out.error(str(e))
        ctx.exit(1)
        return

    for stats in all_stats:
        logger.debug("Target stats: %s", stats)


@main.command()
@target_options
@click.pass_context
def plan(ctx: Any, **options: Any) -> None:
    """Show the uploads and deletions a sync would perform.

    Nothing is uploaded or deleted.
    """
    ctx.invoke(sync, dry_run=True, **options)


@main.command()
@target_options
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def clear(ctx: Any, yes: bool, **options: Any) -> None:
    """Delete every object under each target's bucket prefix.

    Local files are not touched.
    """
    out: OutputFormatter = ctx.obj["out"]

    if not yes and not click.confirm(
        "Delete all remote objects of the configured targets?", default=False
    ):
        out.warning("Clear cancelled.")
        return

    try:
        runner = _build_runner(ctx, **options)
        runner.clear()
    except S3SyncError as e:
        out.error(str(e))
        ctx.exit(1)


if __name__ == "__main__":
    main()

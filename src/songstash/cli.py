"""Async CLI for songstash.

Built with asyncclick, featuring:
- A single command group sharing config and debug options
- Lazy orchestrator initialization for commands that need the catalog
"""

from pathlib import Path

import asyncclick as click

from . import __version__
from .core import SongStash
from .plugins.loader import discover_gateways, discover_transports
from .utils.exceptions import SongStashError
from .utils.settings import AppSettings, default_config_dir, save_settings

BANNER = r"""
  ___  ___  _  _  ___  ___ _____ _   ___ _  _
 / __|/ _ \| \| |/ __|/ __|_   _/_\ / __| || |
 \__ \ (_) | .` | (_ |\__ \ | |/ _ \\__ \ __ |
 |___/\___/|_|\_|\___||___/ |_/_/ \_\___/_||_|
"""


# =============================================================================
# Helper Functions
# =============================================================================


def get_config_dir(ctx: click.Context) -> Path:
    return ctx.obj["config_dir"] or default_config_dir()


def create_songstash(ctx: click.Context) -> SongStash:
    """Creates the orchestrator from the group options.

    Args:
        ctx: Click context.

    Returns:
        A SongStash instance, not yet entered.

    Raises:
        click.ClickException: If the configuration cannot be loaded.
    """
    try:
        return SongStash(
            get_config_dir(ctx), debug_mode=True if ctx.obj["debug"] else None
        )
    except SongStashError as e:
        raise click.ClickException(str(e)) from e


# =============================================================================
# Main CLI Group
# =============================================================================


@click.group(invoke_without_command=True)
@click.option(
    "-c",
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory holding settings.toml. Defaults to the user config dir.",
)
@click.option("-d", "--debug", is_flag=True, help="Enable debug logging.")
@click.pass_context
async def cli(ctx: click.Context, config_dir: Path | None, debug: bool) -> None:
    """songstash - Catalog song resource acquisition.

    Finds, downloads and stores one playable audio file for every song of
    the catalog.

    \b
    Examples:
        songstash init
        songstash bootstrap ./exports
        songstash run --delay 5
        songstash status
    """
    ctx.ensure_object(dict)
    ctx.obj["config_dir"] = config_dir
    ctx.obj["debug"] = debug

    if ctx.invoked_subcommand is None:
        click.echo(BANNER)
        click.echo(ctx.get_help())


# =============================================================================
# Standalone Commands (no catalog required)
# =============================================================================


@cli.command("version")
def version_command() -> None:
    """Show songstash version information."""
    click.echo(f"songstash v{__version__}")
    click.echo("Catalog song resource acquisition")


@cli.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing settings file.")
@click.pass_context
def init_command(ctx: click.Context, force: bool) -> None:
    """Write a default settings.toml."""
    path = get_config_dir(ctx) / "settings.toml"
    if path.exists() and not force:
        raise click.ClickException(f"{path} already exists, use --force to overwrite")
    save_settings(path, AppSettings())
    click.echo(f"Settings written to {path}")


@cli.command("plugins")
def plugins_command() -> None:
    """List installed gateways and transports."""
    click.echo("Gateways:")
    for name in discover_gateways():
        click.echo(f"  - {name}")
    click.echo("Transports:")
    for name in discover_transports():
        click.echo(f"  - {name}")


# =============================================================================
# Catalog Commands
# =============================================================================


@cli.command("run")
@click.option(
    "--delay",
    type=click.FloatRange(min=0),
    help="Seconds between two songs. Defaults to the pacing_delay setting.",
)
@click.pass_context
async def run_command(ctx: click.Context, delay: float | None) -> None:
    """Run one acquisition pass over the pending songs."""
    try:
        async with create_songstash(ctx) as songstash:
            summary = await songstash.run_pass(delay)
    except SongStashError as e:
        raise click.ClickException(str(e)) from e

    click.echo(
        f"{summary.total} songs processed: {summary.acquired} acquired, "
        f"{summary.existing} already stored, {summary.errored} errored"
    )
    for song_id, error in summary.failures:
        click.echo(f"  song {song_id}: {error}", err=True)


@cli.command("bootstrap")
@click.argument(
    "directory",
    required=False,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.pass_context
async def bootstrap_command(ctx: click.Context, directory: Path | None) -> None:
    """Seed the catalog from raw export files in DIRECTORY."""
    try:
        async with create_songstash(ctx) as songstash:
            summary = await songstash.bootstrap(directory)
    except SongStashError as e:
        raise click.ClickException(str(e)) from e

    click.echo(
        f"{summary.added} songs added from {summary.files} files "
        f"({summary.skipped} already present)"
    )


@cli.command("status")
@click.pass_context
async def status_command(ctx: click.Context) -> None:
    """Show catalog counts by acquisition state."""
    try:
        async with create_songstash(ctx) as songstash:
            counts = await songstash.status()
    except SongStashError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Pending:   {counts.pending}")
    click.echo(f"Resolved:  {counts.resolved}")
    click.echo(f"Errored:   {counts.errored}")
    click.echo(f"Resources: {counts.resources}")


@cli.command("reset-errored")
@click.confirmation_option(prompt="Make every errored song pending again?")
@click.pass_context
async def reset_errored_command(ctx: click.Context) -> None:
    """Make errored songs pending again."""
    try:
        async with create_songstash(ctx) as songstash:
            count = await songstash.reset_errored()
    except SongStashError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"{count} songs reset")


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """Main entry point for the songstash CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\n\t^C pressed - abort")
        raise SystemExit(1) from None


if __name__ == "__main__":
    main()

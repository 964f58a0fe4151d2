"""
Command-line interface for spot-library.

This module implements the CLI using Click, providing the commands that
aggregate, browse and summarize a Spotify library.
rich-click is used for the output colors.

Commands:
    spot-library get                        Aggregate every playlist into library.json
    spot-library get --playlist <id>        Aggregate only the given playlist(s)
    spot-library playlists                  List playlists, one page at a time
    spot-library play <playlist>            Start playback of a playlist
    spot-library stats                      Summarize a saved library file

Usage:
    # Aggregate the whole library with 4 concurrent playlist walks
    spot-library get --workers 4

    # Aggregate two playlists into a separate file
    spot-library get --playlist 37i9dQZF1DXcBWIGoYBM5M \\
                     --playlist https://open.spotify.com/playlist/... \\
                     --output ~/two-playlists.json

    # Show the first three pages of playlists, then play the 5th
    spot-library playlists --pages 3
    spot-library play 5

Configuration:
    The CLI requires a config.yaml file in the current directory (or the
    path given with --config) with:
    - Spotify API credentials (client_id, client_secret)
    - Output directory path
    - Optional fetch settings (page sizes, workers, timeout, retries)

    Setting SPOTIFY_ACCESS_TOKEN skips the OAuth login and uses that token
    as is.

Exit Codes:
    0    success
    1    configuration error (or unexpected error)
    2    library file could not be written or read
    3    Spotify request failed
    4    other spot-library error (e.g. playback)
    5    some playlists could not be aggregated (the rest was saved)
    130  interrupted
"""

import os
import sys
import threading
from dataclasses import replace
from pathlib import Path
from typing import Callable, Optional

import rich_click as click

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = ""
click.rich_click.MAX_WIDTH = 100

from spot_library import __version__
from spot_library.core import (
    Config,
    ConfigError,
    FetchError,
    LibraryProgressBar,
    LibraryStoreError,
    PartialAggregationError,
    ProtocolMismatchError,
    SpotLibraryError,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from spot_library.core.logger import format_summary_line
from spot_library.library import (
    AggregationResult,
    LibraryStore,
    PlaylistSelection,
    aggregate_library,
    index_stats,
)
from spot_library.spotify import (
    CredentialProvider,
    OAuthCredentialProvider,
    SpotifyClient,
    StaticCredentialProvider,
    playlist_fetcher,
)
from spot_library.utils import cancel_on_interrupt, ensure_directory, extract_playlist_id

logger = get_logger(__name__)

ACCESS_TOKEN_ENV = "SPOTIFY_ACCESS_TOKEN"

# Exit codes
EXIT_CONFIG = 1
EXIT_STORE = 2
EXIT_FETCH = 3
EXIT_OTHER = 4
EXIT_PARTIAL = 5
EXIT_INTERRUPTED = 130


@click.group(invoke_without_command=True)
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml)"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Show debug messages on the console"
)
@click.option(
    "--version",
    is_flag=True,
    help="Show version and exit."
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool, version: bool) -> None:
    """
    spot-library: Aggregate your Spotify playlists into one track library.

    Walks every playlist you own or follow and writes a deduplicated
    library where each track lists all the playlists it appears in.

    \b
    BASIC USAGE:
        spot-library get                       # Aggregate everything
        spot-library playlists                 # Browse playlists
        spot-library play 3                    # Play the 3rd playlist
        spot-library stats                     # Summarize library.json
    """
    if version:
        click.echo(f"spot-library {__version__}")
        ctx.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(0)

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


# =============================================================================
# Commands
# =============================================================================

@cli.command()
@click.option(
    "--playlist", "playlists",
    multiple=True,
    metavar="<id|url>",
    help="Only aggregate this playlist (repeatable)"
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="<file.json>",
    help="Library file to write (default: from config)"
)
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=None,
    help="Playlists fetched concurrently (default: from config)"
)
@click.pass_context
def get(
    ctx: click.Context,
    playlists: tuple[str, ...],
    output: Optional[Path],
    workers: Optional[int]
) -> None:
    """Aggregate your playlists into the library file."""
    playlist_ids = None
    if playlists:
        playlist_ids = []
        for value in playlists:
            playlist_id = extract_playlist_id(value)
            if playlist_id is None:
                raise click.BadParameter(
                    f"'{value}' is not a Spotify playlist id, URL or URI",
                    param_hint="--playlist"
                )
            playlist_ids.append(playlist_id)

    def run(config: Config) -> None:
        _run_get(config, playlist_ids, output, workers)

    _run_command(ctx, run)


@cli.command(name="playlists")
@click.option(
    "--pages",
    type=click.IntRange(min=1),
    default=1,
    help="Number of pages to load"
)
@click.option(
    "--all", "load_all",
    is_flag=True,
    help="Load every page"
)
@click.pass_context
def list_playlists(ctx: click.Context, pages: int, load_all: bool) -> None:
    """List your playlists, one page at a time."""

    def run(config: Config) -> None:
        _initialize_spotify(config)
        selection = _new_selection(config)

        loaded = 0
        while selection.has_more and (load_all or loaded < pages):
            selection.load_next_page()
            loaded += 1

        for number, playlist in enumerate(selection.playlists, start=1):
            owner = playlist.owner.display_name or playlist.owner.spotify_id
            click.echo(f"{number:>4}  {playlist.name}  ({owner}, {playlist.track_total} tracks)")

        click.echo(f"Showing {len(selection.playlists)} of {selection.total} playlists")
        if selection.has_more:
            click.echo("Use --pages or --all to load more")

    _run_command(ctx, run)


@cli.command()
@click.argument("playlist", metavar="<playlist>")
@click.option(
    "--device",
    default=None,
    metavar="<device-id>",
    help="Spotify Connect device to play on (default: active device)"
)
@click.pass_context
def play(ctx: click.Context, playlist: str, device: Optional[str]) -> None:
    """
    Start playback of a playlist.

    <playlist> is a playlist id, URL or URI, or its number in the
    'playlists' listing.
    """

    def run(config: Config) -> None:
        _initialize_spotify(config)
        selection = _new_selection(config)
        index = _resolve_playlist(selection, playlist)
        message = selection.play(index, device_id=device)
        click.echo(message)
        logger.debug(message)

    _run_command(ctx, run)


@cli.command()
@click.option(
    "--file", "library_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="<file.json>",
    help="Library file to read (default: from config)"
)
@click.pass_context
def stats(ctx: click.Context, library_file: Optional[Path]) -> None:
    """Summarize a saved library file."""

    def run(config: Config) -> None:
        path = library_file or config.output.library_file
        index = LibraryStore(path).load()
        _print_library_stats(index_stats(index), path)

    _run_command(ctx, run)


# =============================================================================
# Workflow
# =============================================================================

def _run_command(ctx: click.Context, command: Callable[[Config], None]) -> None:
    """
    Load configuration, set up logging, run the command, map errors to exit codes.

    Args:
        ctx: Click context holding the group options.
        command: The command body, called with the loaded Config.

    Raises:
        SystemExit: On any error (with the exit code of its class).
    """
    options = ctx.obj or {}

    try:
        config = load_config(options.get("config_path"))

        ensure_directory(config.output.directory)
        setup_logging(config.output.directory, verbose=options.get("verbose", False))
        logger.debug(f"spot-library {__version__} starting")

        command(config)

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(EXIT_CONFIG)

    except LibraryStoreError as e:
        click.echo(f"Library file error: {e.message}", err=True)
        logger.error(f"Library file error: {e.message}", exc_info=True)
        sys.exit(EXIT_STORE)

    except (FetchError, ProtocolMismatchError) as e:
        click.echo(f"Spotify error: {e.message}", err=True)
        if isinstance(e, FetchError) and e.is_auth_error:
            click.echo(
                "Check your client_id and client_secret in config.yaml, "
                "or delete the token cache to log in again",
                err=True
            )
        logger.error(f"Spotify error: {e.message}", exc_info=True)
        sys.exit(EXIT_FETCH)

    except PartialAggregationError as e:
        click.echo(f"Incomplete library: {e.message}", err=True)
        for failure in e.failures:
            click.echo(f"  {failure.playlist_name} ({failure.playlist_id}): {failure.error}", err=True)
        logger.warning(f"Incomplete library: {e.message}")
        sys.exit(EXIT_PARTIAL)

    except SpotLibraryError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}", exc_info=True)
        sys.exit(EXIT_OTHER)

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        sys.exit(EXIT_INTERRUPTED)

    except click.ClickException:
        raise

    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error")
        sys.exit(1)

    finally:
        shutdown_logging()


def _run_get(
    config: Config,
    playlist_ids: list[str] | None,
    output: Path | None,
    workers: int | None
) -> None:
    """
    Aggregate the library and write it.

    A partial library (some playlists failed, or Ctrl+C) is still written
    before the failure is reported.

    Raises:
        PartialAggregationError: If some playlists failed.
        KeyboardInterrupt: If the run was cancelled.
    """
    fetch_config = config.fetch
    if workers is not None:
        fetch_config = replace(config.fetch, workers=workers)

    _initialize_spotify(config)

    logger.info("=" * 60)
    logger.info("Aggregating Spotify library")
    logger.info("=" * 60)

    cancel_event = threading.Event()
    with LibraryProgressBar() as progress, cancel_on_interrupt(cancel_event):
        result = aggregate_library(
            SpotifyClient(),
            fetch_config,
            playlist_ids=playlist_ids,
            reporter=progress,
            cancel_event=cancel_event,
        )

    path = output or config.output.library_file
    LibraryStore(path).save(result.index)
    logger.info(f"Library saved to {path}")

    _print_aggregation_stats(result)

    if result.cancelled:
        raise KeyboardInterrupt
    result.raise_for_failures()


def _credentials(config: Config) -> CredentialProvider:
    token = os.environ.get(ACCESS_TOKEN_ENV)
    if token:
        logger.debug(f"Using access token from {ACCESS_TOKEN_ENV}")
        return StaticCredentialProvider(token)

    return OAuthCredentialProvider(
        client_id=config.spotify.client_id,
        client_secret=config.spotify.client_secret,
        redirect_uri=config.spotify.redirect_uri,
        cache_path=config.spotify.cache_path,
    )


def _initialize_spotify(config: Config) -> None:
    """
    Initialize the Spotify client singleton.

    Raises:
        FetchError: If authentication fails.
    """
    SpotifyClient.init(
        credentials=_credentials(config),
        timeout=config.fetch.timeout,
        retries=config.fetch.retries,
    )


def _new_selection(config: Config) -> PlaylistSelection:
    client = SpotifyClient()
    return PlaylistSelection(
        playlist_fetcher(client),
        client,
        page_size=config.fetch.playlist_page_size,
    )


def _resolve_playlist(selection: PlaylistSelection, value: str) -> int:
    """
    Load pages until the playlist named by value is loaded.

    Returns:
        Index of the playlist in selection.playlists.

    Raises:
        click.BadParameter: If value names no playlist of the user.
    """
    if value.isdigit():
        number = int(value)
        if number < 1:
            raise click.BadParameter("playlist numbers start at 1", param_hint="<playlist>")
        while len(selection.playlists) < number and selection.has_more:
            selection.load_next_page()
        if len(selection.playlists) < number:
            raise click.BadParameter(
                f"you have {len(selection.playlists)} playlists, not {number}",
                param_hint="<playlist>"
            )
        return number - 1

    playlist_id = extract_playlist_id(value)
    if playlist_id is None:
        raise click.BadParameter(
            f"'{value}' is not a playlist number, id, URL or URI",
            param_hint="<playlist>"
        )

    index = selection.find(playlist_id)
    while index is None and selection.has_more:
        selection.load_next_page()
        index = selection.find(playlist_id)
    if index is None:
        raise click.BadParameter(
            f"playlist {playlist_id} is not in your library",
            param_hint="<playlist>"
        )
    return index


# =============================================================================
# Statistics
# =============================================================================

def _print_aggregation_stats(result: AggregationResult) -> None:
    """
    Print the summary of an aggregation run.

    Output:
        Playlists walked, unique tracks, memberships, skipped entries
        and failed playlists.
    """
    logger.info("=" * 60)
    logger.info("LIBRARY STATISTICS")
    logger.info("=" * 60)
    logger.info(format_summary_line("Playlists", len(result.playlists)))
    logger.info(format_summary_line("Unique tracks", len(result.index)))
    logger.info(format_summary_line("Memberships", result.membership_count))
    logger.info(format_summary_line("Skipped entries", result.skipped))
    logger.info(format_summary_line("Failed playlists", len(result.failures)))
    if result.cancelled:
        logger.info(format_summary_line("Status", "cancelled (partial library)"))
    logger.info("=" * 60)


def _print_library_stats(stats: dict[str, int], path: Path) -> None:
    logger.info("=" * 60)
    logger.info(f"LIBRARY {path}")
    logger.info("=" * 60)
    logger.info(format_summary_line("Playlists", stats["playlists"]))
    logger.info(format_summary_line("Unique tracks", stats["tracks"]))
    logger.info(format_summary_line("Memberships", stats["memberships"]))
    logger.info(format_summary_line("In 2+ playlists", stats["shared"]))
    logger.info(format_summary_line("Local files", stats["local"]))
    logger.info("=" * 60)


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `spot-library` from the command line.
    It invokes the Click CLI group.
    """
    cli()


if __name__ == "__main__":
    main()

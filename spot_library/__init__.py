"""
spot-library: Aggregate your Spotify playlists into one deduplicated track library.

This package walks every playlist of the logged-in Spotify user, page by
page, and folds the tracks into a single index keyed by track identity.
Every track records each playlist it appears in, with when and by whom it
was added.

Architecture:
    spotify/: Talk to the Spotify Web API
        - SpotifyClient singleton over spotipy
        - Page fetchers: one page per call, errors mapped to FetchError
        - Pager: walks a paginated listing to its end, never raises for a page

    library/: Build and keep the index
        - TrackPlaylistAggregator: playlist listing, then one walk per
          playlist, folded into the TrackIndex by a single writer
        - PlaylistSelection: page through playlists, select, play
        - LibraryStore: library.json

Modules:
    core/       - Configuration, logging, progress, exceptions
    spotify/    - Spotify API client, fetchers and pager
    library/    - Aggregation, index, selection, persistence
    utils/      - Small helpers used by the CLI
    cli.py      - Command-line interface

Usage:
    Command Line:
        spot-library get
        spot-library get --playlist 37i9dQZF1DXcBWIGoYBM5M --workers 4
        spot-library playlists
        spot-library play 3
        spot-library stats

    Python API:
        from spot_library.core import load_config, setup_logging
        from spot_library.spotify import SpotifyClient, OAuthCredentialProvider
        from spot_library.library import aggregate_library, LibraryStore

        config = load_config()
        setup_logging(config.output.directory)

        SpotifyClient.init(OAuthCredentialProvider(
            config.spotify.client_id,
            config.spotify.client_secret,
            config.spotify.redirect_uri,
            config.spotify.cache_path,
        ))

        result = aggregate_library(SpotifyClient(), config.fetch)
        LibraryStore(config.output.library_file).save(result.index)

Configuration:
    Requires a config.yaml file in the current directory:

        spotify:
          client_id: "your_client_id"
          client_secret: "your_client_secret"

        output:
          directory: "~/Music/SpotLibrary"

        fetch:
          workers: 4

Dependencies:
    - spotipy: Spotify API client
    - requests: HTTP transport under spotipy
    - click: CLI framework
    - rich-click: CLI colors
    - rich: Progress bars
    - tqdm: Log output that does not break progress bars
    - pyyaml: Configuration file parsing
"""

__version__ = "0.1.0"
__author__ = "spot-library"
__license__ = "MIT"

# Convenience imports for common usage
from spot_library.core import (
    Config,
    ConfigError,
    FetchError,
    FetchErrorKind,
    LibraryStoreError,
    PartialAggregationError,
    PlaybackError,
    ProtocolMismatchError,
    SpotLibraryError,
    get_logger,
    load_config,
    setup_logging,
)
from spot_library.library import (
    AggregationResult,
    LibraryStore,
    PlaylistSelection,
    TrackPlaylistAggregator,
    TrackRecord,
    aggregate_library,
)
from spot_library.spotify import Pager, Playlist, SpotifyClient, Track

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "setup_logging",
    "get_logger",
    # Exceptions
    "SpotLibraryError",
    "ConfigError",
    "LibraryStoreError",
    "FetchError",
    "FetchErrorKind",
    "ProtocolMismatchError",
    "PartialAggregationError",
    "PlaybackError",
    # Spotify
    "SpotifyClient",
    "Pager",
    "Track",
    "Playlist",
    # Library
    "TrackPlaylistAggregator",
    "aggregate_library",
    "AggregationResult",
    "TrackRecord",
    "PlaylistSelection",
    "LibraryStore",
]

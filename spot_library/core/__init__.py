"""
Core module for spot-library.

This module provides the foundational components used throughout the application:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - logger: Logging system with multiple outputs
    - progress: Rich progress reporting

Usage:
    from spot_library.core import (
        Config, load_config,
        setup_logging, get_logger,
        SpotLibraryError, ConfigError, FetchError
    )
"""

from spot_library.core.config import (
    Config,
    FetchConfig,
    OutputConfig,
    SpotifyConfig,
    load_config,
)
from spot_library.core.exceptions import (
    ConfigError,
    FetchError,
    FetchErrorKind,
    LibraryStoreError,
    PartialAggregationError,
    PlaybackError,
    ProtocolMismatchError,
    SpotLibraryError,
)
from spot_library.core.logger import (
    get_logger,
    log_playlist_failure,
    setup_logging,
    shutdown_logging,
)
from spot_library.core.progress import LibraryProgressBar, ProgressReporter

__all__ = [
    # Config
    "Config",
    "SpotifyConfig",
    "OutputConfig",
    "FetchConfig",
    "load_config",
    # Exceptions
    "SpotLibraryError",
    "ConfigError",
    "LibraryStoreError",
    "FetchError",
    "FetchErrorKind",
    "ProtocolMismatchError",
    "PartialAggregationError",
    "PlaybackError",
    # Logging
    "get_logger",
    "log_playlist_failure",
    "setup_logging",
    "shutdown_logging",
    # Progress
    "ProgressReporter",
    "LibraryProgressBar",
]

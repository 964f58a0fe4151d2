"""
Exception classes for spot-library.

This module defines all custom exceptions used throughout the application.
Each exception carries a human-readable message plus a details dictionary
with enough context (playlist id, cursor, error kind) to report to a human.

Exception Hierarchy:
    SpotLibraryError (base)
        ConfigError - Configuration file issues
        LibraryStoreError - Library file read/write issues
        FetchError - One page fetch failed (network, auth, malformed)
        ProtocolMismatchError - Continuation cursor points at the wrong resource
        PartialAggregationError - Some playlists could not be aggregated
        PlaybackError - Starting playback failed
"""

from enum import Enum
from typing import Any


class SpotLibraryError(Exception):
    """
    Base exception for all spot-library errors.

    All custom exceptions in this project inherit from this class,
    allowing callers to catch all spot-library errors with a single
    except clause if desired.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., playlist id, URL).

    Example:
        try:
            # some operation
        except SpotLibraryError as e:
            logger.error(f"Operation failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'playlist_id': Spotify playlist ID involved in the error
                     - 'url': URL or continuation cursor that caused the error
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(SpotLibraryError):
    """
    Raised when there's an issue with the configuration file.

    This is a CRITICAL error that should stop program execution.

    Common causes:
        - config.yaml not found
        - config.yaml has invalid YAML syntax
        - Required fields missing (client_id, client_secret, output directory)
        - Invalid field values (e.g., page size above the API maximum)
    """
    pass


class LibraryStoreError(SpotLibraryError):
    """
    Raised when the library file cannot be written or read back.

    Common causes:
        - Permission denied or disk full while writing
        - library.json is corrupted (invalid JSON)
        - library.json does not have the expected structure
    """
    pass


class FetchErrorKind(Enum):
    """Why a single page fetch failed."""

    NETWORK = "network"
    AUTH_FAILURE = "auth_failure"
    MALFORMED = "malformed"


class FetchError(SpotLibraryError):
    """
    Raised by the page fetcher when one page could not be retrieved.

    A FetchError is fatal to the current page only. The pager stops the
    walk it belongs to and hands the partial collection back together with
    this error; it never retries on its own (retries are a transport concern
    configured on spotipy).

    Attributes:
        kind: The FetchErrorKind subkind.
        is_rate_limit: True if the server answered 429.

    Example:
        raise FetchError(
            "Failed to fetch playlist items: read timed out",
            kind=FetchErrorKind.NETWORK,
            details={'playlist_id': playlist_id}
        )
    """

    def __init__(
        self,
        message: str,
        kind: FetchErrorKind = FetchErrorKind.NETWORK,
        details: dict | None = None,
        is_rate_limit: bool = False
    ) -> None:
        """
        Initialize fetch error with its subkind.

        Args:
            message: Human-readable error description.
            kind: Which of network, auth failure or malformed response occurred.
            details: Optional dictionary with additional context.
            is_rate_limit: Set to True if the request was rate limited (HTTP 429).
        """
        super().__init__(message, details)
        self.kind = kind
        self.is_rate_limit = is_rate_limit

    @property
    def is_auth_error(self) -> bool:
        """True when the credential was rejected."""
        return self.kind is FetchErrorKind.AUTH_FAILURE


class ProtocolMismatchError(SpotLibraryError):
    """
    Raised by the pager when a continuation cursor resolves to a different
    resource kind than the walk expects (for example a search endpoint while
    walking the playlist listing).

    The mismatched page is never fetched, so no foreign items end up in the
    collection.
    """
    pass


class PartialAggregationError(SpotLibraryError):
    """
    Raised when an aggregation run finished but some playlists failed.

    This is a reportable outcome, not a crash: the index built from every
    playlist that succeeded is attached and can still be persisted.

    Attributes:
        index: Immutable mapping of track identity to TrackRecord.
        failed_playlist_ids: Ids of the playlists whose walk failed, in order.
        failures: The PlaylistFailure records (playlist, error) behind the ids.
    """

    def __init__(
        self,
        message: str,
        index: Any,
        failures: tuple[Any, ...] = (),
        details: dict | None = None
    ) -> None:
        super().__init__(message, details)
        self.index = index
        self.failures = tuple(failures)
        self.failed_playlist_ids = tuple(f.playlist_id for f in self.failures)


class PlaybackError(SpotLibraryError):
    """
    Raised when playback of a selection could not be started.

    Common causes:
        - No active Spotify device
        - Account without Premium (403 from the player endpoint)
    """
    pass

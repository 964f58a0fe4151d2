"""
Spotify API client singleton for spot-library.

This module provides a singleton wrapper around the spotipy library,
ensuring that only one Spotify client instance exists throughout
the application lifetime.

Singleton Pattern:
    SpotifyClient uses the singleton pattern - it must be initialized
    once with init(), and subsequent calls to SpotifyClient() return
    the same instance. Attempting to call init() twice raises an error.

Error Mapping:
    Every call maps spotipy/requests failures to FetchError:
        401, 403, OAuth errors      -> AUTH_FAILURE
        other HTTP errors, timeouts -> NETWORK (429 sets is_rate_limit)
    Responses that are not objects are left to Page.from_api, which
    rejects them as MALFORMED.

Usage:
    from spot_library.spotify.client import SpotifyClient

    SpotifyClient.init(credentials=provider, timeout=10, retries=3)

    client = SpotifyClient()
    first = client.current_user_playlists(limit=50)
    second = client.next_page(first["next"])
"""

from typing import Any

import requests
import spotipy
from spotipy.oauth2 import SpotifyOauthError

from spot_library.core.exceptions import FetchError, FetchErrorKind, PlaybackError
from spot_library.core.logger import get_logger
from spot_library.spotify.credentials import CredentialProvider, SpotipyAuthManager

logger = get_logger(__name__)

_AUTH_STATUSES = (401, 403)


def _translate_error(error: Exception, message: str, details: dict[str, Any]) -> FetchError:
    """Map a spotipy/requests/OAuth exception to a FetchError subkind."""
    details = {**details, "original_error": str(error)}

    if isinstance(error, SpotifyOauthError):
        return FetchError(
            f"{message}: authentication failed ({error})",
            kind=FetchErrorKind.AUTH_FAILURE,
            details=details
        )

    if isinstance(error, spotipy.SpotifyException):
        details["http_status"] = error.http_status
        if error.http_status in _AUTH_STATUSES:
            return FetchError(
                f"{message}: access token rejected (HTTP {error.http_status})",
                kind=FetchErrorKind.AUTH_FAILURE,
                details=details
            )
        if error.http_status == 429:
            return FetchError(
                f"{message}: rate limited",
                kind=FetchErrorKind.NETWORK,
                details=details,
                is_rate_limit=True
            )
        return FetchError(
            f"{message}: {error.msg or error}",
            kind=FetchErrorKind.NETWORK,
            details=details
        )

    return FetchError(
        f"{message}: {error}",
        kind=FetchErrorKind.NETWORK,
        details=details
    )


class SpotifyClientMeta(type):
    """
    Metaclass implementing the singleton pattern for SpotifyClient.

    This metaclass ensures:
    1. SpotifyClient cannot be instantiated before init() is called
    2. init() can only be called once
    3. After init(), SpotifyClient() always returns the same instance
    """

    _instance: "SpotifyClient | None" = None
    _initialized: bool = False

    def __call__(cls) -> "SpotifyClient":
        """
        Get the SpotifyClient singleton instance.

        Raises:
            FetchError: AUTH_FAILURE if init() has not been called yet.
        """
        if cls._instance is None:
            raise FetchError(
                "SpotifyClient not initialized. Call SpotifyClient.init() first.",
                kind=FetchErrorKind.AUTH_FAILURE
            )
        return cls._instance

    def init(
        cls,
        credentials: CredentialProvider,
        timeout: float = 10,
        retries: int = 3
    ) -> "SpotifyClient":
        """
        Initialize the SpotifyClient singleton.

        Args:
            credentials: Provider asked for a bearer token before every request.
            timeout: Request timeout in seconds.
            retries: Transport-level retries performed by spotipy/urllib3.
                     The pager never retries on top of these.

        Returns:
            The initialized SpotifyClient singleton instance.

        Raises:
            FetchError: If init() has already been called (singleton violation).
            FetchError: If the connection test (fetching the current user) fails.
        """
        if cls._initialized:
            raise FetchError(
                "SpotifyClient.init() has already been called. "
                "Use SpotifyClient() to get the existing instance.",
                kind=FetchErrorKind.AUTH_FAILURE
            )

        spotify_instance = spotipy.Spotify(
            auth_manager=SpotipyAuthManager(credentials),
            requests_timeout=timeout,
            retries=retries,
            status_retries=retries,
        )

        # Test connection (and trigger the OAuth flow on first run)
        try:
            user = spotify_instance.current_user()
        except (spotipy.SpotifyException, SpotifyOauthError, requests.RequestException) as e:
            raise _translate_error(e, "Spotify authentication failed", {}) from e

        instance = super().__call__(spotify_instance, (user or {}).get("id"))
        cls._instance = instance
        cls._initialized = True
        logger.debug(f"Spotify client ready for user {instance.user_id}")

        return instance

    def is_initialized(cls) -> bool:
        return cls._initialized

    def reset(cls) -> None:
        """
        Reset the singleton state (for testing only).
        """
        cls._instance = None
        cls._initialized = False


class SpotifyClient(metaclass=SpotifyClientMeta):
    """
    Singleton Spotify API client.

    Wraps spotipy.Spotify and exposes exactly the calls the library needs:
    the two listings it paginates, verbatim continuation fetches, and
    starting playback of a selection.

    Thread Safety:
        The listing calls only read; spotipy's requests session is shared
        between the aggregator's worker threads.
    """

    def __init__(self, spotify_instance: spotipy.Spotify, user_id: str | None = None) -> None:
        """
        Note:
            Called by the metaclass init() method. Do not call directly.
        """
        self._spotify = spotify_instance
        self.user_id = user_id

    # =========================================================================
    # Paginated listings
    # =========================================================================

    def current_user_playlists(self, limit: int = 50, offset: int = 0) -> Any:
        """
        Get one page of the playlists owned by or followed by the current user.

        Returns:
            The raw paging object (items, total, offset, next, ...).

        Raises:
            FetchError: On network, HTTP or authentication failure.
        """
        try:
            return self._spotify.current_user_playlists(limit=min(limit, 50), offset=offset)
        except (spotipy.SpotifyException, SpotifyOauthError, requests.RequestException) as e:
            raise _translate_error(
                e, "Failed to fetch playlists", {"limit": limit, "offset": offset}
            ) from e

    def playlist_items(self, playlist_id: str, limit: int = 100, offset: int = 0) -> Any:
        """
        Get one page of a playlist's items.

        Only tracks are requested; podcast episodes come back as null or
        as episode objects and are skipped by the aggregator.

        Raises:
            FetchError: On network, HTTP or authentication failure.
        """
        try:
            return self._spotify.playlist_items(
                playlist_id,
                limit=min(limit, 100),
                offset=offset,
                additional_types=("track",)
            )
        except (spotipy.SpotifyException, SpotifyOauthError, requests.RequestException) as e:
            raise _translate_error(
                e,
                "Failed to fetch playlist items",
                {"playlist_id": playlist_id, "limit": limit, "offset": offset}
            ) from e

    def next_page(self, cursor: str) -> Any:
        """
        Fetch the page behind a continuation cursor.

        The cursor is the previous page's 'next' URL and is requested
        verbatim; nothing is rebuilt from it.

        Raises:
            FetchError: On network, HTTP or authentication failure.
        """
        try:
            return self._spotify.next({"next": cursor})
        except (spotipy.SpotifyException, SpotifyOauthError, requests.RequestException) as e:
            raise _translate_error(e, "Failed to fetch next page", {"url": cursor}) from e

    # =========================================================================
    # Playback
    # =========================================================================

    def start_playback(self, context_uri: str, device_id: str | None = None) -> None:
        """
        Start playing a context (playlist, album) on the user's device.

        Raises:
            PlaybackError: If no device is active, the account cannot
                           control playback, or the request fails.
        """
        try:
            self._spotify.start_playback(device_id=device_id, context_uri=context_uri)
        except spotipy.SpotifyException as e:
            if e.http_status == 404:
                reason = "no active Spotify device found"
            elif e.http_status == 403:
                reason = "playback control requires Spotify Premium"
            else:
                reason = str(e.msg or e)
            raise PlaybackError(
                f"Failed to start playback: {reason}",
                details={"context_uri": context_uri, "device_id": device_id,
                         "http_status": e.http_status}
            ) from e
        except (SpotifyOauthError, requests.RequestException) as e:
            raise PlaybackError(
                f"Failed to start playback: {e}",
                details={"context_uri": context_uri, "original_error": str(e)}
            ) from e

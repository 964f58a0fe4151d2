"""
Credential providers for the Spotify Web API.

The page fetcher asks a CredentialProvider for a bearer token before every
request. How the token is obtained or refreshed is the provider's business;
the library core never refreshes on its own. A stale token simply makes
the next request fail with FetchError(AUTH_FAILURE).

spotipy asks its auth manager for a token on every request, so the
provider is plugged into spotipy through SpotipyAuthManager.
"""

from pathlib import Path
from typing import Protocol

from spotipy.cache_handler import CacheFileHandler
from spotipy.oauth2 import SpotifyOAuth


# Read the library, start playback of a selection
OAUTH_SCOPE = (
    "playlist-read-private "
    "playlist-read-collaborative "
    "user-modify-playback-state"
)


class CredentialProvider(Protocol):
    """Source of the bearer token attached to every request."""

    def current_access_token(self) -> str:
        ...


class OAuthCredentialProvider:
    """
    Authorization-code flow via spotipy.oauth2.SpotifyOAuth.

    The first run opens a browser for the user to log in; afterwards the
    token is read from (and refreshed into) the cache file.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        cache_path: Path,
        scope: str = OAUTH_SCOPE,
        open_browser: bool = True
    ) -> None:
        self._oauth = SpotifyOAuth(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=redirect_uri,
            scope=scope,
            cache_handler=CacheFileHandler(cache_path=str(cache_path)),
            open_browser=open_browser,
        )

    def current_access_token(self) -> str:
        return self._oauth.get_access_token(as_dict=False)


class StaticCredentialProvider:
    """Fixed token, e.g. one exported in SPOTIFY_ACCESS_TOKEN."""

    def __init__(self, token: str) -> None:
        self._token = token

    def current_access_token(self) -> str:
        return self._token


class SpotipyAuthManager:
    """Adapts a CredentialProvider to spotipy's auth_manager interface."""

    def __init__(self, provider: CredentialProvider) -> None:
        self._provider = provider

    def get_access_token(self, as_dict: bool = False) -> str:
        return self._provider.current_access_token()

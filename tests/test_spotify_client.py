"""Test the Spotify client wrapper and page fetchers"""

from unittest.mock import Mock, patch

import pytest
import requests
import spotipy
from spotipy.oauth2 import SpotifyOauthError

from conftest import playlist_object
from spot_library.core.exceptions import FetchError, FetchErrorKind, PlaybackError
from spot_library.spotify.client import SpotifyClient
from spot_library.spotify.credentials import SpotipyAuthManager, StaticCredentialProvider
from spot_library.spotify.fetcher import playlist_fetcher, playlist_items_fetcher
from spot_library.spotify.models import PageQuery


NEXT_URL = "https://api.spotify.com/v1/users/owner1/playlists?offset=50&limit=50"


@pytest.fixture
def spotify():
    """Patched spotipy.Spotify instance behind an initialized SpotifyClient"""
    with patch("spot_library.spotify.client.spotipy.Spotify") as spotify_class:
        instance = spotify_class.return_value
        instance.current_user.return_value = {"id": "owner1"}
        SpotifyClient.init(StaticCredentialProvider("token"), timeout=5, retries=2)
        yield instance


def http_error(status, msg="error"):
    return spotipy.SpotifyException(status, -1, msg)


class TestSingleton:
    """Test SpotifyClient singleton behavior"""

    def test_not_initialized(self):
        """Test using the client before init()"""
        assert not SpotifyClient.is_initialized()
        with pytest.raises(FetchError):
            SpotifyClient()

    def test_init_once(self, spotify):
        """Test init() returns the singleton and cannot run twice"""
        assert SpotifyClient.is_initialized()
        assert SpotifyClient().user_id == "owner1"

        with pytest.raises(FetchError):
            SpotifyClient.init(StaticCredentialProvider("token"))

    def test_init_configures_spotipy(self):
        """Test timeout, retries and the auth manager are passed to spotipy"""
        with patch("spot_library.spotify.client.spotipy.Spotify") as spotify_class:
            spotify_class.return_value.current_user.return_value = {"id": "me"}
            SpotifyClient.init(StaticCredentialProvider("abc"), timeout=7, retries=4)

        kwargs = spotify_class.call_args.kwargs
        assert kwargs["requests_timeout"] == 7
        assert kwargs["retries"] == 4
        assert kwargs["auth_manager"].get_access_token(as_dict=False) == "abc"

    def test_init_auth_failure(self):
        """Test a rejected token during init()"""
        with patch("spot_library.spotify.client.spotipy.Spotify") as spotify_class:
            spotify_class.return_value.current_user.side_effect = http_error(401)

            with pytest.raises(FetchError) as excinfo:
                SpotifyClient.init(StaticCredentialProvider("bad"))

        assert excinfo.value.is_auth_error
        assert not SpotifyClient.is_initialized()


class TestCredentials:
    """Test the token is asked for on every request"""

    def test_auth_manager_asks_provider_each_time(self):
        """Test SpotipyAuthManager does not cache tokens"""
        provider = Mock()
        provider.current_access_token.side_effect = ["first", "second"]
        manager = SpotipyAuthManager(provider)

        assert manager.get_access_token(as_dict=False) == "first"
        assert manager.get_access_token(as_dict=False) == "second"


class TestErrorMapping:
    """Test spotipy/requests errors become FetchError kinds"""

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_statuses(self, spotify, status):
        """Test rejected credentials are AUTH_FAILURE"""
        spotify.current_user_playlists.side_effect = http_error(status)

        with pytest.raises(FetchError) as excinfo:
            SpotifyClient().current_user_playlists()

        assert excinfo.value.kind is FetchErrorKind.AUTH_FAILURE
        assert excinfo.value.details["http_status"] == status

    def test_oauth_error(self, spotify):
        """Test OAuth refresh failures are AUTH_FAILURE"""
        spotify.playlist_items.side_effect = SpotifyOauthError("invalid_grant")

        with pytest.raises(FetchError) as excinfo:
            SpotifyClient().playlist_items("A")

        assert excinfo.value.is_auth_error

    def test_rate_limit(self, spotify):
        """Test 429 is NETWORK with is_rate_limit"""
        spotify.next.side_effect = http_error(429)

        with pytest.raises(FetchError) as excinfo:
            SpotifyClient().next_page(NEXT_URL)

        assert excinfo.value.kind is FetchErrorKind.NETWORK
        assert excinfo.value.is_rate_limit
        assert excinfo.value.details["url"] == NEXT_URL

    @pytest.mark.parametrize("error", [
        http_error(500),
        http_error(404),
        requests.exceptions.ConnectionError("connection refused"),
        requests.exceptions.ReadTimeout("read timed out"),
    ])
    def test_network_errors(self, spotify, error):
        """Test other failures are NETWORK"""
        spotify.current_user_playlists.side_effect = error

        with pytest.raises(FetchError) as excinfo:
            SpotifyClient().current_user_playlists()

        assert excinfo.value.kind is FetchErrorKind.NETWORK
        assert not excinfo.value.is_rate_limit


class TestPageFetchers:
    """Test SpotifyPageFetcher dispatch and decoding"""

    def test_first_page_of_playlists(self, spotify):
        """Test a playlists query calls current_user_playlists"""
        spotify.current_user_playlists.return_value = {
            "items": [playlist_object("A", "Alpha")],
            "total": 51,
            "offset": 0,
            "limit": 50,
            "next": NEXT_URL,
        }

        page = playlist_fetcher(SpotifyClient()).fetch(PageQuery.playlists(limit=50))

        spotify.current_user_playlists.assert_called_once_with(limit=50, offset=0)
        assert page.items[0].name == "Alpha"
        assert page.continuation == NEXT_URL

    def test_first_page_of_items(self, spotify):
        """Test an items query requests tracks only"""
        spotify.playlist_items.return_value = {"items": [], "total": 0, "offset": 0, "limit": 100}

        playlist_items_fetcher(SpotifyClient()).fetch(PageQuery.playlist_items("A"))

        spotify.playlist_items.assert_called_once_with(
            "A", limit=100, offset=0, additional_types=("track",)
        )

    def test_continuation_passed_verbatim(self, spotify):
        """Test cursors go to spotify.next unchanged"""
        spotify.next.return_value = {"items": [], "total": 51, "offset": 50, "limit": 50}

        playlist_fetcher(SpotifyClient()).fetch(NEXT_URL)

        spotify.next.assert_called_once_with({"next": NEXT_URL})

    def test_empty_response_is_malformed(self, spotify):
        """Test a response spotipy could not decode"""
        spotify.next.return_value = None

        with pytest.raises(FetchError) as excinfo:
            playlist_fetcher(SpotifyClient()).fetch(NEXT_URL)

        assert excinfo.value.kind is FetchErrorKind.MALFORMED


class TestPlayback:
    """Test start_playback"""

    def test_start_playback(self, spotify):
        """Test the playlist URI is the playback context"""
        SpotifyClient().start_playback("spotify:playlist:A", device_id="dev1")

        spotify.start_playback.assert_called_once_with(
            device_id="dev1", context_uri="spotify:playlist:A"
        )

    @pytest.mark.parametrize("status,reason", [
        (404, "no active Spotify device"),
        (403, "Premium"),
    ])
    def test_playback_errors(self, spotify, status, reason):
        """Test player errors become PlaybackError"""
        spotify.start_playback.side_effect = http_error(status)

        with pytest.raises(PlaybackError) as excinfo:
            SpotifyClient().start_playback("spotify:playlist:A")

        assert reason in excinfo.value.message

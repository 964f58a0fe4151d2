"""Test the command-line interface"""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from conftest import item_object, track_object
from spot_library import __version__
from spot_library.cli import cli
from spot_library.core.exceptions import FetchError, FetchErrorKind, PlaybackError


@pytest.fixture
def account(library):
    library.add_playlist("A" * 22, "Alpha", [item_object(track_object("t1")), item_object(track_object("t2"))])
    library.add_playlist("B" * 22, "Beta", [item_object(track_object("t1"))])
    library.add_playlist("C" * 22, "Gamma")
    return library


@pytest.fixture
def spotify(account, monkeypatch):
    """Replace Spotify access with the fake account"""
    monkeypatch.setenv("SPOTIFY_ACCESS_TOKEN", "token")
    with patch("spot_library.cli.SpotifyClient") as client_class, \
            patch("spot_library.cli.playlist_fetcher",
                  side_effect=lambda client: account.playlist_fetcher(page_size=2)), \
            patch("spot_library.library.aggregator.playlist_fetcher",
                  side_effect=lambda client: account.playlist_fetcher()), \
            patch("spot_library.library.aggregator.playlist_items_fetcher",
                  side_effect=lambda client: account.items_fetcher()):
        yield client_class


def invoke(config_file, *args):
    return CliRunner().invoke(cli, ["--config", str(config_file), *args])


class TestGroup:
    """Test group options"""

    def test_version(self):
        """Test --version"""
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_missing_config(self, temp_dir):
        """Test a missing config file is a configuration error"""
        result = invoke(temp_dir / "missing.yaml", "stats")
        assert result.exit_code == 1
        assert "Configuration error" in result.output


class TestGet:
    """Test the get command"""

    def test_get_writes_library(self, config_file, temp_dir, spotify):
        """Test a full run saves every track with its playlists"""
        result = invoke(config_file, "get")

        assert result.exit_code == 0, result.output
        document = json.loads((temp_dir / "out" / "library.json").read_text(encoding="utf-8"))
        assert document["track_count"] == 2
        assert len(document["tracks"]["t1"]["memberships"]) == 2

    def test_get_selected_playlist_to_output(self, config_file, temp_dir, spotify):
        """Test --playlist and --output"""
        output = temp_dir / "beta.json"
        result = invoke(
            config_file, "get",
            "--playlist", f"https://open.spotify.com/playlist/{'B' * 22}",
            "--output", str(output),
        )

        assert result.exit_code == 0, result.output
        document = json.loads(output.read_text(encoding="utf-8"))
        assert list(document["tracks"]) == ["t1"]

    def test_get_invalid_playlist(self, config_file, spotify):
        """Test --playlist values that are not playlists"""
        result = invoke(config_file, "get", "--playlist", "https://open.spotify.com/track/x")
        assert result.exit_code == 2

    def test_get_partial_library(self, config_file, temp_dir, account, spotify):
        """Test failed playlists exit 5 after saving the rest"""
        account.fail_items_page("B" * 22, 0, FetchError("timeout"))

        result = invoke(config_file, "get", "--workers", "2")

        assert result.exit_code == 5
        assert "Beta" in result.output
        document = json.loads((temp_dir / "out" / "library.json").read_text(encoding="utf-8"))
        assert len(document["tracks"]["t1"]["memberships"]) == 1

    def test_get_listing_failure(self, config_file, temp_dir, account, spotify):
        """Test a failed playlist listing exits 3 without a library"""
        account.overrides["playlists"] = FetchError("timeout")

        result = invoke(config_file, "get")

        assert result.exit_code == 3
        assert not (temp_dir / "out" / "library.json").exists()

    def test_get_auth_failure(self, config_file, spotify):
        """Test rejected credentials show the login hint"""
        spotify.init.side_effect = FetchError("rejected", kind=FetchErrorKind.AUTH_FAILURE)

        result = invoke(config_file, "get")

        assert result.exit_code == 3
        assert "client_secret" in result.output


class TestStats:
    """Test the stats command"""

    def test_stats_after_get(self, config_file, spotify):
        """Test summarizing a saved library"""
        assert invoke(config_file, "get").exit_code == 0

        result = invoke(config_file, "stats")

        assert result.exit_code == 0, result.output

    def test_stats_missing_library(self, config_file):
        """Test a missing library file"""
        result = invoke(config_file, "stats")
        assert result.exit_code == 2
        assert "Library file error" in result.output


class TestPlaylistsAndPlay:
    """Test browsing and playback"""

    def test_playlists_first_page(self, config_file, spotify):
        """Test one page is listed by default"""
        result = invoke(config_file, "playlists")

        assert result.exit_code == 0, result.output
        assert "Alpha" in result.output
        assert "Gamma" not in result.output
        assert "Showing 2 of 3 playlists" in result.output

    def test_playlists_all(self, config_file, spotify):
        """Test --all loads every page"""
        result = invoke(config_file, "playlists", "--all")

        assert "Gamma" in result.output
        assert "Showing 3 of 3 playlists" in result.output

    def test_play_by_number(self, config_file, spotify):
        """Test playing the 3rd playlist loads the second page"""
        result = invoke(config_file, "play", "3", "--device", "dev1")

        assert result.exit_code == 0, result.output
        assert "Now playing the playlist: Gamma by Owner1" in result.output
        spotify.return_value.start_playback.assert_called_once_with(
            f"spotify:playlist:{'C' * 22}", device_id="dev1"
        )

    def test_play_by_uri(self, config_file, spotify):
        """Test playing a playlist given by URI"""
        result = invoke(config_file, "play", f"spotify:playlist:{'B' * 22}")

        assert result.exit_code == 0, result.output
        assert "Beta" in result.output

    def test_play_unknown_playlist(self, config_file, spotify):
        """Test a number beyond the listing"""
        result = invoke(config_file, "play", "9")
        assert result.exit_code == 2

    def test_play_failure(self, config_file, spotify):
        """Test playback errors exit 4"""
        spotify.return_value.start_playback.side_effect = PlaybackError("no active Spotify device found")

        result = invoke(config_file, "play", "1")

        assert result.exit_code == 4
        assert "no active Spotify device" in result.output

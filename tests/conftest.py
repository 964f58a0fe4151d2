"""Test configuration and fixtures"""

import tempfile
from pathlib import Path

import pytest

from spot_library.spotify.client import SpotifyClient
from spot_library.spotify.models import Page, Playlist, PlaylistTrackEntry


API = "https://api.spotify.com/v1"
OWNER_ID = "owner1"


def track_object(track_id, name=None, artist="Test Artist", album="Test Album"):
    """Full track object as found under an item's 'track' key."""
    return {
        "id": track_id,
        "uri": f"spotify:track:{track_id}",
        "type": "track",
        "name": name or f"Song {track_id}",
        "artists": [{"id": "artist_1", "name": artist}],
        "album": {
            "id": "album_1",
            "name": album,
            "release_date": "2023-01-01",
            "artists": [{"id": "artist_1", "name": artist}],
        },
        "duration_ms": 210000,
        "track_number": 1,
        "disc_number": 1,
        "explicit": False,
        "popularity": 50,
        "external_ids": {"isrc": f"ISRC{track_id}"},
        "external_urls": {"spotify": f"https://open.spotify.com/track/{track_id}"},
        "is_local": False,
    }


def local_track_object(name="Home Recording"):
    uri = f"spotify:local:Me:Demos:{name.replace(' ', '+')}:180"
    return {
        "id": None,
        "uri": uri,
        "type": "track",
        "name": name,
        "artists": [{"name": "Me"}],
        "album": {"name": "Demos"},
        "duration_ms": 180000,
        "is_local": True,
    }


def item_object(track, added_at="2024-01-01T10:00:00Z", added_by="user1", is_local=None):
    """Playlist track object wrapping a track (or None)."""
    if is_local is None:
        is_local = bool(track and track.get("is_local"))
    return {
        "added_at": added_at,
        "added_by": {"id": added_by} if added_by else None,
        "is_local": is_local,
        "track": track,
    }


def playlist_object(playlist_id, name, total=0, owner_id=OWNER_ID):
    return {
        "id": playlist_id,
        "name": name,
        "uri": f"spotify:playlist:{playlist_id}",
        "href": f"{API}/playlists/{playlist_id}",
        "owner": {"id": owner_id, "display_name": owner_id.title()},
        "public": True,
        "collaborative": False,
        "snapshot_id": f"snap_{playlist_id}",
        "tracks": {"href": f"{API}/playlists/{playlist_id}/tracks", "total": total},
    }


def page_url(base_url, offset, limit):
    return f"{base_url}?offset={offset}&limit={limit}"


def paging_chain(first_key, base_url, items, page_size, total=None):
    """
    Split a listing into paging objects, keyed by the request that returns them.

    The first page is keyed by first_key (str of the PageQuery); later pages
    by their continuation URL, exactly as the previous page advertises it.
    """
    total = len(items) if total is None else total
    chunks = [items[i:i + page_size] for i in range(0, len(items), page_size)] or [[]]

    pages = {}
    for n, chunk in enumerate(chunks):
        offset = n * page_size
        key = first_key if n == 0 else page_url(base_url, offset, page_size)
        is_last = n == len(chunks) - 1
        pages[key] = {
            "href": page_url(base_url, offset, page_size),
            "items": list(chunk),
            "limit": page_size,
            "offset": offset,
            "total": total,
            "next": None if is_last else page_url(base_url, offset + page_size, page_size),
            "previous": None if n == 0 else page_url(base_url, offset - page_size, page_size),
        }
    return pages


class FakePageFetcher:
    """
    PageFetcher answering from a dict of request -> payload (or exception).

    Every request is recorded in .requests, in order.
    """

    def __init__(self, responses, parse_item):
        self.responses = responses
        self.parse_item = parse_item
        self.requests = []

    def fetch(self, request):
        key = str(request)
        self.requests.append(key)
        if key not in self.responses:
            raise AssertionError(f"Unexpected request: {key}")
        response = self.responses[key]
        if isinstance(response, Exception):
            raise response
        return Page.from_api(response, self.parse_item, source=key)


class FakeLibrary:
    """In-memory Spotify account: a playlist listing and each playlist's items."""

    def __init__(self, owner_id=OWNER_ID):
        self.owner_id = owner_id
        self.playlists = []
        self.items = {}
        self.overrides = {}

    def add_playlist(self, playlist_id, name, items=()):
        items = list(items)
        self.playlists.append(playlist_object(playlist_id, name, total=len(items)))
        self.items[playlist_id] = items
        return self

    def items_base_url(self, playlist_id):
        return f"{API}/playlists/{playlist_id}/tracks"

    def playlists_base_url(self):
        return f"{API}/users/{self.owner_id}/playlists"

    def fail_items_page(self, playlist_id, page_index, error, page_size=100):
        """Make one page of a playlist's item listing raise error."""
        if page_index == 0:
            key = f"playlist_items:{playlist_id}"
        else:
            key = page_url(self.items_base_url(playlist_id), page_index * page_size, page_size)
        self.overrides[key] = error

    def playlist_fetcher(self, page_size=50):
        responses = paging_chain("playlists", self.playlists_base_url(), self.playlists, page_size)
        responses.update(self.overrides)
        return FakePageFetcher(responses, Playlist.from_spotify_api)

    def items_fetcher(self, page_size=100):
        responses = {}
        for playlist_id, items in self.items.items():
            responses.update(paging_chain(
                f"playlist_items:{playlist_id}",
                self.items_base_url(playlist_id),
                items,
                page_size,
            ))
        responses.update(self.overrides)
        return FakePageFetcher(responses, PlaylistTrackEntry.from_spotify_api)


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def library():
    """Empty fake Spotify account"""
    return FakeLibrary()


@pytest.fixture(autouse=True)
def reset_spotify_client():
    """Every test starts without an initialized SpotifyClient"""
    SpotifyClient.reset()
    yield
    SpotifyClient.reset()


@pytest.fixture
def config_file(temp_dir):
    """Valid config.yaml inside temp_dir"""
    path = temp_dir / "config.yaml"
    path.write_text(
        "spotify:\n"
        "  client_id: test_client_id\n"
        "  client_secret: test_client_secret\n"
        "output:\n"
        f"  directory: {temp_dir / 'out'}\n",
        encoding="utf-8",
    )
    return path

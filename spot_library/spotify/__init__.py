"""
Spotify module for spot-library.

Everything that talks to the Spotify Web API:
    - client: SpotifyClient singleton wrapping spotipy
    - credentials: Bearer token providers
    - models: Track, Playlist, PlaylistTrackEntry, Page, PageQuery
    - fetcher: One page per call
    - pager: Walks a listing to its end
"""

from spot_library.spotify.client import SpotifyClient
from spot_library.spotify.credentials import (
    CredentialProvider,
    OAuthCredentialProvider,
    StaticCredentialProvider,
)
from spot_library.spotify.fetcher import (
    PageFetcher,
    SpotifyPageFetcher,
    playlist_fetcher,
    playlist_items_fetcher,
)
from spot_library.spotify.models import (
    Page,
    PageQuery,
    Playlist,
    PlaylistOwner,
    PlaylistTrackEntry,
    ResourceKind,
    Track,
)
from spot_library.spotify.pager import Collection, Pager

__all__ = [
    "SpotifyClient",
    "CredentialProvider",
    "OAuthCredentialProvider",
    "StaticCredentialProvider",
    "PageFetcher",
    "SpotifyPageFetcher",
    "playlist_fetcher",
    "playlist_items_fetcher",
    "Page",
    "PageQuery",
    "Playlist",
    "PlaylistOwner",
    "PlaylistTrackEntry",
    "ResourceKind",
    "Track",
    "Collection",
    "Pager",
]

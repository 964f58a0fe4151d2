"""
Data models for Spotify entities.

This module defines immutable dataclasses representing the Spotify objects
the library aggregation works with: catalog tracks, playlists, playlist
track entries, and the paging object that wraps every listing response.

Design Decisions:
    - All dataclasses are frozen (immutable) to prevent accidental modification
    - Fields match Spotify API response structure where possible
    - Optional fields have sensible defaults
    - Decoding failures of a page surface as FetchError(MALFORMED), never as
      a bare KeyError from deep inside the aggregation

Usage:
    from spot_library.spotify.models import Page, Playlist, PlaylistTrackEntry

    page = Page.from_api(response, Playlist.from_spotify_api)
    for playlist in page.items:
        print(playlist.name, playlist.track_total)
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, TypeVar
from urllib.parse import urlsplit

from spot_library.core.exceptions import FetchError, FetchErrorKind


T = TypeVar("T")


@dataclass(frozen=True)
class Track:
    """
    Immutable catalog metadata of a Spotify track.

    Attributes:
        spotify_id: Spotify track ID (22-character base62 string).
                    None for local (non-catalog) files.
                    Example: "4cOdK2wGLETKBW3PvgPWqT"

        uri: Spotify URI. Always present, also for local files.
             Example: "spotify:track:4cOdK2wGLETKBW3PvgPWqT"
             Local example: "spotify:local:Queen:A+Night+at+the+Opera:Bohemian+Rhapsody:354"

        name: Track title.

        artists: All artist names, in credit order.

        album: Album name.

        duration_ms: Track duration in milliseconds.

        is_local: True for files the user added from disk.

    Example:
        track = Track.from_spotify_api(item["track"])
        print(f"{track.name} by {track.artist}")
    """

    uri: str
    name: str
    artists: tuple[str, ...]
    album: str
    duration_ms: int

    spotify_id: str | None = None
    spotify_url: str = ""
    album_artist: str = ""
    track_number: int = 1
    disc_number: int = 1
    release_date: str = ""
    isrc: str | None = None
    explicit: bool = False
    popularity: int = 0
    is_local: bool = False

    @classmethod
    def from_spotify_api(cls, track_data: dict[str, Any]) -> "Track":
        """
        Create a Track from the 'track' object of a playlist item.

        Local files come with a null id, no album id and no external URLs;
        only their URI identifies them.

        Raises:
            KeyError: If neither 'id' nor 'uri' is present.
        """
        spotify_id = track_data.get("id")
        uri = track_data.get("uri") or f"spotify:track:{track_data['id']}"

        artists = tuple(
            a.get("name", "") for a in track_data.get("artists") or [] if a
        )

        album_info = track_data.get("album") or {}
        album_artists = album_info.get("artists") or []
        album_artist = album_artists[0].get("name", "") if album_artists else (
            artists[0] if artists else ""
        )

        return cls(
            uri=uri,
            name=track_data.get("name") or "",
            artists=artists,
            album=album_info.get("name") or "",
            duration_ms=track_data.get("duration_ms") or 0,
            spotify_id=spotify_id,
            spotify_url=(track_data.get("external_urls") or {}).get("spotify", ""),
            album_artist=album_artist,
            track_number=track_data.get("track_number") or 1,
            disc_number=track_data.get("disc_number") or 1,
            release_date=album_info.get("release_date") or "",
            isrc=(track_data.get("external_ids") or {}).get("isrc"),
            explicit=bool(track_data.get("explicit", False)),
            popularity=track_data.get("popularity") or 0,
            is_local=bool(track_data.get("is_local", False)),
        )

    @property
    def identity(self) -> str:
        """Key of this track in the library index: its id, or URI for local files."""
        return self.spotify_id or self.uri

    @property
    def artist(self) -> str:
        """Primary artist name."""
        return self.artists[0] if self.artists else "Unknown Artist"

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict."""
        return {
            "id": self.spotify_id,
            "uri": self.uri,
            "spotify_url": self.spotify_url,
            "name": self.name,
            "artists": list(self.artists),
            "album": self.album,
            "album_artist": self.album_artist,
            "duration_ms": self.duration_ms,
            "track_number": self.track_number,
            "disc_number": self.disc_number,
            "release_date": self.release_date,
            "isrc": self.isrc,
            "explicit": self.explicit,
            "popularity": self.popularity,
            "is_local": self.is_local,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Track":
        """Inverse of to_dict(), used when reading a saved library."""
        return cls(
            uri=data["uri"],
            name=data.get("name", ""),
            artists=tuple(data.get("artists", [])),
            album=data.get("album", ""),
            duration_ms=data.get("duration_ms", 0),
            spotify_id=data.get("id"),
            spotify_url=data.get("spotify_url", ""),
            album_artist=data.get("album_artist", ""),
            track_number=data.get("track_number", 1),
            disc_number=data.get("disc_number", 1),
            release_date=data.get("release_date", ""),
            isrc=data.get("isrc"),
            explicit=data.get("explicit", False),
            popularity=data.get("popularity", 0),
            is_local=data.get("is_local", False),
        )


@dataclass(frozen=True)
class PlaylistOwner:
    """Owner of a playlist (a Spotify user)."""

    spotify_id: str
    display_name: str = ""

    @classmethod
    def from_spotify_api(cls, owner_data: dict[str, Any] | None) -> "PlaylistOwner":
        owner_data = owner_data or {}
        owner_id = owner_data.get("id") or ""
        return cls(
            spotify_id=owner_id,
            display_name=owner_data.get("display_name") or owner_id,
        )


@dataclass(frozen=True)
class Playlist:
    """
    Immutable summary of a playlist as returned by the playlist listing.

    Attributes:
        spotify_id: Spotify playlist ID.
                    Example: "37i9dQZF1DXcBWIGoYBM5M"
        name: Playlist name.
        uri: Spotify URI, used as playback context.
             Example: "spotify:playlist:37i9dQZF1DXcBWIGoYBM5M"
        href: Web API endpoint of the playlist.
        owner: The owning user.
        track_total: Track count advertised by the listing.
                     The items walk reports its own authoritative total.
        snapshot_id: Version identifier of the playlist contents.
    """

    spotify_id: str
    name: str
    uri: str
    href: str
    owner: PlaylistOwner
    track_total: int = 0
    public: bool | None = None
    collaborative: bool = False
    snapshot_id: str = ""

    @classmethod
    def from_spotify_api(cls, playlist_data: dict[str, Any]) -> "Playlist":
        """
        Create a Playlist from a simplified playlist object.

        Raises:
            KeyError: If the playlist has no id.
        """
        spotify_id = playlist_data["id"]
        tracks_ref = playlist_data.get("tracks") or {}

        return cls(
            spotify_id=spotify_id,
            name=playlist_data.get("name") or "Unknown Playlist",
            uri=playlist_data.get("uri") or f"spotify:playlist:{spotify_id}",
            href=playlist_data.get("href") or "",
            owner=PlaylistOwner.from_spotify_api(playlist_data.get("owner")),
            track_total=tracks_ref.get("total") or 0,
            public=playlist_data.get("public"),
            collaborative=bool(playlist_data.get("collaborative", False)),
            snapshot_id=playlist_data.get("snapshot_id") or "",
        )


@dataclass(frozen=True)
class PlaylistTrackEntry:
    """
    One row of a playlist's item listing.

    Attributes:
        track: Catalog metadata, or None when the row cannot be indexed
               (track removed from the catalog, or a podcast episode).
        added_at: ISO timestamp of when the row was added, if known.
                  Very old playlists report null.
        added_by: Id of the user who added the row, if known.
        is_local: True when the row references a local file.
        item_type: 'track', 'episode' or '' when the row is empty.
    """

    track: Track | None
    added_at: str | None = None
    added_by: str | None = None
    is_local: bool = False
    item_type: str = "track"

    @classmethod
    def from_spotify_api(cls, item: dict[str, Any]) -> "PlaylistTrackEntry":
        """
        Create an entry from a playlist track object.

        Raises:
            TypeError: If the item is not a mapping.
        """
        if not isinstance(item, dict):
            raise TypeError(f"Playlist item must be an object, got {type(item).__name__}")

        track_data = item.get("track")
        item_type = ""
        track = None
        if isinstance(track_data, dict):
            item_type = track_data.get("type") or "track"
            if item_type == "track":
                track = Track.from_spotify_api(track_data)

        added_by = item.get("added_by") or {}

        return cls(
            track=track,
            added_at=item.get("added_at"),
            added_by=added_by.get("id") or None,
            is_local=bool(item.get("is_local", False)),
            item_type=item_type,
        )


@dataclass(frozen=True)
class Page(Generic[T]):
    """
    One page of a paginated listing.

    Attributes:
        items: Decoded items, in server order.
        offset: Index of the first item of this page in the full listing.
        total: Size of the full listing as reported by this page.
        continuation: Opaque URL of the next page, or None on the last page.
        limit: Page size the server applied.
    """

    items: tuple[T, ...]
    offset: int
    total: int
    continuation: str | None = None
    limit: int = 0

    @property
    def has_next(self) -> bool:
        return bool(self.continuation)

    @classmethod
    def from_api(
        cls,
        payload: Any,
        parse_item: Callable[[Any], T],
        source: str = ""
    ) -> "Page[T]":
        """
        Decode a Spotify paging object.

        Args:
            payload: The decoded JSON response.
            parse_item: Converts one raw item to its model.
            source: Query or cursor the payload came from (for error details).

        Raises:
            FetchError: kind MALFORMED if the payload is not a paging object
                        or any item cannot be decoded.
        """
        details = {"source": source}

        if not isinstance(payload, dict):
            raise FetchError(
                f"Malformed page: expected an object, got {type(payload).__name__}",
                kind=FetchErrorKind.MALFORMED,
                details=details
            )

        raw_items = payload.get("items")
        total = payload.get("total")
        offset = payload.get("offset", 0)
        continuation = payload.get("next")
        limit = payload.get("limit", 0)

        if not isinstance(raw_items, list):
            raise FetchError(
                "Malformed page: 'items' must be a list",
                kind=FetchErrorKind.MALFORMED,
                details=details
            )
        for key, value in (("total", total), ("offset", offset), ("limit", limit)):
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise FetchError(
                    f"Malformed page: '{key}' must be a non-negative integer",
                    kind=FetchErrorKind.MALFORMED,
                    details={**details, key: value}
                )
        if continuation is not None and not isinstance(continuation, str):
            raise FetchError(
                "Malformed page: 'next' must be a string or null",
                kind=FetchErrorKind.MALFORMED,
                details=details
            )

        try:
            items = tuple(parse_item(item) for item in raw_items)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise FetchError(
                f"Malformed page item: {e!r}",
                kind=FetchErrorKind.MALFORMED,
                details={**details, "original_error": str(e)}
            ) from e

        return cls(
            items=items,
            offset=offset,
            total=total,
            continuation=continuation or None,
            limit=limit,
        )


class ResourceKind(Enum):
    """
    Paginated listings the library walks.

    Each kind knows the API page-size maximum and which continuation URLs
    belong to it. Spotify answers /me/playlists with continuations under
    /users/{id}/playlists, so both shapes are accepted for PLAYLISTS.
    """

    PLAYLISTS = "playlists"
    PLAYLIST_ITEMS = "playlist_items"

    @property
    def max_page_size(self) -> int:
        return 50 if self is ResourceKind.PLAYLISTS else 100

    def accepts(self, cursor: str) -> bool:
        """True if the continuation URL points at a listing of this kind."""
        path = urlsplit(cursor).path.rstrip("/")
        return _CONTINUATION_PATHS[self].fullmatch(path) is not None


_CONTINUATION_PATHS = {
    ResourceKind.PLAYLISTS: re.compile(r"/v1/(me|users/[^/]+)/playlists"),
    ResourceKind.PLAYLIST_ITEMS: re.compile(
        r"/v1/(users/[^/]+/)?playlists/[^/]+/(tracks|items)"
    ),
}


@dataclass(frozen=True)
class PageQuery:
    """
    Initial request of a paginated walk.

    Attributes:
        kind: Which listing to walk.
        resource_id: Playlist id for item listings, None for the user's playlists.
        limit: Page-size hint, clamped to the kind's maximum.
    """

    kind: ResourceKind
    resource_id: str | None = None
    limit: int = 50

    @classmethod
    def playlists(cls, limit: int = 50) -> "PageQuery":
        return cls(ResourceKind.PLAYLISTS, None, min(limit, ResourceKind.PLAYLISTS.max_page_size))

    @classmethod
    def playlist_items(cls, playlist_id: str, limit: int = 100) -> "PageQuery":
        return cls(
            ResourceKind.PLAYLIST_ITEMS,
            playlist_id,
            min(limit, ResourceKind.PLAYLIST_ITEMS.max_page_size)
        )

    def __str__(self) -> str:
        if self.resource_id:
            return f"{self.kind.value}:{self.resource_id}"
        return self.kind.value

"""
Page fetchers for Spotify listings.

A page fetcher performs exactly one authenticated round trip per call and
returns one decoded Page. It never follows continuations itself; walking a
listing is the Pager's job.

    fetch(PageQuery)  -> first page of the listing the query names
    fetch(cursor)     -> page behind a previous page's continuation URL

The cursor is handed to spotipy unchanged.

Usage:
    from spot_library.spotify.fetcher import playlist_fetcher, playlist_items_fetcher

    playlists = playlist_fetcher(SpotifyClient())
    first = playlists.fetch(PageQuery.playlists(limit=50))
    if first.continuation:
        second = playlists.fetch(first.continuation)
"""

from typing import Any, Callable, Generic, Protocol, TypeVar

from spot_library.core.logger import get_logger
from spot_library.spotify.client import SpotifyClient
from spot_library.spotify.models import (
    Page,
    PageQuery,
    Playlist,
    PlaylistTrackEntry,
    ResourceKind,
)

logger = get_logger(__name__)

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class PageFetcher(Protocol[T_co]):
    """One bounded network call per invocation. Raises FetchError on failure."""

    def fetch(self, request: PageQuery | str) -> Page[T_co]:
        ...


class SpotifyPageFetcher(Generic[T]):
    """
    PageFetcher backed by the SpotifyClient singleton.

    Args:
        client: Initialized SpotifyClient.
        parse_item: Converts one raw listing item to its model.
    """

    def __init__(self, client: SpotifyClient, parse_item: Callable[[Any], T]) -> None:
        self._client = client
        self._parse_item = parse_item

    def fetch(self, request: PageQuery | str) -> Page[T]:
        """
        Fetch one page.

        Args:
            request: A PageQuery for the first page, or a continuation URL.

        Returns:
            The decoded page.

        Raises:
            FetchError: NETWORK or AUTH_FAILURE from the client,
                        MALFORMED if the response is not a paging object.
        """
        if isinstance(request, PageQuery):
            payload = self._fetch_first(request)
        else:
            logger.debug(f"Fetching continuation {request}")
            payload = self._client.next_page(request)

        return Page.from_api(payload, self._parse_item, source=str(request))

    def _fetch_first(self, query: PageQuery) -> Any:
        logger.debug(f"Fetching first page of {query} (limit {query.limit})")
        if query.kind is ResourceKind.PLAYLISTS:
            return self._client.current_user_playlists(limit=query.limit)
        if query.resource_id is None:
            raise ValueError("Playlist item queries need a playlist id")
        return self._client.playlist_items(query.resource_id, limit=query.limit)


# =============================================================================
# Convenience constructors
# =============================================================================

def playlist_fetcher(client: SpotifyClient) -> SpotifyPageFetcher[Playlist]:
    """Fetcher for the current user's playlist listing."""
    return SpotifyPageFetcher(client, Playlist.from_spotify_api)


def playlist_items_fetcher(client: SpotifyClient) -> SpotifyPageFetcher[PlaylistTrackEntry]:
    """Fetcher for the item listing of any playlist."""
    return SpotifyPageFetcher(client, PlaylistTrackEntry.from_spotify_api)

"""
Paged playlist selection.

PlaylistSelection is the state behind an interactive playlist picker: it
loads the user's playlists one page at a time, tracks which of them are
selected, and starts playback of one of them. It renders nothing; the CLI
(or any other front end) reads its state and decides how to show it.
"""

import threading
from typing import Protocol

from spot_library.core.exceptions import SpotLibraryError
from spot_library.core.logger import get_logger
from spot_library.spotify.fetcher import PageFetcher
from spot_library.spotify.models import PageQuery, Playlist
from spot_library.spotify.pager import Pager

logger = get_logger(__name__)


class Player(Protocol):
    def start_playback(self, context_uri: str, device_id: str | None = None) -> None:
        ...


class PlaylistSelection:
    """
    Playlists loaded so far, plus the user's selection among them.

    Args:
        fetcher: Fetcher for the playlist listing.
        player: Anything that can start playback (SpotifyClient).
        page_size: Playlists per page.
        cancel_event: Optional event that stops further loading.

    Example:
        selection = PlaylistSelection(playlist_fetcher(client), client)
        selection.load_next_page()
        selection.toggle(0)
        message = selection.play(0)
    """

    def __init__(
        self,
        fetcher: PageFetcher[Playlist],
        player: Player,
        page_size: int = 50,
        cancel_event: threading.Event | None = None
    ) -> None:
        self._pager: Pager[Playlist] = Pager(fetcher, cancel_event)
        self._player = player
        self._query = PageQuery.playlists(limit=page_size)
        self._started = False
        self._selected: set[str] = set()

    @property
    def playlists(self) -> tuple[Playlist, ...]:
        return self._pager.collection.items

    @property
    def total(self) -> int:
        return self._pager.collection.total

    @property
    def has_more(self) -> bool:
        """True before the first page and while the listing has more pages."""
        return not self._started or self._pager.has_more

    @property
    def selected(self) -> tuple[Playlist, ...]:
        """Selected playlists, in listing order."""
        return tuple(p for p in self.playlists if p.spotify_id in self._selected)

    def load_next_page(self) -> tuple[Playlist, ...]:
        """
        Load one more page of playlists.

        Returns:
            The playlists that page added (empty if there was nothing to load).

        Raises:
            FetchError: If the page could not be fetched.
            ProtocolMismatchError: If the listing continued into another resource.
        """
        before = len(self.playlists)

        if not self._started:
            self._started = True
            self._pager.start(self._query)
        else:
            self._pager.load_next()

        collection = self._pager.collection
        if collection.error is not None:
            raise collection.error

        added = collection.items[before:]
        logger.debug(f"Loaded {len(added)} playlists ({len(collection)}/{collection.total})")
        return added

    def toggle(self, index: int) -> bool:
        """
        Flip the selection of the playlist at index.

        Returns:
            The new selection state.

        Raises:
            IndexError: If no playlist is loaded at index.
        """
        playlist = self.playlists[index]
        if playlist.spotify_id in self._selected:
            self._selected.discard(playlist.spotify_id)
            return False
        self._selected.add(playlist.spotify_id)
        return True

    def is_selected(self, index: int) -> bool:
        return self.playlists[index].spotify_id in self._selected

    def find(self, playlist_id: str) -> int | None:
        """Index of a loaded playlist by id, or None."""
        for index, playlist in enumerate(self.playlists):
            if playlist.spotify_id == playlist_id:
                return index
        return None

    def play(self, index: int, device_id: str | None = None) -> str:
        """
        Start playback of the playlist at index.

        Returns:
            Confirmation message naming the playlist and its owner.

        Raises:
            IndexError: If no playlist is loaded at index.
            PlaybackError: If playback could not be started.
        """
        playlist = self.playlists[index]
        try:
            self._player.start_playback(playlist.uri, device_id=device_id)
        except SpotLibraryError as e:
            logger.error(f"Could not play '{playlist.name}': {e}")
            raise

        owner = playlist.owner.display_name or playlist.owner.spotify_id
        return f"Now playing the playlist: {playlist.name} by {owner}"

"""
Track-playlist aggregation.

Builds the deduplicated library index in two phases:

    1. Walk the current user's playlist listing with one Pager.
       A failure here is fatal and raised to the caller.
    2. Walk each playlist's items with a fresh Pager, sequentially or on a
       bounded thread pool, and fold every complete walk into the TrackIndex.

Failure Isolation:
    A playlist whose walk fails is recorded as a PlaylistFailure and the run
    continues with the next one. Its partially collected entries are NOT
    folded, so the index never holds half a playlist.

Thread Safety:
    Only the walks run on worker threads. Folding happens in the calling
    thread as walks complete, so the index has a single writer for every
    schedule.

Cancellation:
    Setting cancel_event stops every Pager before its next fetch. The run
    stops folding, cancels walks that have not started, and returns what
    was folded so far with cancelled=True.

Usage:
    aggregator = TrackPlaylistAggregator(
        playlist_fetcher(client),
        playlist_items_fetcher(client),
        workers=4,
    )
    result = aggregator.aggregate()
    for identity, record in result.index.items():
        print(record.track.name, record.playlist_ids)
"""

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable, Iterator

from spot_library.core.config import FetchConfig
from spot_library.core.logger import get_logger, log_playlist_failure
from spot_library.core.progress import ProgressReporter
from spot_library.library.index import TrackIndex
from spot_library.library.models import AggregationResult, PlaylistFailure
from spot_library.spotify.client import SpotifyClient
from spot_library.spotify.fetcher import (
    PageFetcher,
    playlist_fetcher,
    playlist_items_fetcher,
)
from spot_library.spotify.models import PageQuery, Playlist, PlaylistTrackEntry
from spot_library.spotify.pager import Collection, Pager

logger = get_logger(__name__)


class TrackPlaylistAggregator:
    """
    Folds every playlist of the current user into one TrackIndex.

    Args:
        playlists: Fetcher for the playlist listing.
        tracks: Fetcher for playlist item listings.
        workers: Playlists walked concurrently. 1 walks them in listing order.
        playlist_page_size: Page-size hint for the playlist listing.
        track_page_size: Page-size hint for item listings.
        reporter: Optional progress sink.
        cancel_event: Optional event that stops the run when set.
    """

    def __init__(
        self,
        playlists: PageFetcher[Playlist],
        tracks: PageFetcher[PlaylistTrackEntry],
        workers: int = 1,
        playlist_page_size: int = 50,
        track_page_size: int = 100,
        reporter: ProgressReporter | None = None,
        cancel_event: threading.Event | None = None
    ) -> None:
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")

        self._playlists = playlists
        self._tracks = tracks
        self._workers = workers
        self._playlist_page_size = playlist_page_size
        self._track_page_size = track_page_size
        self._reporter = reporter
        self._cancel_event = cancel_event or threading.Event()

    # =========================================================================
    # Public API
    # =========================================================================

    def list_playlists(self) -> list[Playlist]:
        """
        Walk the whole playlist listing.

        Returns:
            Playlists in listing order. If the run is cancelled meanwhile,
            only those listed so far.

        Raises:
            FetchError: If a page of the listing could not be fetched.
            ProtocolMismatchError: If the listing continued into another resource.
        """
        query = PageQuery.playlists(limit=self._playlist_page_size)
        collection = Pager(self._playlists, self._cancel_event).collect(query)

        if collection.error is not None:
            logger.error(f"Failed to list playlists: {collection.error}")
            raise collection.error

        logger.info(f"Found {len(collection)} playlists")
        return list(collection.items)

    def aggregate(self, playlist_ids: Iterable[str] | None = None) -> AggregationResult:
        """
        Build the library index.

        Args:
            playlist_ids: Restrict the run to these playlists. Ids that are
                          not in the user's listing are ignored with a warning.
                          None aggregates every playlist.

        Returns:
            AggregationResult with the index snapshot, per-playlist failures,
            the number of skipped entries, and whether the run was cancelled.

        Raises:
            FetchError: If the playlist listing itself could not be fetched.
            ProtocolMismatchError: If the playlist listing continued into
                                   another resource.
        """
        self._report_started("Playlists")
        try:
            playlists = self.list_playlists()
        finally:
            self._report_stopped()

        playlists = _unique_playlists(playlists)
        if playlist_ids is not None:
            playlists = _select_playlists(playlists, playlist_ids)

        if self._cancel_event.is_set():
            logger.warning("Aggregation cancelled while listing playlists")
            return AggregationResult(
                index=TrackIndex().snapshot(),
                playlists=tuple(playlists),
                cancelled=True,
            )

        index = TrackIndex()
        failures: list[PlaylistFailure] = []
        skipped = 0
        cancelled = False

        self._report_started("Tracks", total=len(playlists))
        try:
            for playlist, collection in self._walk(playlists):
                if collection.cancelled:
                    cancelled = True
                    break

                if collection.error is not None:
                    failure = PlaylistFailure(playlist.spotify_id, playlist.name, collection.error)
                    failures.append(failure)
                    log_playlist_failure(
                        logger,
                        playlist_name=playlist.name,
                        playlist_id=playlist.spotify_id,
                        error_kind=failure.error_kind,
                        reason=str(collection.error)
                    )
                    self._report_advance(failed=True)
                    continue

                playlist_skipped = index.add_playlist(playlist, collection.items)
                skipped += playlist_skipped
                logger.debug(
                    f"Folded {len(collection) - playlist_skipped} tracks "
                    f"from '{playlist.name}'"
                )
                self._report_advance()
        finally:
            self._report_stopped()

        if cancelled:
            logger.warning("Aggregation cancelled, returning partial library")
        if skipped:
            logger.warning(f"Skipped {skipped} entries (unavailable tracks, episodes)")

        return AggregationResult(
            index=index.snapshot(),
            playlists=tuple(playlists),
            failures=tuple(failures),
            skipped=skipped,
            cancelled=cancelled,
        )

    # =========================================================================
    # Walks
    # =========================================================================

    def _collect_tracks(self, playlist: Playlist) -> Collection[PlaylistTrackEntry]:
        query = PageQuery.playlist_items(playlist.spotify_id, limit=self._track_page_size)
        return Pager(self._tracks, self._cancel_event).collect(query)

    def _walk(
        self,
        playlists: list[Playlist]
    ) -> Iterator[tuple[Playlist, Collection[PlaylistTrackEntry]]]:
        if self._workers == 1 or len(playlists) <= 1:
            for playlist in playlists:
                yield playlist, self._collect_tracks(playlist)
            return

        with ThreadPoolExecutor(max_workers=self._workers) as executor:
            future_to_playlist = {
                executor.submit(self._collect_tracks, playlist): playlist
                for playlist in playlists
            }
            try:
                for future in as_completed(future_to_playlist):
                    yield future_to_playlist[future], future.result()
            finally:
                # Walks not started yet never run once the consumer stops
                for future in future_to_playlist:
                    future.cancel()

    # =========================================================================
    # Progress
    # =========================================================================

    def _report_started(self, description: str, total: int | None = None) -> None:
        if self._reporter is not None:
            self._reporter.started(description, total)

    def _report_advance(self, failed: bool = False) -> None:
        if self._reporter is not None:
            self._reporter.advance(failed=failed)

    def _report_stopped(self) -> None:
        if self._reporter is not None:
            self._reporter.stopped()


def _unique_playlists(playlists: list[Playlist]) -> list[Playlist]:
    """Drop repeated playlist ids, keeping the first occurrence."""
    seen: set[str] = set()
    unique = []
    for playlist in playlists:
        if playlist.spotify_id in seen:
            logger.debug(f"Playlist {playlist.spotify_id} listed twice, walking it once")
            continue
        seen.add(playlist.spotify_id)
        unique.append(playlist)
    return unique


def _select_playlists(playlists: list[Playlist], playlist_ids: Iterable[str]) -> list[Playlist]:
    """Keep the listed playlists whose id was requested, in listing order."""
    wanted = list(dict.fromkeys(playlist_ids))
    known = {p.spotify_id for p in playlists}

    for playlist_id in wanted:
        if playlist_id not in known:
            logger.warning(f"Playlist {playlist_id} is not in your library, ignoring")

    wanted_set = set(wanted)
    return [p for p in playlists if p.spotify_id in wanted_set]


# =========================================================================
# Convenience Functions (called by CLI)
# =========================================================================

def aggregate_library(
    client: SpotifyClient,
    fetch_config: FetchConfig,
    playlist_ids: Iterable[str] | None = None,
    reporter: ProgressReporter | None = None,
    cancel_event: threading.Event | None = None
) -> AggregationResult:
    """
    Aggregate the current user's library with the configured fetch settings.

    Args:
        client: Initialized SpotifyClient.
        fetch_config: Page sizes and worker count.
        playlist_ids: Optional selection of playlists.
        reporter: Optional progress sink.
        cancel_event: Optional event that stops the run when set.

    Returns:
        The AggregationResult of the run.
    """
    aggregator = TrackPlaylistAggregator(
        playlist_fetcher(client),
        playlist_items_fetcher(client),
        workers=fetch_config.workers,
        playlist_page_size=fetch_config.playlist_page_size,
        track_page_size=fetch_config.track_page_size,
        reporter=reporter,
        cancel_event=cancel_event,
    )
    return aggregator.aggregate(playlist_ids)

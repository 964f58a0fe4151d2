"""
Generic cursor pager over a PageFetcher.

The Pager walks one paginated listing from its first page until one of:
    - the last page has no continuation
    - the number of collected items reaches the advertised total
    - a page arrives with no items
    - a fetch fails (FetchError) or a continuation points at another
      resource kind (ProtocolMismatchError)
    - the cancel event is set

It never raises for a failed page: the walk stops and the partial
Collection carries the error. Items keep page-arrival order and are never
deduplicated. When consecutive pages disagree on the total, the latest
page wins.

Usage:
    pager = Pager(playlist_items_fetcher(client), cancel_event=event)
    collection = pager.collect(PageQuery.playlist_items(playlist_id))
    if collection.error:
        ...

    # Incremental, one page at a time
    pager.start(PageQuery.playlists())
    while pager.has_more:
        pager.load_next()
"""

import threading
from dataclasses import dataclass
from typing import Generic, TypeVar

from spot_library.core.exceptions import FetchError, ProtocolMismatchError, SpotLibraryError
from spot_library.core.logger import get_logger
from spot_library.spotify.fetcher import PageFetcher
from spot_library.spotify.models import PageQuery

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Collection(Generic[T]):
    """
    Items accumulated by one walk.

    Attributes:
        items: Collected items in page-arrival order.
        total: Total advertised by the most recent page.
        offset: Offset of the most recent page.
        continuation: Cursor of the page that would come next, if any.
        error: Why the walk stopped early, if it did.
        cancelled: True if the cancel event stopped the walk.
    """

    items: tuple[T, ...] = ()
    total: int = 0
    offset: int = 0
    continuation: str | None = None
    error: SpotLibraryError | None = None
    cancelled: bool = False

    @property
    def is_complete(self) -> bool:
        """True if the walk ran to the end of the listing."""
        return self.error is None and not self.cancelled

    def __len__(self) -> int:
        return len(self.items)


class Pager(Generic[T]):
    """
    Drives a PageFetcher through one listing.

    A Pager holds the state of a single walk; start() resets it. Use a fresh
    Pager per concurrent walk.

    Args:
        fetcher: Page source for the listing.
        cancel_event: Checked before every fetch; once set, no further page
                      is requested.
    """

    def __init__(
        self,
        fetcher: PageFetcher[T],
        cancel_event: threading.Event | None = None
    ) -> None:
        self._fetcher = fetcher
        self._cancel_event = cancel_event
        self._query: PageQuery | None = None
        self._items: list[T] = []
        self._total = 0
        self._offset = 0
        self._continuation: str | None = None
        self._error: SpotLibraryError | None = None
        self._cancelled = False

    @property
    def collection(self) -> Collection[T]:
        """Snapshot of everything collected so far."""
        return Collection(
            items=tuple(self._items),
            total=self._total,
            offset=self._offset,
            continuation=self._continuation,
            error=self._error,
            cancelled=self._cancelled,
        )

    @property
    def has_more(self) -> bool:
        """True if load_next() would request another page."""
        return (
            self._query is not None
            and self._error is None
            and not self._cancelled
            and bool(self._continuation)
            and len(self._items) < self._total
        )

    def collect(self, query: PageQuery) -> Collection[T]:
        """
        Walk the listing named by query to its end.

        Returns:
            The Collection. Check error/cancelled (or is_complete) before
            treating it as the full listing.
        """
        self.start(query)
        while self.load_next():
            pass

        collection = self.collection
        if collection.is_complete:
            logger.debug(f"Collected {len(collection)}/{collection.total} items of {query}")
        return collection

    def start(self, query: PageQuery) -> bool:
        """
        Reset the walk and fetch the first page of query.

        Returns:
            True if a page was fetched.
        """
        self._query = query
        self._items = []
        self._total = 0
        self._offset = 0
        self._continuation = None
        self._error = None
        self._cancelled = False
        return self._fetch(query)

    def load_next(self) -> bool:
        """
        Fetch the page behind the pending continuation.

        Returns:
            True if a page was fetched, False if there was nothing to fetch
            or the walk stopped (see collection.error / collection.cancelled).
        """
        if not self.has_more:
            return False

        cursor = self._continuation
        if self._query is None or cursor is None:
            return False

        if not self._query.kind.accepts(cursor):
            self._error = ProtocolMismatchError(
                f"Continuation does not belong to the {self._query.kind.value} listing",
                details={"url": cursor, "query": str(self._query)}
            )
            logger.warning(f"{self._error.message}: {cursor}")
            return False

        return self._fetch(cursor)

    def _fetch(self, request: PageQuery | str) -> bool:
        if self._cancel_event is not None and self._cancel_event.is_set():
            self._cancelled = True
            logger.debug(f"Walk of {self._query} cancelled after {len(self._items)} items")
            return False

        try:
            page = self._fetcher.fetch(request)
        except FetchError as e:
            self._error = e
            logger.debug(f"Walk of {self._query} stopped after {len(self._items)} items: {e}")
            return False

        if self._items and page.total != self._total:
            logger.debug(f"Total of {self._query} changed from {self._total} to {page.total}")

        self._items.extend(page.items)
        self._total = page.total
        self._offset = page.offset
        # An empty page ends the walk even if it advertises a continuation
        self._continuation = page.continuation if page.items else None
        return True

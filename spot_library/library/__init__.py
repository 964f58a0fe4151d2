"""
Library module for spot-library.

Turns playlist listings into the deduplicated track index:
    - models: PlaylistMembership, TrackRecord, AggregationResult
    - index: TrackIndex (single-writer, snapshot on hand-off)
    - aggregator: TrackPlaylistAggregator and aggregate_library()
    - selection: PlaylistSelection (paged browsing, toggle, play)
    - store: LibraryStore (library.json)
"""

from spot_library.library.aggregator import TrackPlaylistAggregator, aggregate_library
from spot_library.library.index import TrackIndex, index_stats
from spot_library.library.models import (
    AggregationResult,
    PlaylistFailure,
    PlaylistMembership,
    TrackRecord,
    membership_multiset,
)
from spot_library.library.selection import PlaylistSelection
from spot_library.library.store import LibraryStore

__all__ = [
    "TrackPlaylistAggregator",
    "aggregate_library",
    "TrackIndex",
    "index_stats",
    "AggregationResult",
    "PlaylistFailure",
    "PlaylistMembership",
    "TrackRecord",
    "membership_multiset",
    "PlaylistSelection",
    "LibraryStore",
]

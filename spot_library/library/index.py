"""
Deduplicated track index.

The TrackIndex maps track identity (Spotify id, or URI for local files) to a
TrackRecord. It is append-only per key: the first time an identity is seen
its catalog metadata is stored, and every later occurrence only appends a
membership. Metadata is never overwritten.

The index is not thread-safe. The aggregator is its only writer and folds
from a single thread; readers get an immutable snapshot().
"""

from types import MappingProxyType
from typing import Iterable, Mapping

from spot_library.library.models import PlaylistMembership, TrackRecord
from spot_library.spotify.models import Playlist, PlaylistTrackEntry


class TrackIndex:
    """Mutable identity -> TrackRecord mapping built during one run."""

    def __init__(self) -> None:
        self._records: dict[str, TrackRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, identity: object) -> bool:
        return identity in self._records

    def get(self, identity: str) -> TrackRecord | None:
        return self._records.get(identity)

    def add(self, playlist: Playlist, entry: PlaylistTrackEntry) -> bool:
        """
        Record one playlist entry.

        Returns:
            True if the entry was indexed, False if it has no track
            (removed from the catalog, or not a track at all).
        """
        if entry.track is None:
            return False

        membership = PlaylistMembership.from_entry(playlist, entry)
        identity = entry.track.identity
        record = self._records.get(identity)

        if record is None:
            self._records[identity] = TrackRecord(entry.track, (membership,))
        else:
            self._records[identity] = record.with_membership(membership)
        return True

    def add_playlist(self, playlist: Playlist, entries: Iterable[PlaylistTrackEntry]) -> int:
        """
        Fold every entry of one playlist, in order.

        Returns:
            Number of entries skipped because they had no track.
        """
        skipped = 0
        for entry in entries:
            if not self.add(playlist, entry):
                skipped += 1
        return skipped

    def snapshot(self) -> Mapping[str, TrackRecord]:
        """Read-only copy of the current state. Later adds do not show up in it."""
        return MappingProxyType(dict(self._records))


def index_stats(index: Mapping[str, TrackRecord]) -> dict[str, int]:
    """
    Summary counts of an index snapshot.

    Returns:
        Dict with keys: tracks, memberships, playlists, shared (tracks in
        more than one playlist), local.
    """
    playlists: set[str] = set()
    memberships = 0
    shared = 0
    local = 0

    for record in index.values():
        memberships += len(record.memberships)
        playlist_ids = record.playlist_ids
        playlists.update(playlist_ids)
        if len(playlist_ids) > 1:
            shared += 1
        if record.track.is_local:
            local += 1

    return {
        "tracks": len(index),
        "memberships": memberships,
        "playlists": len(playlists),
        "shared": shared,
        "local": local,
    }

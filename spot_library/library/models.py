"""
Data models of the aggregated library.

    PlaylistMembership - one track's presence in one playlist
    TrackRecord        - catalog metadata of a track plus all its memberships
    PlaylistFailure    - a playlist whose tracks could not be aggregated
    AggregationResult  - what one aggregation run hands back

All of them are frozen. A TrackRecord is replaced, never mutated, when a
new membership is added.
"""

from collections import Counter
from dataclasses import dataclass
from typing import Any, Mapping

from spot_library.core.exceptions import PartialAggregationError, SpotLibraryError
from spot_library.spotify.models import Playlist, PlaylistOwner, PlaylistTrackEntry, Track


@dataclass(frozen=True)
class PlaylistMembership:
    """
    One occurrence of a track in a playlist.

    Attributes:
        playlist_id: Spotify playlist ID.
        playlist_name: Playlist name at aggregation time.
        playlist_uri: Spotify URI of the playlist.
        playlist_href: Web API endpoint of the playlist.
        owner: Owner of the playlist.
        added_at: When the track was added (ISO timestamp), if known.
        added_by: Id of the user who added it, if known.
        is_local: True if this occurrence is a local file.
    """

    playlist_id: str
    playlist_name: str
    playlist_uri: str
    playlist_href: str
    owner: PlaylistOwner
    added_at: str | None = None
    added_by: str | None = None
    is_local: bool = False

    @classmethod
    def from_entry(cls, playlist: Playlist, entry: PlaylistTrackEntry) -> "PlaylistMembership":
        return cls(
            playlist_id=playlist.spotify_id,
            playlist_name=playlist.name,
            playlist_uri=playlist.uri,
            playlist_href=playlist.href,
            owner=playlist.owner,
            added_at=entry.added_at,
            added_by=entry.added_by,
            is_local=entry.is_local,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "playlist_id": self.playlist_id,
            "playlist_name": self.playlist_name,
            "playlist_uri": self.playlist_uri,
            "playlist_href": self.playlist_href,
            "owner_id": self.owner.spotify_id,
            "owner_name": self.owner.display_name,
            "added_at": self.added_at,
            "added_by": self.added_by,
            "is_local": self.is_local,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlaylistMembership":
        return cls(
            playlist_id=data["playlist_id"],
            playlist_name=data.get("playlist_name", ""),
            playlist_uri=data.get("playlist_uri", ""),
            playlist_href=data.get("playlist_href", ""),
            owner=PlaylistOwner(
                spotify_id=data.get("owner_id", ""),
                display_name=data.get("owner_name", ""),
            ),
            added_at=data.get("added_at"),
            added_by=data.get("added_by"),
            is_local=data.get("is_local", False),
        )


@dataclass(frozen=True)
class TrackRecord:
    """
    A deduplicated track of the library.

    Attributes:
        track: Catalog metadata as first seen during the run.
        memberships: Every occurrence of the track, in fold order. A track
                     listed twice in one playlist has two memberships for it.
    """

    track: Track
    memberships: tuple[PlaylistMembership, ...] = ()

    @property
    def identity(self) -> str:
        return self.track.identity

    @property
    def playlist_ids(self) -> tuple[str, ...]:
        """Distinct playlist ids, in order of first membership."""
        return tuple(dict.fromkeys(m.playlist_id for m in self.memberships))

    def with_membership(self, membership: PlaylistMembership) -> "TrackRecord":
        return TrackRecord(self.track, self.memberships + (membership,))

    def to_dict(self) -> dict[str, Any]:
        return {
            "track": self.track.to_dict(),
            "memberships": [m.to_dict() for m in self.memberships],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrackRecord":
        return cls(
            track=Track.from_dict(data["track"]),
            memberships=tuple(
                PlaylistMembership.from_dict(m) for m in data.get("memberships", [])
            ),
        )


@dataclass(frozen=True)
class PlaylistFailure:
    """A playlist whose walk stopped with an error."""

    playlist_id: str
    playlist_name: str
    error: SpotLibraryError

    @property
    def error_kind(self) -> str:
        kind = getattr(self.error, "kind", None)
        return kind.value if kind is not None else "protocol_mismatch"


@dataclass(frozen=True)
class AggregationResult:
    """
    Outcome of one aggregation run.

    Attributes:
        index: Immutable mapping of track identity to TrackRecord.
        playlists: Playlists that were walked (after selection), in listing order.
        failures: Playlists that failed, in the order they were folded.
        skipped: Entries that could not be indexed (removed tracks, episodes).
        cancelled: True if the run was cancelled before all playlists were folded.
    """

    index: Mapping[str, TrackRecord]
    playlists: tuple[Playlist, ...] = ()
    failures: tuple[PlaylistFailure, ...] = ()
    skipped: int = 0
    cancelled: bool = False

    @property
    def failed_playlist_ids(self) -> tuple[str, ...]:
        return tuple(f.playlist_id for f in self.failures)

    @property
    def membership_count(self) -> int:
        return sum(len(r.memberships) for r in self.index.values())

    @property
    def is_complete(self) -> bool:
        return not self.failures and not self.cancelled

    def raise_for_failures(self) -> None:
        """
        Raise PartialAggregationError if any playlist failed.

        The error carries the index so the caller can still persist it.
        """
        if not self.failures:
            return
        raise PartialAggregationError(
            f"{len(self.failures)} of {len(self.playlists)} playlists could not be aggregated",
            index=self.index,
            failures=self.failures,
            details={"failed_playlist_ids": list(self.failed_playlist_ids)}
        )


def membership_multiset(index: Mapping[str, TrackRecord]) -> dict[str, Counter]:
    """
    Order-free view of an index: identity -> multiset of memberships.

    Two runs over an unchanged library compare equal under this view no
    matter how their playlist walks were scheduled.
    """
    return {
        identity: Counter((m.playlist_id, m.added_at, m.added_by) for m in record.memberships)
        for identity, record in index.items()
    }

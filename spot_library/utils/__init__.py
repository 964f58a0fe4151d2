"""
Utility functions for spot-library.

This module provides small helpers used by the CLI:
    - Spotify playlist id extraction from URLs and URIs
    - Path helpers
    - Turning Ctrl+C into a cancel event for running aggregations

Usage:
    from spot_library.utils import (
        extract_playlist_id,
        ensure_directory,
        cancel_on_interrupt
    )
"""

import re
import signal
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from spot_library.core.logger import get_logger

logger = get_logger(__name__)


_PLAYLIST_URL_PATTERN = re.compile(
    r"^https?://open\.spotify\.com/(?:intl-[a-z]{2}/)?playlist/([A-Za-z0-9]+)"
)
_PLAYLIST_URI_PATTERN = re.compile(r"^spotify:(?:user:[^:]+:)?playlist:([A-Za-z0-9]+)$")
_SPOTIFY_ID_PATTERN = re.compile(r"^[A-Za-z0-9]{22}$")


def extract_playlist_id(value: str) -> str | None:
    """
    Extract a playlist id from a playlist URL, URI or bare id.

    Args:
        value: What the user typed.

    Returns:
        The playlist id, or None if value is none of the accepted forms.

    Examples:
        extract_playlist_id("https://open.spotify.com/playlist/37i9dQZF1DXcBWIGoYBM5M?si=x")
        # "37i9dQZF1DXcBWIGoYBM5M"
        extract_playlist_id("spotify:playlist:37i9dQZF1DXcBWIGoYBM5M")
        # "37i9dQZF1DXcBWIGoYBM5M"
        extract_playlist_id("3")
        # None (an index, not an id)
    """
    value = value.strip()

    for pattern in (_PLAYLIST_URL_PATTERN, _PLAYLIST_URI_PATTERN):
        match = pattern.match(value)
        if match:
            return match.group(1)

    if _SPOTIFY_ID_PATTERN.match(value):
        return value
    return None


def ensure_directory(path: Path) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Returns:
        The same path (for chaining).

    Raises:
        OSError: If directory cannot be created (permissions, etc.)
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


@contextmanager
def cancel_on_interrupt(cancel_event: threading.Event) -> Iterator[threading.Event]:
    """
    Set cancel_event on the first Ctrl+C instead of raising KeyboardInterrupt.

    Running walks then stop before their next page and the aggregation
    returns what it has. A second Ctrl+C raises KeyboardInterrupt as usual.
    The previous SIGINT handler is restored on exit.

    Must be entered from the main thread.

    Example:
        event = threading.Event()
        with cancel_on_interrupt(event):
            result = aggregator.aggregate()
    """
    def handle_interrupt(signum, frame) -> None:
        if cancel_event.is_set():
            raise KeyboardInterrupt
        logger.warning("Interrupted, finishing current pages (Ctrl+C again to abort)")
        cancel_event.set()

    previous = signal.signal(signal.SIGINT, handle_interrupt)
    try:
        yield cancel_event
    finally:
        signal.signal(signal.SIGINT, previous)


__all__ = [
    "extract_playlist_id",
    "ensure_directory",
    "cancel_on_interrupt",
]

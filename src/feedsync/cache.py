"""Process-wide memo of item identifiers seen while parsing.

When caching is enabled, transcoders record every item guid they produce
and skip items whose guid was already recorded, so a long-running process
only materializes entries it has not parsed before. The known set can be
exported with ``get_state`` and seeded again with ``restore``.
"""

import logging
import os
import threading
from collections.abc import Iterable

logger = logging.getLogger(__name__)


class KnownIdentifiers:
    """Lock-protected set of known item guids with an on/off switch."""

    def __init__(self, enabled: bool = False):
        self._lock = threading.Lock()
        self._enabled = enabled
        self._known: set[str] = set()

    @property
    def enabled(self) -> bool:
        with self._lock:
            return self._enabled

    def set_caching(self, flag: bool) -> bool:
        """Enable or disable caching. Returns the previous setting."""
        with self._lock:
            previous = self._enabled
            self._enabled = flag
        return previous

    def seen(self, guid: str) -> bool:
        """Report whether ``guid`` was already known, then record it.

        Always False (and nothing is recorded) while caching is disabled.
        """
        with self._lock:
            if not self._enabled:
                return False
            if guid in self._known:
                return True
            self._known.add(guid)
            return False

    def restore(self, known: Iterable[str]) -> None:
        """Replace the known set, e.g. with one loaded from storage."""
        with self._lock:
            self._known = set(known)
        logger.debug("Restored %d known identifiers", len(self._known))

    def snapshot(self) -> set[str]:
        with self._lock:
            return set(self._known)

    def clear(self) -> None:
        with self._lock:
            self._known.clear()


known_identifiers = KnownIdentifiers(
    enabled=os.environ.get("FEEDSYNC_CACHE_ITEM_IDS", "0") == "1"
)


def cache_parsed_item_ids(flag: bool) -> bool:
    """Enable or disable process-wide guid caching.

    Returns whether guids were cached before the call.
    """
    return known_identifiers.set_caching(flag)


def restore(known: Iterable[str]) -> None:
    """Seed the process-wide known set."""
    known_identifiers.restore(known)


def get_state() -> set[str]:
    """Export a copy of the process-wide known set."""
    return known_identifiers.snapshot()

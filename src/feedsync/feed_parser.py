"""RSS/Atom format detection and parsing."""

import enum

from feedsync.cache import KnownIdentifiers
from feedsync.models import Feed
from feedsync.transcoders import parse_atom, parse_rss1, parse_rss2

RSS2_MARKER = b"<rss"
RSS1_MARKER = b'xmlns="http://purl.org/rss/1.0/"'


class Dialect(enum.Enum):
    RSS2 = "rss2"
    RSS1 = "rss1"
    ATOM = "atom"


_TRANSCODERS = {
    Dialect.RSS2: parse_rss2,
    Dialect.RSS1: parse_rss1,
    Dialect.ATOM: parse_atom,
}


def classify(data: bytes | str) -> Dialect:
    """Guess the dialect of a feed document from its raw bytes.

    This is substring sniffing, checked in order: an ``<rss`` tag means
    RSS 2.0, the RSS 1.0 default namespace means RSS 1.0, and anything
    else is treated as Atom. Atom is never verified here, so unknown or
    broken payloads end up in the Atom transcoder, which reports them.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    if RSS2_MARKER in data:
        return Dialect.RSS2
    if RSS1_MARKER in data:
        return Dialect.RSS1
    return Dialect.ATOM


def parse(data: bytes | str, cache: KnownIdentifiers | None = None) -> Feed:
    """Parse RSS or Atom data into a Feed snapshot.

    Args:
        data: The raw feed document.
        cache: Identifier cache consulted by the transcoder. Defaults to
            the process-wide one.

    Raises:
        FeedParseError: If the document does not match its dialect.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    return _TRANSCODERS[classify(data)](data, cache)

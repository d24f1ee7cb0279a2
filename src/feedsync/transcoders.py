"""RSS 2.0, RSS 1.0 and Atom transcoders built on feedparser.

Each transcoder turns one dialect into a :class:`~feedsync.models.Feed`
snapshot. feedparser does the XML work; the transcoders check that the
document really is their dialect, reject malformed XML and resolve a
stable guid for every entry.
"""

import logging
import xml.sax
from datetime import datetime, timedelta, timezone
from time import struct_time

import feedparser

from feedsync.cache import KnownIdentifiers, known_identifiers
from feedsync.errors import FeedParseError, FeedRootError
from feedsync.models import Feed, Image, Item, utcnow

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL = timedelta(minutes=10)

RSS2_VERSIONS = frozenset(
    {"rss", "rss091n", "rss091u", "rss092", "rss093", "rss094", "rss20"}
)
RSS1_VERSIONS = frozenset({"rss090", "rss10"})

# sy:updatePeriod values
_SYNDICATION_PERIODS = {
    "hourly": timedelta(hours=1),
    "daily": timedelta(days=1),
    "weekly": timedelta(weeks=1),
    "monthly": timedelta(days=30),
    "yearly": timedelta(days=365),
}


def parse_rss2(data: bytes, cache: KnownIdentifiers | None = None) -> Feed:
    """Parse an RSS 0.9x/2.0 document."""
    parsed = _feedparse(data, "rss2")
    version = parsed.get("version", "")
    if version not in RSS2_VERSIONS:
        raise FeedRootError("rss", version)
    return _to_feed(parsed, _rss2_refresh_interval(parsed.feed), cache)


def parse_rss1(data: bytes, cache: KnownIdentifiers | None = None) -> Feed:
    """Parse an RSS 1.0 (RDF) document."""
    parsed = _feedparse(data, "rss1")
    version = parsed.get("version", "")
    if version not in RSS1_VERSIONS:
        raise FeedRootError("rdf:RDF", version)
    return _to_feed(parsed, _syndication_interval(parsed.feed), cache)


def parse_atom(data: bytes, cache: KnownIdentifiers | None = None) -> Feed:
    """Parse an Atom document.

    Raises FeedRootError when the payload has no Atom ``<feed>`` root,
    which is what an HTML login page served in place of a feed looks like.
    """
    parsed = feedparser.parse(data)
    version = parsed.get("version", "")
    if not version.startswith("atom"):
        raise FeedRootError("feed", version)
    _raise_if_malformed(parsed, "atom")
    return _to_feed(parsed, DEFAULT_REFRESH_INTERVAL, cache)


def _feedparse(data: bytes, dialect: str) -> feedparser.FeedParserDict:
    parsed = feedparser.parse(data)
    _raise_if_malformed(parsed, dialect)
    return parsed


def _raise_if_malformed(parsed: feedparser.FeedParserDict, dialect: str) -> None:
    """Reject documents feedparser could only read with its lenient parser."""
    exc = parsed.get("bozo_exception")
    if parsed.bozo and isinstance(exc, xml.sax.SAXException):
        raise FeedParseError(f"{dialect}: malformed document: {exc}")


def _to_feed(
    parsed: feedparser.FeedParserDict,
    refresh_interval: timedelta,
    cache: KnownIdentifiers | None,
) -> Feed:
    cache = cache if cache is not None else known_identifiers
    now = utcnow()
    channel = parsed.feed

    feed = Feed(
        title=channel.get("title", ""),
        description=channel.get("subtitle") or channel.get("description", ""),
        link=channel.get("link", ""),
        image=_extract_image(channel),
        refresh=now + refresh_interval,
    )

    for entry in parsed.entries:
        item = _extract_item(entry, now)
        if item is None:
            continue
        if cache.seen(item.guid):
            logger.debug("Skipping already known item %s", item.guid)
            continue
        feed.items.append(item)

    return feed


def _extract_item(entry: dict, now: datetime) -> Item | None:
    """Build an Item from a feedparser entry, or None if it has no identity."""
    title = entry.get("title", "")
    link = entry.get("link", "")
    guid = entry.get("id") or link or title
    if not guid:
        logger.warning("Skipping entry with no identifier: %r", entry.get("summary", "")[:80])
        return None

    updated = _to_datetime(entry.get("updated_parsed"))
    published = _to_datetime(entry.get("published_parsed"))

    content = entry.get("content")
    if content:
        body = content[0].get("value", "")
    else:
        body = entry.get("summary", "")

    return Item(
        guid=guid,
        title=title,
        content=body,
        link=link,
        date=updated or published or now,
        pub_date=published or updated,
    )


def _extract_image(channel: dict) -> Image | None:
    image = channel.get("image")
    if not image or not image.get("href"):
        # Atom <logo>
        logo = channel.get("logo")
        return Image(url=logo) if logo else None
    return Image(
        title=image.get("title", ""),
        url=image["href"],
        height=_to_int(image.get("height")),
        width=_to_int(image.get("width")),
    )


def _rss2_refresh_interval(channel: dict) -> timedelta:
    ttl = _to_int(channel.get("ttl"))
    if ttl > 0:
        return timedelta(minutes=ttl)
    return DEFAULT_REFRESH_INTERVAL


def _syndication_interval(channel: dict) -> timedelta:
    period = _SYNDICATION_PERIODS.get((channel.get("sy_updateperiod") or "").strip().lower())
    if period is None:
        return DEFAULT_REFRESH_INTERVAL
    frequency = _to_int(channel.get("sy_updatefrequency")) or 1
    return period / frequency


def _to_datetime(value: struct_time | None) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime(*value[:6], tzinfo=timezone.utc)
    except (TypeError, ValueError):
        return None


def _to_int(value) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return 0

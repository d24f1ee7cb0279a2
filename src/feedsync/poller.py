"""One-shot concurrent refresh of many feeds."""

import asyncio
import logging
from collections.abc import Iterable

from feedsync.engine import FeedFetcher, update
from feedsync.errors import FeedSyncError
from feedsync.models import Feed

logger = logging.getLogger(__name__)


async def poll_feeds_once(
    feeds: Iterable[Feed], fetch_feed: FeedFetcher | None = None
) -> int:
    """Update every feed once, each in its own worker thread.

    A feed listed twice is only updated once, so no Feed is ever mutated
    by two threads. Failures are logged per feed and do not affect the
    others. Returns the total count of new items.
    """
    unique: dict[int, Feed] = {}
    for feed in feeds:
        unique.setdefault(id(feed), feed)

    counts = await asyncio.gather(
        *(_poll_feed(feed, fetch_feed) for feed in unique.values())
    )
    return sum(counts)


async def _poll_feed(feed: Feed, fetch_feed: FeedFetcher | None) -> int:
    before = feed.unread
    try:
        await asyncio.to_thread(update, feed, fetch_feed)
    except FeedSyncError as e:
        logger.warning("Feed '%s' error: %s", feed.name, e)
        return 0
    except Exception as e:
        logger.warning("Feed '%s' unexpected error: %s", feed.name, e)
        return 0
    return feed.unread - before

"""Entry point for feedsync: python -m feedsync URL [URL ...]"""

import argparse
import asyncio
import logging
import os

from feedsync import cache
from feedsync.database import Database
from feedsync.models import Feed
from feedsync.poller import poll_feeds_once

DEFAULT_DB_PATH = "feedsync.db"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)
# Quiet noisy loggers
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger("feedsync")


async def sync(db: Database, urls: list[str]) -> dict[str, int]:
    """Refresh the stored feeds plus any new URLs once and save the result.

    Returns the number of new items per feed URL.
    """
    cache.restore(db.load_known_identifiers())

    feeds = {feed.update_url: feed for feed in db.get_all_feeds()}
    for url in urls:
        if url not in feeds:
            logger.info("Subscribing to %s", url)
            feeds[url] = Feed(update_url=url)

    before = {url: feed.unread for url, feed in feeds.items()}
    await poll_feeds_once(feeds.values())

    for feed in feeds.values():
        if feed.title:
            db.save_feed(feed)
    db.save_known_identifiers(cache.get_state())

    return {url: feed.unread - before[url] for url, feed in feeds.items()}


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="feedsync",
        description="Poll stored feeds plus any new feed URLs once and save new items.",
    )
    p.add_argument("urls", nargs="*", metavar="URL", help="Feed URL to subscribe to.")
    p.add_argument(
        "--db",
        default=os.environ.get("FEEDSYNC_DB_PATH", DEFAULT_DB_PATH),
        help="SQLite database path (default: %(default)s, from FEEDSYNC_DB_PATH if set).",
    )
    return p.parse_args(argv)


async def main(argv: list[str] | None = None) -> None:
    """Poll the given feeds once and report new items."""
    args = _parse_args(argv)

    db = Database(args.db)
    db.connect()
    try:
        counts = await sync(db, args.urls)
    finally:
        db.close()

    if not counts:
        print("No feeds. Pass one or more feed URLs; see --help.")
    for url, count in counts.items():
        print(f"{url}: {count} new")


if __name__ == "__main__":
    asyncio.run(main())

"""Merging freshly fetched snapshots into a feed's history.

``update`` and ``get_new`` share the fetch step but differ on purpose:

- ``update`` is rate limited by ``Feed.refresh`` and deduplicates against
  the feed's ledger, so it is safe to call from a scheduler as often as
  you like. Errors propagate silently without touching the feed.
- ``get_new`` always fetches and returns every item of the snapshot as
  new, leaving ``items`` and ``item_map`` alone. Failures are also
  recorded in ``Feed.status`` for display.

Neither function locks the feed; callers must not run two operations on
the same Feed at once.
"""

import logging
from collections.abc import Callable
from datetime import timedelta

from feedsync import fetcher
from feedsync.errors import AuthenticationError, CertificateUntrustedError, NoURLError
from feedsync.models import Credentials, Feed, Item, utcnow

logger = logging.getLogger(__name__)

FeedFetcher = Callable[[str, bool, Credentials], Feed]

STALE_AFTER = timedelta(hours=24)

STATUS_UPDATED = "Updated"
STATUS_NOT_MODIFIED = "not modified"
STATUS_UNTRUSTED = "error: Certificat signed by unknown authority"
STATUS_WRONG_LOGIN = "error: Wrong Login/Password"
STATUS_FETCH_FAILED = "error: Unable to fetch feed"


def update(feed: Feed, fetch_feed: FeedFetcher | None = None) -> None:
    """Fetch any new items and merge them into ``feed``.

    Does nothing while ``feed.refresh`` lies in the future. Items whose
    guid is already in the ledger are dropped; existing items are never
    rewritten.

    Raises:
        NoURLError: If the feed has no update URL.
        FetchError, FeedParseError: If fetching or parsing fails. The feed
            is left unmodified.
    """
    if not feed.update_url:
        raise NoURLError()

    now = utcnow()
    if feed.refresh is not None and feed.refresh > now:
        logger.debug("Feed '%s' not due until %s", feed.name, feed.refresh)
        return

    feed.ensure_item_map()

    fetch_feed = fetch_feed or fetcher.fetch
    snapshot = fetch_feed(feed.update_url, feed.insecure, feed.credentials)

    feed.refresh = snapshot.refresh
    feed.title = snapshot.title
    feed.description = snapshot.description
    feed.update_date = utcnow()

    admitted = sum(1 for item in snapshot.items if feed.add_item(item))
    if admitted:
        logger.info("Feed '%s': %d new items", feed.name, admitted)


def get_new(feed: Feed, fetch_feed: FeedFetcher | None = None) -> list[Item]:
    """Fetch ``feed`` and return every item of the current snapshot.

    Items dated more than a day ago get the fetch time as their date,
    since such dates are usually missing or placeholders. ``feed.unread``
    grows by the number of returned items.

    Raises:
        NoURLError: If the feed has no update URL.
        FetchError, FeedParseError: If fetching or parsing fails;
            ``feed.status`` describes the failure.
    """
    if not feed.update_url:
        raise NoURLError()

    fetch_feed = fetch_feed or fetcher.fetch
    try:
        snapshot = fetch_feed(feed.update_url, feed.insecure, feed.credentials)
    except Exception as exc:
        feed.status = _failure_status(feed, exc)
        logger.debug("Feed '%s' fetch failed: %s", feed.name, exc)
        raise

    now = utcnow()
    feed.refresh = snapshot.refresh
    feed.title = snapshot.title
    feed.description = snapshot.description
    feed.update_date = now
    feed.status = STATUS_UPDATED

    articles = []
    for item in snapshot.items:
        if now - item.date > STALE_AFTER:
            item.date = now
        if not item.feed:
            item.feed = feed.name
        articles.append(item)
        feed.unread += 1

    if not articles:
        feed.status = STATUS_NOT_MODIFIED

    return articles


def _failure_status(feed: Feed, exc: Exception) -> str:
    if isinstance(exc, CertificateUntrustedError):
        return STATUS_UNTRUSTED
    if isinstance(exc, AuthenticationError) and feed.credentials.username:
        return STATUS_WRONG_LOGIN
    return STATUS_FETCH_FAILED

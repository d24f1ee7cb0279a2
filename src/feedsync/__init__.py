"""Fetch RSS 1.0, RSS 2.0 and Atom feeds and merge new items into feed history."""

from feedsync.cache import cache_parsed_item_ids, get_state, restore
from feedsync.engine import get_new, update
from feedsync.errors import (
    AuthenticationError,
    CertificateUntrustedError,
    FeedParseError,
    FeedRootError,
    FeedSyncError,
    FetchError,
    NoURLError,
    TransportError,
)
from feedsync.feed_parser import Dialect, classify, parse
from feedsync.fetcher import fetch, fetch_by_client, fetch_by_func
from feedsync.models import Credentials, Feed, Image, Item

__version__ = "0.1.0"

__all__ = [
    "AuthenticationError",
    "CertificateUntrustedError",
    "Credentials",
    "Dialect",
    "Feed",
    "FeedParseError",
    "FeedRootError",
    "FeedSyncError",
    "FetchError",
    "Image",
    "Item",
    "NoURLError",
    "TransportError",
    "cache_parsed_item_ids",
    "classify",
    "fetch",
    "fetch_by_client",
    "fetch_by_func",
    "get_new",
    "get_state",
    "parse",
    "restore",
    "update",
]

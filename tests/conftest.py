"""Shared test fixtures for feedsync tests."""

import os
import tempfile
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from feedsync import cache
from feedsync.models import Feed, Item, utcnow


SAMPLE_RSS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Test Feed</title>
    <link>https://example.com</link>
    <description>A test RSS feed</description>
    <ttl>60</ttl>
    <image>
      <title>Test Feed Logo</title>
      <url>https://example.com/logo.png</url>
      <link>https://example.com</link>
      <width>88</width>
      <height>31</height>
    </image>
    <item>
      <title>First Article</title>
      <link>https://example.com/article-1</link>
      <guid>article-1</guid>
      <description>Description of the first article</description>
      <pubDate>Fri, 13 Feb 2026 10:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Second Article</title>
      <link>https://example.com/article-2</link>
      <guid>article-2</guid>
      <description>Description of the second article</description>
      <pubDate>Fri, 13 Feb 2026 09:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>"""

SAMPLE_RSS1_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rdf:RDF
  xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#"
  xmlns:dc="http://purl.org/dc/elements/1.1/"
  xmlns="http://purl.org/rss/1.0/">
  <channel rdf:about="https://example.org/">
    <title>Test RDF Feed</title>
    <link>https://example.org/</link>
    <description>A test RSS 1.0 feed</description>
    <items>
      <rdf:Seq>
        <rdf:li rdf:resource="https://example.org/one"/>
        <rdf:li rdf:resource="https://example.org/two"/>
      </rdf:Seq>
    </items>
  </channel>
  <item rdf:about="https://example.org/one">
    <title>RDF One</title>
    <link>https://example.org/one</link>
    <description>First RDF item</description>
    <dc:date>2026-02-13T10:00:00Z</dc:date>
  </item>
  <item rdf:about="https://example.org/two">
    <title>RDF Two</title>
    <link>https://example.org/two</link>
    <description>Second RDF item</description>
  </item>
</rdf:RDF>"""

SAMPLE_ATOM_XML = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Test Atom Feed</title>
  <link href="https://example.com"/>
  <subtitle>A test Atom feed</subtitle>
  <id>urn:uuid:feed</id>
  <updated>2026-02-13T10:00:00Z</updated>
  <entry>
    <title>Atom Entry 1</title>
    <link href="https://example.com/entry-1"/>
    <id>urn:uuid:entry-1</id>
    <summary>Summary of entry 1</summary>
    <updated>2026-02-13T10:00:00Z</updated>
  </entry>
</feed>"""

SAMPLE_MALFORMED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Malformed Feed</title>
    <link>https://example.com</link>
    <item>
      <title>Good Item</title>
      <guid>good-item</guid>
    </item>
    <item>
      <title>Bad Item</title>
      <!-- Missing closing tags intentionally -->
"""

SAMPLE_NOT_A_FEED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<html>
  <body>This is not a feed</body>
</html>"""

SAMPLE_LOGIN_PAGE = """<!DOCTYPE html>
<html>
  <head><title>Sign in</title></head>
  <body>
    <form action="/login" method="post">
      <input name="username">
      <input name="password" type="password">
    </form>
  </body>
</html>"""


def assert_ledger_consistent(feed: Feed) -> None:
    """Items carry unique guids, all of them recorded in item_map."""
    guids = [item.guid for item in feed.items]
    assert len(guids) == len(set(guids))
    assert feed.item_map is not None
    assert set(guids) <= feed.item_map


def make_snapshot(
    guids,
    *,
    title="Snapshot Feed",
    description="Snapshot description",
    refresh_in=timedelta(minutes=10),
    date=None,
) -> Feed:
    """Build a freshly parsed feed holding one item per guid."""
    now = utcnow()
    return Feed(
        title=title,
        description=description,
        refresh=now + refresh_in,
        items=[
            Item(guid=guid, title=f"Item {guid}", date=date or now)
            for guid in guids
        ],
    )


@pytest.fixture(autouse=True)
def isolated_known_identifiers():
    """Run each test with an empty, disabled process-wide identifier cache."""
    previous = cache.cache_parsed_item_ids(False)
    saved = cache.get_state()
    cache.known_identifiers.clear()
    yield
    cache.restore(saved)
    cache.cache_parsed_item_ids(previous)


@pytest.fixture
def tmp_db_path():
    """Provide a temporary SQLite database path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        path = f.name
    yield path
    for suffix in ("", "-wal", "-shm"):
        try:
            os.unlink(path + suffix)
        except OSError:
            pass


@pytest.fixture
def sample_rss_xml():
    """Sample valid RSS 2.0 XML."""
    return SAMPLE_RSS_XML


@pytest.fixture
def sample_rss1_xml():
    """Sample valid RSS 1.0 XML."""
    return SAMPLE_RSS1_XML


@pytest.fixture
def sample_atom_xml():
    """Sample valid Atom XML."""
    return SAMPLE_ATOM_XML


@pytest.fixture
def sample_malformed_xml():
    """Sample malformed RSS XML."""
    return SAMPLE_MALFORMED_XML


@pytest.fixture
def sample_not_a_feed_xml():
    """Sample XML that is not a feed."""
    return SAMPLE_NOT_A_FEED_XML


@pytest.fixture
def sample_login_page():
    """HTML login page served instead of a feed."""
    return SAMPLE_LOGIN_PAGE


@pytest.fixture
def check_ledger():
    return assert_ledger_consistent


@pytest.fixture
def snapshot_fetcher():
    """Create a mock fetch_feed that returns a new snapshot on every call."""

    def factory(guids, **kwargs):
        return MagicMock(side_effect=lambda *args: make_snapshot(guids, **kwargs))

    return factory


@pytest.fixture
def rss_feed():
    """A subscribed feed that has never been fetched."""
    return Feed(nickname="news", update_url="https://example.com/feed.xml")

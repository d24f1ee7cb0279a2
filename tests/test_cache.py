"""Tests for the process-wide identifier cache."""

import threading

from feedsync import cache
from feedsync.cache import KnownIdentifiers
from feedsync.feed_parser import parse


def test_set_caching_returns_previous_value():
    known = KnownIdentifiers()
    assert known.enabled is False
    assert known.set_caching(True) is False
    assert known.set_caching(True) is True
    assert known.set_caching(False) is True
    assert known.enabled is False


def test_seen_records_only_when_enabled():
    known = KnownIdentifiers()
    assert known.seen("a") is False
    assert known.snapshot() == set()

    known.set_caching(True)
    assert known.seen("a") is False
    assert known.seen("a") is True
    assert known.snapshot() == {"a"}


def test_snapshot_is_a_copy():
    known = KnownIdentifiers(enabled=True)
    known.seen("a")
    snapshot = known.snapshot()
    snapshot.add("b")
    assert known.snapshot() == {"a"}


def test_concurrent_seen_admits_each_guid_once():
    known = KnownIdentifiers(enabled=True)
    first_sightings = []
    lock = threading.Lock()

    def worker():
        for n in range(200):
            if not known.seen(f"guid-{n}"):
                with lock:
                    first_sightings.append(n)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(first_sightings) == list(range(200))


def test_module_functions_use_process_wide_cache(sample_rss_xml):
    assert cache.cache_parsed_item_ids(True) is False

    assert len(parse(sample_rss_xml).items) == 2
    assert cache.get_state() == {"article-1", "article-2"}
    assert parse(sample_rss_xml).items == []

    cache.restore({"article-2"})
    assert [item.guid for item in parse(sample_rss_xml).items] == ["article-1"]

    assert cache.cache_parsed_item_ids(False) is True
    assert len(parse(sample_rss_xml).items) == 2

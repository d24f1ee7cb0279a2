"""SQLite persistence for feeds, items and known identifiers."""

import sqlite3
from collections.abc import Iterable
from datetime import datetime

from feedsync.models import Credentials, Feed, Image, Item

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS feeds (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    update_url TEXT UNIQUE NOT NULL,
    nickname TEXT NOT NULL DEFAULT '',
    title TEXT NOT NULL DEFAULT '',
    description TEXT NOT NULL DEFAULT '',
    link TEXT NOT NULL DEFAULT '',
    image_title TEXT,
    image_url TEXT,
    image_height INTEGER,
    image_width INTEGER,
    refresh TEXT,
    update_date TEXT,
    unread INTEGER DEFAULT 0,
    status TEXT NOT NULL DEFAULT '',
    insecure INTEGER DEFAULT 0,
    username TEXT NOT NULL DEFAULT '',
    password TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    feed_id INTEGER NOT NULL REFERENCES feeds(id) ON DELETE CASCADE,
    guid TEXT NOT NULL,
    title TEXT NOT NULL DEFAULT '',
    content TEXT NOT NULL DEFAULT '',
    link TEXT NOT NULL DEFAULT '',
    date TEXT NOT NULL,
    pub_date TEXT,
    is_read INTEGER DEFAULT 0,
    feed TEXT NOT NULL DEFAULT '',
    UNIQUE(feed_id, guid)
);

CREATE INDEX IF NOT EXISTS idx_items_feed_id ON items(feed_id);

CREATE TABLE IF NOT EXISTS known_ids (
    guid TEXT PRIMARY KEY
);
"""


class Database:
    """SQLite database manager for feeds and items."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> None:
        """Open database connection and initialize schema."""
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(SCHEMA_SQL)
        self._conn.commit()

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._conn

    # --- Feed operations ---

    def save_feed(self, feed: Feed) -> Feed:
        """Insert or update a feed, then store any items not yet stored.

        Feeds are matched on ``update_url``. Returns the feed with its id.
        """
        if not feed.update_url:
            raise ValueError("Cannot store a feed without an update URL")

        if feed.id is None:
            row = self.conn.execute(
                "SELECT id FROM feeds WHERE update_url = ?", (feed.update_url,)
            ).fetchone()
            if row:
                feed.id = row["id"]

        image = feed.image or Image()
        values = (
            feed.nickname,
            feed.title,
            feed.description,
            feed.link,
            image.title if feed.image else None,
            image.url if feed.image else None,
            image.height if feed.image else None,
            image.width if feed.image else None,
            _dt_to_str(feed.refresh),
            _dt_to_str(feed.update_date),
            feed.unread,
            feed.status,
            int(feed.insecure),
            feed.credentials.username,
            feed.credentials.password,
        )

        if feed.id is None:
            cursor = self.conn.execute(
                """INSERT INTO feeds (nickname, title, description, link,
                   image_title, image_url, image_height, image_width,
                   refresh, update_date, unread, status, insecure,
                   username, password, update_url)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (*values, feed.update_url),
            )
            feed.id = cursor.lastrowid
        else:
            self.conn.execute(
                """UPDATE feeds SET nickname = ?, title = ?, description = ?,
                   link = ?, image_title = ?, image_url = ?, image_height = ?,
                   image_width = ?, refresh = ?, update_date = ?, unread = ?,
                   status = ?, insecure = ?, username = ?, password = ?,
                   update_url = ?
                   WHERE id = ?""",
                (*values, feed.update_url, feed.id),
            )
        self.conn.commit()

        self.add_items(feed.id, [item for item in feed.items if item.id is None])
        return feed

    def get_feed_by_url(self, url: str) -> Feed | None:
        """Look up a feed by its update URL, items included."""
        row = self.conn.execute(
            "SELECT * FROM feeds WHERE update_url = ?", (url,)
        ).fetchone()
        return self._load_feed(row) if row else None

    def get_all_feeds(self) -> list[Feed]:
        """Return all feeds with their items, in insertion order."""
        rows = self.conn.execute("SELECT * FROM feeds ORDER BY id").fetchall()
        return [self._load_feed(r) for r in rows]

    def _load_feed(self, row: sqlite3.Row) -> Feed:
        # item_map is left unset; update() rebuilds it from the items.
        feed = _row_to_feed(row)
        feed.items = self.get_items_by_feed_id(feed.id)
        return feed

    # --- Item operations ---

    def add_items(self, feed_id: int, items: list[Item]) -> int:
        """Insert items, skipping duplicates. Returns count of inserted items."""
        inserted = 0
        for item in items:
            try:
                cursor = self.conn.execute(
                    """INSERT INTO items (feed_id, guid, title, content, link,
                       date, pub_date, is_read, feed)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                    (
                        feed_id,
                        item.guid,
                        item.title,
                        item.content,
                        item.link,
                        _dt_to_str(item.date),
                        _dt_to_str(item.pub_date),
                        int(item.read),
                        item.feed,
                    ),
                )
                item.id = cursor.lastrowid
                inserted += 1
            except sqlite3.IntegrityError:
                # Duplicate (feed_id, guid), skip
                continue
        self.conn.commit()
        return inserted

    def get_items_by_feed_id(self, feed_id: int) -> list[Item]:
        """Get items for a feed in the order they were admitted."""
        rows = self.conn.execute(
            "SELECT * FROM items WHERE feed_id = ? ORDER BY id", (feed_id,)
        ).fetchall()
        return [_row_to_item(r) for r in rows]

    # --- Known identifiers ---

    def save_known_identifiers(self, known: Iterable[str]) -> None:
        """Replace the stored known-identifier set."""
        self.conn.execute("DELETE FROM known_ids")
        self.conn.executemany(
            "INSERT OR IGNORE INTO known_ids (guid) VALUES (?)",
            ((guid,) for guid in known),
        )
        self.conn.commit()

    def load_known_identifiers(self) -> set[str]:
        rows = self.conn.execute("SELECT guid FROM known_ids").fetchall()
        return {r["guid"] for r in rows}


# --- Helper functions ---


def _dt_to_str(dt: datetime | None) -> str | None:
    """Convert datetime to ISO string for storage."""
    return dt.isoformat() if dt else None


def _str_to_dt(s: str | None) -> datetime | None:
    """Convert stored ISO string back to datetime."""
    if not s:
        return None
    return datetime.fromisoformat(s)


def _row_to_feed(row: sqlite3.Row) -> Feed:
    """Convert a database row to a Feed dataclass."""
    image = None
    if row["image_url"]:
        image = Image(
            title=row["image_title"] or "",
            url=row["image_url"],
            height=row["image_height"] or 0,
            width=row["image_width"] or 0,
        )
    return Feed(
        id=row["id"],
        nickname=row["nickname"],
        title=row["title"],
        description=row["description"],
        link=row["link"],
        update_url=row["update_url"],
        image=image,
        refresh=_str_to_dt(row["refresh"]),
        update_date=_str_to_dt(row["update_date"]),
        unread=row["unread"],
        status=row["status"],
        insecure=bool(row["insecure"]),
        credentials=Credentials(row["username"], row["password"]),
    )


def _row_to_item(row: sqlite3.Row) -> Item:
    """Convert a database row to an Item dataclass."""
    return Item(
        id=row["id"],
        guid=row["guid"],
        title=row["title"],
        content=row["content"],
        link=row["link"],
        date=_str_to_dt(row["date"]),
        pub_date=_str_to_dt(row["pub_date"]),
        read=bool(row["is_read"]),
        feed=row["feed"],
    )

"""Data models for feedsync."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

DATE_FORMAT = "%a %d %b %Y %H:%M:%S %Z"


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Credentials:
    """Basic-auth username/password pair."""

    username: str = ""
    password: str = ""

    def is_set(self) -> bool:
        return bool(self.username and self.password)


@dataclass
class Image:
    """Feed artwork metadata."""

    title: str = ""
    url: str = ""
    height: int = 0
    width: int = 0

    def __str__(self) -> str:
        return f"Image {self.title!r}"


@dataclass
class Item:
    """Represents a single entry from a feed."""

    guid: str
    title: str = ""
    content: str = ""
    link: str = ""
    date: datetime = field(default_factory=utcnow)
    pub_date: datetime | None = None
    read: bool = False
    feed: str = ""
    id: int | None = None

    def format(self, indent: str = "") -> str:
        return (
            f"Item {self.title!r}\n"
            f"\t{indent}{self.link!r}\n"
            f"\t{indent}{self.date.strftime(DATE_FORMAT)}\n"
            f"\t{indent}{self.guid!r}\n"
            f"\t{indent}Read: {self.read}\n"
            f"\t{indent}{self.content!r}"
        )

    def __str__(self) -> str:
        return self.format()


@dataclass
class Feed:
    """A syndication source plus its accumulated item history.

    ``item_map`` is the dedup ledger: the set of every item guid ever
    admitted into ``items``. It is ``None`` until built, which is the case
    for feeds loaded from storage; ``ensure_item_map`` builds it from the
    stored items.
    """

    nickname: str = ""
    title: str = ""
    description: str = ""
    link: str = ""
    update_url: str = ""
    image: Image | None = None
    items: list[Item] = field(default_factory=list)
    item_map: set[str] | None = None
    refresh: datetime | None = None
    update_date: datetime | None = None
    unread: int = 0
    id: int | None = None
    status: str = ""
    insecure: bool = False
    credentials: Credentials = field(default_factory=Credentials)

    @property
    def name(self) -> str:
        return self.nickname or self.title

    def ensure_item_map(self) -> set[str]:
        """Build the dedup ledger from ``items`` if it is missing."""
        if self.item_map is None:
            self.item_map = {item.guid for item in self.items}
        return self.item_map

    def add_item(self, item: Item) -> bool:
        """Admit ``item`` unless its guid is already known.

        Returns True if the item was appended.
        """
        known = self.ensure_item_map()
        if item.guid in known:
            return False
        if not item.feed:
            item.feed = self.name
        self.items.append(item)
        known.add(item.guid)
        self.unread += 1
        return True

    def __str__(self) -> str:
        refresh = self.refresh.strftime(DATE_FORMAT) if self.refresh else "now"
        lines = [
            f"Feed {self.title!r}",
            f"\t{self.description!r}",
            f"\t{self.link!r}",
            f"\t{self.image}",
            f"\tRefresh at {refresh}",
            f"\tUnread: {self.unread}",
            "\tItems:",
        ]
        indent = "\t\t"
        lines.extend(f"\t{item.format(indent)}" for item in self.items)
        return "\n".join(lines) + "\n"

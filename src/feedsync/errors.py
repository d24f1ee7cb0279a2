"""Exceptions raised by feedsync.

Fetch failures are classified where they happen, so callers can tell
them apart by type:

    FeedSyncError
    ├── NoURLError
    ├── FetchError
    │   ├── TransportError
    │   ├── CertificateUntrustedError
    │   └── AuthenticationError
    └── FeedParseError
        └── FeedRootError
"""


class FeedSyncError(Exception):
    """Base exception for feedsync."""


class NoURLError(FeedSyncError):
    """Raised when a feed has no URL to fetch from."""

    def __init__(self, message: str = "feed has no URL"):
        super().__init__(message)


class FetchError(FeedSyncError):
    """Raised when a feed cannot be retrieved."""


class TransportError(FetchError):
    """Network-level failure while fetching a feed."""


class CertificateUntrustedError(FetchError):
    """The server's TLS certificate is not trusted."""

    def __init__(self, message: str = "certificate signed by unknown authority"):
        super().__init__(message)


class AuthenticationError(FetchError):
    """The server rejected the supplied credentials."""

    def __init__(self, message: str = "wrong login/password"):
        super().__init__(message)


class FeedParseError(FeedSyncError):
    """Raised when a feed document cannot be parsed."""


class FeedRootError(FeedParseError):
    """The document root is not the element the dialect requires."""

    def __init__(self, expected: str, found: str = ""):
        self.expected = expected
        self.found = found
        detail = f" (document looks like {found})" if found else ""
        super().__init__(f"expected element type <{expected}>{detail}")

"""Feed retrieval over HTTP using httpx.

Three entry points, each built on the next:

- ``fetch`` builds an httpx client for the URL.
- ``fetch_by_client`` issues the GET on a caller-supplied client, which is
  where proxies, timeouts and test transports go.
- ``fetch_by_func`` runs any zero-argument fetch function and parses what
  it returns.

Transport failures are classified here, so callers switch on exception
type rather than on error text.
"""

import logging
import os
import ssl
from collections.abc import Callable
from typing import Any

import httpx

from feedsync.cache import KnownIdentifiers
from feedsync.errors import (
    AuthenticationError,
    CertificateUntrustedError,
    FeedRootError,
    TransportError,
)
from feedsync.feed_parser import parse
from feedsync.models import Credentials, Feed

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "feedsync/0.1"

# OpenSSL X509_V_ERR_* codes meaning the issuer chain could not be trusted:
# self-signed leaf, self-signed in chain, missing local issuer, leaf
# signature unverifiable.
UNTRUSTED_ISSUER_CODES = frozenset({18, 19, 20, 21})

FetchFunc = Callable[[], Any]
"""Zero-argument callable returning an httpx.Response (or raw bytes)."""


def fetch(
    url: str,
    insecure: bool = False,
    credentials: Credentials | None = None,
    *,
    timeout: float | None = None,
    cache: KnownIdentifiers | None = None,
) -> Feed:
    """Download and parse the feed at ``url``.

    Args:
        url: The feed URL.
        insecure: Skip TLS certificate verification.
        credentials: Basic-auth credentials, used when both parts are set.
        timeout: Request timeout in seconds. Defaults to FEEDSYNC_TIMEOUT.
        cache: Identifier cache passed on to the parser.

    Raises:
        CertificateUntrustedError: The TLS certificate was not trusted.
        AuthenticationError: The credentials appear to have been rejected.
        TransportError: Any other network failure.
        FeedParseError: The response is not a feed.
    """
    if timeout is None:
        timeout = float(os.environ.get("FEEDSYNC_TIMEOUT", DEFAULT_TIMEOUT))
    headers = {"User-Agent": os.environ.get("FEEDSYNC_USER_AGENT", DEFAULT_USER_AGENT)}

    with httpx.Client(
        verify=not insecure,
        timeout=timeout,
        follow_redirects=True,
        headers=headers,
    ) as client:
        return fetch_by_client(url, client, insecure, credentials, cache=cache)


def fetch_by_client(
    url: str,
    client: httpx.Client,
    insecure: bool = False,
    credentials: Credentials | None = None,
    *,
    cache: KnownIdentifiers | None = None,
) -> Feed:
    """Fetch ``url`` with an existing httpx client and parse the result."""
    credentials = credentials or Credentials()

    def fetch_func() -> httpx.Response:
        if credentials.is_set():
            return client.get(url, auth=(credentials.username, credentials.password))
        return client.get(url)

    return fetch_by_func(fetch_func, url, insecure, credentials, cache=cache)


def fetch_by_func(
    fetch_func: FetchFunc,
    url: str,
    insecure: bool = False,
    credentials: Credentials | None = None,
    *,
    cache: KnownIdentifiers | None = None,
) -> Feed:
    """Run ``fetch_func`` and parse the document it returns.

    The returned Feed carries ``url``, ``insecure`` and ``credentials`` so
    it can be refreshed later on its own.
    """
    credentials = credentials or Credentials()

    try:
        response = fetch_func()
    except Exception as exc:
        if _is_certificate_error(exc):
            raise CertificateUntrustedError() from exc
        if isinstance(exc, httpx.TransportError):
            raise TransportError(f"{url}: {exc}") from exc
        raise

    if isinstance(response, (bytes, bytearray)):
        body = bytes(response)
    else:
        try:
            if credentials.username and getattr(response, "status_code", None) == 401:
                raise AuthenticationError()
            body = response.read()
        finally:
            response.close()

    try:
        out = parse(body, cache)
    except FeedRootError as exc:
        # Servers often answer bad credentials with a login page rather
        # than a 401.
        if credentials.username and _is_login_page(exc):
            raise AuthenticationError() from exc
        raise

    if not out.link:
        out.link = url
    out.update_url = url
    out.insecure = insecure
    out.credentials = credentials

    logger.debug("Fetched %s: %d items", url, len(out.items))
    return out


def _is_login_page(exc: FeedRootError) -> bool:
    """True for an Atom root failure, the shape a login page takes."""
    return exc.expected == "feed" or exc.found.startswith("atom")


def _is_certificate_error(exc: BaseException) -> bool:
    """Walk the exception chain looking for a certificate whose issuer is not trusted.

    Expired certificates, hostname mismatches and other verification
    failures do not count.
    """
    seen = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        if isinstance(current, ssl.SSLCertVerificationError):
            return getattr(current, "verify_code", None) in UNTRUSTED_ISSUER_CODES
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return False

"""
Source acquisition — local files and HTTP(S) URLs.

Every failure surfaces as LoadError with a readable cause, so callers never
need to know where the text came from. Network failures carry a hint to retry
through the fetch proxy, which helps with hosts that refuse direct access.
"""

from __future__ import annotations

import logging
import urllib.error
import urllib.parse
import urllib.request
from pathlib import Path

from .config import DEFAULT_ENCODING, DEFAULT_PROXY_TEMPLATE, DEFAULT_TIMEOUT, USER_AGENT
from .errors import LoadError

logger = logging.getLogger(__name__)

URL_SCHEMES = ("http", "https")
ERROR_BODY_PREVIEW = 200
PROXY_HINT = "Try again with the fetch proxy enabled (--proxy)."


def is_url(source: str) -> bool:
    return urllib.parse.urlparse(source).scheme.lower() in URL_SCHEMES


def proxy_url(url: str, template: str = DEFAULT_PROXY_TEMPLATE) -> str:
    """Wrap ``url`` in the proxy template, URL-encoding it."""
    return template.format(url=urllib.parse.quote(url, safe=""))


def read_file(path: str | Path, encoding: str = DEFAULT_ENCODING) -> str:
    path = Path(path)
    logger.debug("Reading %s", path)
    try:
        return path.read_text(encoding=encoding)
    except FileNotFoundError:
        raise LoadError(f"File not found: {path}", source=str(path)) from None
    except LookupError:
        raise LoadError(f"Unknown encoding: {encoding}", source=str(path)) from None
    except (OSError, UnicodeDecodeError) as e:
        raise LoadError(f"Failed to read file {path}: {e}", source=str(path)) from e


def fetch_url(url: str, use_proxy: bool = False, timeout: float = DEFAULT_TIMEOUT,
              encoding: str = DEFAULT_ENCODING,
              proxy_template: str = DEFAULT_PROXY_TEMPLATE) -> str:
    """GET ``url`` (optionally through the proxy) and decode the body."""
    fetch = proxy_url(url, proxy_template) if use_proxy else url
    logger.info("Fetching %s%s", fetch, " (via proxy)" if use_proxy else "")

    req = urllib.request.Request(fetch, method="GET",
                                 headers={"User-Agent": USER_AGENT})
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            raw = resp.read()
            charset = resp.headers.get_content_charset() or encoding
    except urllib.error.HTTPError as e:
        try:
            body = e.read().decode("utf-8", errors="replace")
        except OSError:
            body = ""
        raise LoadError(
            f"HTTP {e.code} {e.reason}: {body[:ERROR_BODY_PREVIEW]}".rstrip(": "),
            source=url,
        ) from e
    except (urllib.error.URLError, OSError) as e:
        reason = getattr(e, "reason", e)
        raise LoadError(
            f"Network error fetching {url}: {reason}",
            source=url,
            hint=None if use_proxy else PROXY_HINT,
        ) from e

    logger.info("Fetched %d bytes from %s", len(raw), url)
    try:
        return raw.decode(charset, errors="replace")
    except LookupError:
        logger.warning("Unknown charset %r from %s, using %s", charset, url, encoding)
    try:
        return raw.decode(encoding, errors="replace")
    except LookupError:
        raise LoadError(f"Unknown encoding: {encoding}", source=url) from None


def load_text(source: str, *, use_proxy: bool = False,
              timeout: float = DEFAULT_TIMEOUT, encoding: str = DEFAULT_ENCODING,
              proxy_template: str = DEFAULT_PROXY_TEMPLATE) -> str:
    """Obtain the text of ``source``, a file path or an http(s) URL."""
    source = source.strip()
    if not source:
        raise LoadError("No source given: enter a file path or URL")
    if is_url(source):
        return fetch_url(source, use_proxy=use_proxy, timeout=timeout,
                         encoding=encoding, proxy_template=proxy_template)
    return read_file(source, encoding=encoding)

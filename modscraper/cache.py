"""
Read-through HTTP cache backed by plain files.

- cache_path() maps a URL to <cache root>/<host>/<path> (pure function)
- CachedFetcher.fetch() returns cached bytes while they are fresh,
  otherwise issues a conditional GET and refreshes the file

There is no index next to the files: the path is the key and the file
mtime is the freshness timestamp. Two processes writing the same URL at
the same time is not supported (last writer wins).
"""

from __future__ import annotations

import time
from email.utils import formatdate
from pathlib import Path
from typing import Any, Optional
from urllib.parse import quote, urlsplit

import requests
from bs4 import BeautifulSoup

from modscraper.config import FOREVER, ScraperConfig
from modscraper.errors import FetchError
from modscraper.logging import get_logger


# ---------------------------------------------------------------------------
# Cache paths
# ---------------------------------------------------------------------------

# Longest encoded path segment we write (common filesystem name limit)
MAX_SEGMENT_LENGTH = 255

# Characters encodeURIComponent leaves alone (besides letters and digits)
_URI_COMPONENT_SAFE = "-_.!~*'()"

# Extensions whose payload must never be decoded or HTML-normalized
BINARY_EXTENSIONS = frozenset(
    {
        "7z", "bin", "bmp", "bz2", "doc", "docx", "exe", "gif", "gz", "ico",
        "jpeg", "jpg", "mp3", "mp4", "odp", "ods", "odt", "pdf", "png", "ppt",
        "pptx", "rar", "tar", "tgz", "tif", "tiff", "webp", "woff", "woff2",
        "xls", "xlsb", "xlsm", "xlsx", "zip",
    }
)


def _encode_component(text: str) -> str:
    return quote(text, safe=_URI_COMPONENT_SAFE)


def cache_path(url: str, cache_root: str | Path) -> Path:
    """
    Convert a URL into the file that caches it.

    Host and path (+ query + fragment) are percent-encoded separately,
    so the result is always a single directory level below cache_root.
    Raises ValueError for URLs without a host.
    """
    parts = urlsplit(url)
    if not parts.hostname:
        raise ValueError(f"cannot derive a cache path from {url!r}: no host")

    path_and_hash = parts.path or "/"
    if parts.query:
        path_and_hash += "?" + parts.query
    if parts.fragment:
        path_and_hash += "#" + parts.fragment

    hostname = _encode_component(parts.hostname)
    rest_of_path = _encode_component(path_and_hash)[:MAX_SEGMENT_LENGTH]
    return Path(cache_root) / hostname / rest_of_path


def is_binary_path(url: str) -> bool:
    """
    Guess from the URL's file extension whether the payload is binary.
    """
    name = urlsplit(url).path.rsplit("/", 1)[-1]
    if "." not in name:
        return False
    return name.rsplit(".", 1)[-1].lower() in BINARY_EXTENSIONS


# ---------------------------------------------------------------------------
# Conditional fetch
# ---------------------------------------------------------------------------


def _is_html(response: requests.Response) -> bool:
    content_type = response.headers.get("Content-Type", "")
    return content_type.split(";", 1)[0].strip().lower() == "text/html"


def _normalize_html(body: bytes) -> bytes:
    """
    Parse and re-serialize an HTML document so repeated downloads of the
    same page produce the same bytes.
    """
    soup = BeautifulSoup(body, "html.parser")
    return soup.encode("utf-8")


class CachedFetcher:
    """
    GET with a file cache in front of it.

    One fetcher is created per task; the session and logger are injected
    so tests (and callers that need custom adapters) can replace them.
    """

    def __init__(
        self,
        config: ScraperConfig,
        session: Optional[requests.Session] = None,
        log: Any = None,
    ) -> None:
        self.config = config
        self.session = session if session is not None else requests.Session()
        self.log = log if log is not None else get_logger(__name__)

    def _modified_time(self, path: Path, url: str) -> Optional[float]:
        """
        mtime of the cached file, or None if there is nothing usable cached.
        """
        try:
            stats = path.stat()
        except FileNotFoundError:
            self.log.info("cache_miss", url=url)
            return None
        if not path.is_file():
            self.log.warning("cache_path_not_a_file", path=str(path))
            return None
        return stats.st_mtime

    def _read_cached(self, path: Path, url: str) -> bytes:
        self.log.info("cache_hit", url=url)
        return path.read_bytes()

    def fetch(self, url: str, headers: Optional[dict[str, str]] = None, **request_kwargs: Any) -> bytes:
        """
        Return the body of `url`, from cache when possible.

        Extra keyword arguments go straight to requests (params, timeout, ...).

        Raises:
            FetchError: on any HTTP status other than 2xx, and on 304 when
                nothing usable is cached.
            requests.RequestException: on transport failures, unchanged.
        """
        path = cache_path(url, self.config.cache_path)
        modified_time = self._modified_time(path, url)

        max_cache_age = self.config.max_cache_age
        if modified_time is not None:
            if max_cache_age == FOREVER or time.time() - modified_time < max_cache_age:
                return self._read_cached(path, url)

        request_headers = {**self.config.headers, **(headers or {})}
        if modified_time is not None:
            request_headers["If-Modified-Since"] = formatdate(modified_time, usegmt=True)

        self.log.info("fetching", url=url, conditional=modified_time is not None)
        response = self.session.get(url, headers=request_headers, **request_kwargs)

        # 304 without a usable cached file has nothing to confirm
        if response.status_code == 304 and modified_time is not None:
            self.log.info("not_modified", url=url)
            return self._read_cached(path, url)

        if not 200 <= response.status_code < 300:
            raise FetchError(response.status_code, url)

        body = response.content
        if _is_html(response) and not is_binary_path(url):
            body = _normalize_html(body)

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(body)
        self.log.info("cached", url=url, path=str(path), size=len(body))
        return body

    def fetch_text(self, url: str, headers: Optional[dict[str, str]] = None, **request_kwargs: Any) -> str:
        """
        fetch() for text pages, decoded as UTF-8.
        """
        return self.fetch(url, headers=headers, **request_kwargs).decode("utf-8", errors="replace")

"""
Unit tests for the file-backed HTTP cache.

Cache contract:
- cache_path() is a pure function of the URL (host + encoded path)
- fresh files are returned without touching the network
- stale files are revalidated with If-Modified-Since; 304 keeps the file
- HTML bodies are re-serialized before saving, binary bodies are not
"""

import os
import tempfile
import time
import unittest
from email.utils import formatdate
from pathlib import Path
from unittest import mock

import requests
from structlog.testing import capture_logs

from modscraper.cache import MAX_SEGMENT_LENGTH, CachedFetcher, cache_path, is_binary_path
from modscraper.config import FOREVER, ScraperConfig
from modscraper.errors import FetchError


def _response(status_code: int, content: bytes = b"", content_type: str = "text/plain") -> mock.Mock:
    return mock.Mock(status_code=status_code, content=content, headers={"Content-Type": content_type})


class TestCachePath(unittest.TestCase):
    def test_host_and_path_are_encoded_separately(self) -> None:
        p = cache_path("https://www.example.com/a/b?x=1#frag", "/cache")
        self.assertEqual(p, Path("/cache") / "www.example.com" / "%2Fa%2Fb%3Fx%3D1%23frag")

    def test_root_url(self) -> None:
        self.assertEqual(cache_path("http://example.com", "c"), Path("c") / "example.com" / "%2F")

    def test_deterministic(self) -> None:
        url = "https://wish.wis.ntu.edu.sg/webexe/owa/AUS_SCHEDULE.main_display1?acadsem=2017;1"
        self.assertEqual(cache_path(url, "c"), cache_path(url, "c"))

    def test_different_host_or_path_never_collide(self) -> None:
        urls = [
            "https://a.example.com/x",
            "https://b.example.com/x",
            "https://a.example.com/y",
            "https://a.example.com/x?y",
            "https://a.example.com/x#y",
        ]
        paths = {cache_path(u, "c") for u in urls}
        self.assertEqual(len(paths), len(urls))

    def test_long_paths_are_truncated(self) -> None:
        p = cache_path("https://example.com/" + "a" * 1000, "c")
        self.assertEqual(len(p.name), MAX_SEGMENT_LENGTH)

    def test_url_without_host_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            cache_path("not a url", "c")

    def test_binary_path_detection(self) -> None:
        self.assertTrue(is_binary_path("https://example.com/files/Term%201%202017-2018.xlsx"))
        self.assertTrue(is_binary_path("https://example.com/a.PDF?download=1"))
        self.assertFalse(is_binary_path("https://example.com/timetable.aspx"))
        self.assertFalse(is_binary_path("https://example.com/"))


class TestCachedFetcher(unittest.TestCase):
    URL = "https://example.com/timetable"

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.session = mock.Mock()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _fetcher(self, max_cache_age: int = 60, **config) -> CachedFetcher:
        cfg = ScraperConfig(cache_path=self.root, max_cache_age=max_cache_age, **config)
        return CachedFetcher(cfg, session=self.session)

    def _seed(self, content: bytes, age: float, url: str = URL) -> Path:
        path = cache_path(url, self.root)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        mtime = time.time() - age
        os.utime(path, (mtime, mtime))
        return path

    def test_miss_fetches_and_stores(self) -> None:
        self.session.get.return_value = _response(200, b"plain text")
        body = self._fetcher().fetch(self.URL)

        self.assertEqual(body, b"plain text")
        self.assertEqual(cache_path(self.URL, self.root).read_bytes(), b"plain text")
        headers = self.session.get.call_args.kwargs["headers"]
        self.assertNotIn("If-Modified-Since", headers)

    def test_fresh_file_skips_network(self) -> None:
        self._seed(b"cached", age=10)
        self.assertEqual(self._fetcher(max_cache_age=60).fetch(self.URL), b"cached")
        self.session.get.assert_not_called()

    def test_forever_never_revalidates(self) -> None:
        self._seed(b"ancient", age=10 * 365 * 24 * 3600)
        self.assertEqual(self._fetcher(max_cache_age=FOREVER).fetch(self.URL), b"ancient")
        self.session.get.assert_not_called()

    def test_forever_without_cached_file_fetches(self) -> None:
        self.session.get.return_value = _response(200, b"first")
        self.assertEqual(self._fetcher(max_cache_age=FOREVER).fetch(self.URL), b"first")
        self.session.get.assert_called_once()

    def test_stale_file_sends_if_modified_since(self) -> None:
        path = self._seed(b"old", age=600)
        mtime = path.stat().st_mtime
        self.session.get.return_value = _response(200, b"new")

        body = self._fetcher(max_cache_age=60).fetch(self.URL)

        self.assertEqual(body, b"new")
        self.assertEqual(path.read_bytes(), b"new")
        headers = self.session.get.call_args.kwargs["headers"]
        self.assertEqual(headers["If-Modified-Since"], formatdate(mtime, usegmt=True))

    def test_not_modified_returns_cached_without_rewrite(self) -> None:
        path = self._seed(b"cached bytes", age=600)
        mtime_before = path.stat().st_mtime
        self.session.get.return_value = _response(304)

        with capture_logs() as logs:
            body = self._fetcher(max_cache_age=60).fetch(self.URL)

        self.assertEqual(body, b"cached bytes")
        self.assertEqual(path.stat().st_mtime, mtime_before)
        self.assertIn("not_modified", [entry["event"] for entry in logs])

    def test_not_modified_with_nothing_cached_raises_fetch_error(self) -> None:
        self.session.get.return_value = _response(304)
        with self.assertRaises(FetchError) as ctx:
            self._fetcher().fetch(self.URL, headers={"If-None-Match": '"abc"'})
        self.assertEqual(ctx.exception.status_code, 304)

    def test_not_modified_when_cache_path_is_a_directory(self) -> None:
        cache_path(self.URL, self.root).mkdir(parents=True)
        self.session.get.return_value = _response(304)
        with self.assertRaises(FetchError):
            self._fetcher().fetch(self.URL)

    def test_config_headers_are_sent_and_overridable(self) -> None:
        self.session.get.return_value = _response(200, b"x")
        fetcher = self._fetcher(headers={"User-Agent": "modscraper", "Accept": "*/*"})
        fetcher.fetch(self.URL, headers={"Accept": "text/html"}, timeout=5)

        kwargs = self.session.get.call_args.kwargs
        self.assertEqual(kwargs["headers"], {"User-Agent": "modscraper", "Accept": "text/html"})
        self.assertEqual(kwargs["timeout"], 5)

    def test_html_is_reserialized(self) -> None:
        self.session.get.return_value = _response(
            200, b"<html><body><p>hi</body></html>", content_type="text/html; charset=utf-8"
        )
        body = self._fetcher().fetch(self.URL)

        self.assertIn(b"<p>hi</p>", body)
        self.assertEqual(cache_path(self.URL, self.root).read_bytes(), body)

    def test_binary_body_is_stored_verbatim(self) -> None:
        url = "https://example.com/Term%201%202017-2018.xlsx"
        payload = b"PK\x03\x04\x00\xff\xfe<p>"
        self.session.get.return_value = _response(200, payload, content_type="text/html")

        self.assertEqual(self._fetcher().fetch(url), payload)
        self.assertEqual(cache_path(url, self.root).read_bytes(), payload)

    def test_http_error_raises_fetch_error(self) -> None:
        self.session.get.return_value = _response(500)
        with self.assertRaises(FetchError) as ctx:
            self._fetcher().fetch(self.URL)
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertEqual(ctx.exception.url, self.URL)
        self.assertFalse(cache_path(self.URL, self.root).exists())

    def test_http_error_is_not_masked_by_stale_cache(self) -> None:
        self._seed(b"old", age=600)
        self.session.get.return_value = _response(404)
        with self.assertRaises(FetchError):
            self._fetcher(max_cache_age=60).fetch(self.URL)

    def test_transport_error_propagates_unchanged(self) -> None:
        error = requests.ConnectionError("connection refused")
        self.session.get.side_effect = error
        with self.assertRaises(requests.ConnectionError) as ctx:
            self._fetcher().fetch(self.URL)
        self.assertIs(ctx.exception, error)

    def test_fetch_text_decodes_utf8(self) -> None:
        self.session.get.return_value = _response(200, "Zürich".encode("utf-8"))
        self.assertEqual(self._fetcher().fetch_text(self.URL), "Zürich")


if __name__ == "__main__":
    unittest.main()

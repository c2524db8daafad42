"""
Error hierarchy for fetching and parsing timetable data.

- FetchError: the server answered, but not with 2xx or 304
- ValidationError: a source broke one of the structural assumptions
  the parsers rely on (header row, single-valued module fields, table pairs)
- TransportError: no HTTP response at all (DNS, refused connection, ...)

Every error is fatal for the running task. There is no partial output.
"""

from __future__ import annotations

import requests


# Transport failures are re-raised exactly as requests produced them.
TransportError = requests.RequestException


class ScraperError(Exception):
    """Base exception for all scraper errors."""

    pass


class FetchError(ScraperError):
    """Non-2xx, non-304 HTTP status while fetching a URL."""

    def __init__(self, status_code: int, url: str) -> None:
        super().__init__(f"got http {status_code} while fetching {url}")
        self.status_code = status_code
        self.url = url


class ValidationError(ScraperError):
    """Source data does not have the shape the parser expects."""

    pass

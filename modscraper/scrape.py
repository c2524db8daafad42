"""
Remote tasks: fetch pages through the cache and save parsed results.

- fetch_url: one cached fetch, for inspecting what the cache holds
- ntu_lessons: class schedule listing for one semester -> modules JSON
- ntu_details: module details listing for one semester -> modules JSON
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from modscraper.cache import CachedFetcher
from modscraper.config import ScraperConfig
from modscraper.listings import parse_details, parse_listing
from modscraper.logging import get_logger
from modscraper.storage import write_modules


# ---------------------------------------------------------------------------
# URLs
# ---------------------------------------------------------------------------

NTU_LESSONS_URL = "https://wish.wis.ntu.edu.sg/webexe/owa/AUS_SCHEDULE.main_display1"
NTU_DETAILS_URL = "https://wish.wis.ntu.edu.sg/webexe/owa/aus_subj_cont.main_display1"


def ntu_lessons_url(year: int, semester: int | str) -> str:
    # the listing expects its parameters in this exact order
    return (
        f"{NTU_LESSONS_URL}?staff_access=false&acadsem={year};{semester}"
        "&r_subj_code=&boption=Search&r_search_type=F"
    )


def ntu_details_url(year: int, semester: int | str) -> str:
    return (
        f"{NTU_DETAILS_URL}?acad={year}&semester={semester}&acadsem={year};{semester}"
        "&r_subj_code=&boption=Search"
    )


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


def fetch_url(config: ScraperConfig, url: str, fetcher: Optional[CachedFetcher] = None, log: Any = None) -> bytes:
    """
    Fetch one URL through the cache and return its bytes.
    """
    log = log if log is not None else get_logger(__name__)
    fetcher = fetcher if fetcher is not None else CachedFetcher(config, log=log)
    return fetcher.fetch(url)


def ntu_lessons(
    config: ScraperConfig,
    year: int,
    semester: int | str,
    fetcher: Optional[CachedFetcher] = None,
    log: Any = None,
) -> List[Dict[str, Any]]:
    """
    Scrape the class schedule listing of one semester and save it.
    """
    log = (log if log is not None else get_logger(__name__)).bind(year=year, semester=semester)
    fetcher = fetcher if fetcher is not None else CachedFetcher(config, log=log)

    webpage = fetcher.fetch(ntu_lessons_url(year, semester))
    modules = parse_listing(webpage)
    log.info("parsed_modules", count=len(modules), source="ntu_lessons")

    path_to_write = config.output_path(year, semester)
    log.info("saving", path=str(path_to_write))
    write_modules(modules, path_to_write, json_space=config.json_space)
    return modules


def ntu_details(
    config: ScraperConfig,
    year: int,
    semester: int | str,
    fetcher: Optional[CachedFetcher] = None,
    log: Any = None,
) -> List[Dict[str, str]]:
    """
    Scrape the module details listing of one semester and save it.
    """
    log = (log if log is not None else get_logger(__name__)).bind(year=year, semester=semester)
    fetcher = fetcher if fetcher is not None else CachedFetcher(config, log=log)

    webpage = fetcher.fetch(ntu_details_url(year, semester))
    modules = parse_details(webpage, log=log)
    log.info("parsed_modules", count=len(modules), source="ntu_details")

    path_to_write = config.output_path(year, semester)
    log.info("saving", path=str(path_to_write))
    write_modules(modules, path_to_write, json_space=config.json_space)
    return modules

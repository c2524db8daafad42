"""
CLI (Command Line Interface).

    modscraper fetch <url> [-o FILE]
    modscraper parse-excel --year 2017 --semester 1
    modscraper ntu-lessons --year 2017 --semester 1
    modscraper ntu-details --year 2017 --semester 1

Shared options (cache location, cache age, output folder, logging) come
before the sub-command:

    modscraper --max-cache-age -1 --dest-folder data parse-excel -y 2017 -s 1

A --max-cache-age of -1 keeps cached files forever.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import requests

from modscraper.config import ScraperConfig
from modscraper.errors import ScraperError
from modscraper.excel import parse_excel
from modscraper.logging import get_logger, setup_logging
from modscraper.scrape import fetch_url, ntu_details, ntu_lessons

# Default file name per sub-command (input workbook or output JSON)
DEFAULT_FILE_NAMES = {
    "parse-excel": "smu.xlsx",
    "ntu-lessons": "ntuLessons.json",
    "ntu-details": "ntuDetails.json",
}


def _header(item: str) -> tuple[str, str]:
    """
    "Accept: text/html" -> ("Accept", "text/html")
    """
    name, sep, value = item.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"header must look like NAME:VALUE, got {item!r}")
    return name.strip(), value.strip()


def _add_semester_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--year", "-y", type=int, required=True, help="First year of the academic year (e.g. 2017)")
    p.add_argument("--semester", "-s", type=str, required=True, help="Semester number (e.g. 1)")


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    defaults = ScraperConfig()
    parser = argparse.ArgumentParser(prog="modscraper", description="Scrape and normalize course timetables")

    parser.add_argument("--cache-path", type=Path, default=defaults.cache_path, help="Cache directory")
    parser.add_argument(
        "--max-cache-age",
        type=int,
        default=defaults.max_cache_age,
        help="Seconds before a cached file is revalidated (-1 = never)",
    )
    parser.add_argument("--dest-folder", type=Path, default=defaults.dest_folder, help="Output root folder")
    parser.add_argument("--dest-file-name", type=str, default=None, help="Input/output file name of the task")
    parser.add_argument("--json-space", type=int, default=defaults.json_space, help="JSON indent width")
    parser.add_argument(
        "--header",
        type=_header,
        action="append",
        default=[],
        metavar="NAME:VALUE",
        help="Extra request header, may be repeated",
    )
    parser.add_argument("--log-json", action="store_true", help="Log JSON lines instead of console output")
    parser.add_argument("--log-level", type=str, default="INFO", help="DEBUG, INFO, WARNING, ERROR")

    sub = parser.add_subparsers(dest="command", required=True)

    p_fetch = sub.add_parser("fetch", help="Fetch one URL through the cache")
    p_fetch.add_argument("url", type=str, help="URL to fetch")
    p_fetch.add_argument("--out", "-o", type=Path, default=None, help="Write bytes here instead of stdout")

    p_excel = sub.add_parser("parse-excel", help="Parse a timetable workbook into modules JSON")
    _add_semester_args(p_excel)

    p_ntu = sub.add_parser("ntu-lessons", help="Scrape the NTU class schedule listing")
    _add_semester_args(p_ntu)

    p_details = sub.add_parser("ntu-details", help="Scrape the NTU module details listing")
    _add_semester_args(p_details)

    return parser


def config_from_args(args: argparse.Namespace) -> ScraperConfig:
    file_name = args.dest_file_name or DEFAULT_FILE_NAMES.get(args.command, ScraperConfig.dest_file_name)
    return ScraperConfig(
        cache_path=args.cache_path,
        max_cache_age=args.max_cache_age,
        dest_folder=args.dest_folder,
        dest_file_name=file_name,
        json_space=args.json_space,
        headers=dict(args.header),
    )


def _cmd_fetch(args: argparse.Namespace, config: ScraperConfig, log) -> int:
    body = fetch_url(config, args.url, log=log)
    if args.out is None:
        sys.stdout.buffer.write(body)
        sys.stdout.buffer.flush()
        return 0
    args.out.parent.mkdir(parents=True, exist_ok=True)
    args.out.write_bytes(body)
    log.info("saved", path=str(args.out), size=len(body))
    return 0


def run(args: argparse.Namespace) -> int:
    """
    Dispatch to the task of the parsed sub-command. Returns an exit code.
    """
    config = config_from_args(args)
    log = get_logger("modscraper").bind(task=args.command)

    try:
        if args.command == "fetch":
            return _cmd_fetch(args, config, log)
        if args.command == "parse-excel":
            parse_excel(config, args.year, args.semester, log=log)
            return 0
        if args.command == "ntu-lessons":
            ntu_lessons(config, args.year, args.semester, log=log)
            return 0
        if args.command == "ntu-details":
            ntu_details(config, args.year, args.semester, log=log)
            return 0
    except (ScraperError, requests.RequestException, OSError) as exc:
        log.error("task_failed", error=str(exc), error_type=type(exc).__name__)
        return 1

    return 2


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, configures logging, runs the task
    and exits via SystemExit with its return code.
    """
    args = build_parser().parse_args(argv)
    setup_logging(json_output=args.log_json, log_level=args.log_level)
    raise SystemExit(run(args))

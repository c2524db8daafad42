"""
Parsing (timetable workbook -> modules JSON).

- Reads <dest>/<year>-<year+1>/<semester>/<dest_file_name> (an .xlsx export)
- Takes the first worksheet, finds the table rows, normalizes them
- Consolidates the lessons per module
- Writes <dest>/<year>-<year+1>/<semester>/smu.json
"""

from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Any, Dict, List

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from modscraper.config import ScraperConfig
from modscraper.consolidate import consolidate
from modscraper.errors import ValidationError
from modscraper.logging import get_logger
from modscraper.model import Module
from modscraper.normalize import normalize
from modscraper.sheet import cells_from_worksheet, extract_rows, select_data_rows
from modscraper.storage import write_modules

OUTPUT_FILE_NAME = "smu.json"


def read_sheet_cells(path: str | Path) -> Dict[str, Any]:
    """
    Cells of the workbook's first worksheet, keyed by address.
    """
    try:
        workbook = load_workbook(Path(path), data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError) as exc:
        raise ValidationError(f"{path} is not a readable workbook: {exc}") from exc

    try:
        if not workbook.sheetnames:
            raise ValidationError(f"{path} has no worksheets")
        worksheet = workbook[workbook.sheetnames[0]]
        return cells_from_worksheet(worksheet)
    finally:
        workbook.close()


def parse_sheet(cells: Dict[str, Any]) -> List[Module]:
    """
    Address-keyed cells -> consolidated modules.
    """
    rows = select_data_rows(extract_rows(cells))
    return consolidate(normalize(rows))


def parse_excel(
    config: ScraperConfig,
    year: int,
    semester: int | str,
    log: Any = None,
    out_file_name: str = OUTPUT_FILE_NAME,
) -> List[Module]:
    """
    Run the whole workbook pipeline for one semester and save the result.
    """
    log = (log if log is not None else get_logger(__name__)).bind(year=year, semester=semester)

    path_to_read = config.output_path(year, semester)
    log.info("reading_workbook", path=str(path_to_read))
    modules = parse_sheet(read_sheet_cells(path_to_read))
    log.info("parsed_modules", count=len(modules))

    path_to_write = config.output_path(year, semester, out_file_name)
    log.info("saving", path=str(path_to_write))
    write_modules(modules, path_to_write, json_space=config.json_space)
    return modules

"""
Parsing (NTU listing pages HTML -> modules).

Class schedule listing: after a leading pair of page tables, the page
prints two tables per module:
- a details table: first row is code | title | credits, later rows
  may carry a "Remark:" line
- a lessons table: a header row, then one row per lesson

Tables are consumed strictly in pairs; an odd number of tables means
the layout changed and nothing on the page can be trusted.

Module details listing: one long run of rows, modules separated by rows
holding a lone non-breaking space cell. Inside a module the first row is
code | title | credits | department, and the font colour of each later
row says what it is (DETAIL_COLOURS). An uncoloured last row is the
description. The runs before the first and after the last separator are
page chrome.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence, Tuple

from bs4 import BeautifulSoup
from bs4.element import Tag

from modscraper.errors import ValidationError
from modscraper.logging import get_logger
from modscraper.normalize import clean, titleize

# Font colour of a details row -> module field
DETAIL_COLOURS = {
    "#FF00FF": "Prerequisite",
    "RED": "Remarks",
    "BROWN": "Preclusion",
    "GREEN": "Availability",
    "BLUE": "Remarks",
}

_NBSP = "\xa0"


def pair_tables(tables: Sequence[Tag]) -> List[Tuple[Tag, Tag]]:
    """
    [t0, t1, t2, t3, ...] -> [(t0, t1), (t2, t3), ...]
    """
    if len(tables) % 2 != 0:
        raise ValidationError(
            "Odd number of tables found, should be even (a pair for each module)."
        )
    return [(tables[i], tables[i + 1]) for i in range(0, len(tables), 2)]


def _cell_texts(row: Tag) -> List[str]:
    return [td.get_text() for td in row.find_all("td")]


def _parse_lesson_row(cols: List[str]) -> Dict[str, str]:
    """
    Lesson columns: index | type | group | day | time | venue | remark
    """
    def col(i: int) -> str:
        return cols[i] if i < len(cols) else ""

    timing = col(4).split("-")
    return {
        "LessonType": clean(col(1)),
        "ClassNo": clean(col(2)),
        "DayText": clean(col(3)),
        "StartTime": clean(timing[0]),
        "EndTime": clean(timing[-1]),
        "WeekText": clean(col(6)),
        "Venue": clean(col(5)),
    }


def parse_module_tables(details: Tag, lessons: Tag) -> Dict[str, Any]:
    """
    Build one module dict from its (details, lessons) table pair.
    """
    detail_rows = details.find_all("tr")
    if not detail_rows:
        raise ValidationError("module details table has no rows")

    # first row contains code, title and credits
    first = _cell_texts(detail_rows[0])
    first += [""] * (3 - len(first))
    module: Dict[str, Any] = {
        "ModuleCode": clean(first[0]),
        "ModuleTitle": clean(first[1]),
        "ModuleCredit": clean(first[2]),
    }

    # later rows hold prerequisites (ignored here) or module remarks
    for row in detail_rows[1:]:
        cols = _cell_texts(row)
        if cols and clean(cols[0]) == "Remark:":
            module["Remark"] = clean(cols[-1])

    # skip the header row
    module["Timetable"] = [
        _parse_lesson_row(_cell_texts(row)) for row in lessons.find_all("tr")[1:]
    ]
    return module


def parse_listing(html: str | bytes) -> List[Dict[str, Any]]:
    """
    Parse every module on a class schedule listing page, in page order.
    """
    soup = BeautifulSoup(html, "html.parser")
    tables = soup.find_all("table")
    # the first pair is the search form, not a module
    pairs = pair_tables(tables)[1:]
    return [parse_module_tables(details, lessons) for details, lessons in pairs]


# ---------------------------------------------------------------------------
# Module details listing
# ---------------------------------------------------------------------------


def _is_separator(row: Tag) -> bool:
    return any(td.get_text() == _NBSP for td in row.find_all("td"))


def split_detail_rows(rows: Sequence[Tag]) -> List[List[Tag]]:
    """
    Cut the page's rows into one run per module at separator rows.
    """
    chunks: List[List[Tag]] = [[]]
    for row in rows:
        if _is_separator(row):
            chunks.append([])
        else:
            chunks[-1].append(row)
    return [chunk for chunk in chunks[1:-1] if chunk]


def parse_detail_rows(rows: Sequence[Tag], log: Any = None) -> Dict[str, str]:
    """
    Build one module dict from its run of detail rows.
    """
    log = log if log is not None else get_logger(__name__)

    first = _cell_texts(rows[0])
    first += [""] * (4 - len(first))
    module: Dict[str, Any] = {
        "ModuleCode": first[0],
        "ModuleTitle": titleize(first[1]),
        "ModuleCredit": first[2],
        "Department": first[3],
    }

    rest = rows[1:]
    for i, row in enumerate(rest):
        text = row.get_text()
        if not text.strip():
            continue
        font = row.find("font")
        colour = str(font.get("color", "")).upper() if font is not None else ""
        if colour in DETAIL_COLOURS:
            module[DETAIL_COLOURS[colour]] = text
        elif i == len(rest) - 1:
            module["Description"] = text
        else:
            log.info("unknown_detail_row", module=clean(first[0]), html=str(row))

    return {key: clean(value) for key, value in module.items()}


def parse_details(html: str | bytes, log: Any = None) -> List[Dict[str, str]]:
    """
    Parse every module on a module details listing page, in page order.
    """
    soup = BeautifulSoup(html, "html.parser")
    return [parse_detail_rows(rows, log=log) for rows in split_detail_rows(soup.find_all("tr"))]

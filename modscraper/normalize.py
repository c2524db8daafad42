"""
Spreadsheet rows -> flat lesson records.

The first row is the header. Header names are translated to the field
names used in the output (KEYS_MAP), then every data row becomes one
record with cleaned string values and a derived ModuleCode.

Row order is kept exactly: consolidation groups neighbouring rows.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping

# Day 0 of integer date serials. Cells formatted as dates come back from
# openpyxl as datetimes on the spreadsheet's own calendar, which runs two
# days behind this epoch for the same stored number.
EXCEL_EPOCH = datetime(1900, 1, 1)

DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

DAY_MAP = {
    "MON": "Monday",
    "TUE": "Tuesday",
    "WED": "Wednesday",
    "THU": "Thursday",
    "FRI": "Friday",
    "SAT": "Saturday",
    "SUN": "Sunday",
}

KEYS_MAP = {
    "Catalog Nbr": "Catalog",
    "Title": "ModuleTitle",
    "Class Day": "DayText",
    "Day": "DayText",
    "Start Time": "StartTime",
    "Start": "StartTime",
    "End Time": "EndTime",
    "End": "EndTime",
    "Start Date": "StartDate",
    "End Date": "EndDate",
    "Section": "ClassNo",
    "Instructor": "Lecturers",
}

_DAY_ABBREVIATION_RE = re.compile(r"[A-Z]{3}")
_WHITESPACE_RE = re.compile(r"\s+")
_TITLE_START_RE = re.compile(r"(?:^|\s|-)\S")


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------


def _is_integral(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def to_text(value: Any) -> str:
    """
    Render a cell value as text. Whole floats lose their ".0".
    """
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.strftime(DATE_FORMAT)
    return str(value)


def clean(value: Any) -> str:
    """
    Trim and collapse runs of whitespace into one space.
    """
    return _WHITESPACE_RE.sub(" ", to_text(value)).strip()


def titleize(value: Any) -> str:
    """
    "JOHN SMITH-JONES" -> "John Smith-Jones"
    """
    return _TITLE_START_RE.sub(lambda m: m.group(0).upper(), to_text(value).lower())


def excel_serial_to_iso(serial: float) -> str:
    """
    Day offset from EXCEL_EPOCH -> "YYYY-MM-DDTHH:MM:SS".
    """
    return (EXCEL_EPOCH + timedelta(days=int(serial))).strftime(DATE_FORMAT)


def expand_day(value: Any) -> Any:
    """
    "MON" -> "Monday". Anything else is returned as is.
    """
    if isinstance(value, str) and _DAY_ABBREVIATION_RE.fullmatch(value.strip()):
        return DAY_MAP.get(value.strip(), value)
    return value


def rename_header(header: Iterable[Any]) -> List[str]:
    names = []
    for val in header:
        name = to_text(val)
        names.append(KEYS_MAP.get(name, name))
    return names


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------


def normalize_row(header: List[str], row: Mapping[str, Any]) -> Dict[str, str]:
    """
    Turn one data row into a lesson record.

    Cells are paired with header names by position; when two headers
    rename to the same key the later cell wins.
    """
    raw = dict(zip(header, row.values()))
    lesson: Dict[str, str] = {}
    module_code = ""

    for key, value in raw.items():
        if "Lecturers" in key:
            value = titleize(value)
        elif "Date" in key and _is_integral(value):
            value = excel_serial_to_iso(value)
        elif "Date" in key and isinstance(value, date):
            if not isinstance(value, datetime):
                value = datetime.combine(value, datetime.min.time())
            value = value.strftime(DATE_FORMAT)
        elif key == "DayText":
            value = expand_day(value)
        elif "Subject" in key or "Catalog" in key:
            module_code += to_text(value)

        lesson[key] = clean(value)

    lesson["ModuleCode"] = _WHITESPACE_RE.sub("", module_code)
    return lesson


def normalize(rows: List[Mapping[str, Any]]) -> List[Dict[str, str]]:
    """
    Header row + data rows -> one record per data row, in input order.
    """
    if not rows:
        return []
    header = rename_header(rows[0].values())
    return [normalize_row(header, row) for row in rows[1:]]

"""
Lesson records -> modules.

Neighbouring records with the same ModuleCode form one module. Grouping
only looks at neighbours: a code that shows up again after another code
starts a second module. Sources list their rows module by module, and
the output keeps that order.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, TypeVar

from modscraper.errors import ValidationError
from modscraper.model import LESSON_FIELDS, Module

T = TypeVar("T")

_DIGITS_RE = re.compile(r"(\d+)")


def group_consecutive(items: Iterable[T], key: Callable[[T], Any]) -> List[List[T]]:
    """
    Split items into maximal runs whose keys are equal.
    """
    groups: List[List[T]] = []
    previous: Any = None
    for item in items:
        current = key(item)
        if groups and current == previous:
            groups[-1].append(item)
        else:
            groups.append([item])
        previous = current
    return groups


def natural_key(text: Optional[str]) -> tuple:
    """
    Sort key comparing digit runs as numbers and letters case-insensitively,
    so "2" < "10" and "t2" < "T10".
    """
    parts = _DIGITS_RE.split(text or "")
    # even indexes are text, odd indexes are digit runs
    return tuple(
        (0, int(part)) if i % 2 else (1, part.casefold())
        for i, part in enumerate(parts)
        if part
    )


def unique(values: Iterable[T]) -> List[T]:
    """
    Distinct values in order of first appearance.
    """
    out: List[T] = []
    for value in values:
        if value not in out:
            out.append(value)
    return out


def pluck_single(field_name: str, records: Sequence[Mapping[str, Any]]) -> Any:
    """
    The one value `field_name` has across records.

    Raises ValidationError if the records disagree.
    """
    values = unique(record.get(field_name) for record in records)
    if len(values) > 1:
        raise ValidationError(
            f"{field_name} should only contain single piece of data, found {values}"
        )
    return values[0] if values else None


def build_timetable(records: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    lessons = [
        {name: record[name] for name in LESSON_FIELDS if name in record}
        for record in records
    ]
    return sorted(lessons, key=lambda lesson: natural_key(lesson.get("ClassNo")))


def consolidate_module(records: Sequence[Mapping[str, Any]]) -> Module:
    return Module(
        module_code=pluck_single("ModuleCode", records),
        module_title=pluck_single("ModuleTitle", records),
        lecturers=unique(record.get("Lecturers") for record in records),
        timetable=build_timetable(records),
    )


def consolidate(records: Iterable[Mapping[str, Any]]) -> List[Module]:
    """
    Group neighbouring records by ModuleCode and merge each group.
    """
    groups = group_consecutive(records, key=lambda record: record.get("ModuleCode"))
    return [consolidate_module(group) for group in groups]


def expand(modules: Iterable[Module]) -> List[Dict[str, Any]]:
    """
    Modules -> one lesson record per Timetable entry.

    Lecturers are handed out in order, one per record, the last one
    repeating; a module with more lecturers than lessons keeps only as
    many as it has lessons.
    """
    records: List[Dict[str, Any]] = []
    for module in modules:
        lecturers = module.lecturers or [None]
        for i, lesson in enumerate(module.timetable):
            record = {
                "ModuleCode": module.module_code,
                "ModuleTitle": module.module_title,
                "Lecturers": lecturers[min(i, len(lecturers) - 1)],
            }
            record.update(lesson)
            records.append(record)
    return records

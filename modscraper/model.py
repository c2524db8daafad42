"""
Central data model definitions used across the project.

Lesson records stay plain dicts (their keys depend on the source sheet);
a consolidated module is a Module. The JSON field names are fixed here
so that every source writes the same schema.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


# Module-level keys, in output order
MODULE_FIELDS = ["ModuleCode", "ModuleTitle", "Lecturers", "Timetable"]

# Keys copied from a lesson record into a module's Timetable
LESSON_FIELDS = [
    "ClassNo",
    "DayText",
    "StartTime",
    "EndTime",
    "Venue",
    "StartDate",
    "EndDate",
]


@dataclass
class Module:
    """
    Represents one module (course) with all of its lessons.
    """

    module_code: Optional[str]
    module_title: Optional[str]
    lecturers: List[str] = field(default_factory=list)
    timetable: List[Dict[str, str]] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "ModuleCode": self.module_code,
            "ModuleTitle": self.module_title,
            "Lecturers": list(self.lecturers),
            "Timetable": [dict(lesson) for lesson in self.timetable],
        }

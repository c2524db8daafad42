"""
Runtime configuration shared by all tasks.

The CLI builds one ScraperConfig from its options; tests build their own
with temporary directories. Nothing here touches the filesystem.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


# max_cache_age value meaning "cache forever, never revalidate"
FOREVER = -1


@dataclass
class ScraperConfig:
    """
    Settings consumed by the cache and the output writers.
    """

    cache_path: Path = Path("cache")
    # seconds; FOREVER disables revalidation
    max_cache_age: int = 24 * 60 * 60
    dest_folder: Path = Path("data")
    dest_file_name: str = "modules.json"
    json_space: int = 2
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.cache_path = Path(self.cache_path)
        self.dest_folder = Path(self.dest_folder)

    def base_path(self, year: int, semester: int | str) -> Path:
        """
        Folder holding one semester's files: <dest>/<year>-<year+1>/<semester>
        """
        return self.dest_folder / f"{year}-{year + 1}" / str(semester)

    def output_path(self, year: int, semester: int | str, file_name: str | None = None) -> Path:
        return self.base_path(year, semester) / (file_name or self.dest_file_name)

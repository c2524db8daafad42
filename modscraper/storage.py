"""
Writing module lists to disk.

Output layout (see ScraperConfig.output_path):

    <dest_folder>/<year>-<year+1>/<semester>/<file name>

Every file is a JSON array of module objects, UTF-8, non-ASCII kept as is.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from modscraper.model import Module


def _as_json_object(module: Module | dict[str, Any]) -> dict[str, Any]:
    if isinstance(module, Module):
        return module.as_dict()
    return dict(module)


def write_modules(modules: Iterable[Module | dict[str, Any]], path: str | Path, json_space: int = 2) -> Path:
    """
    Save modules as a JSON array. Creates parent directories if needed.
    """
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    payload = [_as_json_object(m) for m in modules]
    out_path.write_text(
        json.dumps(payload, indent=json_space, ensure_ascii=False),
        encoding="utf-8",
    )
    return out_path


def load_modules(path: str | Path) -> list[dict[str, Any]]:
    """
    Read a file written by write_modules().
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a JSON array")
    return data

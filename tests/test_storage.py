"""
Unit tests for writing module JSON files.

Storage contract:
- parent directories are created
- the file is a JSON array, indented by json_space
- non-ASCII text is written as is
"""

import json
import tempfile
import unittest
from pathlib import Path

from modscraper.config import ScraperConfig
from modscraper.model import Module
from modscraper.storage import load_modules, write_modules


class TestStorage(unittest.TestCase):
    def test_write_and_load(self) -> None:
        module = Module("CS101", "Intro", ["Zoë Müller"], [{"ClassNo": "1", "DayText": "Monday"}])
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "2017-2018" / "1" / "modules.json"
            write_modules([module, {"ModuleCode": "IS200"}], p, json_space=4)

            self.assertEqual(
                load_modules(p),
                [
                    {
                        "ModuleCode": "CS101",
                        "ModuleTitle": "Intro",
                        "Lecturers": ["Zoë Müller"],
                        "Timetable": [{"ClassNo": "1", "DayText": "Monday"}],
                    },
                    {"ModuleCode": "IS200"},
                ],
            )
            text = p.read_text(encoding="utf-8")
            self.assertIn("Zoë Müller", text)
            self.assertIn('\n    {\n        "ModuleCode": "CS101"', text)

    def test_load_rejects_non_array(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "x.json"
            p.write_text(json.dumps({"ModuleCode": "CS101"}), encoding="utf-8")
            with self.assertRaises(ValueError):
                load_modules(p)

    def test_output_path_layout(self) -> None:
        config = ScraperConfig(dest_folder=Path("out"), dest_file_name="smu.xlsx")
        self.assertEqual(config.output_path(2017, 1), Path("out") / "2017-2018" / "1" / "smu.xlsx")
        self.assertEqual(config.output_path(2017, "2", "smu.json"), Path("out") / "2017-2018" / "2" / "smu.json")


if __name__ == "__main__":
    unittest.main()

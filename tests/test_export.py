import json
from datetime import date

from conftest import make_tool

from toolscope.export import export_filename
from toolscope.export import export_saved_tools


def test_export_contains_only_public_fields():
    tool = make_tool(1, "Alpha", category="Code", pricing="Paid", tags=["a", "b"])
    exported = json.loads(export_saved_tools([tool]))
    assert exported == [
        {
            "name": "Alpha",
            "description": tool.description,
            "category": "Code",
            "pricing": "Paid",
            "website": "",
            "tags": ["a", "b"],
        }
    ]


def test_export_of_nothing_is_empty_list():
    assert json.loads(export_saved_tools([])) == []


def test_export_filename_is_dated():
    assert export_filename(date(2024, 3, 9)) == "toolscope-saved-tools-2024-03-09.json"

import asyncio
import json

import pytest

from toolscope.errors import SubmissionValidationError
from toolscope.models import Category
from toolscope.models import Pricing
from toolscope.submission import collect_errors
from toolscope.submission import submit_tool
from toolscope.submission import validate_submission


def test_valid_form_becomes_normalized_draft(valid_form):
    draft = validate_submission(valid_form)
    assert draft.category is Category.WRITING
    assert draft.pricing is Pricing.FREEMIUM
    assert draft.tags == ["summaries", "writing"]
    assert draft.features == ["One-click summaries", "PDF import"]


def test_empty_form_reports_every_field():
    errors = collect_errors({})
    assert errors == {
        "name": "Tool name is required",
        "description": "Description is required",
        "category": "Please select a category",
        "pricing": "Please select a pricing tier",
        "website": "Website URL is required",
        "logo": "Logo URL is required",
        "tags": "At least one tag is required",
        "features": "At least one feature is required",
    }


@pytest.mark.parametrize(
    "field,value,message",
    [
        ("description", "Too short.", "Description must be at least 50 characters"),
        ("description", "x" * 501, "Description must be at most 500 characters"),
        ("category", "Robots", "Please select a category"),
        ("pricing", "Custom", "Please select a pricing tier"),
        ("website", "ftp://example.com", "Please enter a valid URL"),
        ("website", "https://localhost", "Please enter a valid URL"),
        ("logo", "https://example.com/logo.svg", "Please enter a valid image URL"),
        ("tags", " , ,", "At least one tag is required"),
    ],
)
def test_invalid_field_is_reported(valid_form, field, value, message):
    form = dict(valid_form, **{field: value})
    with pytest.raises(SubmissionValidationError) as exc_info:
        validate_submission(form)
    assert exc_info.value.errors == {field: message}


def test_logo_accepts_query_string_and_uppercase_extension(valid_form):
    form = dict(valid_form, logo="https://cdn.example.com/Logo.PNG?v=3")
    assert validate_submission(form).logo == "https://cdn.example.com/Logo.PNG?v=3"


def test_submit_tool_creates_record(gateway, valid_form):
    tool = asyncio.run(submit_tool(gateway, valid_form))
    assert tool.id == 5
    assert asyncio.run(gateway.get_by_id(5)).name == "SummarizeIt"


def test_rejected_submission_writes_nothing(gateway, tools_file, valid_form):
    before = tools_file.read_text()
    with pytest.raises(SubmissionValidationError):
        asyncio.run(submit_tool(gateway, dict(valid_form, website="")))
    assert json.loads(tools_file.read_text()) == json.loads(before)

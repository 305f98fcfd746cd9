import json

import pytest

from toolscope.gateway import LocalToolGateway
from toolscope.models import Tool

DESCRIPTION = "A capable assistant that helps teams get more done with AI every single day."


def make_tool(tool_id, name, category="Writing", pricing="Free", tags=None, description=DESCRIPTION) -> Tool:
    return Tool(id=tool_id, name=name, description=description, category=category, pricing=pricing, tags=tags or [])


@pytest.fixture
def scenario_tools():
    return [
        make_tool(1, "Alpha", category="Writing", pricing="Free", tags=["a", "b"]),
        make_tool(2, "Beta", category="Code", pricing="Paid", tags=["b", "c"]),
    ]


@pytest.fixture
def sample_records():
    """Records in the stored shape, mixing list and comma-string tags."""
    return [
        {
            "Id": 1,
            "Name": "WriteWell",
            "Tags": "writing, content,marketing",
            "description": "Drafts blog posts and marketing copy from short prompts in seconds.",
            "category": "Writing",
            "pricing": "Freemium",
            "features": "Blog drafts\nTone control",
            "website": "https://writewell.example.com",
            "logo": "https://writewell.example.com/logo.png",
        },
        {
            "Id": 2,
            "Name": "CodePilot",
            "Tags": ["coding", "programming"],
            "description": "Autocompletes code and explains unfamiliar functions inline.",
            "category": "Code",
            "pricing": "Paid",
            "features": ["Completions", "Explanations"],
            "website": "https://codepilot.example.com",
            "logo": "https://codepilot.example.com/logo.png",
        },
        {
            "Id": 3,
            "Name": "pixelforge",
            "Tags": "art,design",
            "description": "Generates illustrations and concept art from text descriptions.",
            "category": "Image",
            "pricing": "Free",
            "features": "Text to image",
            "website": "https://pixelforge.example.com",
            "logo": "https://pixelforge.example.com/logo.png",
        },
        {
            "Id": 4,
            "Name": "DevChat",
            "Tags": "coding,conversation",
            "description": "Answers programming questions in a chat window.",
            "category": "Code",
            "pricing": "Free",
            "features": "",
            "website": "https://devchat.example.com",
            "logo": "https://devchat.example.com/logo.png",
        },
    ]


@pytest.fixture
def tools_file(tmp_path, sample_records):
    path = tmp_path / "tools.json"
    path.write_text(json.dumps({"tools": sample_records, "last_updated": ""}))
    return path


@pytest.fixture
def gateway(tools_file):
    return LocalToolGateway(tools_file)


@pytest.fixture
def valid_form():
    return {
        "name": "SummarizeIt",
        "description": "Summarizes long documents into short, readable briefs for busy readers.",
        "category": "Writing",
        "pricing": "Freemium",
        "website": "https://summarizeit.example.com",
        "logo": "https://summarizeit.example.com/logo.png",
        "tags": "summaries, writing, writing",
        "features": "One-click summaries\n\nPDF import\n",
    }

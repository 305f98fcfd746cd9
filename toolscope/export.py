"""JSON export of saved tools."""

import json
from datetime import date
from typing import Dict
from typing import Iterable
from typing import List
from typing import Optional

from toolscope.models import Tool

EXPORT_FIELDS = ("name", "description", "category", "pricing", "website", "tags")


def export_records(tools: Iterable[Tool]) -> List[Dict]:
    return [{field: getattr(tool, field) for field in EXPORT_FIELDS} for tool in tools]


def export_saved_tools(tools: Iterable[Tool]) -> str:
    """Serialize tools to the saved-tools export document."""
    return json.dumps(export_records(tools), indent=2)


def export_filename(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"toolscope-saved-tools-{today.isoformat()}.json"

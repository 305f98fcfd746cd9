"""Directory of AI tools with search, facet filters and saved tools."""

from .filtering import all_tags
from .filtering import count_by_category
from .filtering import count_by_pricing
from .filtering import filter_and_sort
from .models import FilterState
from .models import Tool
from .models import normalize_tags
from .saved import SavedToolsStore

__all__ = [
    "Tool",
    "FilterState",
    "normalize_tags",
    "filter_and_sort",
    "count_by_category",
    "count_by_pricing",
    "all_tags",
    "SavedToolsStore",
]

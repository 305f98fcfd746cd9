"""Search, facet filtering, sorting and facet counts over an in-memory tool collection."""

import logging
from collections import Counter
from typing import Dict
from typing import Iterable
from typing import List
from typing import Sequence

from toolscope.models import CATEGORY_DESCRIPTIONS
from toolscope.models import DEFAULT_CATEGORY_DESCRIPTION
from toolscope.models import Category
from toolscope.models import CategorySummary
from toolscope.models import FilterState
from toolscope.models import Pricing
from toolscope.models import SortKey
from toolscope.models import Tool
from toolscope.models import pricing_rank

logger = logging.getLogger(__name__)

RELATED_TOOLS_LIMIT = 3


def matches_query(tool: Tool, query: str) -> bool:
    """Case-insensitive substring match against name, description or any tag.

    `query` must already be lower-cased.
    """
    if query in tool.name.lower():
        return True
    if query in tool.description.lower():
        return True
    return any(query in tag.lower() for tag in tool.tags)


def _sort_key_func(sort_key: SortKey):
    if sort_key == SortKey.CATEGORY:
        return lambda tool: tool.category
    if sort_key == SortKey.PRICING:
        return lambda tool: pricing_rank(tool.pricing)
    return lambda tool: tool.name.lower()


def filter_and_sort(tools: Sequence[Tool], state: FilterState) -> List[Tool]:
    """Apply search, facet filters and sort order to a tool collection.

    Stages run in a fixed order (search, category, pricing, tags, sort). Facet
    filters are conjunctive across facets; the tag facet matches a tool that
    carries at least one selected tag. Sorting is stable.
    """
    filtered = list(tools)

    if state.search_query:
        query = state.search_query.lower()
        filtered = [tool for tool in filtered if matches_query(tool, query)]
        logger.debug(f"Search {state.search_query!r} kept {len(filtered)} tools")

    if state.categories:
        filtered = [tool for tool in filtered if tool.category in state.categories]
        logger.debug(f"Category filter kept {len(filtered)} tools")

    if state.pricing:
        filtered = [tool for tool in filtered if tool.pricing in state.pricing]
        logger.debug(f"Pricing filter kept {len(filtered)} tools")

    if state.tags:
        filtered = [tool for tool in filtered if not state.tags.isdisjoint(tool.tags)]
        logger.debug(f"Tag filter kept {len(filtered)} tools")

    return sorted(filtered, key=_sort_key_func(state.sort_key))


def count_by_category(tools: Iterable[Tool]) -> Dict[str, int]:
    """Tally tools per category value, including out-of-domain values."""
    return dict(Counter(tool.category for tool in tools))


def count_by_pricing(tools: Iterable[Tool]) -> Dict[str, int]:
    """Tally tools per pricing value, including out-of-domain values."""
    return dict(Counter(tool.pricing for tool in tools))


def all_tags(tools: Iterable[Tool]) -> List[str]:
    """Unique tags across the collection, sorted ascending (case-sensitive)."""
    return sorted({tag for tool in tools for tag in tool.tags})


def category_summaries(tools: Sequence[Tool]) -> List[CategorySummary]:
    """One summary per known category, alphabetical, with counts from the live collection."""
    counts = count_by_category(tools)
    return [
        CategorySummary(
            name=category.value,
            count=counts.get(category.value, 0),
            description=CATEGORY_DESCRIPTIONS.get(category, DEFAULT_CATEGORY_DESCRIPTION),
        )
        for category in sorted(Category, key=lambda c: c.value)
    ]


def facet_options(tools: Sequence[Tool]) -> Dict[str, List[tuple]]:
    """Facet values in display order paired with their counts over the full collection.

    Only enumerated values get a facet entry; out-of-domain values are counted by
    `count_by_category`/`count_by_pricing` but are never offered as a choice.
    """
    category_counts = count_by_category(tools)
    pricing_counts = count_by_pricing(tools)
    return {
        "categories": [(category.value, category_counts.get(category.value, 0)) for category in Category],
        "pricing": [(tier.value, pricing_counts.get(tier.value, 0)) for tier in Pricing],
    }


def related_tools(tool: Tool, category_tools: Iterable[Tool], limit: int = RELATED_TOOLS_LIMIT) -> List[Tool]:
    """Other tools from the same category, excluding the tool itself."""
    related = [candidate for candidate in category_tools if candidate.key != tool.key]
    return related[:limit]


def saved_tools_view(tools: Iterable[Tool], saved_ids: Iterable[str]) -> List[Tool]:
    """Tools whose ids are saved, in collection order.

    Saved ids that no longer match a tool are dropped silently.
    """
    wanted = set(saved_ids)
    return [tool for tool in tools if tool.key in wanted]

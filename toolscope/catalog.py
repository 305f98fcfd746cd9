"""Loads the tool collection and derives the views built on top of it."""

import logging
from dataclasses import dataclass
from dataclasses import field
from typing import Dict
from typing import List
from typing import Optional
from typing import Tuple

from toolscope.errors import GatewayError
from toolscope.filtering import all_tags
from toolscope.filtering import category_summaries
from toolscope.filtering import count_by_category
from toolscope.filtering import count_by_pricing
from toolscope.filtering import facet_options
from toolscope.filtering import filter_and_sort
from toolscope.filtering import related_tools
from toolscope.filtering import saved_tools_view
from toolscope.gateway import ToolGateway
from toolscope.models import CategorySummary
from toolscope.models import FilterState
from toolscope.models import Tool
from toolscope.saved import SavedToolsStore

logger = logging.getLogger(__name__)


@dataclass
class BrowseResult:
    """Filtered tools plus facet data computed over the full collection."""

    tools: List[Tool]
    total: int
    category_counts: Dict[str, int] = field(default_factory=dict)
    pricing_counts: Dict[str, int] = field(default_factory=dict)
    facets: Dict[str, List[tuple]] = field(default_factory=dict)
    available_tags: List[str] = field(default_factory=list)


class ToolCatalog:
    """Cached view of the remote collection.

    Loads follow a last-result-wins policy: when a newer load starts before an
    older one finishes, the older result is returned to its caller but never
    replaces the cache.
    """

    def __init__(self, gateway: ToolGateway) -> None:
        self.gateway = gateway
        self._tools: Optional[List[Tool]] = None
        self._generation = 0

    async def load(self) -> List[Tool]:
        self._generation += 1
        generation = self._generation
        tools = await self.gateway.get_all()
        if generation != self._generation:
            logger.info(f"Discarding superseded collection load ({len(tools)} tools)")
            return tools
        self._tools = tools
        return tools

    async def get_tools(self) -> List[Tool]:
        """Cached collection, loading it on first use."""
        if self._tools is None:
            logger.info("Cache empty, loading tools")
            return await self.load()
        return self._tools

    def invalidate(self) -> None:
        self._tools = None

    async def browse(self, state: FilterState) -> BrowseResult:
        tools = await self.get_tools()
        return BrowseResult(
            tools=filter_and_sort(tools, state),
            total=len(tools),
            category_counts=count_by_category(tools),
            pricing_counts=count_by_pricing(tools),
            facets=facet_options(tools),
            available_tags=all_tags(tools),
        )

    async def categories(self) -> List[CategorySummary]:
        """Category overview with counts recomputed from a fresh load."""
        return category_summaries(await self.load())

    async def tool_detail(self, tool_id) -> Tuple[Tool, List[Tool]]:
        """A tool and up to three related tools from its category.

        Related tools are fetched only after the tool itself has loaded; a
        failure fetching them leaves the list empty.
        """
        tool = await self.gateway.get_by_id(tool_id)
        try:
            category_tools = await self.gateway.get_by_category(tool.category)
        except GatewayError as e:
            logger.error(f"Failed to load related tools for {tool_id}: {e}")
            return tool, []
        return tool, related_tools(tool, category_tools)

    async def saved_tools(self, store: SavedToolsStore) -> List[Tool]:
        """Saved tools present in a fresh load of the collection."""
        saved_ids = store.list_ids()
        if not saved_ids:
            return []
        return saved_tools_view(await self.load(), saved_ids)

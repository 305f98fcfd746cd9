"""Tool catalog entities and normalization of raw collection records."""

from __future__ import annotations

import logging
import math
from datetime import datetime
from enum import Enum
from typing import Any
from typing import FrozenSet
from typing import Iterable
from typing import List
from typing import Mapping
from typing import Optional
from typing import Sequence
from typing import Union

from pydantic import AliasChoices
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator

logger = logging.getLogger(__name__)


class Category(str, Enum):
    WRITING = "Writing"
    IMAGE = "Image"
    CODE = "Code"
    VIDEO = "Video"
    AUDIO = "Audio"
    DATA = "Data"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Category"]:
        """Return the matching category, or None for out-of-domain values."""
        try:
            return cls(value)
        except ValueError:
            return None


class Pricing(str, Enum):
    FREE = "Free"
    FREEMIUM = "Freemium"
    PAID = "Paid"
    ENTERPRISE = "Enterprise"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Pricing"]:
        """Return the matching pricing tier, or None for out-of-domain values."""
        try:
            return cls(value)
        except ValueError:
            return None


class SortKey(str, Enum):
    NAME = "name"
    CATEGORY = "category"
    PRICING = "pricing"


DEFAULT_SORT_KEY = SortKey.NAME

# Free < Freemium < Paid < Enterprise
PRICING_ORDER = {tier.value: rank for rank, tier in enumerate(Pricing)}

CATEGORY_DESCRIPTIONS = {
    Category.WRITING: (
        "AI-powered writing assistants, content generators, and copywriting tools to enhance your writing workflow."
    ),
    Category.IMAGE: (
        "Create, edit, and enhance images with AI. From generation to upscaling, find the perfect visual AI tool."
    ),
    Category.CODE: (
        "AI coding assistants, code generators, and development tools to accelerate your programming projects."
    ),
    Category.VIDEO: "AI video creation, editing, and enhancement tools for content creators and video professionals.",
    Category.AUDIO: "Text-to-speech, audio editing, and voice synthesis tools powered by artificial intelligence.",
    Category.DATA: "AI-driven data analysis, visualization, and business intelligence tools for data professionals.",
}
DEFAULT_CATEGORY_DESCRIPTION = "Discover powerful AI tools in this category."

# A raw tag field arrives as a list of strings, a comma-joined string, or not at all.
RawTagField = Union[Sequence[str], str, None]


def _dedupe(values: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def normalize_tags(raw: RawTagField) -> List[str]:
    """Normalize a raw tag field into trimmed, unique tags in first-seen order.

    Comma-joined strings are split on commas. Lists are trimmed and deduplicated
    the same way, so normalizing an already normalized list is a no-op. Absent
    or unrecognized values produce an empty list.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        pieces = raw.split(",")
    elif isinstance(raw, (list, tuple)):
        pieces = [piece for piece in raw if isinstance(piece, str)]
    else:
        logger.warning(f"Ignoring tag field of unexpected type {type(raw).__name__}")
        return []
    return _dedupe(piece.strip() for piece in pieces)


def normalize_features(raw: Union[Sequence[str], str, None]) -> List[str]:
    """Split a newline-joined feature field into trimmed, non-empty lines."""
    if raw is None:
        return []
    if isinstance(raw, str):
        pieces = raw.split("\n")
    elif isinstance(raw, (list, tuple)):
        pieces = [piece for piece in raw if isinstance(piece, str)]
    else:
        return []
    return [piece.strip() for piece in pieces if piece.strip()]


def pricing_rank(pricing: Optional[str]) -> float:
    """Sort rank of a pricing value; unknown values rank after every known tier."""
    return PRICING_ORDER.get(pricing, math.inf)


class Tool(BaseModel):
    """One catalog entry, normalized from a collection record."""

    model_config = ConfigDict(frozen=True)

    id: Union[int, str] = Field(validation_alias=AliasChoices("id", "Id"))
    name: str = Field(validation_alias=AliasChoices("name", "Name"))
    description: str
    category: str = ""
    pricing: str = ""
    website: str = ""
    logo: str = ""
    tags: List[str] = Field(default_factory=list, validation_alias=AliasChoices("tags", "Tags"))
    features: List[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _require_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be empty")
        return value

    @field_validator("category", "pricing", "website", "logo", mode="before")
    @classmethod
    def _blank_if_missing(cls, value: Any) -> str:
        # Out-of-domain category/pricing values pass through untouched.
        if value is None:
            return ""
        return str(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value: Any) -> List[str]:
        return normalize_tags(value)

    @field_validator("features", mode="before")
    @classmethod
    def _normalize_features(cls, value: Any) -> List[str]:
        return normalize_features(value)

    @property
    def key(self) -> str:
        """Identifier as used by the saved-tools store."""
        return str(self.id)


def tool_from_record(record: Mapping[str, Any]) -> Tool:
    """Build a normalized tool from a raw collection record.

    Raises pydantic.ValidationError when the record lacks an id, a non-empty
    name or a description.
    """
    return Tool.model_validate(record)


class ToolDraft(BaseModel):
    """A validated submission, ready to be written to the collection."""

    name: str
    description: str
    category: Category
    pricing: Pricing
    website: str
    logo: str
    tags: List[str] = Field(default_factory=list)
    features: List[str] = Field(default_factory=list)


class CategorySummary(BaseModel):
    """A category with its live tool count."""

    name: str
    count: int
    description: str = DEFAULT_CATEGORY_DESCRIPTION


class SavedEntry(BaseModel):
    """A bookmarked tool id with the time it was saved."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    tool_id: str = Field(alias="toolId")
    saved_at: datetime = Field(alias="savedAt")

    @field_validator("tool_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return str(value)


class FilterState(BaseModel):
    """Search text, selected facet values and sort order for a browse view.

    Empty facet sets and an empty search query place no restriction.
    """

    search_query: str = ""
    categories: FrozenSet[str] = frozenset()
    pricing: FrozenSet[str] = frozenset()
    tags: FrozenSet[str] = frozenset()
    sort_key: SortKey = DEFAULT_SORT_KEY

    @property
    def is_unrestricted(self) -> bool:
        return not (self.search_query or self.categories or self.pricing or self.tags)

"""Validation and submission of new tools."""

import logging
import re
from typing import Dict
from typing import Mapping
from typing import Optional

from toolscope.errors import SubmissionValidationError
from toolscope.gateway import ToolGateway
from toolscope.models import Category
from toolscope.models import Pricing
from toolscope.models import Tool
from toolscope.models import ToolDraft
from toolscope.models import normalize_features
from toolscope.models import normalize_tags

logger = logging.getLogger(__name__)

MIN_DESCRIPTION_CHARS = 50
MAX_DESCRIPTION_CHARS = 500

WEBSITE_PATTERN = re.compile(r"^https?://.+\..+")
LOGO_PATTERN = re.compile(r"^https?://.+\.(jpg|jpeg|png|gif|webp)(\?.*)?$", re.IGNORECASE)

SUBMISSION_FIELDS = ("name", "description", "category", "pricing", "website", "logo", "tags", "features")


def _field(form: Mapping[str, Optional[str]], name: str) -> str:
    return (form.get(name) or "").strip()


def collect_errors(form: Mapping[str, Optional[str]]) -> Dict[str, str]:
    """Check every submission field and return a field -> message map."""
    errors: Dict[str, str] = {}

    if not _field(form, "name"):
        errors["name"] = "Tool name is required"

    description = _field(form, "description")
    if not description:
        errors["description"] = "Description is required"
    elif len(description) < MIN_DESCRIPTION_CHARS:
        errors["description"] = f"Description must be at least {MIN_DESCRIPTION_CHARS} characters"
    elif len(description) > MAX_DESCRIPTION_CHARS:
        errors["description"] = f"Description must be at most {MAX_DESCRIPTION_CHARS} characters"

    if Category.parse(_field(form, "category")) is None:
        errors["category"] = "Please select a category"

    if Pricing.parse(_field(form, "pricing")) is None:
        errors["pricing"] = "Please select a pricing tier"

    website = _field(form, "website")
    if not website:
        errors["website"] = "Website URL is required"
    elif not WEBSITE_PATTERN.match(website):
        errors["website"] = "Please enter a valid URL"

    logo = _field(form, "logo")
    if not logo:
        errors["logo"] = "Logo URL is required"
    elif not LOGO_PATTERN.match(logo):
        errors["logo"] = "Please enter a valid image URL"

    if not normalize_tags(_field(form, "tags")):
        errors["tags"] = "At least one tag is required"

    if not normalize_features(_field(form, "features")):
        errors["features"] = "At least one feature is required"

    return errors


def validate_submission(form: Mapping[str, Optional[str]]) -> ToolDraft:
    """Turn raw form values into a draft, or raise with every field problem at once."""
    errors = collect_errors(form)
    if errors:
        raise SubmissionValidationError(errors)

    return ToolDraft(
        name=_field(form, "name"),
        description=_field(form, "description"),
        category=Category(_field(form, "category")),
        pricing=Pricing(_field(form, "pricing")),
        website=_field(form, "website"),
        logo=_field(form, "logo"),
        tags=normalize_tags(_field(form, "tags")),
        features=normalize_features(_field(form, "features")),
    )


async def submit_tool(gateway: ToolGateway, form: Mapping[str, Optional[str]]) -> Tool:
    """Validate a submission and create it; nothing is written if validation fails."""
    try:
        draft = validate_submission(form)
    except SubmissionValidationError as e:
        logger.info(f"Rejected submission: {', '.join(sorted(e.errors))}")
        raise
    tool = await gateway.create(draft)
    logger.info(f"Accepted submission {tool.id}: {tool.name}")
    return tool

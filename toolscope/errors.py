"""Error types raised by the catalog, gateway and submission layers."""

from typing import Dict


class ToolscopeError(Exception):
    """Base exception for toolscope operations."""


class ToolNotFoundError(ToolscopeError):
    """Raised when a tool identifier is absent from the collection."""

    def __init__(self, tool_id) -> None:
        super().__init__(f"Tool not found: {tool_id}")
        self.tool_id = tool_id


class SubmissionValidationError(ToolscopeError):
    """Raised when a submitted tool has one or more invalid fields."""

    def __init__(self, errors: Dict[str, str]) -> None:
        fields = ", ".join(sorted(errors))
        super().__init__(f"Invalid submission fields: {fields}")
        self.errors = dict(errors)


class StorageCorruptionError(ToolscopeError):
    """Raised when persisted saved-tool data cannot be decoded."""


class GatewayError(ToolscopeError):
    """Raised when the remote tool collection cannot be read or written."""

"""Template ingestion errors.

Callers branch on the two subclasses only; the decoder-specific cause is
chained as __cause__ and folded into the message.
"""

from typing import Optional


class TemplateParseError(Exception):
    """Base class for every ingestion failure."""


class UnsupportedFormat(TemplateParseError):
    """The file extension does not map to any known decoder."""

    def __init__(self, extension: str, content_type: Optional[str] = None):
        self.extension = extension
        self.content_type = content_type
        detail = extension or "(no extension)"
        if content_type:
            detail = f"{detail} ({content_type})"
        super().__init__(f"Unsupported template format: {detail}")


class MalformedSource(TemplateParseError):
    """The decoder for a recognised format rejected the content."""

    def __init__(self, format_name: str, reason: str):
        self.format_name = format_name
        self.reason = reason
        super().__init__(f"Failed to parse {format_name} template: {reason}")

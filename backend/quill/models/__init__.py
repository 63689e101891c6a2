"""Models package."""
from quill.models.content import ContentItem, ContentVersion

__all__ = [
    "ContentItem",
    "ContentVersion",
]

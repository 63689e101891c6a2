"""Editable field sets of a content item and their serialized form."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields, replace
from typing import Any


# Fields copied into a version snapshot and back on restore. Slug is not archived.
ARCHIVED_FIELDS = ("title", "body", "excerpt", "category", "cover_image", "read_time")


@dataclass(frozen=True, slots=True)
class ContentFields:
    """The author-editable part of a content item (the edit buffer)."""

    title: str = ""
    slug: str = ""
    excerpt: str = ""
    body: str = ""
    category: str = ""
    cover_image: str | None = None
    read_time: str = ""

    def is_empty(self) -> bool:
        return not (self.title or "").strip() and not (self.body or "").strip()

    def serialize(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False, sort_keys=True)

    def archived(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in ARCHIVED_FIELDS}

    def with_changes(self, **changes: Any) -> "ContentFields":
        return replace(self, **changes)

    @classmethod
    def from_mapping(cls, data: dict[str, Any] | None) -> "ContentFields":
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in (data or {}).items() if key in known}
        for key, value in list(values.items()):
            if value is None and key != "cover_image":
                values[key] = ""
        return cls(**values)

    @classmethod
    def deserialize(cls, raw: str | None) -> "ContentFields | None":
        """Parse a serialized buffer; corrupt or non-object payloads yield None."""
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            return None
        if not isinstance(data, dict):
            return None
        return cls.from_mapping(data)

    @classmethod
    def of(cls, row: Any) -> "ContentFields":
        """Read the field set from an ORM row or any attribute-bearing object."""
        return cls(
            title=row.title or "",
            slug=getattr(row, "slug", "") or "",
            excerpt=row.excerpt or "",
            body=row.body or "",
            category=row.category or "",
            cover_image=row.cover_image,
            read_time=row.read_time or "",
        )

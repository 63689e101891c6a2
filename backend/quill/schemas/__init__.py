"""
Quill — Pydantic Schemas
========================
Request/Response schemas for the API layer.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from quill.domain.content.fields import ContentFields


# ── Content Schemas ──

class ContentFieldsPayload(BaseModel):
    title: str = Field("", max_length=1024)
    slug: str = Field("", max_length=255)
    excerpt: str = Field("", max_length=5000)
    body: str = Field("", max_length=500000)
    category: str = Field("", max_length=100)
    cover_image: Optional[str] = Field(default=None, max_length=2048)
    read_time: str = Field("", max_length=50)

    def to_fields(self) -> ContentFields:
        return ContentFields(
            title=self.title,
            slug=self.slug,
            excerpt=self.excerpt,
            body=self.body,
            category=self.category,
            cover_image=self.cover_image,
            read_time=self.read_time,
        )


class ContentCreate(ContentFieldsPayload):
    created_by: Optional[str] = Field(default=None, max_length=255)


class ContentUpdate(ContentFieldsPayload):
    expected_revision: Optional[int] = Field(default=None, ge=1)


class PublishRequest(BaseModel):
    fields: Optional[ContentFieldsPayload] = None
    actor: Optional[str] = Field(default=None, max_length=255)
    expected_revision: Optional[int] = Field(default=None, ge=1)


class ScheduleRequest(BaseModel):
    scheduled_at: datetime
    fields: Optional[ContentFieldsPayload] = None
    expected_revision: Optional[int] = Field(default=None, ge=1)


class RevisionRequest(BaseModel):
    expected_revision: Optional[int] = Field(default=None, ge=1)


class DraftSnapshotRequest(BaseModel):
    draft_snapshot: Optional[str] = Field(default=None, max_length=1000000)


class BulkIdsRequest(BaseModel):
    ids: list[int] = Field(..., min_length=1)


# ── Version Schemas ──

class VersionCreate(BaseModel):
    fields: Optional[ContentFieldsPayload] = None
    created_by: Optional[str] = Field(default=None, max_length=255)


class RestoreRequest(BaseModel):
    expected_revision: Optional[int] = Field(default=None, ge=1)


# ── System Schemas ──

class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float
    database: str

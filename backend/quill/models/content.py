"""
Quill — Content Models
======================
SQLAlchemy ORM models for the authoritative store.
Lifecycle: draft → (scheduled →) published → (unpublish →) draft
"""

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from quill.core.clock import utcnow
from quill.core.database import Base


class ContentItem(Base):
    """A single authored post with its own lifecycle state."""
    __tablename__ = "content_items"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # ── Authoritative fields ──
    title = Column(String(1024), nullable=False, default="")
    slug = Column(String(255), nullable=False, default="", index=True)
    excerpt = Column(Text, nullable=False, default="")
    body = Column(Text, nullable=False, default="")
    category = Column(String(100), nullable=False, default="")
    cover_image = Column(String(2048), nullable=True)
    read_time = Column(String(50), nullable=False, default="")

    # ── Lifecycle ──
    published = Column(Boolean, nullable=False, default=False)
    published_at = Column(DateTime, nullable=True)
    scheduled_at = Column(DateTime, nullable=True)

    # ── Autosave ──
    draft_snapshot = Column(Text, nullable=True)

    # ── Concurrency ──
    revision = Column(Integer, nullable=False, default=1)
    version_seq = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    versions = relationship(
        "ContentVersion",
        back_populates="content_item",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
    )

    __table_args__ = (
        Index("ix_content_items_due", "published", "scheduled_at"),
        CheckConstraint("NOT (published AND scheduled_at IS NOT NULL)", name="ck_content_items_single_state"),
        Index("ix_content_items_published_at", "published_at"),
    )

    def __repr__(self):
        return f"<ContentItem(id={self.id}, title='{(self.title or '')[:50]}')>"


class ContentVersion(Base):
    """Immutable snapshot of a content item's archived fields."""
    __tablename__ = "content_versions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    content_item_id = Column(
        Integer,
        ForeignKey("content_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    version_number = Column(Integer, nullable=False)
    title = Column(String(1024), nullable=False, default="")
    body = Column(Text, nullable=False, default="")
    excerpt = Column(Text, nullable=False, default="")
    category = Column(String(100), nullable=False, default="")
    cover_image = Column(String(2048), nullable=True)
    read_time = Column(String(50), nullable=False, default="")
    created_at = Column(DateTime, default=utcnow)
    created_by = Column(String(255), nullable=True)

    content_item = relationship("ContentItem", back_populates="versions")

    __table_args__ = (
        UniqueConstraint("content_item_id", "version_number", name="uq_content_version_number"),
    )

    def __repr__(self):
        return f"<ContentVersion(item={self.content_item_id}, version={self.version_number})>"

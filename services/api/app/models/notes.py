from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..db import Base
from .mixins import StringIdMixin, TimestampMixin

NOTE_TYPES = ("text", "checklist", "acceptance")
DEFAULT_NOTE_COLOR = "#fff9c4"


class Note(StringIdMixin, TimestampMixin, Base):
    __tablename__ = "notes"
    __table_args__ = (
        # Listing is always scoped to one owner
        Index("ix_notes_user_pinned_created", "user_id", "is_pinned", "created_at"),
    )

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False
    )
    issue_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("issues.id"), nullable=True, index=True
    )
    type: Mapped[str] = mapped_column(String(32), nullable=False)  # text|checklist|acceptance
    title: Mapped[str] = mapped_column(Text, nullable=False)
    # Stored verbatim; escaping is the presentation layer's job
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    color: Mapped[str] = mapped_column(
        String(32), nullable=False, default=DEFAULT_NOTE_COLOR
    )
    is_pinned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sort_order: Mapped[int | None] = mapped_column(Integer, nullable=True)
    category: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)

from sqlalchemy import ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ..db import Base
from .mixins import StringIdMixin, TimestampMixin


class Issue(StringIdMixin, TimestampMixin, Base):
    __tablename__ = "issues"
    __table_args__ = (
        # Upsert key for webhook deliveries: one row per issue number per project
        UniqueConstraint(
            "project_id", "github_issue_number", name="uix_issues_project_number"
        ),
    )

    project_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("projects.id"), nullable=False
    )
    github_issue_number: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    state: Mapped[str] = mapped_column(String(32), nullable=False, default="open")

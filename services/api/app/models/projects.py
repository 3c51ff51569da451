from sqlalchemy import BigInteger, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..db import Base
from .mixins import StringIdMixin, TimestampMixin


class Project(StringIdMixin, TimestampMixin, Base):
    """
    Links a user to a GitHub repository.

    Webhook deliveries are routed to a project by github_repo_id; one
    repository maps to at most one project.
    """

    __tablename__ = "projects"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )
    github_repo_id: Mapped[int] = mapped_column(
        BigInteger, unique=True, nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

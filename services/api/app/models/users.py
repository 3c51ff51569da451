from sqlalchemy import BigInteger, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..db import Base
from .mixins import StringIdMixin, TimestampMixin


class User(StringIdMixin, TimestampMixin, Base):
    """
    A GitHub account that has logged in.

    Rows are written only by the OAuth callback, keyed by github_id.
    access_token holds the encrypted GitHub token, never the plaintext.
    """

    __tablename__ = "users"

    github_id: Mapped[int] = mapped_column(
        BigInteger, unique=True, nullable=False, index=True
    )
    login: Mapped[str] = mapped_column(String(255), nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    access_token: Mapped[str | None] = mapped_column(Text, nullable=True)

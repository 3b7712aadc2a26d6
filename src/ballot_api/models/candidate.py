"""Candidate standing for a position."""

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ballot_api.lib.ballot import SCOPE_ALL
from ballot_api.models.base import Base, TimestampMixin, UUIDMixin


class Candidate(Base, UUIDMixin, TimestampMixin):
    """A candidate; ``scope`` is ``all`` or the voting location it is restricted to."""

    __tablename__ = "candidates"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    position: Mapped[str] = mapped_column(String(100), nullable=False)
    party: Mapped[str | None] = mapped_column(String(100), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    scope: Mapped[str] = mapped_column(String(100), nullable=False, default=SCOPE_ALL, server_default=SCOPE_ALL)

    __table_args__ = (Index("idx_candidates_position", "position"),)

"""Cast ballots. Append-only."""

from datetime import datetime

from sqlalchemy import JSON, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from ballot_api.core.clock import utc_now
from ballot_api.models.base import Base, UUIDMixin


class Vote(Base, UUIDMixin):
    """One ballot. ``voter_token`` is a keyed one-way reference to the voter."""

    __tablename__ = "votes"

    voter_token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    selections: Mapped[dict] = mapped_column(JSON, nullable=False)
    cast_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )

"""Voter registry model.

A voter moves UNVERIFIED -> VERIFIED -> VOTED. The outstanding one-time code
lives in two columns that are either both set or both NULL and is exposed as
a single :class:`OtcChallenge` value through :attr:`Voter.challenge`.
"""

import enum
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ballot_api.core.clock import ensure_utc
from ballot_api.lib.otc import OtcChallenge
from ballot_api.models.base import Base, TimestampMixin, UUIDMixin


class VoterStatus(enum.StrEnum):
    UNVERIFIED = "UNVERIFIED"
    VERIFIED = "VERIFIED"
    VOTED = "VOTED"


class Voter(Base, UUIDMixin, TimestampMixin):
    """A member eligible to take part in the election."""

    __tablename__ = "voters"

    membership_id: Mapped[str] = mapped_column(String(64), nullable=False)
    membership_id_normalized: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False, default="", server_default="")
    ward: Mapped[str] = mapped_column(String(100), nullable=False, default="", server_default="")
    constituency: Mapped[str] = mapped_column(String(100), nullable=False, default="", server_default="")
    county: Mapped[str] = mapped_column(String(100), nullable=False, default="", server_default="")
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=VoterStatus.UNVERIFIED.value,
        server_default=VoterStatus.UNVERIFIED.value,
    )
    voting_location: Mapped[str | None] = mapped_column(String(100), nullable=True)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    otc_code: Mapped[str | None] = mapped_column(String(6), nullable=True)
    otc_issued_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('UNVERIFIED', 'VERIFIED', 'VOTED')",
            name="ck_voter_status",
        ),
        CheckConstraint(
            "(otc_code IS NULL) = (otc_issued_at IS NULL)",
            name="ck_voter_otc_pair",
        ),
        Index("uq_voters_membership_id_normalized", "membership_id_normalized", unique=True),
        Index("idx_voters_status", "status"),
        Index("idx_voters_ward", "ward"),
    )

    @property
    def challenge(self) -> OtcChallenge | None:
        """The outstanding one-time code, if any."""
        if self.otc_code is None or self.otc_issued_at is None:
            return None
        return OtcChallenge(code=self.otc_code, issued_at=ensure_utc(self.otc_issued_at))

    @challenge.setter
    def challenge(self, value: OtcChallenge | None) -> None:
        if value is None:
            self.otc_code = None
            self.otc_issued_at = None
        else:
            self.otc_code = value.code
            self.otc_issued_at = value.issued_at

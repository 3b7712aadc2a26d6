"""Singleton election state: phase, title, delivery credentials and schedule."""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from ballot_api.core.clock import ensure_utc, utc_now
from ballot_api.lib.phase import ElectionPhase, PhaseSchedule
from ballot_api.models.base import Base

ELECTION_STATE_ID = 1
DEFAULT_ELECTION_TITLE = "General Election"
DEFAULT_ORGANIZATION_NAME = "Membership Organization"


class ElectionState(Base):
    """The single row (``id = 1``) describing the election being run."""

    __tablename__ = "election_state"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=ELECTION_STATE_ID)
    phase: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ElectionPhase.SETUP.value,
        server_default=ElectionPhase.SETUP.value,
    )
    election_title: Mapped[str] = mapped_column(String(200), nullable=False, default=DEFAULT_ELECTION_TITLE)
    organization_name: Mapped[str] = mapped_column(String(200), nullable=False, default=DEFAULT_ORGANIZATION_NAME)
    sms_api_key: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sms_sender_id: Mapped[str | None] = mapped_column(String(20), nullable=True)
    enable_auto_schedule: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    verification_start: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    verification_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    voting_start: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    voting_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    phase_changed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("id = 1", name="ck_election_state_singleton"),
        CheckConstraint(
            "phase IN ('SETUP', 'VERIFICATION', 'VOTING', 'ENDED')",
            name="ck_election_state_phase",
        ),
    )

    @property
    def current_phase(self) -> ElectionPhase:
        return ElectionPhase(self.phase)

    @property
    def schedule(self) -> PhaseSchedule:
        """The configured phase schedule with UTC-aware instants."""
        return PhaseSchedule(
            verification_start=_aware(self.verification_start),
            verification_end=_aware(self.verification_end),
            voting_start=_aware(self.voting_start),
            voting_end=_aware(self.voting_end),
        )

    @property
    def sms_configured(self) -> bool:
        return bool(self.sms_api_key and self.sms_api_key.strip())


def _aware(value: datetime | None) -> datetime | None:
    return ensure_utc(value) if value is not None else None

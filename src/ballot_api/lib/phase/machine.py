"""Election phase state machine.

Pure functions over the phase enum and the configured schedule. Persistence
and the background loop live in ``services.phase_service``.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from ballot_api.core.errors import PhaseViolation


class ElectionPhase(StrEnum):
    """Lifecycle stage of the election, in chronological order."""

    SETUP = "SETUP"
    VERIFICATION = "VERIFICATION"
    VOTING = "VOTING"
    ENDED = "ENDED"

    @property
    def rank(self) -> int:
        return _PHASE_ORDER.index(self)


_PHASE_ORDER: list[ElectionPhase] = [
    ElectionPhase.SETUP,
    ElectionPhase.VERIFICATION,
    ElectionPhase.VOTING,
    ElectionPhase.ENDED,
]

PHASE_DESCRIPTIONS: dict[ElectionPhase, str] = {
    ElectionPhase.SETUP: "System configuration mode. Public access is restricted.",
    ElectionPhase.VERIFICATION: "Registration period. Voters can verify their identity.",
    ElectionPhase.VOTING: "Polls are open! Voters can log in and cast their ballots.",
    ElectionPhase.ENDED: "Election closed. Results are finalized.",
}

_BROADCAST_NOTICE = "This action will immediately update the application state for all users."


@dataclass(frozen=True)
class PhaseSchedule:
    """The four optional instants driving automatic phase changes."""

    verification_start: datetime | None = None
    verification_end: datetime | None = None
    voting_start: datetime | None = None
    voting_end: datetime | None = None

    @property
    def is_empty(self) -> bool:
        return all(
            instant is None
            for instant in (self.verification_start, self.verification_end, self.voting_start, self.voting_end)
        )

    def validate(self) -> None:
        """Reject windows whose end does not come after their start.

        Raises:
            ValueError: If a window is inverted or empty.
        """
        pairs = (
            ("verification", self.verification_start, self.verification_end),
            ("voting", self.voting_start, self.voting_end),
        )
        for name, start, end in pairs:
            if start is not None and end is not None and end <= start:
                msg = f"{name}_end must be after {name}_start"
                raise ValueError(msg)


def compute_scheduled_phase(now: datetime, schedule: PhaseSchedule) -> ElectionPhase:
    """Compute the phase the schedule prescribes at ``now``.

    Rules are evaluated top to bottom and the first match wins:

    1. past ``voting_end`` -> ENDED
    2. past ``voting_start`` -> VOTING
    3. past ``verification_start`` -> SETUP once ``verification_end`` has
       passed, otherwise VERIFICATION
    4. otherwise SETUP

    Args:
        now: Server time.
        schedule: Configured instants; unset instants never match.

    Returns:
        The scheduled phase.
    """
    if schedule.voting_end is not None and now >= schedule.voting_end:
        return ElectionPhase.ENDED
    if schedule.voting_start is not None and now >= schedule.voting_start:
        return ElectionPhase.VOTING
    if schedule.verification_start is not None and now >= schedule.verification_start:
        if schedule.verification_end is not None and now >= schedule.verification_end:
            return ElectionPhase.SETUP
        return ElectionPhase.VERIFICATION
    return ElectionPhase.SETUP


def phase_warning(target: ElectionPhase) -> str:
    """Warning an administrator must acknowledge before switching to ``target``."""
    return f"Switch to {target.value}? {PHASE_DESCRIPTIONS[target]} {_BROADCAST_NOTICE}"


def check_manual_transition(current: ElectionPhase, target: ElectionPhase, *, votes_cast: int) -> bool:
    """Decide whether a manual transition needs to be written.

    Any phase may be reached from any other, except that the election cannot
    return to SETUP once ballots exist.

    Args:
        current: Stored phase.
        target: Requested phase.
        votes_cast: Number of votes currently recorded.

    Returns:
        False when ``target`` equals ``current`` (nothing to do), True otherwise.

    Raises:
        PhaseViolation: If returning to SETUP while votes exist.
    """
    if target == current:
        return False
    if target == ElectionPhase.SETUP and votes_cast > 0:
        raise PhaseViolation("Cannot return to SETUP phase while votes exist. Please reset votes first.")
    return True

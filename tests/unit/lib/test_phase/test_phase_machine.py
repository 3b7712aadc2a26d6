"""Tests for the election phase state machine."""

from datetime import UTC, datetime, timedelta

import pytest

from ballot_api.core.errors import PhaseViolation
from ballot_api.lib.phase import (
    ElectionPhase,
    PhaseSchedule,
    check_manual_transition,
    compute_scheduled_phase,
    phase_warning,
)

T1 = datetime(2026, 3, 1, 8, 0, tzinfo=UTC)
T2 = datetime(2026, 3, 5, 17, 0, tzinfo=UTC)
T3 = datetime(2026, 3, 10, 6, 0, tzinfo=UTC)
T4 = datetime(2026, 3, 10, 18, 0, tzinfo=UTC)
FULL = PhaseSchedule(verification_start=T1, verification_end=T2, voting_start=T3, voting_end=T4)


class TestComputeScheduledPhase:
    """Tests for compute_scheduled_phase."""

    @pytest.mark.parametrize(
        ("now", "expected"),
        [
            (T1 - timedelta(seconds=1), ElectionPhase.SETUP),
            (T1, ElectionPhase.VERIFICATION),
            (T2 - timedelta(seconds=1), ElectionPhase.VERIFICATION),
            (T2, ElectionPhase.SETUP),
            (T3 - timedelta(seconds=1), ElectionPhase.SETUP),
            (T3, ElectionPhase.VOTING),
            (T4 - timedelta(seconds=1), ElectionPhase.VOTING),
            (T4, ElectionPhase.ENDED),
            (T4 + timedelta(days=30), ElectionPhase.ENDED),
        ],
    )
    def test_full_schedule_boundaries(self, now: datetime, expected: ElectionPhase) -> None:
        assert compute_scheduled_phase(now, FULL) == expected

    def test_empty_schedule_is_setup(self) -> None:
        assert compute_scheduled_phase(T4, PhaseSchedule()) == ElectionPhase.SETUP

    def test_open_ended_verification(self) -> None:
        schedule = PhaseSchedule(verification_start=T1)
        assert compute_scheduled_phase(T4, schedule) == ElectionPhase.VERIFICATION

    def test_voting_without_end_stays_voting(self) -> None:
        schedule = PhaseSchedule(voting_start=T3)
        assert compute_scheduled_phase(T4 + timedelta(days=1), schedule) == ElectionPhase.VOTING

    def test_voting_end_alone_ends_election(self) -> None:
        schedule = PhaseSchedule(voting_end=T4)
        assert compute_scheduled_phase(T4, schedule) == ElectionPhase.ENDED
        assert compute_scheduled_phase(T3, schedule) == ElectionPhase.SETUP


class TestPhaseSchedule:
    """Tests for PhaseSchedule validation."""

    def test_is_empty(self) -> None:
        assert PhaseSchedule().is_empty
        assert not PhaseSchedule(voting_end=T4).is_empty

    def test_valid_schedule_passes(self) -> None:
        FULL.validate()

    def test_inverted_voting_window_rejected(self) -> None:
        with pytest.raises(ValueError, match="voting_end must be after voting_start"):
            PhaseSchedule(voting_start=T4, voting_end=T3).validate()

    def test_zero_length_verification_window_rejected(self) -> None:
        with pytest.raises(ValueError, match="verification_end"):
            PhaseSchedule(verification_start=T1, verification_end=T1).validate()

    def test_partial_windows_are_not_checked(self) -> None:
        PhaseSchedule(verification_end=T1, voting_start=T4).validate()


class TestManualTransition:
    """Tests for check_manual_transition."""

    def test_same_phase_is_noop(self) -> None:
        assert check_manual_transition(ElectionPhase.VOTING, ElectionPhase.VOTING, votes_cast=3) is False

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (ElectionPhase.SETUP, ElectionPhase.VOTING),
            (ElectionPhase.ENDED, ElectionPhase.VERIFICATION),
            (ElectionPhase.VERIFICATION, ElectionPhase.ENDED),
        ],
    )
    def test_any_non_setup_target_allowed(self, current: ElectionPhase, target: ElectionPhase) -> None:
        assert check_manual_transition(current, target, votes_cast=10) is True

    def test_return_to_setup_without_votes(self) -> None:
        assert check_manual_transition(ElectionPhase.ENDED, ElectionPhase.SETUP, votes_cast=0) is True

    def test_return_to_setup_with_votes_rejected(self) -> None:
        with pytest.raises(PhaseViolation, match="reset votes"):
            check_manual_transition(ElectionPhase.VOTING, ElectionPhase.SETUP, votes_cast=1)


class TestPhaseWarning:
    def test_warning_names_target_and_description(self) -> None:
        warning = phase_warning(ElectionPhase.VOTING)
        assert "VOTING" in warning
        assert "Polls are open" in warning

    def test_phase_rank_is_chronological(self) -> None:
        ranks = [phase.rank for phase in ElectionPhase]
        assert ranks == sorted(ranks)

"""Candidate eligibility and ballot completeness rules."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Protocol, TypeVar

SCOPE_ALL = "all"


class ScopedCandidate(Protocol):
    id: object
    position: str
    scope: str


C = TypeVar("C", bound=ScopedCandidate)


def normalize_scope(scope: str | None) -> str:
    """Canonical scope value: ``"all"`` for blank or any casing of "all"."""
    if scope is None or not scope.strip() or scope.strip().lower() == SCOPE_ALL:
        return SCOPE_ALL
    return scope.strip()


def is_eligible(candidate: ScopedCandidate, voting_location: str | None) -> bool:
    """A candidate is on a voter's ballot if scoped to all locations or to the voter's location."""
    scope = normalize_scope(candidate.scope)
    if scope == SCOPE_ALL:
        return True
    return voting_location is not None and scope.lower() == voting_location.strip().lower()


def group_eligible_candidates(candidates: Iterable[C], voting_location: str | None) -> dict[str, list[C]]:
    """Group the candidates a voter may choose from by position.

    Args:
        candidates: All candidates, in display order.
        voting_location: The location the voter selected at verification.

    Returns:
        Position -> eligible candidates, positions in first-seen order.
    """
    groups: dict[str, list[C]] = {}
    for candidate in candidates:
        if is_eligible(candidate, voting_location):
            groups.setdefault(candidate.position, []).append(candidate)
    return groups


@dataclass
class BallotCheck:
    """Differences between a selection map and the eligible positions."""

    missing: list[str] = field(default_factory=list)
    unexpected: list[str] = field(default_factory=list)
    invalid: list[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not (self.missing or self.unexpected or self.invalid)


def check_ballot(selections: Mapping[str, str], groups: Mapping[str, list[ScopedCandidate]]) -> BallotCheck:
    """Compare selections against the eligible groups.

    Args:
        selections: Position -> chosen candidate id.
        groups: Position -> eligible candidates.

    Returns:
        BallotCheck listing missing positions, positions not on the ballot,
        and positions whose chosen candidate is not eligible for it.
    """
    check = BallotCheck()
    for position in groups:
        if position not in selections:
            check.missing.append(position)
    for position, candidate_id in selections.items():
        if position not in groups:
            check.unexpected.append(position)
            continue
        if all(str(candidate.id) != str(candidate_id) for candidate in groups[position]):
            check.invalid.append(position)
    return check


def is_complete(selections: Mapping[str, str], groups: Mapping[str, list[ScopedCandidate]]) -> bool:
    """True iff there is exactly one valid selection for every eligible position and nothing else."""
    return check_ballot(selections, groups).is_complete

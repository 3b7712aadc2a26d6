"""Ballot library public API."""

from ballot_api.lib.ballot.eligibility import (
    SCOPE_ALL,
    BallotCheck,
    check_ballot,
    group_eligible_candidates,
    is_complete,
    is_eligible,
    normalize_scope,
)

__all__ = [
    "SCOPE_ALL",
    "BallotCheck",
    "check_ballot",
    "group_eligible_candidates",
    "is_complete",
    "is_eligible",
    "normalize_scope",
]

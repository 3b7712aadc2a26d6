"""Tests for candidate eligibility and ballot completeness."""

from dataclasses import dataclass, field
from uuid import UUID, uuid4

import pytest

from ballot_api.lib.ballot import (
    SCOPE_ALL,
    check_ballot,
    group_eligible_candidates,
    is_complete,
    is_eligible,
    normalize_scope,
)


@dataclass
class FakeCandidate:
    name: str
    position: str
    scope: str = SCOPE_ALL
    id: UUID = field(default_factory=uuid4)


class TestNormalizeScope:
    @pytest.mark.parametrize("raw", [None, "", "  ", "all", "ALL", " All "])
    def test_all_variants(self, raw: str | None) -> None:
        assert normalize_scope(raw) == SCOPE_ALL

    def test_location_is_trimmed(self) -> None:
        assert normalize_scope(" Nairobi ") == "Nairobi"


class TestIsEligible:
    """Tests for is_eligible."""

    def test_all_scope_visible_everywhere(self) -> None:
        candidate = FakeCandidate("A", "Chair")
        assert is_eligible(candidate, "Nairobi")
        assert is_eligible(candidate, None)

    def test_scoped_candidate_matches_location_case_insensitively(self) -> None:
        candidate = FakeCandidate("B", "Ward Rep", scope="Nairobi")
        assert is_eligible(candidate, "nairobi")
        assert not is_eligible(candidate, "Mombasa")

    def test_scoped_candidate_hidden_without_location(self) -> None:
        assert not is_eligible(FakeCandidate("B", "Ward Rep", scope="Nairobi"), None)


class TestGroupEligibleCandidates:
    def test_groups_by_position_in_first_seen_order(self) -> None:
        chair_a = FakeCandidate("A", "Chair")
        sec_a = FakeCandidate("C", "Secretary")
        chair_b = FakeCandidate("B", "Chair")
        rep = FakeCandidate("D", "Ward Rep", scope="Mombasa")

        groups = group_eligible_candidates([chair_a, sec_a, chair_b, rep], "Nairobi")

        assert list(groups) == ["Chair", "Secretary"]
        assert groups["Chair"] == [chair_a, chair_b]

    def test_position_with_no_eligible_candidates_is_omitted(self) -> None:
        groups = group_eligible_candidates([FakeCandidate("D", "Ward Rep", scope="Mombasa")], "Nairobi")
        assert groups == {}


class TestCheckBallot:
    """Tests for check_ballot and is_complete."""

    def setup_method(self) -> None:
        self.chair = FakeCandidate("A", "Chair")
        self.other_chair = FakeCandidate("B", "Chair")
        self.secretary = FakeCandidate("C", "Secretary")
        self.groups = {"Chair": [self.chair, self.other_chair], "Secretary": [self.secretary]}

    def test_complete_ballot(self) -> None:
        selections = {"Chair": str(self.chair.id), "Secretary": str(self.secretary.id)}
        assert check_ballot(selections, self.groups).is_complete
        assert is_complete(selections, self.groups)

    def test_missing_position(self) -> None:
        check = check_ballot({"Chair": str(self.chair.id)}, self.groups)
        assert check.missing == ["Secretary"]
        assert not check.is_complete

    def test_position_not_on_ballot(self) -> None:
        selections = {
            "Chair": str(self.chair.id),
            "Secretary": str(self.secretary.id),
            "Treasurer": str(uuid4()),
        }
        check = check_ballot(selections, self.groups)
        assert check.unexpected == ["Treasurer"]

    def test_candidate_from_other_position_is_invalid(self) -> None:
        selections = {"Chair": str(self.secretary.id), "Secretary": str(self.secretary.id)}
        check = check_ballot(selections, self.groups)
        assert check.invalid == ["Chair"]

    def test_empty_groups_accept_empty_selection(self) -> None:
        assert is_complete({}, {})

"""
Unit tests for the selection/collapse resolver.
"""

import pytest

from dialectics.core.errors import AmbiguousSelection, ValidationError
from dialectics.core.schemas import (
    Candidate,
    Claim,
    ClaimStrength,
    CriterionAssessment,
    MergeProposal,
    RejectedAlternative,
    SelectionJudgement,
    SurvivorRecord,
)
from dialectics.engine.selection import SelectionResolver


def survivors(**limitations):
    return [
        SurvivorRecord(candidate_id=cid, limitations=tuple(items))
        for cid, items in limitations.items()
    ]


def candidates(*items: Candidate):
    return {c.id: c for c in items}


@pytest.fixture
def resolver(catalogue):
    return SelectionResolver(catalogue)


@pytest.fixture
def pair():
    return candidates(
        Candidate(id="C1", claims=(Claim(requirement_id="R1"),), failure_modes=("overflow",)),
        Candidate(id="C2", claims=(Claim(requirement_id="R2"),), failure_modes=("underflow",)),
    )


class TestRankedSelection:
    """Test tie-break criteria applied in order."""

    def test_requires_multiple_survivors(self, resolver, pair):
        with pytest.raises(ValidationError, match="more than one survivor"):
            resolver.resolve(survivors(C1=[]), pair)

    def test_fewest_limitations(self, resolver, pair):
        record = resolver.resolve(survivors(C1=[], C2=["excludes case Z"]), pair)

        assert record.method == "ranked"
        assert record.finalist_id == "C1"
        assert record.criterion == "fewest_limitations"
        assert record.alternatives_rejected == (
            RejectedAlternative(candidate_id="C2", reason="more limitations"),
        )
        assert "C1=0" in record.rationale

    def test_tie_without_input_is_ambiguous(self, resolver, pair):
        with pytest.raises(AmbiguousSelection) as exc_info:
            resolver.resolve(survivors(C1=["a"], C2=["b"]), pair)

        assert exc_info.value.record_ids == ["C1", "C2"]
        assert exc_info.value.criteria_tried == ["fewest_limitations"]

    def test_ranked_assessment_breaks_tie(self, resolver, pair):
        assessment = CriterionAssessment(
            criterion="strongest_benefit",
            scores={"C1": 0.4, "C2": 0.9},
            argument="C2 also covers subtraction",
        )

        record = resolver.resolve(survivors(C1=[], C2=[]), pair, assessments=[assessment])

        assert record.finalist_id == "C2"
        assert record.criterion == "strongest_benefit"
        assert record.alternatives_rejected[0].reason == "weaker domain benefit"
        assert "C2 also covers subtraction" in record.rationale

    def test_ranking_that_keeps_nobody_is_rejected(self, resolver, pair):
        assessment = CriterionAssessment.model_construct(
            criterion="strongest_benefit",
            scores={"C1": float("nan"), "C2": 1.0},
            argument="unscored",
        )

        with pytest.raises(ValidationError, match="kept none") as exc_info:
            resolver.resolve(survivors(C1=[], C2=[]), pair, assessments=[assessment])

        assert exc_info.value.record_ids == ["C1", "C2"]

    def test_evaluator_judgement_last(self, resolver, pair):
        judgement = SelectionJudgement(
            finalist_id="C2",
            rationale="C2 reads more naturally to the domain experts",
            rejection_reasons={"C1": "awkward notation"},
        )

        record = resolver.resolve(survivors(C1=[], C2=[]), pair, judgement=judgement)

        assert record.finalist_id == "C2"
        assert record.criterion == "evaluator_judgement"
        assert record.rationale == judgement.rationale
        assert record.alternatives_rejected == (
            RejectedAlternative(candidate_id="C1", reason="awkward notation"),
        )

    def test_judgement_default_rejection_reason(self, resolver, pair):
        judgement = SelectionJudgement(finalist_id="C1", rationale="simpler")

        record = resolver.resolve(survivors(C1=[], C2=[]), pair, judgement=judgement)

        assert record.alternatives_rejected[0].reason == "not preferred by evaluator"

    def test_judgement_must_name_remaining_survivor(self, resolver, pair):
        judgement = SelectionJudgement(finalist_id="C9", rationale="gut feeling")

        with pytest.raises(ValidationError, match="not among"):
            resolver.resolve(survivors(C1=[], C2=[]), pair, judgement=judgement)

    def test_criteria_narrow_progressively(self, resolver):
        three = candidates(Candidate(id="C1"), Candidate(id="C2"), Candidate(id="C3"))
        assessment = CriterionAssessment(
            criterion="strongest_benefit",
            scores={"C2": 1.0, "C3": 2.0},
            argument="C3 generalizes",
        )

        record = resolver.resolve(
            survivors(C1=["x"], C2=[], C3=[]), three, assessments=[assessment]
        )

        assert record.finalist_id == "C3"
        assert [(a.candidate_id, a.reason) for a in record.alternatives_rejected] == [
            ("C1", "more limitations"),
            ("C2", "weaker domain benefit"),
        ]

    def test_assessment_must_score_every_remaining(self, resolver, pair):
        assessment = CriterionAssessment(
            criterion="strongest_benefit", scores={"C1": 1.0}, argument="only one"
        )
        with pytest.raises(ValidationError, match="does not score"):
            resolver.resolve(survivors(C1=[], C2=[]), pair, assessments=[assessment])

    @pytest.mark.parametrize("criterion", ["elegance", "fewest_limitations"])
    def test_assessment_for_non_ranked_criterion_rejected(self, resolver, pair, criterion):
        assessment = CriterionAssessment(criterion=criterion, scores={"C1": 1.0}, argument="x")
        with pytest.raises(ValidationError, match="not a ranked criterion"):
            resolver.resolve(survivors(C1=[], C2=[]), pair, assessments=[assessment])


class TestMerge:
    """Test strength-preserving merges."""

    def merged(self, **overrides) -> MergeProposal:
        fields = dict(
            id="M1",
            claims=(Claim(requirement_id="R1"), Claim(requirement_id="R2")),
            failure_modes=("overflow",),
        )
        fields.update(overrides)
        return MergeProposal(candidate=Candidate(**fields), argument="Union of both definitions")

    def test_merge_accepted(self, resolver, pair):
        record = resolver.resolve(
            survivors(C1=["no negatives"], C2=["finite only", "no negatives"]),
            pair,
            merge_proposal=self.merged(),
        )

        assert record.method == "merge"
        assert record.finalist_id == "M1"
        assert record.merge.replaces == ("C1", "C2")
        assert record.merge.limitations == ("no negatives", "finite only")
        assert record.rationale == "Union of both definitions"

    def test_check_merge_clean(self, resolver, pair):
        assert resolver.check_merge(self.merged(), list(pair.values())) == []

    def test_merge_dropping_requirement_falls_back(self, resolver, pair):
        proposal = self.merged(claims=(Claim(requirement_id="R1"),))

        record = resolver.resolve(survivors(C1=[], C2=["excludes case Z"]), pair, proposal)

        assert record.method == "ranked"
        assert record.finalist_id == "C1"
        assert record.rationale.startswith("Merge rejected (merge drops requirement 'R2'")

    def test_merge_weaker_claim_rejected(self, resolver, pair):
        proposal = self.merged(
            claims=(
                Claim(requirement_id="R1", strength=ClaimStrength.PARTIAL),
                Claim(requirement_id="R2"),
            )
        )

        problems = resolver.check_merge(proposal, list(pair.values()))

        assert len(problems) == 1
        assert "weaker than 'C1'" in problems[0]

    def test_merge_new_failure_mode_rejected(self, resolver, pair):
        proposal = self.merged(failure_modes=("overflow", "division_by_zero"))

        problems = resolver.check_merge(proposal, list(pair.values()))

        assert problems == ["merge introduces new failure mode 'division_by_zero'"]

    def test_merge_must_replace_all_survivors(self, resolver):
        three = candidates(Candidate(id="C1"), Candidate(id="C2"), Candidate(id="C3"))
        proposal = MergeProposal(
            candidate=Candidate(id="M1"), replaces=("C1", "C2"), argument="partial merge"
        )

        with pytest.raises(ValidationError, match="every survivor"):
            resolver.resolve(survivors(C1=[], C2=[], C3=[]), three, proposal)

    def test_merge_of_non_survivor_rejected(self, resolver, pair):
        proposal = MergeProposal(
            candidate=Candidate(id="M1"), replaces=("C1", "C9"), argument="typo"
        )

        with pytest.raises(ValidationError, match="non-surviving"):
            resolver.resolve(survivors(C1=[], C2=[]), pair, proposal)

    def test_merge_id_collision_rejected(self, resolver, pair):
        proposal = self.merged(id="C1")

        with pytest.raises(ValidationError, match="collides"):
            resolver.resolve(survivors(C1=[], C2=[]), pair, proposal)

"""
Unit tests for the outcome assembler and transcript rendering.
"""

import pytest

from dialectics.core.schemas import (
    Candidate,
    EliminationExhaustion,
    GateResult,
    Obligation,
    RevisionRecord,
    RunVersion,
)
from dialectics.core.taxonomy import OutcomeVerdict, ResolutionAction
from dialectics.engine.outcome import OutcomeAssembler, render_transcript


@pytest.fixture
def assembler(catalogue):
    return OutcomeAssembler(catalogue)


@pytest.fixture
def gate_result():
    return GateResult(
        candidate_id="C1",
        obligations=(Obligation(property="soundness", argument="by induction", satisfied=True),),
    )


REVISION = RevisionRecord(
    revision=1,
    diagnosis="candidates_too_weak",
    resolution=ResolutionAction.RESTART_CANDIDATES,
    notes="Both candidates ignored zero",
    run_version=2,
)


class TestOutcomeAssembler:
    """Test outcome assembly with protocol labels."""

    def test_adopted(self, assembler, gate_result):
        outcome = assembler.adopted(
            run_id="run-1",
            subject="addition",
            finalist=Candidate(id="C1"),
            limitations=["excludes case Z"],
            gate_result=gate_result,
            revisions=[REVISION],
            versions=[RunVersion(version=1), RunVersion(version=2)],
        )

        assert outcome.verdict == OutcomeVerdict.ADOPTED
        assert outcome.verdict_label == "formalized"
        assert outcome.protocol_id == "cffp"
        assert outcome.winner_id == "C1"
        assert outcome.limitations == ("excludes case Z",)
        assert outcome.obligations == gate_result.obligations
        assert outcome.revision_count == 1
        assert len(outcome.versions) == 2
        assert outcome.merge is None

    def test_unresolved_with_exhaustion(self, assembler):
        exhaustion = EliminationExhaustion(
            revision_count=4, max_revisions=3, eliminated_ids=("C5",), last_diagnosis="x"
        )

        outcome = assembler.unresolved(
            run_id="run-1",
            subject="addition",
            revisions=[REVISION],
            versions=[RunVersion(version=1)],
            exhaustion=exhaustion,
        )

        assert outcome.verdict_label == "not formalizable"
        assert outcome.exhaustion == exhaustion
        assert outcome.winner is None

    def test_closed_uses_default_label(self, assembler):
        outcome = assembler.closed(
            OutcomeVerdict.ABANDONED,
            run_id="run-1",
            subject="addition",
            revisions=[],
            versions=[],
            notes="Subject withdrawn",
        )

        assert outcome.verdict_label == "abandoned"
        assert outcome.notes == "Subject withdrawn"


class TestTranscript:
    """Test transcript rendering."""

    def test_render_transcript(self, assembler, gate_result):
        outcome = assembler.adopted(
            run_id="run-1",
            subject="addition",
            finalist=Candidate(id="C1", description="Peano addition"),
            limitations=["excludes case Z"],
            gate_result=gate_result,
            revisions=[REVISION],
            versions=[RunVersion(version=1, candidates=(Candidate(id="C1"),))],
        )

        transcript = render_transcript(outcome)

        assert "DIALECTICAL RUN TRANSCRIPT" in transcript
        assert "Verdict: formalized (adopted)" in transcript
        assert "VERSION 1" in transcript
        assert "#1: candidates_too_weak -> restart_candidates" in transcript
        assert "[x] soundness" in transcript
        assert "Winner: C1" in transcript
        assert "excludes case Z" in transcript

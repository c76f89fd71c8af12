"""
Property-based tests for the elimination engine.

Uses hypothesis to generate candidate pools, challenge sets, revision
sequences and obligation sets.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from dialectics.core.schemas import (
    Candidate,
    Challenge,
    Derivation,
    EliminationRecord,
    GateResult,
    Obligation,
    Rebuttal,
)
from dialectics.engine.derivation import DerivationEngine
from dialectics.engine.revision import RevisionController, RevisionState
from dialectics.protocols import cffp

ENGINE = DerivationEngine(cffp.CATALOGUE)

SUBTYPES = ("counterexample", "foundational_mismatch", "internal_inconsistency")
ANSWERS = ("none", "refute_valid", "refute_invalid", "narrow")


@st.composite
def run_inputs(draw):
    """Generate a valid (pool, challenges, answers) triple for the formalization protocol."""
    size = draw(st.integers(min_value=1, max_value=5))
    pool = [Candidate(id=f"C{i}") for i in range(size)]

    challenges = []
    answers = []
    for j in range(draw(st.integers(min_value=0, max_value=8))):
        target = draw(st.sampled_from(pool)).id
        subtype = draw(st.sampled_from(SUBTYPES))
        answer = "none" if subtype == "internal_inconsistency" else draw(st.sampled_from(ANSWERS))
        if subtype == "foundational_mismatch" and answer == "narrow":
            answer = "refute_invalid"

        rebuttal = None
        if answer == "refute_valid":
            rebuttal = Rebuttal(kind="refutation", argument="disputed", valid=True)
        elif answer == "refute_invalid":
            rebuttal = Rebuttal(kind="refutation", argument="disputed", valid=False)
        elif answer == "narrow":
            rebuttal = Rebuttal(
                kind="scope_narrowing", argument="retreat", valid=True, limitation=f"L{j}"
            )

        challenges.append(
            Challenge(
                id=f"X{j}",
                target=target,
                subtype=subtype,
                argument="pressure",
                minimal=True,
                rebuttal=rebuttal,
            )
        )
        answers.append(answer)
    return pool, challenges, answers


class TestDerivationProperties:
    """Invariants of the derived partition."""

    @given(run_inputs())
    @settings(max_examples=60, deadline=None)
    def test_derivation_is_deterministic(self, data):
        pool, challenges, _ = data
        assert ENGINE.derive(pool, challenges) == ENGINE.derive(pool, challenges)

    @given(run_inputs())
    @settings(max_examples=60, deadline=None)
    def test_partition_is_complete_and_ordered(self, data):
        pool, challenges, _ = data
        derivation = ENGINE.derive(pool, challenges)
        pool_ids = [c.id for c in pool]

        eliminated = derivation.eliminated_ids
        survivors = derivation.survivor_ids
        assert set(eliminated) | set(survivors) == set(pool_ids)
        assert not set(eliminated) & set(survivors)
        assert eliminated == [cid for cid in pool_ids if cid in eliminated]
        assert survivors == [cid for cid in pool_ids if cid in survivors]

    @given(run_inputs())
    @settings(max_examples=60, deadline=None)
    def test_irrebuttable_targets_always_eliminated(self, data):
        pool, challenges, _ = data
        derivation = ENGINE.derive(pool, challenges)

        for challenge in challenges:
            if challenge.subtype == "internal_inconsistency":
                assert challenge.rebuttal is None
                assert challenge.target in derivation.eliminated_ids

    @given(run_inputs())
    @settings(max_examples=60, deadline=None)
    def test_failed_or_unanswered_pressure_eliminates(self, data):
        pool, challenges, answers = data
        derivation = ENGINE.derive(pool, challenges)

        for challenge, answer in zip(challenges, answers):
            if answer in ("none", "refute_invalid"):
                assert challenge.target in derivation.eliminated_ids

    @given(run_inputs())
    @settings(max_examples=60, deadline=None)
    def test_survivor_limitations_come_from_scope_narrowing(self, data):
        pool, challenges, _ = data
        derivation = ENGINE.derive(pool, challenges)

        for survivor in derivation.survivors:
            expected = tuple(
                c.rebuttal.limitation
                for c in challenges
                if c.target == survivor.candidate_id
                and c.rebuttal is not None
                and c.rebuttal.kind == "scope_narrowing"
            )
            assert survivor.limitations == expected

        for challenge in challenges:
            if challenge.rebuttal is not None and challenge.rebuttal.kind == "scope_narrowing":
                assert challenge.rebuttal.valid
                assert challenge.rebuttal.limitation

    @given(run_inputs())
    @settings(max_examples=60, deadline=None)
    def test_every_elimination_names_a_targeting_challenge(self, data):
        pool, challenges, _ = data
        derivation = ENGINE.derive(pool, challenges)
        by_id = {c.id: c for c in challenges}

        for record in derivation.eliminated:
            assert by_id[record.challenge_id].target == record.candidate_id
            assert record.reason in cffp.CATALOGUE.elimination_reasons


class TestRevisionTermination:
    """The revision loop always terminates within its bound."""

    ZERO_SURVIVORS = Derivation(
        eliminated=(EliminationRecord(candidate_id="C1", reason="r", challenge_id="X1"),)
    )

    @given(
        max_revisions=st.integers(min_value=0, max_value=6),
        diagnoses=st.lists(
            st.sampled_from(["constraints_too_strong", "candidates_too_weak"]),
            min_size=8,
            max_size=8,
        ),
    )
    @settings(max_examples=50, deadline=None)
    def test_restarting_diagnoses_hit_the_bound(self, max_revisions, diagnoses):
        controller = RevisionController(cffp.CATALOGUE, max_revisions=max_revisions)
        version = 1

        for diagnosis in diagnoses:
            controller.check(self.ZERO_SURVIVORS)
            record = controller.trigger(diagnosis, "still nothing survives", version)
            version = record.run_version
            if controller.is_terminal:
                break

        assert controller.state == RevisionState.EXHAUSTED
        assert controller.revision_count == max_revisions + 1
        assert [r.revision for r in controller.history] == list(range(1, max_revisions + 2))
        assert [r.forced_unresolved for r in controller.history] == [False] * max_revisions + [True]


class TestObligationMonotonicity:
    """The gate passes exactly when every obligation holds."""

    @given(st.lists(st.booleans(), min_size=1, max_size=8))
    @settings(max_examples=60, deadline=None)
    def test_passed_is_conjunction(self, flags):
        obligations = tuple(
            Obligation(
                property=f"p{i}",
                argument="argued",
                satisfied=flag,
                blocker=None if flag else "blocked",
            )
            for i, flag in enumerate(flags)
        )
        result = GateResult(candidate_id="C1", obligations=obligations)

        assert result.passed == all(flags)

    @given(st.lists(st.booleans(), min_size=1, max_size=8))
    @settings(max_examples=60, deadline=None)
    def test_adding_unsatisfied_obligation_never_passes(self, flags):
        obligations = tuple(
            Obligation(
                property=f"p{i}",
                argument="argued",
                satisfied=flag,
                blocker=None if flag else "blocked",
            )
            for i, flag in enumerate(flags)
        )
        extra = Obligation(property="extra", argument="argued", satisfied=False, blocker="open")

        result = GateResult(candidate_id="C1", obligations=obligations + (extra,))

        assert result.passed is False

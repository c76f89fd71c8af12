"""
Constraint-First Formalization Protocol (CFFP).

Candidates are formalizations of an informal notion, challenged against
the constraints declared up front. A formalization that contradicts itself
is eliminated outright; a foundational mismatch cannot be conceded away.
"""

from dialectics.core.taxonomy import (
    ChallengeSubtype,
    OutcomeVerdict,
    ProtocolCatalogue,
    ResolutionAction,
    irrebuttable,
    refutation_only,
)

SUBTYPES = (
    ChallengeSubtype(
        tag="counterexample",
        elimination_reason="counterexample_unrefuted",
        requires_minimality=True,
        description="A minimal instance the formalization gets wrong",
    ),
    ChallengeSubtype(
        tag="composition_failure",
        elimination_reason="composition_failure",
        requires_prior_outcome=True,
        description="The formalization does not compose with a previously adopted result",
    ),
    refutation_only(
        "foundational_mismatch",
        "foundational_mismatch",
        "The formalization rests on primitives the constraints rule out",
    ),
    irrebuttable(
        "internal_inconsistency",
        "internal_inconsistency",
        "The formalization derives a contradiction from its own axioms",
    ),
)

CATALOGUE = ProtocolCatalogue(
    protocol_id="cffp",
    name="Constraint-First Formalization Protocol",
    challenge_subtypes=SUBTYPES,
    elimination_reasons=frozenset(s.elimination_reason for s in SUBTYPES),
    diagnoses={
        "constraints_too_strong": ResolutionAction.RESTART_CONSTRAINTS,
        "candidates_too_weak": ResolutionAction.RESTART_CANDIDATES,
        "not_formalizable": ResolutionAction.CLOSE_UNRESOLVED,
    },
    verdict_labels={
        OutcomeVerdict.ADOPTED: "formalized",
        OutcomeVerdict.REJECTED: "formalization rejected",
        OutcomeVerdict.UNRESOLVED: "not formalizable",
    },
    description="Candidates are formalizations",
)

"""
Emergence Mapping Protocol (EMP).

Candidates classify how a macro-level behaviour relates to its micro-level
substrate.
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
        tag="reduction_counterexample",
        elimination_reason="reducible_behaviour",
        requires_minimality=True,
        description="A minimal micro-level account that already yields the behaviour",
    ),
    ChallengeSubtype(
        tag="novelty_unsupported",
        elimination_reason="unsupported_novelty",
        description="The claimed novel property is not shown to be novel",
    ),
    refutation_only(
        "level_confusion",
        "level_confusion",
        "The classification mixes descriptions from different levels",
    ),
    irrebuttable(
        "causal_closure_violation",
        "causal_closure_violation",
        "The classification requires macro causes outside the micro dynamics",
    ),
)

CATALOGUE = ProtocolCatalogue(
    protocol_id="emp",
    name="Emergence Mapping Protocol",
    challenge_subtypes=SUBTYPES,
    elimination_reasons=frozenset(s.elimination_reason for s in SUBTYPES),
    diagnoses={
        "levels_misdeclared": ResolutionAction.RESTART_CONSTRAINTS,
        "classifications_too_coarse": ResolutionAction.RESTART_CANDIDATES,
        "system_not_emergent": ResolutionAction.CLOSE_UNRESOLVED,
    },
    verdict_labels={
        OutcomeVerdict.ADOPTED: "classified",
        OutcomeVerdict.UNRESOLVED: "emergence undetermined",
    },
    required_obligations=("micro_macro_consistency",),
    description="Candidates are emergence classifications",
)

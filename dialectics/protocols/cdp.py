"""
Construct Decomposition Protocol (CDP).

Candidates are decompositions of a construct into components. The adopted
decomposition must be shown to recompose into the original construct.
"""

from dialectics.core.taxonomy import (
    ChallengeSubtype,
    OutcomeVerdict,
    ProtocolCatalogue,
    ResolutionAction,
    TieBreakCriterion,
    TieBreakMethod,
    irrebuttable,
)

SUBTYPES = (
    ChallengeSubtype(
        tag="missing_component",
        elimination_reason="incomplete_decomposition",
        requires_minimality=True,
        description="A minimal aspect of the construct no component covers",
    ),
    ChallengeSubtype(
        tag="component_overlap",
        elimination_reason="overlapping_components",
        description="Two components cover the same aspect",
    ),
    ChallengeSubtype(
        tag="recomposition_failure",
        elimination_reason="recomposition_failure",
        requires_prior_outcome=True,
        description="Components conflict with a previously adopted decomposition",
    ),
    irrebuttable(
        "circular_dependency",
        "circular_dependency",
        "A component is defined in terms of the construct it decomposes",
    ),
)

CATALOGUE = ProtocolCatalogue(
    protocol_id="cdp",
    name="Construct Decomposition Protocol",
    challenge_subtypes=SUBTYPES,
    elimination_reasons=frozenset(s.elimination_reason for s in SUBTYPES),
    diagnoses={
        "construct_overspecified": ResolutionAction.RESTART_CONSTRAINTS,
        "decompositions_too_coarse": ResolutionAction.RESTART_CANDIDATES,
        "construct_atomic": ResolutionAction.CLOSE_UNRESOLVED,
    },
    tie_break_criteria=(
        TieBreakCriterion(
            tag="fewest_limitations",
            method=TieBreakMethod.FEWEST_LIMITATIONS,
            rejection_reason="more limitations",
        ),
        TieBreakCriterion(
            tag="component_independence",
            method=TieBreakMethod.RANKED_ASSESSMENT,
            rejection_reason="less independent components",
            description="Prefer components that vary independently",
        ),
        TieBreakCriterion(
            tag="evaluator_judgement",
            method=TieBreakMethod.EVALUATOR_JUDGEMENT,
            rejection_reason="not preferred by evaluator",
        ),
    ),
    verdict_labels={
        OutcomeVerdict.ADOPTED: "decomposed",
        OutcomeVerdict.UNRESOLVED: "not decomposable",
    },
    required_obligations=("recomposition",),
    description="Candidates are decompositions",
)

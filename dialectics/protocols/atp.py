"""
Analogy Transfer Protocol (ATP).

Candidates are mappings from a source domain onto a target domain. A
transfer may lean on an adopted result for the source domain, so transfer
failures reference previously finalized outcomes.
"""

from dialectics.core.taxonomy import (
    ChallengeSubtype,
    OutcomeVerdict,
    ProtocolCatalogue,
    ResolutionAction,
    TieBreakCriterion,
    TieBreakMethod,
    irrebuttable,
    refutation_only,
)

SUBTYPES = (
    ChallengeSubtype(
        tag="disanalogy",
        elimination_reason="disanalogy",
        requires_minimality=True,
        description="A minimal relation that holds in the source but fails in the target",
    ),
    ChallengeSubtype(
        tag="transfer_failure",
        elimination_reason="transfer_failure",
        requires_prior_outcome=True,
        description="The mapped result contradicts the adopted source-domain outcome",
    ),
    refutation_only(
        "structural_mismatch",
        "structural_mismatch",
        "The mapping matches surface features, not relational structure",
    ),
    irrebuttable("category_error", "category_error", "The mapping relates incomparable kinds"),
)

CATALOGUE = ProtocolCatalogue(
    protocol_id="atp",
    name="Analogy Transfer Protocol",
    challenge_subtypes=SUBTYPES,
    elimination_reasons=frozenset(s.elimination_reason for s in SUBTYPES),
    diagnoses={
        "source_domain_overconstrained": ResolutionAction.RESTART_CONSTRAINTS,
        "mappings_too_shallow": ResolutionAction.RESTART_CANDIDATES,
        "no_viable_analogy": ResolutionAction.CLOSE_UNRESOLVED,
    },
    tie_break_criteria=(
        TieBreakCriterion(
            tag="fewest_limitations",
            method=TieBreakMethod.FEWEST_LIMITATIONS,
            rejection_reason="more limitations",
        ),
        TieBreakCriterion(
            tag="structural_depth",
            method=TieBreakMethod.RANKED_ASSESSMENT,
            rejection_reason="shallower structural mapping",
            description="Prefer mappings preserving higher-order relations",
        ),
        TieBreakCriterion(
            tag="evaluator_judgement",
            method=TieBreakMethod.EVALUATOR_JUDGEMENT,
            rejection_reason="not preferred by evaluator",
        ),
    ),
    verdict_labels={
        OutcomeVerdict.ADOPTED: "transfer licensed",
        OutcomeVerdict.UNRESOLVED: "analogy not viable",
    },
    required_obligations=("structural_consistency",),
    description="Candidates are analogy mappings",
)

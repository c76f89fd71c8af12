"""
Hypothesis Elimination Protocol (HEP).

Candidates are causal hypotheses weighed against evidence. This is the
evidence-weight instantiation: an evidence inconsistency may be marked
decisive, weak inconsistencies only count once an argued judgement says
they rise to strong, and a challenge may be answered by disputing the
reliability of the evidence behind it.
"""

from dialectics.core.taxonomy import (
    REFUTATION,
    SCOPE_NARROWING,
    UNIVERSAL_REBUTTAL_KINDS,
    ChallengeSubtype,
    OutcomeVerdict,
    ProtocolCatalogue,
    RebuttalKindSpec,
    ResolutionAction,
    TieBreakCriterion,
    TieBreakMethod,
    irrebuttable,
)

EVIDENCE_RELIABILITY = RebuttalKindSpec(
    tag="evidence_reliability",
    concessive=False,
    description="Disputes the reliability of the evidence the challenge relies on",
)

SUBTYPES = (
    ChallengeSubtype(
        tag="evidence_inconsistency",
        elimination_reason="evidence_inconsistent",
        allowed_rebuttal_kinds=frozenset({REFUTATION, SCOPE_NARROWING, EVIDENCE_RELIABILITY.tag}),
        allows_decisive=True,
        description="Observed evidence contradicts what the hypothesis predicts",
    ),
    ChallengeSubtype(
        tag="alternative_explanation",
        elimination_reason="better_explained",
        allowed_rebuttal_kinds=frozenset({REFUTATION, EVIDENCE_RELIABILITY.tag}),
        description="A rival accounts for the evidence at least as well",
    ),
    ChallengeSubtype(
        tag="implausible_mechanism",
        elimination_reason="implausible_mechanism",
        description="No plausible mechanism connects cause and effect",
    ),
    irrebuttable(
        "temporal_order_violation",
        "cause_after_effect",
        "The proposed cause occurs after its effect",
    ),
)

CATALOGUE = ProtocolCatalogue(
    protocol_id="hep",
    name="Hypothesis Elimination Protocol",
    challenge_subtypes=SUBTYPES,
    elimination_reasons=frozenset(s.elimination_reason for s in SUBTYPES),
    diagnoses={
        "evidence_overconstrained": ResolutionAction.RESTART_CONSTRAINTS,
        "hypotheses_incomplete": ResolutionAction.RESTART_CANDIDATES,
        "phenomenon_not_causal": ResolutionAction.CLOSE_UNRESOLVED,
    },
    rebuttal_kinds=UNIVERSAL_REBUTTAL_KINDS + (EVIDENCE_RELIABILITY,),
    tie_break_criteria=(
        TieBreakCriterion(
            tag="fewest_limitations",
            method=TieBreakMethod.FEWEST_LIMITATIONS,
            rejection_reason="more limitations",
        ),
        TieBreakCriterion(
            tag="explanatory_scope",
            method=TieBreakMethod.RANKED_ASSESSMENT,
            rejection_reason="narrower explanatory scope",
            description="Prefer the hypothesis explaining more of the evidence",
        ),
        TieBreakCriterion(
            tag="parsimony",
            method=TieBreakMethod.RANKED_ASSESSMENT,
            rejection_reason="less parsimonious",
            description="Prefer the hypothesis positing fewer entities",
        ),
        TieBreakCriterion(
            tag="evaluator_judgement",
            method=TieBreakMethod.EVALUATOR_JUDGEMENT,
            rejection_reason="not preferred by evaluator",
        ),
    ),
    verdict_labels={
        OutcomeVerdict.ADOPTED: "best explanation",
        OutcomeVerdict.REJECTED: "all hypotheses rejected",
        OutcomeVerdict.UNRESOLVED: "cause undetermined",
    },
    required_obligations=("testability",),
    aggregated_pressure_reason="cumulative_weak_evidence",
    description="Candidates are causal hypotheses",
)

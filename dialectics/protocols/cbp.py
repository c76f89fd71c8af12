"""
Concept Boundary Protocol (CBP).

Candidates are concept definitions tested at their boundary. Besides the
universal rebuttal kinds, a definition may answer a borderline case by
stipulation: an explicit, recorded decision about which side it falls on.
"""

from dialectics.core.taxonomy import (
    REFUTATION,
    SCOPE_NARROWING,
    ChallengeSubtype,
    OutcomeVerdict,
    ProtocolCatalogue,
    RebuttalKindSpec,
    ResolutionAction,
    irrebuttable,
    refutation_only,
)

STIPULATION = RebuttalKindSpec(
    tag="stipulation",
    concessive=True,
    description="Settles a borderline case by explicit stipulation",
)

SUBTYPES = (
    ChallengeSubtype(
        tag="boundary_counterexample",
        elimination_reason="boundary_violation",
        requires_minimality=True,
        description="A minimal case the definition classifies wrongly",
    ),
    ChallengeSubtype(
        tag="vagueness",
        elimination_reason="excessive_vagueness",
        description="The definition leaves too many cases undecided",
    ),
    refutation_only(
        "foundational_mismatch",
        "foundational_mismatch",
        "The definition does not capture the concept's core use",
    ),
    irrebuttable("circularity", "circular_definition", "The definiens uses the definiendum"),
)

_BASE = ProtocolCatalogue(
    protocol_id="cbp",
    name="Concept Boundary Protocol",
    challenge_subtypes=SUBTYPES,
    elimination_reasons=frozenset(s.elimination_reason for s in SUBTYPES),
    diagnoses={
        "boundary_overconstrained": ResolutionAction.RESTART_CONSTRAINTS,
        "definitions_inadequate": ResolutionAction.RESTART_CANDIDATES,
        "concept_incoherent": ResolutionAction.CLOSE_UNRESOLVED,
    },
    verdict_labels={
        OutcomeVerdict.ADOPTED: "boundary fixed",
        OutcomeVerdict.UNRESOLVED: "boundary indeterminate",
    },
    required_obligations=("extensional_adequacy",),
    description="Candidates are concept definitions",
)

CATALOGUE = (
    _BASE.register_rebuttal_kind(STIPULATION)
    .register_elimination_reason("borderline_misclassified")
    .register_challenge_subtype(
        ChallengeSubtype(
            tag="borderline_case",
            elimination_reason="borderline_misclassified",
            allowed_rebuttal_kinds=frozenset({REFUTATION, SCOPE_NARROWING, STIPULATION.tag}),
            description="A case near the boundary whose classification is disputed",
        )
    )
)

"""
Core vocabulary of the elimination engine.

Exceptions, the challenge/rebuttal taxonomy and the pydantic record schemas
shared by every protocol instantiation.
"""

from dialectics.core.errors import (
    AmbiguousSelection,
    DialecticsError,
    ObligationFailure,
    StageOrderError,
    ValidationError,
)
from dialectics.core.schemas import (
    Candidate,
    Challenge,
    ChallengeWeight,
    Claim,
    ClaimStrength,
    CriterionAssessment,
    Derivation,
    EliminationExhaustion,
    EliminationRecord,
    ExperimentPlan,
    GateResult,
    MergeDescriptor,
    MergeProposal,
    Obligation,
    Outcome,
    Rebuttal,
    RejectedAlternative,
    Requirement,
    RevisionRecord,
    RunVersion,
    SelectionJudgement,
    SelectionRecord,
    SurvivorRecord,
    WeakPressureJudgement,
)
from dialectics.core.taxonomy import (
    REFUTATION,
    SCOPE_NARROWING,
    ChallengeSubtype,
    OutcomeVerdict,
    ProtocolCatalogue,
    RebuttalKindSpec,
    ResolutionAction,
    TieBreakCriterion,
    TieBreakMethod,
)

__all__ = [
    # Errors
    "AmbiguousSelection",
    "DialecticsError",
    "ObligationFailure",
    "StageOrderError",
    "ValidationError",
    # Schemas
    "Candidate",
    "Challenge",
    "ChallengeWeight",
    "Claim",
    "ClaimStrength",
    "CriterionAssessment",
    "Derivation",
    "EliminationExhaustion",
    "EliminationRecord",
    "ExperimentPlan",
    "GateResult",
    "MergeDescriptor",
    "MergeProposal",
    "Obligation",
    "Outcome",
    "Rebuttal",
    "RejectedAlternative",
    "Requirement",
    "RevisionRecord",
    "RunVersion",
    "SelectionJudgement",
    "SelectionRecord",
    "SurvivorRecord",
    "WeakPressureJudgement",
    # Taxonomy
    "REFUTATION",
    "SCOPE_NARROWING",
    "ChallengeSubtype",
    "OutcomeVerdict",
    "ProtocolCatalogue",
    "RebuttalKindSpec",
    "ResolutionAction",
    "TieBreakCriterion",
    "TieBreakMethod",
]

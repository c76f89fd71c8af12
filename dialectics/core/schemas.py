"""
Pydantic schemas for run records.

Defines candidates, challenges, rebuttals, derivations, obligations,
revision and selection records, and the immutable Outcome. Every
field-level rule that can be checked on a single record is checked here;
cross-record rules (dangling targets, per-subtype allow-lists) are enforced
at engine intake.
"""

import math
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_serializer,
    field_validator,
    model_validator,
)

from dialectics.core.taxonomy import SCOPE_NARROWING, OutcomeVerdict, ResolutionAction


def _non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{field_name} must be non-empty")
    return value


def _freeze(value: Any) -> Any:
    """Rebuild nested containers as read-only mappings and tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    """Inverse of _freeze for serialization."""
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value


class ClaimStrength(str, Enum):
    """How fully a candidate claims to satisfy a requirement."""

    PARTIAL = "partial"
    FULL = "full"

    @property
    def rank(self) -> int:
        return _STRENGTH_RANK[self]


_STRENGTH_RANK = {ClaimStrength.PARTIAL: 1, ClaimStrength.FULL: 2}


class ChallengeWeight(str, Enum):
    """Pressure weight of a challenge."""

    STRONG = "strong"
    WEAK = "weak"  # Never eliminates without an aggregated judgement


class Requirement(BaseModel):
    """An upstream requirement declared in the constraint declaration stage."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Requirement identifier")
    statement: str = Field(default="", description="What the requirement demands")


class Claim(BaseModel):
    """A candidate's claim to satisfy one upstream requirement."""

    model_config = ConfigDict(frozen=True)

    requirement_id: str = Field(min_length=1, description="Referenced requirement id")
    strength: ClaimStrength = Field(default=ClaimStrength.FULL, description="Claim strength")


class Candidate(BaseModel):
    """
    A proposed solution, hypothesis, or definition under adversarial evaluation.

    The payload is opaque to the engine. Candidates are replaced wholesale on
    revision, never patched.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Unique id within a run version")
    payload: Mapping[str, Any] = Field(
        default_factory=lambda: MappingProxyType({}),
        description="Opaque domain payload (read-only once validated)",
    )
    claims: Tuple[Claim, ...] = Field(default=(), description="Requirements it purports to satisfy")
    failure_modes: Tuple[str, ...] = Field(default=(), description="Known failure modes")
    description: str = Field(default="", description="Short human-readable description")

    @field_validator("payload")
    @classmethod
    def freeze_payload(cls, v: Mapping[str, Any]) -> Mapping[str, Any]:
        return _freeze(v)

    @field_serializer("payload")
    def serialize_payload(self, v: Mapping[str, Any]) -> Dict[str, Any]:
        return _thaw(v)

    @model_validator(mode="after")
    def check_unique_claims(self) -> "Candidate":
        seen = set()
        for claim in self.claims:
            if claim.requirement_id in seen:
                raise ValueError(
                    f"Candidate {self.id} claims requirement {claim.requirement_id} twice"
                )
            seen.add(claim.requirement_id)
        return self

    def claim_map(self) -> Dict[str, ClaimStrength]:
        """Map requirement id to claimed strength."""
        return {claim.requirement_id: claim.strength for claim in self.claims}


class ExperimentPlan(BaseModel):
    """
    Declared external experiment attached to a challenge.

    Inert metadata: the engine records feasibility and cost but never
    schedules or executes anything.
    """

    model_config = ConfigDict(frozen=True)

    description: str = Field(description="What the experiment would test")
    feasibility: str = Field(default="unknown", description="Declared feasibility")
    cost: Optional[str] = Field(default=None, description="Declared cost")

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        return _non_empty(v, "experiment description")


class Rebuttal(BaseModel):
    """
    A response to a challenge.

    ``refutation`` disputes; ``scope_narrowing`` concedes with a retreat and
    is therefore always valid and always carries a limitation.
    """

    model_config = ConfigDict(frozen=True)

    kind: str = Field(min_length=1, description="Rebuttal kind tag from the protocol catalogue")
    argument: str = Field(description="Rebuttal argument text")
    valid: bool = Field(description="Evaluated validity of the rebuttal")
    limitation: Optional[str] = Field(
        default=None, description="Acknowledged limitation (concessive kinds only)"
    )

    @field_validator("argument")
    @classmethod
    def validate_argument(cls, v: str) -> str:
        return _non_empty(v, "rebuttal argument")

    @model_validator(mode="after")
    def check_scope_narrowing(self) -> "Rebuttal":
        if self.is_scope_narrowing:
            if not self.valid:
                raise ValueError(
                    "scope_narrowing rebuttal must be valid: it is a concession, not a dispute"
                )
            if not self.limitation or not self.limitation.strip():
                raise ValueError("scope_narrowing rebuttal requires a non-empty limitation")
        return self

    @property
    def is_scope_narrowing(self) -> bool:
        return self.kind == SCOPE_NARROWING


class Challenge(BaseModel):
    """Targeted pressure against one candidate, optionally rebuttable."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Challenge identifier")
    target: str = Field(min_length=1, description="Targeted candidate id")
    subtype: str = Field(min_length=1, description="Challenge subtype tag")
    argument: str = Field(description="Challenge argument text")
    minimal: bool = Field(default=False, description="Minimality flag for counterexamples")
    rebuttal: Optional[Rebuttal] = Field(default=None, description="Evaluated rebuttal, if any")
    weight: ChallengeWeight = Field(default=ChallengeWeight.STRONG, description="Pressure weight")
    decisive: bool = Field(
        default=False, description="Decisive inconsistency (evidence-weight subtypes only)"
    )
    references_subject: Optional[str] = Field(
        default=None, description="Subject of an adopted outcome (composition-style subtypes)"
    )
    experiment: Optional[ExperimentPlan] = Field(
        default=None, description="Declared external experiment (inert metadata)"
    )

    @field_validator("argument")
    @classmethod
    def validate_argument(cls, v: str) -> str:
        return _non_empty(v, "challenge argument")

    @model_validator(mode="after")
    def check_decisive(self) -> "Challenge":
        if self.decisive and self.rebuttal is not None:
            raise ValueError(f"Decisive challenge {self.id} cannot carry a rebuttal")
        if self.decisive and self.weight == ChallengeWeight.WEAK:
            raise ValueError(f"Challenge {self.id} cannot be both weak and decisive")
        return self


class WeakPressureJudgement(BaseModel):
    """
    Argued judgement on whether accumulated weak pressure rises to strong.

    There is no numeric threshold: only this explicitly supplied record can
    turn weak challenges into an elimination.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Judgement identifier")
    candidate_id: str = Field(min_length=1, description="Candidate the pressure targets")
    challenge_ids: Tuple[str, ...] = Field(min_length=1, description="Aggregated weak challenges")
    rises_to_strong: bool = Field(description="Whether the pressure is judged strong")
    argument: str = Field(description="Evaluator argument for the judgement")

    @field_validator("argument")
    @classmethod
    def validate_argument(cls, v: str) -> str:
        return _non_empty(v, "judgement argument")


class EliminationRecord(BaseModel):
    """Why a candidate was eliminated and which record caused it."""

    model_config = ConfigDict(frozen=True)

    candidate_id: str
    reason: str
    challenge_id: str = Field(description="Causing challenge (or aggregated judgement) id")


class SurvivorRecord(BaseModel):
    """A surviving candidate with its accumulated limitations, in challenge order."""

    model_config = ConfigDict(frozen=True)

    candidate_id: str
    limitations: Tuple[str, ...] = ()


class Derivation(BaseModel):
    """
    The computed eliminated/survivor partition of a candidate pool.

    Always produced by the derivation engine, never hand-authored.
    """

    model_config = ConfigDict(frozen=True)

    eliminated: Tuple[EliminationRecord, ...] = ()
    survivors: Tuple[SurvivorRecord, ...] = ()

    @model_validator(mode="after")
    def check_disjoint(self) -> "Derivation":
        eliminated = [r.candidate_id for r in self.eliminated]
        survivors = [r.candidate_id for r in self.survivors]
        if len(set(eliminated)) != len(eliminated) or len(set(survivors)) != len(survivors):
            raise ValueError("Derivation lists a candidate more than once")
        overlap = set(eliminated) & set(survivors)
        if overlap:
            raise ValueError(f"Candidates both eliminated and surviving: {sorted(overlap)}")
        return self

    @property
    def eliminated_ids(self) -> List[str]:
        return [r.candidate_id for r in self.eliminated]

    @property
    def survivor_ids(self) -> List[str]:
        return [r.candidate_id for r in self.survivors]

    @property
    def has_survivors(self) -> bool:
        return bool(self.survivors)

    def survivor(self, candidate_id: str) -> Optional[SurvivorRecord]:
        for record in self.survivors:
            if record.candidate_id == candidate_id:
                return record
        return None


class Obligation(BaseModel):
    """An argued proof obligation checked at the gate."""

    model_config = ConfigDict(frozen=True)

    property: str = Field(description="Property that must hold before adoption")
    argument: str = Field(description="Argument that the property holds (or not)")
    satisfied: bool = Field(description="Whether the property is satisfied")
    blocker: Optional[str] = Field(
        default=None, description="What blocks the property (required when unsatisfied)"
    )

    @field_validator("property", "argument")
    @classmethod
    def validate_text(cls, v: str, info: Any) -> str:
        return _non_empty(v, f"obligation {info.field_name}")

    @model_validator(mode="after")
    def check_blocker(self) -> "Obligation":
        has_blocker = bool(self.blocker and self.blocker.strip())
        if not self.satisfied and not has_blocker:
            raise ValueError(f"Unsatisfied obligation '{self.property}' requires a blocker")
        if self.satisfied and self.blocker is not None:
            raise ValueError(f"Satisfied obligation '{self.property}' cannot carry a blocker")
        return self


class GateResult(BaseModel):
    """Result of the obligation gate for one finalist."""

    model_config = ConfigDict(frozen=True)

    candidate_id: str
    obligations: Tuple[Obligation, ...]

    @computed_field  # type: ignore[misc]
    @property
    def passed(self) -> bool:
        """Conjunction of every obligation's satisfied flag."""
        return all(obligation.satisfied for obligation in self.obligations)

    def unsatisfied(self) -> List[Obligation]:
        return [o for o in self.obligations if not o.satisfied]


class RevisionRecord(BaseModel):
    """One trigger of the revision loop."""

    model_config = ConfigDict(frozen=True)

    revision: int = Field(ge=1, description="Revision counter, monotonically increasing per run")
    triggered: bool = Field(default=True)
    diagnosis: str = Field(min_length=1, description="Diagnosis from the protocol enumeration")
    resolution: ResolutionAction = Field(description="Action matching the diagnosis")
    notes: str = Field(description="Evaluator notes on the diagnosis")
    run_version: int = Field(ge=1, description="Run version the revision opened")
    forced_unresolved: bool = Field(
        default=False, description="True when the revision bound forced closure"
    )

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v: str) -> str:
        return _non_empty(v, "revision notes")


class RejectedAlternative(BaseModel):
    """A survivor not selected, with the reason it lost."""

    model_config = ConfigDict(frozen=True)

    candidate_id: str
    reason: str

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v: str) -> str:
        return _non_empty(v, "rejection reason")


class MergeDescriptor(BaseModel):
    """A merged candidate and the survivors it replaces."""

    model_config = ConfigDict(frozen=True)

    merged: Candidate
    replaces: Tuple[str, ...] = Field(min_length=2)
    limitations: Tuple[str, ...] = ()


class MergeProposal(BaseModel):
    """A synthesized candidate offered to collapse several survivors into one."""

    model_config = ConfigDict(frozen=True)

    candidate: Candidate
    replaces: Optional[Tuple[str, ...]] = Field(
        default=None, description="Survivors to merge (defaults to all survivors)"
    )
    argument: str = Field(description="Argument that the merge preserves strength")

    @field_validator("argument")
    @classmethod
    def validate_argument(cls, v: str) -> str:
        return _non_empty(v, "merge argument")


class CriterionAssessment(BaseModel):
    """Argued per-candidate scores for one ranked tie-break criterion."""

    model_config = ConfigDict(frozen=True)

    criterion: str = Field(min_length=1, description="Tie-break criterion tag")
    scores: Mapping[str, float] = Field(description="Score per survivor id, higher is better")
    argument: str = Field(description="Evaluator argument behind the scores")

    @field_validator("scores")
    @classmethod
    def validate_scores(cls, v: Mapping[str, float]) -> Mapping[str, float]:
        non_finite = sorted(cid for cid, score in v.items() if not math.isfinite(score))
        if non_finite:
            raise ValueError(f"scores must be finite numbers (offending ids: {non_finite})")
        return _freeze(v)

    @field_serializer("scores")
    def serialize_scores(self, v: Mapping[str, float]) -> Dict[str, float]:
        return _thaw(v)

    @field_validator("argument")
    @classmethod
    def validate_argument(cls, v: str) -> str:
        return _non_empty(v, "assessment argument")


class SelectionJudgement(BaseModel):
    """Explicit evaluator choice, the one unstructured judgement the engine permits."""

    model_config = ConfigDict(frozen=True)

    finalist_id: str = Field(min_length=1)
    rationale: str = Field(description="Why this finalist")
    rejection_reasons: Mapping[str, str] = Field(
        default_factory=lambda: MappingProxyType({}),
        description="Reason per rejected survivor id",
    )

    @field_validator("rationale")
    @classmethod
    def validate_rationale(cls, v: str) -> str:
        return _non_empty(v, "selection rationale")

    @field_validator("rejection_reasons")
    @classmethod
    def freeze_reasons(cls, v: Mapping[str, str]) -> Mapping[str, str]:
        return _freeze(v)

    @field_serializer("rejection_reasons")
    def serialize_reasons(self, v: Mapping[str, str]) -> Dict[str, str]:
        return _thaw(v)


class SelectionRecord(BaseModel):
    """Auditable record of how a multi-survivor result became one finalist."""

    model_config = ConfigDict(frozen=True)

    method: Literal["merge", "ranked"]
    finalist_id: str
    criterion: Optional[str] = Field(default=None, description="Deciding tie-break criterion")
    rationale: str = Field(description="Why the finalist was selected")
    alternatives_rejected: Tuple[RejectedAlternative, ...] = ()
    merge: Optional[MergeDescriptor] = None

    @field_validator("rationale")
    @classmethod
    def validate_rationale(cls, v: str) -> str:
        return _non_empty(v, "selection rationale")


class EliminationExhaustion(BaseModel):
    """Zero survivors persisting past the revision bound, reported as data."""

    model_config = ConfigDict(frozen=True)

    revision_count: int
    max_revisions: int
    eliminated_ids: Tuple[str, ...] = ()
    last_diagnosis: Optional[str] = None


class RunVersion(BaseModel):
    """Immutable snapshot of one version of a run's declared inputs."""

    model_config = ConfigDict(frozen=True)

    version: int = Field(ge=1)
    requirements: Tuple[Requirement, ...] = ()
    candidates: Tuple[Candidate, ...] = ()
    challenges: Tuple[Challenge, ...] = ()
    judgements: Tuple[WeakPressureJudgement, ...] = ()
    derivation: Optional[Derivation] = None

    def candidate(self, candidate_id: str) -> Optional[Candidate]:
        for candidate in self.candidates:
            if candidate.id == candidate_id:
                return candidate
        return None


class Outcome(BaseModel):
    """
    Immutable terminal record of a run.

    Never edited once created; a later run may supersede it in the registry.
    """

    model_config = ConfigDict(frozen=True)

    run_id: str
    protocol_id: str
    subject: str
    verdict: OutcomeVerdict
    verdict_label: str
    winner: Optional[Candidate] = None
    merge: Optional[MergeDescriptor] = None
    limitations: Tuple[str, ...] = ()
    obligations: Tuple[Obligation, ...] = ()
    revisions: Tuple[RevisionRecord, ...] = ()
    selection: Optional[SelectionRecord] = None
    versions: Tuple[RunVersion, ...] = ()
    exhaustion: Optional[EliminationExhaustion] = None
    notes: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def check_verdict_consistency(self) -> "Outcome":
        if self.verdict == OutcomeVerdict.ADOPTED:
            if self.winner is None:
                raise ValueError("Adopted outcome requires a winning candidate")
            if not self.obligations or not all(o.satisfied for o in self.obligations):
                raise ValueError("Adopted outcome requires a fully satisfied obligation set")
        elif self.winner is not None:
            raise ValueError(f"{self.verdict.value} outcome cannot name a winner")
        if self.exhaustion is not None and self.verdict != OutcomeVerdict.UNRESOLVED:
            raise ValueError("Exhaustion report is only valid on an unresolved outcome")
        return self

    @property
    def winner_id(self) -> Optional[str]:
        return self.winner.id if self.winner else None

    @property
    def revision_count(self) -> int:
        return len(self.revisions)

    @property
    def alternatives_rejected(self) -> Tuple[RejectedAlternative, ...]:
        return self.selection.alternatives_rejected if self.selection else ()

    def get_summary(self) -> str:
        """Get human-readable summary of the outcome."""
        lines = [
            "Dialectical Outcome Summary",
            "===========================",
            f"Run: {self.run_id} ({self.protocol_id})",
            f"Subject: {self.subject}",
            f"Verdict: {self.verdict_label} ({self.verdict.value})",
            f"Winner: {self.winner_id or 'N/A'}",
            f"Revisions: {self.revision_count}",
        ]
        if self.merge:
            lines.append(f"Merged from: {', '.join(self.merge.replaces)}")
        if self.limitations:
            lines.append("Limitations:")
            lines.extend(f"  - {limitation}" for limitation in self.limitations)
        if self.exhaustion:
            lines.append(
                f"Exhausted after {self.exhaustion.revision_count} revisions "
                f"(bound {self.exhaustion.max_revisions})"
            )
        if self.notes:
            lines.append(f"Notes: {self.notes}")
        return "\n".join(lines)

"""
Challenge/rebuttal taxonomy for protocol instantiations.

The kernel defines only the two universal rebuttal kinds, ``refutation`` and
``scope_narrowing``. Each protocol instantiation supplies a
``ProtocolCatalogue``: an open, tagged-variant vocabulary of challenge
subtypes, the rebuttal kinds each subtype accepts, the elimination reasons,
the revision diagnoses, the tie-break ordering and the outcome labels.
Instantiations register extra variants rather than subclassing kernel types.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from dialectics.core.errors import ValidationError

REFUTATION = "refutation"
SCOPE_NARROWING = "scope_narrowing"

DEFAULT_AGGREGATED_PRESSURE_REASON = "aggregated_weak_pressure"


class ResolutionAction(str, Enum):
    """Upstream stage restarted (or closure) after a zero-survivor pass."""

    RESTART_CONSTRAINTS = "restart_constraints"  # Constraints were too strong
    RESTART_CANDIDATES = "restart_candidates"  # Candidates were too weak
    CLOSE_UNRESOLVED = "close_unresolved"  # Subject not viable, reframe elsewhere


class OutcomeVerdict(str, Enum):
    """Terminal verdict of a run."""

    ADOPTED = "adopted"
    REJECTED = "rejected"
    UNRESOLVED = "unresolved"
    ABANDONED = "abandoned"


class TieBreakMethod(str, Enum):
    """How a tie-break criterion discriminates between survivors."""

    FEWEST_LIMITATIONS = "fewest_limitations"  # Computed from survivor records
    RANKED_ASSESSMENT = "ranked_assessment"  # Argued per-candidate scores
    EVALUATOR_JUDGEMENT = "evaluator_judgement"  # Free-text evaluator choice


@dataclass(frozen=True)
class RebuttalKindSpec:
    """
    One rebuttal kind in a protocol's catalogue.

    A concessive kind retreats rather than disputes: it is always valid and
    must carry a limitation describing the retreat.
    """

    tag: str
    concessive: bool = False
    description: str = ""


REFUTATION_KIND = RebuttalKindSpec(
    tag=REFUTATION,
    concessive=False,
    description="Disputes the challenge; eliminates the target when judged invalid",
)
SCOPE_NARROWING_KIND = RebuttalKindSpec(
    tag=SCOPE_NARROWING,
    concessive=True,
    description="Concedes the challenge by retreating the candidate's claimed coverage",
)
UNIVERSAL_REBUTTAL_KINDS: Tuple[RebuttalKindSpec, ...] = (REFUTATION_KIND, SCOPE_NARROWING_KIND)


@dataclass(frozen=True)
class ChallengeSubtype:
    """
    One challenge subtype in a protocol's catalogue.

    Attributes:
        tag: Subtype identifier used by challenges
        elimination_reason: Reason recorded when this subtype eliminates
        rebuttable: False for structurally irrebuttable subtypes
        allowed_rebuttal_kinds: Rebuttal kinds legal against this subtype.
            Defaults to the universal kinds; always empty when irrebuttable.
        requires_minimality: Counterexample-class subtypes must be minimal
        allows_decisive: Evidence-weight subtypes may be marked decisive
        requires_prior_outcome: Composition-style subtypes reference a
            previously adopted outcome by subject name
    """

    tag: str
    elimination_reason: str
    rebuttable: bool = True
    allowed_rebuttal_kinds: Optional[FrozenSet[str]] = None
    requires_minimality: bool = False
    allows_decisive: bool = False
    requires_prior_outcome: bool = False
    description: str = ""

    def __post_init__(self) -> None:
        if self.allowed_rebuttal_kinds is None:
            kinds = frozenset({REFUTATION, SCOPE_NARROWING}) if self.rebuttable else frozenset()
        else:
            kinds = frozenset(self.allowed_rebuttal_kinds)
        if not self.rebuttable and kinds:
            raise ValueError(
                f"Challenge subtype '{self.tag}' is irrebuttable but allows rebuttal kinds "
                f"{sorted(kinds)}"
            )
        if self.rebuttable and not kinds:
            raise ValueError(f"Challenge subtype '{self.tag}' is rebuttable but allows no kinds")
        object.__setattr__(self, "allowed_rebuttal_kinds", kinds)

    @property
    def counterexample_class(self) -> bool:
        return self.requires_minimality

    def allows(self, kind: str) -> bool:
        """Check whether a rebuttal kind is legal against this subtype."""
        return kind in (self.allowed_rebuttal_kinds or frozenset())


@dataclass(frozen=True)
class TieBreakCriterion:
    """
    One entry in a protocol's ordered tie-break list.

    ``rejection_reason`` is recorded against every survivor this criterion
    cuts from the running.
    """

    tag: str
    method: TieBreakMethod
    rejection_reason: str
    description: str = ""


DEFAULT_TIE_BREAKS: Tuple[TieBreakCriterion, ...] = (
    TieBreakCriterion(
        tag="fewest_limitations",
        method=TieBreakMethod.FEWEST_LIMITATIONS,
        rejection_reason="more limitations",
        description="Prefer the survivor with the fewest acknowledged limitations",
    ),
    TieBreakCriterion(
        tag="strongest_benefit",
        method=TieBreakMethod.RANKED_ASSESSMENT,
        rejection_reason="weaker domain benefit",
        description="Prefer the survivor with the strongest argued domain benefit",
    ),
    TieBreakCriterion(
        tag="evaluator_judgement",
        method=TieBreakMethod.EVALUATOR_JUDGEMENT,
        rejection_reason="not preferred by evaluator",
        description="Explicit, documented evaluator choice",
    ),
)


def _default_verdict_labels() -> Mapping[OutcomeVerdict, str]:
    return {verdict: verdict.value for verdict in OutcomeVerdict}


@dataclass(frozen=True)
class ProtocolCatalogue:
    """
    Configuration value that parameterizes the generic elimination engine.

    Catalogues validate themselves on construction and are immutable;
    ``register_rebuttal_kind``, ``register_elimination_reason`` and
    ``register_challenge_subtype`` return extended copies.
    """

    protocol_id: str
    name: str
    challenge_subtypes: Tuple[ChallengeSubtype, ...]
    elimination_reasons: FrozenSet[str]
    diagnoses: Mapping[str, ResolutionAction]
    rebuttal_kinds: Tuple[RebuttalKindSpec, ...] = UNIVERSAL_REBUTTAL_KINDS
    tie_break_criteria: Tuple[TieBreakCriterion, ...] = DEFAULT_TIE_BREAKS
    verdict_labels: Mapping[OutcomeVerdict, str] = field(default_factory=_default_verdict_labels)
    required_obligations: Tuple[str, ...] = ()
    aggregated_pressure_reason: str = DEFAULT_AGGREGATED_PRESSURE_REASON
    unanswered_challenge_eliminates: Optional[bool] = None  # None defers to engine config
    description: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "challenge_subtypes", tuple(self.challenge_subtypes))
        object.__setattr__(self, "rebuttal_kinds", tuple(self.rebuttal_kinds))
        object.__setattr__(self, "tie_break_criteria", tuple(self.tie_break_criteria))
        object.__setattr__(self, "required_obligations", tuple(self.required_obligations))
        object.__setattr__(
            self,
            "elimination_reasons",
            frozenset(self.elimination_reasons) | {self.aggregated_pressure_reason},
        )
        object.__setattr__(
            self,
            "diagnoses",
            MappingProxyType({key: ResolutionAction(value) for key, value in self.diagnoses.items()}),
        )
        labels = dict(_default_verdict_labels())
        labels.update({OutcomeVerdict(k): v for k, v in self.verdict_labels.items()})
        object.__setattr__(self, "verdict_labels", MappingProxyType(labels))

        problems = self._validate()
        if problems:
            raise ValidationError(
                f"Invalid catalogue for protocol '{self.protocol_id}': {'; '.join(problems)}",
                record_ids=[self.protocol_id],
                problems=problems,
            )

        object.__setattr__(self, "_subtypes", {s.tag: s for s in self.challenge_subtypes})
        object.__setattr__(self, "_kinds", {k.tag: k for k in self.rebuttal_kinds})

    def _validate(self) -> List[str]:
        problems: List[str] = []

        if not self.protocol_id.strip():
            problems.append("protocol_id must be non-empty")

        kinds = {k.tag: k for k in self.rebuttal_kinds}
        if len(kinds) != len(self.rebuttal_kinds):
            problems.append("duplicate rebuttal kind tags")
        if REFUTATION not in kinds or kinds[REFUTATION].concessive:
            problems.append(f"catalogue must include non-concessive '{REFUTATION}'")
        if SCOPE_NARROWING not in kinds or not kinds[SCOPE_NARROWING].concessive:
            problems.append(f"catalogue must include concessive '{SCOPE_NARROWING}'")

        tags = [s.tag for s in self.challenge_subtypes]
        if not tags:
            problems.append("catalogue must declare at least one challenge subtype")
        if len(set(tags)) != len(tags):
            problems.append("duplicate challenge subtype tags")

        for subtype in self.challenge_subtypes:
            unknown = sorted((subtype.allowed_rebuttal_kinds or frozenset()) - set(kinds))
            if unknown:
                problems.append(f"subtype '{subtype.tag}' allows unknown rebuttal kinds {unknown}")
            if subtype.elimination_reason not in self.elimination_reasons:
                problems.append(
                    f"subtype '{subtype.tag}' uses unlisted elimination reason "
                    f"'{subtype.elimination_reason}'"
                )

        if not self.diagnoses:
            problems.append("catalogue must declare at least one revision diagnosis")

        if not self.tie_break_criteria:
            problems.append("catalogue must declare at least one tie-break criterion")
        criterion_tags = [c.tag for c in self.tie_break_criteria]
        if len(set(criterion_tags)) != len(criterion_tags):
            problems.append("duplicate tie-break criterion tags")

        return problems

    # ------------------------------------------------------------------
    # Registration of extra variants
    # ------------------------------------------------------------------

    def register_rebuttal_kind(self, kind: RebuttalKindSpec) -> "ProtocolCatalogue":
        """Return a copy of this catalogue with an extra rebuttal kind."""
        if kind.tag in self._kinds:  # type: ignore[attr-defined]
            raise ValidationError(
                f"Rebuttal kind '{kind.tag}' already registered for '{self.protocol_id}'",
                record_ids=[kind.tag],
            )
        return replace(self, rebuttal_kinds=self.rebuttal_kinds + (kind,))

    def register_elimination_reason(self, reason: str) -> "ProtocolCatalogue":
        """Return a copy of this catalogue with an extra elimination reason."""
        if not reason or not reason.strip():
            raise ValidationError(
                "Elimination reason must be non-empty", record_ids=[self.protocol_id]
            )
        if reason in self.elimination_reasons:
            raise ValidationError(
                f"Elimination reason '{reason}' already registered for '{self.protocol_id}'",
                record_ids=[reason],
            )
        return replace(self, elimination_reasons=self.elimination_reasons | {reason})

    def register_challenge_subtype(self, subtype: ChallengeSubtype) -> "ProtocolCatalogue":
        """
        Return a copy of this catalogue with an extra challenge subtype.

        The subtype's elimination reason must already be enumerated; register
        it first with ``register_elimination_reason``.
        """
        if subtype.tag in self._subtypes:  # type: ignore[attr-defined]
            raise ValidationError(
                f"Challenge subtype '{subtype.tag}' already registered for '{self.protocol_id}'",
                record_ids=[subtype.tag],
            )
        return replace(self, challenge_subtypes=self.challenge_subtypes + (subtype,))

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def subtype(self, tag: str) -> Optional[ChallengeSubtype]:
        return self._subtypes.get(tag)  # type: ignore[attr-defined]

    def rebuttal_kind(self, tag: str) -> Optional[RebuttalKindSpec]:
        return self._kinds.get(tag)  # type: ignore[attr-defined]

    def is_concessive(self, kind: str) -> bool:
        spec = self.rebuttal_kind(kind)
        return bool(spec and spec.concessive)

    def resolution_for(self, diagnosis: str) -> ResolutionAction:
        """Map a revision diagnosis to its resolution action."""
        if diagnosis not in self.diagnoses:
            raise ValidationError(
                f"Unknown diagnosis '{diagnosis}' for protocol '{self.protocol_id}'. "
                f"Known: {sorted(self.diagnoses)}",
                record_ids=[diagnosis],
            )
        return self.diagnoses[diagnosis]

    def verdict_label(self, verdict: OutcomeVerdict) -> str:
        return self.verdict_labels[verdict]

    def criterion(self, tag: str) -> Optional[TieBreakCriterion]:
        for criterion in self.tie_break_criteria:
            if criterion.tag == tag:
                return criterion
        return None

    def describe(self) -> Dict[str, Any]:
        """Summarize the catalogue as plain data (for listings and logs)."""
        return {
            "protocol_id": self.protocol_id,
            "name": self.name,
            "challenge_subtypes": {
                s.tag: {
                    "elimination_reason": s.elimination_reason,
                    "rebuttable": s.rebuttable,
                    "allowed_rebuttal_kinds": sorted(s.allowed_rebuttal_kinds or ()),
                    "requires_minimality": s.requires_minimality,
                    "allows_decisive": s.allows_decisive,
                    "requires_prior_outcome": s.requires_prior_outcome,
                }
                for s in self.challenge_subtypes
            },
            "rebuttal_kinds": {k.tag: {"concessive": k.concessive} for k in self.rebuttal_kinds},
            "elimination_reasons": sorted(self.elimination_reasons),
            "diagnoses": {k: v.value for k, v in self.diagnoses.items()},
            "tie_break_criteria": [c.tag for c in self.tie_break_criteria],
            "verdict_labels": {k.value: v for k, v in self.verdict_labels.items()},
            "required_obligations": list(self.required_obligations),
        }


def irrebuttable(tag: str, elimination_reason: str, description: str = "") -> ChallengeSubtype:
    """Shorthand for a structurally irrebuttable subtype."""
    return ChallengeSubtype(
        tag=tag,
        elimination_reason=elimination_reason,
        rebuttable=False,
        description=description,
    )


def refutation_only(
    tag: str, elimination_reason: str, description: str = "", **kwargs: Any
) -> ChallengeSubtype:
    """Shorthand for a subtype that cannot be conceded, only disputed."""
    return ChallengeSubtype(
        tag=tag,
        elimination_reason=elimination_reason,
        allowed_rebuttal_kinds=frozenset({REFUTATION}),
        description=description,
        **kwargs,
    )

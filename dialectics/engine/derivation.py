"""
Derivation engine: computes the eliminated/survivor partition of a pool.

Input is a candidate pool and a challenge set whose rebuttals have already
been evaluated for validity, plus any argued weak-pressure judgements.
Intake validation rejects malformed input before anything is derived; the
derivation itself is a pure function of its input.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from dialectics.core.errors import ValidationError
from dialectics.core.schemas import (
    Candidate,
    Challenge,
    ChallengeWeight,
    Derivation,
    EliminationRecord,
    SurvivorRecord,
    WeakPressureJudgement,
)
from dialectics.core.taxonomy import ProtocolCatalogue

# Elimination causes, strongest first. When several challenges would
# eliminate the same candidate the strongest cause is recorded.
CAUSE_IRREBUTTABLE = 0
CAUSE_DECISIVE = 1
CAUSE_FAILED_REBUTTAL = 2
CAUSE_UNANSWERED = 3
CAUSE_AGGREGATED = 4

CAUSE_NAMES = {
    CAUSE_IRREBUTTABLE: "irrebuttable",
    CAUSE_DECISIVE: "decisive",
    CAUSE_FAILED_REBUTTAL: "failed_rebuttal",
    CAUSE_UNANSWERED: "unanswered",
    CAUSE_AGGREGATED: "aggregated",
}


class DerivationEngine:
    """
    Generic elimination engine parameterized by a protocol catalogue.

    Elimination rules, for any challenge targeting a candidate:
    - structurally irrebuttable subtype: absolute elimination
    - decisive inconsistency (evidence-weight subtypes): elimination, no rebuttal
    - non-concessive rebuttal judged invalid: elimination
    - rebuttable strong challenge left unanswered: elimination (configurable)
    - weak challenges: only through an argued judgement that rises to strong

    Concessive rebuttals never eliminate; their limitations accumulate on
    the survivor record in challenge order.
    """

    def __init__(
        self,
        catalogue: ProtocolCatalogue,
        unanswered_challenge_eliminates: Optional[bool] = None,
        outcome_registry: Optional[object] = None,
    ):
        """
        Initialize derivation engine.

        Args:
            catalogue: Protocol catalogue supplying the vocabulary
            unanswered_challenge_eliminates: Policy for unanswered rebuttable
                challenges. Falls back to the catalogue, then to True.
            outcome_registry: Read-only registry whose adopted outcomes
                resolve composition-style challenges
        """
        self.catalogue = catalogue
        if unanswered_challenge_eliminates is None:
            unanswered_challenge_eliminates = catalogue.unanswered_challenge_eliminates
        self.unanswered_challenge_eliminates = (
            True if unanswered_challenge_eliminates is None else unanswered_challenge_eliminates
        )
        self.outcome_registry = outcome_registry

        logger.debug(
            f"Initialized DerivationEngine for {catalogue.protocol_id} "
            f"(unanswered_eliminates={self.unanswered_challenge_eliminates})"
        )

    # ------------------------------------------------------------------
    # Intake validation
    # ------------------------------------------------------------------

    def validate(
        self,
        pool: Sequence[Candidate],
        challenges: Sequence[Challenge],
        judgements: Sequence[WeakPressureJudgement] = (),
    ) -> None:
        """
        Validate a (pool, challenges, judgements) triple at intake.

        Raises:
            ValidationError: carrying every offending record id and a
                description of each problem found
        """
        problems: List[str] = []
        offending: List[str] = []

        def reject(record_id: str, problem: str) -> None:
            offending.append(record_id)
            problems.append(problem)

        candidate_ids = [c.id for c in pool]
        for duplicate in _duplicates(candidate_ids):
            reject(duplicate, f"duplicate candidate id '{duplicate}'")

        challenge_ids = [c.id for c in challenges]
        for duplicate in _duplicates(challenge_ids):
            reject(duplicate, f"duplicate challenge id '{duplicate}'")

        known_candidates = set(candidate_ids)
        by_id: Dict[str, Challenge] = {}

        for challenge in challenges:
            by_id.setdefault(challenge.id, challenge)
            for problem in self._challenge_problems(challenge, known_candidates):
                reject(challenge.id, problem)

        for judgement in judgements:
            if judgement.id in by_id:
                reject(judgement.id, f"judgement id '{judgement.id}' collides with a challenge id")
            for problem in self._judgement_problems(judgement, known_candidates, by_id):
                reject(judgement.id, problem)
        for duplicate in _duplicates([j.id for j in judgements]):
            reject(duplicate, f"duplicate judgement id '{duplicate}'")

        if problems:
            logger.error(f"Intake validation failed for {self.catalogue.protocol_id}: {problems}")
            raise ValidationError(
                f"Invalid run input ({len(problems)} problem(s)): {problems[0]}",
                record_ids=_unique(offending),
                problems=problems,
            )

    def _challenge_problems(self, challenge: Challenge, known_candidates: set) -> List[str]:
        problems: List[str] = []
        cid = challenge.id

        if challenge.target not in known_candidates:
            problems.append(f"challenge '{cid}' targets unknown candidate '{challenge.target}'")

        subtype = self.catalogue.subtype(challenge.subtype)
        if subtype is None:
            problems.append(
                f"challenge '{cid}' uses subtype '{challenge.subtype}' unknown to "
                f"{self.catalogue.protocol_id}"
            )
            return problems

        if subtype.counterexample_class and not challenge.minimal:
            problems.append(
                f"challenge '{cid}' is a counterexample-class '{subtype.tag}' and must be minimal"
            )

        if challenge.decisive and not subtype.allows_decisive:
            problems.append(f"challenge '{cid}': subtype '{subtype.tag}' cannot be decisive")

        if subtype.requires_prior_outcome:
            problems.extend(self._prior_outcome_problems(challenge))

        rebuttal = challenge.rebuttal
        if rebuttal is None:
            return problems

        if not subtype.rebuttable:
            problems.append(
                f"challenge '{cid}': subtype '{subtype.tag}' is structurally irrebuttable "
                f"and cannot carry a rebuttal"
            )
            return problems

        kind = self.catalogue.rebuttal_kind(rebuttal.kind)
        if kind is None:
            problems.append(f"challenge '{cid}': unknown rebuttal kind '{rebuttal.kind}'")
            return problems

        if not subtype.allows(rebuttal.kind):
            problems.append(
                f"challenge '{cid}': rebuttal kind '{rebuttal.kind}' is not allowed against "
                f"'{subtype.tag}' (allowed: {sorted(subtype.allowed_rebuttal_kinds or ())})"
            )

        has_limitation = bool(rebuttal.limitation and rebuttal.limitation.strip())
        if kind.concessive:
            if not rebuttal.valid:
                problems.append(
                    f"challenge '{cid}': concessive rebuttal '{rebuttal.kind}' must be valid"
                )
            if not has_limitation:
                problems.append(
                    f"challenge '{cid}': concessive rebuttal '{rebuttal.kind}' requires a limitation"
                )
        elif rebuttal.limitation is not None:
            problems.append(
                f"challenge '{cid}': non-concessive rebuttal '{rebuttal.kind}' cannot carry "
                f"a limitation"
            )

        return problems

    def _prior_outcome_problems(self, challenge: Challenge) -> List[str]:
        subject = challenge.references_subject
        if not subject:
            return [
                f"challenge '{challenge.id}': composition-style subtype '{challenge.subtype}' "
                f"must reference an adopted outcome"
            ]
        if self.outcome_registry is None or self.outcome_registry.get_adopted(subject) is None:
            return [
                f"challenge '{challenge.id}' references subject '{subject}' with no "
                f"adopted outcome"
            ]
        return []

    def _judgement_problems(
        self,
        judgement: WeakPressureJudgement,
        known_candidates: set,
        challenges: Dict[str, Challenge],
    ) -> List[str]:
        problems: List[str] = []
        if judgement.candidate_id not in known_candidates:
            problems.append(
                f"judgement '{judgement.id}' targets unknown candidate '{judgement.candidate_id}'"
            )
        for challenge_id in judgement.challenge_ids:
            challenge = challenges.get(challenge_id)
            if challenge is None:
                problems.append(
                    f"judgement '{judgement.id}' aggregates unknown challenge '{challenge_id}'"
                )
            elif challenge.weight != ChallengeWeight.WEAK:
                problems.append(
                    f"judgement '{judgement.id}' aggregates non-weak challenge '{challenge_id}'"
                )
            elif challenge.target != judgement.candidate_id:
                problems.append(
                    f"judgement '{judgement.id}' aggregates challenge '{challenge_id}' "
                    f"targeting another candidate"
                )
        return problems

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def derive(
        self,
        pool: Sequence[Candidate],
        challenges: Sequence[Challenge],
        judgements: Sequence[WeakPressureJudgement] = (),
    ) -> Derivation:
        """
        Compute the eliminated/survivor partition.

        Args:
            pool: Candidate pool of the current run version
            challenges: Challenges with evaluated rebuttals
            judgements: Argued weak-pressure judgements

        Returns:
            Derivation whose two lists partition the pool, in pool order

        Raises:
            ValidationError: if intake validation fails
        """
        self.validate(pool, challenges, judgements)

        causes: Dict[str, List[Tuple[int, int, EliminationRecord]]] = {c.id: [] for c in pool}
        limitations: Dict[str, List[str]] = {c.id: [] for c in pool}

        for position, challenge in enumerate(challenges):
            cause = self._elimination_cause(challenge)
            if cause is not None:
                subtype = self.catalogue.subtype(challenge.subtype)
                record = EliminationRecord(
                    candidate_id=challenge.target,
                    reason=subtype.elimination_reason,  # type: ignore[union-attr]
                    challenge_id=challenge.id,
                )
                causes[challenge.target].append((cause, position, record))
                logger.debug(
                    f"Challenge {challenge.id} eliminates {challenge.target} "
                    f"({CAUSE_NAMES[cause]})"
                )

            rebuttal = challenge.rebuttal
            if rebuttal is not None and self.catalogue.is_concessive(rebuttal.kind):
                limitations[challenge.target].append(rebuttal.limitation.strip())  # type: ignore[union-attr]

        offset = len(challenges)
        for position, judgement in enumerate(judgements):
            if not judgement.rises_to_strong:
                logger.debug(
                    f"Judgement {judgement.id}: weak pressure on {judgement.candidate_id} "
                    f"does not rise to strong"
                )
                continue
            record = EliminationRecord(
                candidate_id=judgement.candidate_id,
                reason=self.catalogue.aggregated_pressure_reason,
                challenge_id=judgement.id,
            )
            causes[judgement.candidate_id].append((CAUSE_AGGREGATED, offset + position, record))

        eliminated: List[EliminationRecord] = []
        survivors: List[SurvivorRecord] = []
        for candidate in pool:
            candidate_causes = causes[candidate.id]
            if candidate_causes:
                eliminated.append(min(candidate_causes, key=lambda item: (item[0], item[1]))[2])
            else:
                survivors.append(
                    SurvivorRecord(
                        candidate_id=candidate.id,
                        limitations=tuple(limitations[candidate.id]),
                    )
                )

        derivation = Derivation(eliminated=tuple(eliminated), survivors=tuple(survivors))
        check_partition(pool, derivation)

        logger.info(
            f"Derived partition for {self.catalogue.protocol_id}: "
            f"{len(eliminated)} eliminated, {len(survivors)} surviving "
            f"(pool={len(pool)}, challenges={len(challenges)})"
        )
        return derivation

    def _elimination_cause(self, challenge: Challenge) -> Optional[int]:
        """Return the elimination cause for one challenge, or None if it does not eliminate."""
        subtype = self.catalogue.subtype(challenge.subtype)
        if subtype is None:
            return None

        if not subtype.rebuttable:
            return CAUSE_IRREBUTTABLE

        if challenge.decisive:
            return CAUSE_DECISIVE

        # Weak pressure never eliminates on its own
        if challenge.weight == ChallengeWeight.WEAK:
            return None

        rebuttal = challenge.rebuttal
        if rebuttal is None:
            return CAUSE_UNANSWERED if self.unanswered_challenge_eliminates else None

        if self.catalogue.is_concessive(rebuttal.kind):
            return None

        return None if rebuttal.valid else CAUSE_FAILED_REBUTTAL


def check_partition(pool: Sequence[Candidate], derivation: Derivation) -> None:
    """
    Assert that a derivation partitions the pool exactly.

    Raises:
        ValidationError: if any pool id is missing or any extra id appears
    """
    pool_ids = [c.id for c in pool]
    derived = derivation.eliminated_ids + derivation.survivor_ids
    missing = sorted(set(pool_ids) - set(derived))
    extra = sorted(set(derived) - set(pool_ids))
    if missing or extra or len(derived) != len(set(pool_ids)):
        raise ValidationError(
            f"Derivation does not partition the pool (missing={missing}, extra={extra})",
            record_ids=missing + extra,
        )


def _duplicates(ids: Iterable[str]) -> List[str]:
    seen = set()
    duplicates: List[str] = []
    for record_id in ids:
        if record_id in seen and record_id not in duplicates:
            duplicates.append(record_id)
        seen.add(record_id)
    return duplicates


def _unique(ids: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(ids))

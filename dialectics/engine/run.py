"""
Dialectical run: the per-run stage machine.

Orchestrates constraint declaration, candidate declaration, challenge
submission, derivation, revision, selection and the obligation gate for one
subject under one protocol, retaining every run version for audit.

Stages advance strictly in order and each stage input is supplied
wholesale. A run never mutates a declared pool in place: revision opens a
new version and every prior version stays immutable and retrievable.
"""

import uuid
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from dialectics.config import config
from dialectics.core.errors import AmbiguousSelection, StageOrderError, ValidationError
from dialectics.core.schemas import (
    Candidate,
    Challenge,
    CriterionAssessment,
    Derivation,
    GateResult,
    MergeProposal,
    Obligation,
    Outcome,
    Requirement,
    RevisionRecord,
    RunVersion,
    SelectionJudgement,
    SelectionRecord,
    WeakPressureJudgement,
)
from dialectics.core.taxonomy import OutcomeVerdict, ProtocolCatalogue, ResolutionAction
from dialectics.engine.derivation import DerivationEngine
from dialectics.engine.gate import ObligationGate
from dialectics.engine.outcome import OutcomeAssembler, render_transcript
from dialectics.engine.revision import RevisionController, RevisionState
from dialectics.engine.selection import SelectionResolver
from dialectics.logging import get_dialectics_logger, log_stage_event, track_stage


class RunStage(str, Enum):
    """Stage a run is currently waiting in."""

    CONSTRAINTS = "constraints"
    CANDIDATES = "candidates"
    CHALLENGES = "challenges"
    DERIVATION = "derivation"
    REVISION = "revision"
    SELECTION = "selection"
    GATE = "gate"
    CLOSED = "closed"


class DialecticalRun:
    """
    One run of a protocol instantiation against one subject.

    Example:
        >>> run = DialecticalRun(get_protocol("cffp"), subject="rate limiter")
        >>> run.declare_constraints([Requirement(id="R1")])
        >>> run.declare_candidates([Candidate(id="C1")])
        >>> run.submit_challenges([])
        >>> run.derive()
        >>> outcome = run.adopt([Obligation(property="sound", argument="...", satisfied=True)])
    """

    def __init__(
        self,
        catalogue: ProtocolCatalogue,
        subject: str,
        run_id: Optional[str] = None,
        max_revisions: Optional[int] = None,
        unanswered_challenge_eliminates: Optional[bool] = None,
        outcome_registry: Optional[Any] = None,
    ):
        """
        Initialize a run.

        Args:
            catalogue: Protocol catalogue for this run
            subject: Subject under resolution (registry key for the outcome)
            run_id: Run identifier (generated when omitted)
            max_revisions: Revision bound (defaults to engine config)
            unanswered_challenge_eliminates: Elimination policy override
            outcome_registry: Read-only registry of finalized outcomes
        """
        if not subject or not subject.strip():
            raise ValidationError("Run subject must be non-empty")

        self.catalogue = catalogue
        self.subject = subject
        self.run_id = run_id or f"{catalogue.protocol_id}-{uuid.uuid4().hex[:8]}"
        self.stage = RunStage.CONSTRAINTS
        self.version = 1

        if unanswered_challenge_eliminates is None:
            unanswered_challenge_eliminates = catalogue.unanswered_challenge_eliminates
        if unanswered_challenge_eliminates is None:
            unanswered_challenge_eliminates = config.engine.unanswered_challenge_eliminates

        self.engine = DerivationEngine(
            catalogue,
            unanswered_challenge_eliminates=unanswered_challenge_eliminates,
            outcome_registry=outcome_registry,
        )
        self.revision = RevisionController(catalogue, max_revisions=max_revisions, run_id=self.run_id)
        self.resolver = SelectionResolver(catalogue)
        self.gate = ObligationGate(catalogue)
        self.assembler = OutcomeAssembler(catalogue)

        self._requirements: Tuple[Requirement, ...] = ()
        self._candidates: Tuple[Candidate, ...] = ()
        self._challenges: Tuple[Challenge, ...] = ()
        self._judgements: Tuple[WeakPressureJudgement, ...] = ()
        self._versions: List[RunVersion] = []

        self.derivation: Optional[Derivation] = None
        self.selection: Optional[SelectionRecord] = None
        self.finalist: Optional[Candidate] = None
        self.finalist_limitations: Tuple[str, ...] = ()
        self.gate_result: Optional[GateResult] = None
        self.outcome: Optional[Outcome] = None

        self.log = get_dialectics_logger("run", run_id=self.run_id)
        log_stage_event(
            self.log, self.run_id, "run", "opened",
            protocol=catalogue.protocol_id, subject=subject,
        )

    # ------------------------------------------------------------------
    # Stage guards
    # ------------------------------------------------------------------

    def _require(self, *stages: RunStage) -> None:
        if self.stage == RunStage.CLOSED:
            raise StageOrderError(
                f"Run {self.run_id} is closed ({self.outcome.verdict_label if self.outcome else ''})",
                run_id=self.run_id,
                stage=self.stage.value,
            )
        if self.stage not in stages:
            expected = ", ".join(s.value for s in stages)
            raise StageOrderError(
                f"Run {self.run_id} is at stage '{self.stage.value}', expected '{expected}'",
                run_id=self.run_id,
                stage=self.stage.value,
            )

    def _advance(self, stage: RunStage) -> None:
        log_stage_event(self.log, self.run_id, stage.value, "entered", version=self.version)
        self.stage = stage

    # ------------------------------------------------------------------
    # Declaration stages
    # ------------------------------------------------------------------

    def declare_constraints(self, requirements: Sequence[Requirement]) -> None:
        """Declare the upstream requirements for the current version (wholesale)."""
        self._require(RunStage.CONSTRAINTS)
        ids = [r.id for r in requirements]
        duplicates = sorted({rid for rid in ids if ids.count(rid) > 1})
        if duplicates:
            raise ValidationError(f"Duplicate requirement ids {duplicates}", record_ids=duplicates)

        self._requirements = tuple(requirements)
        self._advance(RunStage.CANDIDATES)

    def declare_candidates(self, candidates: Sequence[Candidate]) -> None:
        """Declare the candidate pool for the current version (wholesale)."""
        self._require(RunStage.CANDIDATES)
        if not candidates:
            raise ValidationError(
                f"Run {self.run_id}: candidate pool must not be empty", record_ids=[self.run_id]
            )

        declared = {r.id for r in self._requirements}
        dangling = [
            f"{candidate.id}:{claim.requirement_id}"
            for candidate in candidates
            for claim in candidate.claims
            if claim.requirement_id not in declared
        ]
        if dangling:
            raise ValidationError(
                f"Candidate claims reference undeclared requirements: {dangling}",
                record_ids=dangling,
            )

        ids = [c.id for c in candidates]
        duplicates = sorted({cid for cid in ids if ids.count(cid) > 1})
        if duplicates:
            raise ValidationError(f"Duplicate candidate ids {duplicates}", record_ids=duplicates)

        self._candidates = tuple(candidates)
        self._advance(RunStage.CHALLENGES)

    def submit_challenges(
        self,
        challenges: Sequence[Challenge],
        judgements: Sequence[WeakPressureJudgement] = (),
    ) -> None:
        """Submit the evaluated challenge set and weak-pressure judgements (wholesale)."""
        self._require(RunStage.CHALLENGES)
        self.engine.validate(self._candidates, challenges, judgements)
        self._challenges = tuple(challenges)
        self._judgements = tuple(judgements)
        self._advance(RunStage.DERIVATION)

    # ------------------------------------------------------------------
    # Derivation and revision
    # ------------------------------------------------------------------

    @track_stage("derivation")
    def derive(self) -> Derivation:
        """
        Run the derivation engine and route the run.

        One survivor goes straight to the gate, several go to selection,
        none triggers the revision controller.
        """
        self._require(RunStage.DERIVATION)
        derivation = self.engine.derive(self._candidates, self._challenges, self._judgements)
        self.derivation = derivation
        self._versions.append(self._snapshot(derivation))

        state = self.revision.check(derivation)
        if state == RevisionState.TRIGGERED:
            self._advance(RunStage.REVISION)
        elif len(derivation.survivors) == 1:
            survivor = derivation.survivors[0]
            self.finalist = self._candidate(survivor.candidate_id)
            self.finalist_limitations = survivor.limitations
            self._advance(RunStage.GATE)
        else:
            self._advance(RunStage.SELECTION)
        return derivation

    def revise(self, diagnosis: str, notes: str) -> RevisionRecord:
        """
        Diagnose a zero-survivor pass and restart the matching upstream stage.

        Also callable at the gate once the finalist has failed it, to replace
        the pool or the constraints instead of re-arguing the obligations.
        Past the revision bound the run is forced to an unresolved outcome
        regardless of diagnosis.
        """
        self._require(RunStage.REVISION, RunStage.GATE)
        if self.stage == RunStage.GATE:
            if self.gate_result is None or self.gate_result.passed:
                raise StageOrderError(
                    f"Run {self.run_id} can only be revised at the gate after the "
                    f"finalist failed its obligations",
                    run_id=self.run_id,
                    stage=self.stage.value,
                )
            self.catalogue.resolution_for(diagnosis)
            assert self.finalist is not None
            self.revision.reopen(self.finalist.id)
        record = self.revision.trigger(diagnosis, notes, current_version=self.version)

        if self.revision.state == RevisionState.EXHAUSTED:
            self._close(
                self.assembler.unresolved(
                    run_id=self.run_id,
                    subject=self.subject,
                    revisions=self.revision.history,
                    versions=self._versions,
                    exhaustion=self.revision.exhaustion(),
                    notes=notes,
                )
            )
            return record

        if self.revision.state == RevisionState.CLOSED:
            self._close(
                self.assembler.unresolved(
                    run_id=self.run_id,
                    subject=self.subject,
                    revisions=self.revision.history,
                    versions=self._versions,
                    notes=notes,
                )
            )
            return record

        self.version = record.run_version
        self.derivation = None
        self.selection = None
        self.finalist = None
        self.finalist_limitations = ()
        self.gate_result = None
        self._candidates = ()
        self._challenges = ()
        self._judgements = ()
        if record.resolution == ResolutionAction.RESTART_CONSTRAINTS:
            self._requirements = ()
            self._advance(RunStage.CONSTRAINTS)
        else:
            self._advance(RunStage.CANDIDATES)
        return record

    def reject(self, reason: str) -> Outcome:
        """Deliberately close a zero-survivor run as rejected."""
        self._require(RunStage.REVISION)
        if not reason or not reason.strip():
            raise ValidationError("Rejecting a run requires a reason", record_ids=[self.run_id])
        return self._close(
            self.assembler.closed(
                OutcomeVerdict.REJECTED,
                run_id=self.run_id,
                subject=self.subject,
                revisions=self.revision.history,
                versions=self._versions,
                notes=reason,
            )
        )

    # ------------------------------------------------------------------
    # Selection and gate
    # ------------------------------------------------------------------

    @track_stage("selection")
    def select(
        self,
        merge_proposal: Optional[MergeProposal] = None,
        assessments: Sequence[CriterionAssessment] = (),
        judgement: Optional[SelectionJudgement] = None,
    ) -> SelectionRecord:
        """
        Reduce several survivors to one finalist.

        Raises:
            AmbiguousSelection: the run stays at selection until an explicit
                evaluator judgement is supplied
        """
        self._require(RunStage.SELECTION)
        assert self.derivation is not None

        candidates = {c.id: c for c in self._candidates}
        try:
            record = self.resolver.resolve(
                self.derivation.survivors,
                candidates,
                merge_proposal=merge_proposal,
                assessments=assessments,
                judgement=judgement,
            )
        except AmbiguousSelection:
            self.log.warning(f"Run {self.run_id}: selection needs explicit evaluator judgement")
            raise

        self.selection = record
        if record.merge is not None:
            self.finalist = record.merge.merged
            self.finalist_limitations = record.merge.limitations
        else:
            survivor = self.derivation.survivor(record.finalist_id)
            self.finalist = candidates[record.finalist_id]
            self.finalist_limitations = survivor.limitations if survivor else ()
        self._advance(RunStage.GATE)
        return record

    def return_to_selection(self) -> None:
        """Reopen selection after a failed gate to revise the finalist."""
        self._require(RunStage.GATE)
        if self.derivation is None or len(self.derivation.survivors) < 2:
            raise StageOrderError(
                f"Run {self.run_id} had a single survivor; "
                f"use revise() to replace the candidate pool",
                run_id=self.run_id,
                stage=self.stage.value,
            )
        self.selection = None
        self.finalist = None
        self.finalist_limitations = ()
        self.gate_result = None
        self._advance(RunStage.SELECTION)

    @track_stage("gate")
    def adopt(self, obligations: Sequence[Obligation]) -> Outcome:
        """
        Run the obligation gate and adopt the finalist when every obligation holds.

        Raises:
            ObligationFailure: the run stays open at the gate pending revision
                of the obligations or the finalist
        """
        self._require(RunStage.GATE)
        assert self.finalist is not None

        result = self.gate.evaluate(self.finalist.id, obligations, run_id=self.run_id)
        self.gate_result = result
        self.gate.enforce(result)

        return self._close(
            self.assembler.adopted(
                run_id=self.run_id,
                subject=self.subject,
                finalist=self.finalist,
                limitations=self.finalist_limitations,
                gate_result=result,
                revisions=self.revision.history,
                versions=self._versions,
                selection=self.selection,
            )
        )

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def abandon(self, reason: str) -> Outcome:
        """Abandon the run at any open stage, preserving the audit trail."""
        if self.stage == RunStage.CLOSED:
            raise StageOrderError(
                f"Run {self.run_id} is already closed", run_id=self.run_id, stage="closed"
            )
        if not reason or not reason.strip():
            raise ValidationError("Abandoning a run requires a reason", record_ids=[self.run_id])

        versions = list(self._versions)
        if self.derivation is None and (self._requirements or self._candidates):
            versions.append(self.current_inputs())

        self.log.warning(f"Run {self.run_id}: abandoned at stage '{self.stage.value}': {reason}")
        return self._close(
            self.assembler.closed(
                OutcomeVerdict.ABANDONED,
                run_id=self.run_id,
                subject=self.subject,
                revisions=self.revision.history,
                versions=versions,
                notes=f"Abandoned at stage '{self.stage.value}': {reason}",
                selection=self.selection,
            )
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def is_closed(self) -> bool:
        return self.stage == RunStage.CLOSED

    @property
    def revision_count(self) -> int:
        return self.revision.revision_count

    @property
    def versions(self) -> Tuple[RunVersion, ...]:
        """Every derived run version, oldest first."""
        return tuple(self._versions)

    def current_inputs(self) -> RunVersion:
        """Snapshot of the inputs declared so far for the active version."""
        return self._snapshot(self.derivation)

    def get_transcript(self) -> str:
        """Transcript of the finished run, or the stage summary of an open one."""
        if self.outcome is not None:
            return render_transcript(self.outcome)
        return (
            f"Run {self.run_id} ({self.catalogue.protocol_id}) on '{self.subject}': "
            f"open at stage '{self.stage.value}', version {self.version}, "
            f"{self.revision_count} revision(s)"
        )

    def status(self) -> Dict[str, Any]:
        """Plain-data status of the run."""
        return {
            "run_id": self.run_id,
            "protocol_id": self.catalogue.protocol_id,
            "subject": self.subject,
            "stage": self.stage.value,
            "version": self.version,
            "revision_count": self.revision_count,
            "survivors": self.derivation.survivor_ids if self.derivation else [],
            "finalist": self.finalist.id if self.finalist else None,
            "verdict": self.outcome.verdict.value if self.outcome else None,
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _snapshot(self, derivation: Optional[Derivation]) -> RunVersion:
        return RunVersion(
            version=self.version,
            requirements=self._requirements,
            candidates=self._candidates,
            challenges=self._challenges,
            judgements=self._judgements,
            derivation=derivation,
        )

    def _candidate(self, candidate_id: str) -> Candidate:
        for candidate in self._candidates:
            if candidate.id == candidate_id:
                return candidate
        raise ValidationError(f"Unknown candidate '{candidate_id}'", record_ids=[candidate_id])

    def _close(self, outcome: Outcome) -> Outcome:
        self.outcome = outcome
        self.stage = RunStage.CLOSED
        log_stage_event(
            self.log, self.run_id, "run", "closed",
            verdict=outcome.verdict.value, winner=outcome.winner_id,
        )
        logger.info(outcome.get_summary())
        return outcome

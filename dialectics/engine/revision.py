"""
Revision controller: the zero-survivor state machine.

After every derivation pass the controller either lets the run proceed or
is triggered. A run whose finalist fails the obligation gate can also
reopen it. A triggered controller takes an evaluator diagnosis, maps it
to a resolution action, increments the revision counter and enforces the
upper bound that guarantees termination.
"""

from enum import Enum
from typing import List, Optional, Tuple

from loguru import logger

from dialectics.config import config
from dialectics.core.errors import StageOrderError, ValidationError
from dialectics.core.schemas import Derivation, EliminationExhaustion, RevisionRecord
from dialectics.core.taxonomy import ProtocolCatalogue, ResolutionAction


class RevisionState(str, Enum):
    """State of the revision loop."""

    CHECKING = "checking"  # Waiting for a derivation pass
    PROCEED = "proceed"  # Survivors exist; hand over to selection
    TRIGGERED = "triggered"  # Zero survivors; awaiting diagnosis
    EXHAUSTED = "exhausted"  # Bound exceeded; forced unresolved
    CLOSED = "closed"  # Diagnosis closed the run as unresolved


TERMINAL_STATES = (RevisionState.EXHAUSTED, RevisionState.CLOSED)


class RevisionController:
    """
    Per-run revision loop with an enforced upper bound on triggers.

    Zero survivors is not failure: it is failure only once the bound is
    exceeded, or when a diagnosis (or an evaluator) closes the run.
    """

    def __init__(
        self,
        catalogue: ProtocolCatalogue,
        max_revisions: Optional[int] = None,
        run_id: str = "-",
    ):
        """
        Initialize revision controller.

        Args:
            catalogue: Protocol catalogue supplying the diagnosis enumeration
            max_revisions: Upper bound on triggers (defaults to engine config)
            run_id: Owning run, used in errors and logs
        """
        self.catalogue = catalogue
        self.max_revisions = (
            config.engine.max_revisions if max_revisions is None else max_revisions
        )
        if self.max_revisions < 0:
            raise ValueError("max_revisions must be non-negative")
        self.run_id = run_id
        self.state = RevisionState.CHECKING
        self.revision_count = 0
        self.history: List[RevisionRecord] = []
        self._last_eliminated: Tuple[str, ...] = ()

    def check(self, derivation: Derivation) -> RevisionState:
        """
        Inspect a derivation pass.

        Returns:
            PROCEED when survivors exist, TRIGGERED otherwise
        """
        if self.state != RevisionState.CHECKING:
            raise StageOrderError(
                f"Revision check requires state 'checking', found '{self.state.value}'",
                run_id=self.run_id,
                stage="revision",
            )

        if derivation.has_survivors:
            self.state = RevisionState.PROCEED
        else:
            self.state = RevisionState.TRIGGERED
            self._last_eliminated = tuple(derivation.eliminated_ids)
            logger.warning(
                f"Run {self.run_id}: zero survivors "
                f"({len(derivation.eliminated)} eliminated), revision triggered"
            )
        return self.state

    def reopen(self, finalist_id: str) -> RevisionState:
        """
        Trigger revision after the obligation gate blocked the finalist.

        The reopened pass counts against the same bound as a zero-survivor pass.
        """
        if self.state not in (RevisionState.PROCEED, RevisionState.TRIGGERED):
            raise StageOrderError(
                f"Reopening requires state 'proceed', found '{self.state.value}'",
                run_id=self.run_id,
                stage="revision",
            )
        self.state = RevisionState.TRIGGERED
        self._last_eliminated = ()
        logger.warning(
            f"Run {self.run_id}: gate blocked finalist '{finalist_id}', revision triggered"
        )
        return self.state

    def trigger(self, diagnosis: str, notes: str, current_version: int) -> RevisionRecord:
        """
        Record a diagnosis for a triggered pass.

        Args:
            diagnosis: Diagnosis from the protocol's enumeration
            notes: Evaluator notes (non-empty)
            current_version: Run version whose pass had zero survivors

        Returns:
            RevisionRecord; ``forced_unresolved`` is set once the bound is exceeded

        Raises:
            StageOrderError: if the controller is not triggered
            ValidationError: for an unknown diagnosis or empty notes
        """
        if self.state != RevisionState.TRIGGERED:
            raise StageOrderError(
                f"Revision requires state 'triggered', found '{self.state.value}'",
                run_id=self.run_id,
                stage="revision",
            )

        resolution = self.catalogue.resolution_for(diagnosis)
        if not notes or not notes.strip():
            raise ValidationError(
                f"Revision diagnosis '{diagnosis}' requires non-empty notes",
                record_ids=[self.run_id],
            )
        self.revision_count += 1
        forced = self.revision_count > self.max_revisions
        restarts = resolution != ResolutionAction.CLOSE_UNRESOLVED and not forced

        record = RevisionRecord(
            revision=self.revision_count,
            diagnosis=diagnosis,
            resolution=resolution,
            notes=notes,
            run_version=current_version + 1 if restarts else current_version,
            forced_unresolved=forced,
        )
        self.history.append(record)

        if forced:
            self.state = RevisionState.EXHAUSTED
            logger.warning(
                f"Run {self.run_id}: revision bound exceeded "
                f"({self.revision_count} > {self.max_revisions}), forcing unresolved"
            )
        elif not restarts:
            self.state = RevisionState.CLOSED
            logger.info(f"Run {self.run_id}: diagnosis '{diagnosis}' closes the run as unresolved")
        else:
            self.state = RevisionState.CHECKING
            logger.info(
                f"Run {self.run_id}: revision {self.revision_count} "
                f"diagnosis='{diagnosis}' -> {resolution.value}"
            )
        return record

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def remaining(self) -> int:
        """Triggers left before the bound forces closure."""
        return max(0, self.max_revisions - self.revision_count)

    def exhaustion(self) -> EliminationExhaustion:
        """Build the exhaustion report for a forced-unresolved run."""
        return EliminationExhaustion(
            revision_count=self.revision_count,
            max_revisions=self.max_revisions,
            eliminated_ids=self._last_eliminated,
            last_diagnosis=self.history[-1].diagnosis if self.history else None,
        )

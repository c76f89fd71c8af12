"""
Registry of finalized outcomes, keyed by subject.

The only cross-run coupling in the engine: a run may read another run's
finalized Outcome (for composition-style challenges) but never alter it.
Registration is serialized by a lock; readers always receive the immutable
Outcome records themselves, so concurrent readers see the same snapshot.
"""

import threading
from typing import Dict, List, Optional, Tuple

from loguru import logger

from dialectics.config import config
from dialectics.core.errors import ValidationError
from dialectics.core.schemas import Outcome
from dialectics.core.taxonomy import OutcomeVerdict
from dialectics.registry.store import OutcomeStore


class OutcomeRegistry:
    """
    Thread-safe registry of finalized outcomes.

    A later outcome for the same subject supersedes the earlier one; the
    earlier one stays in the subject's history untouched.

    Example:
        >>> registry = OutcomeRegistry()
        >>> registry.register(outcome)
        >>> registry.get(outcome.subject).run_id == outcome.run_id
        True
    """

    def __init__(self, store: Optional[OutcomeStore] = None):
        """
        Initialize registry.

        Args:
            store: Optional persistent store; existing outcomes are loaded
                   and newly registered ones are written through
        """
        self._lock = threading.Lock()
        self._history: Dict[str, List[Outcome]] = {}
        self._run_ids: Dict[str, str] = {}
        self.store = store

        if store is not None:
            for outcome in store.get_all_outcomes():
                self._add(outcome)
            logger.info(f"Loaded {len(self._run_ids)} finalized outcomes from store")

    @classmethod
    def from_config(cls) -> "OutcomeRegistry":
        """Create a registry, backed by the configured store when persistence is enabled."""
        if config.registry.persist:
            return cls(store=OutcomeStore(config.registry.store_path))
        return cls()

    def register(self, outcome: Outcome) -> Outcome:
        """
        Register a finalized outcome, superseding any earlier one for its subject.

        Raises:
            ValidationError: if an outcome with the same run id was already registered
        """
        with self._lock:
            if outcome.run_id in self._run_ids:
                raise ValidationError(
                    f"Outcome for run '{outcome.run_id}' is already registered",
                    record_ids=[outcome.run_id],
                )
            superseded = list(self._history.get(outcome.subject, ()))
            self._add(outcome)
            if self.store is not None:
                self.store.save_outcome(outcome)

        if superseded:
            logger.info(
                f"Outcome {outcome.run_id} supersedes {superseded[-1].run_id} "
                f"for subject '{outcome.subject}'"
            )
        else:
            logger.info(f"Registered outcome {outcome.run_id} for subject '{outcome.subject}'")
        return outcome

    def get(self, subject: str) -> Optional[Outcome]:
        """Latest finalized outcome for a subject, or None."""
        with self._lock:
            history = self._history.get(subject)
            return history[-1] if history else None

    def get_adopted(self, subject: str) -> Optional[Outcome]:
        """Latest adopted outcome for a subject, or None."""
        with self._lock:
            for outcome in reversed(self._history.get(subject, [])):
                if outcome.verdict == OutcomeVerdict.ADOPTED:
                    return outcome
        return None

    def history(self, subject: str) -> Tuple[Outcome, ...]:
        """Every outcome registered for a subject, oldest first."""
        with self._lock:
            return tuple(self._history.get(subject, ()))

    def subjects(self) -> List[str]:
        with self._lock:
            return list(self._history)

    def __contains__(self, subject: object) -> bool:
        with self._lock:
            return subject in self._history

    def __len__(self) -> int:
        with self._lock:
            return len(self._history)

    def _add(self, outcome: Outcome) -> None:
        self._history.setdefault(outcome.subject, []).append(outcome)
        self._run_ids[outcome.run_id] = outcome.subject

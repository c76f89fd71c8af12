"""
Persistent storage for finalized outcomes.

Stores outcomes as JSON files, one per run, with a subject index so the
supersession history of a subject can be rebuilt on load.
"""

import json
import re
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger

from dialectics.config import config
from dialectics.core.schemas import Outcome


def _safe_name(value: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]", "_", value)


class OutcomeStore:
    """
    File-based storage for finalized outcomes.

    Storage structure:
        outcome_data/
            outcomes/
                <run_id>.json
            indexes/
                by_subject.json
    """

    def __init__(self, base_path: Optional[Path] = None):
        """
        Initialize outcome store.

        Args:
            base_path: Root directory for outcome data.
                      Defaults to the configured registry store directory.
        """
        if base_path is None:
            base_path = config.registry.store_path

        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        (self.base_path / "outcomes").mkdir(exist_ok=True)
        (self.base_path / "indexes").mkdir(exist_ok=True)

        logger.info(f"Initialized OutcomeStore at {self.base_path}")

    def save_outcome(self, outcome: Outcome) -> Path:
        """
        Save a finalized outcome.

        Args:
            outcome: The outcome to save

        Returns:
            Path of the written file
        """
        file_path = self.base_path / "outcomes" / f"{_safe_name(outcome.run_id)}.json"

        with open(file_path, "w") as f:
            f.write(outcome.model_dump_json(indent=2))

        self._update_index(outcome)

        logger.debug(f"Saved outcome {outcome.run_id} to {file_path}")
        return file_path

    def get_outcome(self, run_id: str) -> Optional[Outcome]:
        """
        Get a specific outcome.

        Args:
            run_id: The run ID

        Returns:
            Outcome if found, None otherwise
        """
        file_path = self.base_path / "outcomes" / f"{_safe_name(run_id)}.json"

        if not file_path.exists():
            logger.warning(f"Outcome {run_id} not found")
            return None

        with open(file_path, "r") as f:
            return Outcome.model_validate_json(f.read())

    def get_all_outcomes(self) -> List[Outcome]:
        """
        Get all stored outcomes, oldest first.

        Returns:
            List of all outcomes
        """
        outcomes = []
        for file_path in (self.base_path / "outcomes").glob("*.json"):
            with open(file_path, "r") as f:
                outcomes.append(Outcome.model_validate_json(f.read()))

        outcomes.sort(key=lambda o: o.created_at)

        logger.debug(f"Loaded {len(outcomes)} outcomes")
        return outcomes

    def query_by_subject(self, subject: str) -> List[Outcome]:
        """
        Get every stored outcome for a subject, in registration order.

        Args:
            subject: The subject name

        Returns:
            List of outcomes for this subject
        """
        run_ids = self._load_index().get(subject, [])
        return [o for o in (self.get_outcome(run_id) for run_id in run_ids) if o is not None]

    def _update_index(self, outcome: Outcome) -> None:
        index = self._load_index()
        run_ids = index.setdefault(outcome.subject, [])
        if outcome.run_id not in run_ids:
            run_ids.append(outcome.run_id)

        with open(self._index_path, "w") as f:
            json.dump(index, f, indent=2)

    def _load_index(self) -> Dict[str, List[str]]:
        if not self._index_path.exists():
            return {}
        with open(self._index_path, "r") as f:
            return json.load(f)

    @property
    def _index_path(self) -> Path:
        return self.base_path / "indexes" / "by_subject.json"

    def get_statistics(self) -> Dict[str, object]:
        """
        Get store statistics.

        Returns:
            Dictionary with outcome counts by verdict and protocol
        """
        outcomes = self.get_all_outcomes()
        by_verdict: Dict[str, int] = {}
        by_protocol: Dict[str, int] = {}
        for outcome in outcomes:
            by_verdict[outcome.verdict.value] = by_verdict.get(outcome.verdict.value, 0) + 1
            by_protocol[outcome.protocol_id] = by_protocol.get(outcome.protocol_id, 0) + 1

        return {
            "total_outcomes": len(outcomes),
            "subjects": len(self._load_index()),
            "by_verdict": by_verdict,
            "by_protocol": by_protocol,
        }

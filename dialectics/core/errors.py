"""
Custom exceptions for the elimination engine.

Every exception carries the ids of the records that caused it so that no
elimination, limitation or obligation failure is dropped without a
traceable cause.
"""

from __future__ import annotations

from typing import Iterable


class DialecticsError(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str, record_ids: Iterable[str] = ()):
        super().__init__(message)
        self.record_ids: list[str] = list(record_ids)

    def __str__(self) -> str:
        message = super().__str__()
        if self.record_ids:
            return f"{message} [records: {', '.join(self.record_ids)}]"
        return message


class ValidationError(DialecticsError):
    """Malformed run input. Fatal until corrected upstream."""

    def __init__(
        self,
        message: str,
        record_ids: Iterable[str] = (),
        problems: Iterable[str] = (),
    ):
        super().__init__(message, record_ids)
        self.problems: list[str] = list(problems)


class ObligationFailure(DialecticsError):
    """The obligation gate blocked adoption; the run stays open at the gate."""

    def __init__(self, message: str, record_ids: Iterable[str], blockers: dict[str, str]):
        super().__init__(message, record_ids)
        self.blockers = dict(blockers)


class AmbiguousSelection(DialecticsError):
    """No tie-break criterion discriminates between survivors."""

    def __init__(self, message: str, record_ids: Iterable[str], criteria_tried: Iterable[str] = ()):
        super().__init__(message, record_ids)
        self.criteria_tried: list[str] = list(criteria_tried)


class StageOrderError(DialecticsError):
    """A run stage was invoked out of order or on a closed run."""

    def __init__(self, message: str, run_id: str, stage: str):
        super().__init__(message, [run_id])
        self.run_id = run_id
        self.stage = stage

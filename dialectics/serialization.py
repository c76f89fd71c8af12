"""
Run input loading and outcome schema export.

Run input is supplied wholesale as one JSON document (or dict). pydantic
errors raised while loading are re-raised as the engine's ValidationError
so callers only handle one exception hierarchy.
"""

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import pydantic
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from dialectics.core.errors import ValidationError
from dialectics.core.schemas import (
    Candidate,
    Challenge,
    Outcome,
    Requirement,
    WeakPressureJudgement,
)
from dialectics.engine.run import DialecticalRun
from dialectics.protocols import get_protocol


class RunInput(BaseModel):
    """One run's declared inputs, supplied wholesale."""

    model_config = ConfigDict(frozen=True)

    protocol: str = Field(min_length=1, description="Protocol id (cffp, cdp, cbp, hep, atp, emp)")
    subject: str = Field(min_length=1, description="Subject under resolution")
    run_id: Optional[str] = Field(default=None, description="Optional run identifier")
    max_revisions: Optional[int] = Field(default=None, ge=0, description="Revision bound override")
    requirements: Tuple[Requirement, ...] = ()
    candidates: Tuple[Candidate, ...] = Field(min_length=1)
    challenges: Tuple[Challenge, ...] = ()
    judgements: Tuple[WeakPressureJudgement, ...] = ()


def _problems(error: pydantic.ValidationError) -> Tuple[list, list]:
    problems = []
    locations = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"])
        locations.append(location or "<root>")
        problems.append(f"{location}: {detail['msg']}")
    return problems, locations


def load_run_input(source: Union[str, Path, Mapping[str, Any]]) -> RunInput:
    """
    Load and validate run input.

    Args:
        source: Path to a JSON file, or an already-parsed mapping

    Returns:
        Validated RunInput

    Raises:
        ValidationError: if the file is not JSON or the document is malformed
    """
    if isinstance(source, Mapping):
        data: Any = dict(source)
    else:
        path = Path(source)
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Run input {path} is not valid JSON: {e}") from e
        logger.debug(f"Loaded run input from {path}")

    try:
        return RunInput.model_validate(data)
    except pydantic.ValidationError as e:
        problems, locations = _problems(e)
        raise ValidationError(
            f"Malformed run input ({len(problems)} problem(s)): {problems[0]}",
            record_ids=locations,
            problems=problems,
        ) from e


def run_from_input(
    run_input: RunInput, outcome_registry: Optional[Any] = None
) -> DialecticalRun:
    """
    Drive a run through derivation.

    The returned run waits at revision, selection or the gate depending on
    how many candidates survived.
    """
    run = DialecticalRun(
        get_protocol(run_input.protocol),
        subject=run_input.subject,
        run_id=run_input.run_id,
        max_revisions=run_input.max_revisions,
        outcome_registry=outcome_registry,
    )
    run.declare_constraints(run_input.requirements)
    run.declare_candidates(run_input.candidates)
    run.submit_challenges(run_input.challenges, run_input.judgements)
    run.derive()
    return run


def outcome_json_schema() -> Dict[str, Any]:
    """JSON Schema describing the Outcome record."""
    return Outcome.model_json_schema()


def run_input_json_schema() -> Dict[str, Any]:
    """JSON Schema describing run input documents."""
    return RunInput.model_json_schema()

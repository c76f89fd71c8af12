"""
Shared fixtures for the test suite.
"""

import pytest

from dialectics.core.schemas import Candidate, Obligation, Outcome
from dialectics.core.taxonomy import OutcomeVerdict
from dialectics.protocols import cffp, hep
from dialectics.registry import OutcomeRegistry


@pytest.fixture
def catalogue():
    """Formalization protocol catalogue."""
    return cffp.CATALOGUE


@pytest.fixture
def hep_catalogue():
    """Evidence-weight protocol catalogue."""
    return hep.CATALOGUE


@pytest.fixture
def registry():
    """Empty outcome registry."""
    return OutcomeRegistry()


def _adopted_outcome(subject: str = "addition", run_id: str = "prior-1") -> Outcome:
    """Build a finalized adopted outcome for registry tests."""
    return Outcome(
        run_id=run_id,
        protocol_id="cffp",
        subject=subject,
        verdict=OutcomeVerdict.ADOPTED,
        verdict_label="formalized",
        winner=Candidate(id="C1", description="Peano addition"),
        obligations=(Obligation(property="soundness", argument="checked", satisfied=True),),
    )


@pytest.fixture
def prior_outcome():
    """Adopted outcome for the subject 'addition'."""
    return _adopted_outcome()


@pytest.fixture
def outcome_factory():
    """Factory for adopted outcomes: outcome_factory(subject, run_id)."""
    return _adopted_outcome

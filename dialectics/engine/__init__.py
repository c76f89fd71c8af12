"""
Generic dialectical elimination engine.

One engine parameterized by a protocol catalogue: derivation, revision,
selection, obligation gate and outcome assembly, wired together by
``DialecticalRun``.
"""

from dialectics.engine.derivation import DerivationEngine, check_partition
from dialectics.engine.gate import ObligationGate
from dialectics.engine.outcome import OutcomeAssembler, render_transcript
from dialectics.engine.revision import RevisionController, RevisionState
from dialectics.engine.run import DialecticalRun, RunStage
from dialectics.engine.selection import SelectionResolver

__all__ = [
    "DerivationEngine",
    "check_partition",
    "ObligationGate",
    "OutcomeAssembler",
    "render_transcript",
    "RevisionController",
    "RevisionState",
    "DialecticalRun",
    "RunStage",
    "SelectionResolver",
]

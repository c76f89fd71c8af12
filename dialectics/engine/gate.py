"""
Obligation gate: the final checklist before a finalist is adopted.

The pass flag is always the conjunction of the individual obligations,
computed rather than asserted. A failed gate blocks adoption and leaves the
run open at the gate.
"""

from typing import List, Sequence

from loguru import logger

from dialectics.core.errors import ObligationFailure, ValidationError
from dialectics.core.schemas import GateResult, Obligation
from dialectics.core.taxonomy import ProtocolCatalogue
from dialectics.logging import get_dialectics_logger, log_gate_result


class ObligationGate:
    """
    Evaluate argued proof obligations against a single finalist.

    The protocol may require specific obligation properties; each must be
    argued explicitly, and at least one obligation is always required.
    """

    def __init__(self, catalogue: ProtocolCatalogue):
        self.catalogue = catalogue

    def evaluate(
        self, candidate_id: str, obligations: Sequence[Obligation], run_id: str = "-"
    ) -> GateResult:
        """
        Evaluate obligations for the finalist.

        Args:
            candidate_id: Finalist id
            obligations: Independently argued obligations
            run_id: Owning run, used in logs

        Returns:
            GateResult whose ``passed`` is the conjunction of the flags

        Raises:
            ValidationError: if no obligations are given, a property is argued
                twice, or a protocol-required property is missing
        """
        if not obligations:
            raise ValidationError(
                f"Obligation gate for '{candidate_id}' needs at least one argued obligation",
                record_ids=[candidate_id],
            )

        seen: List[str] = []
        duplicates: List[str] = []
        for obligation in obligations:
            if obligation.property in seen:
                duplicates.append(obligation.property)
            seen.append(obligation.property)
        if duplicates:
            raise ValidationError(
                f"Obligation properties argued more than once: {duplicates}",
                record_ids=duplicates,
            )

        missing = [p for p in self.catalogue.required_obligations if p not in seen]
        if missing:
            raise ValidationError(
                f"{self.catalogue.protocol_id} requires obligations {missing} for '{candidate_id}'",
                record_ids=missing,
            )

        result = GateResult(candidate_id=candidate_id, obligations=tuple(obligations))

        log_gate_result(
            get_dialectics_logger("gate", run_id=run_id),
            run_id,
            result.passed,
            candidate_id=candidate_id,
            unsatisfied=[o.property for o in result.unsatisfied()],
        )
        return result

    def enforce(self, result: GateResult) -> GateResult:
        """
        Block adoption unless every obligation holds.

        Raises:
            ObligationFailure: carrying each unsatisfied property and its blocker
        """
        if result.passed:
            return result

        unsatisfied = result.unsatisfied()
        blockers = {o.property: o.blocker or "" for o in unsatisfied}
        logger.warning(
            f"Adoption of '{result.candidate_id}' blocked by {len(unsatisfied)} "
            f"unsatisfied obligation(s): {sorted(blockers)}"
        )
        raise ObligationFailure(
            f"Adoption of '{result.candidate_id}' blocked: "
            + "; ".join(f"{prop}: {blocker}" for prop, blocker in blockers.items()),
            record_ids=[result.candidate_id] + list(blockers),
            blockers=blockers,
        )

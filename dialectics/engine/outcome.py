"""
Outcome assembler: packages a finished run into an immutable record.
"""

from typing import Optional, Sequence

from loguru import logger

from dialectics.core.schemas import (
    Candidate,
    EliminationExhaustion,
    GateResult,
    Outcome,
    RevisionRecord,
    RunVersion,
    SelectionRecord,
)
from dialectics.core.taxonomy import OutcomeVerdict, ProtocolCatalogue


class OutcomeAssembler:
    """Build terminal Outcome records labelled with the protocol's vocabulary."""

    def __init__(self, catalogue: ProtocolCatalogue):
        self.catalogue = catalogue

    def adopted(
        self,
        run_id: str,
        subject: str,
        finalist: Candidate,
        limitations: Sequence[str],
        gate_result: GateResult,
        revisions: Sequence[RevisionRecord],
        versions: Sequence[RunVersion],
        selection: Optional[SelectionRecord] = None,
    ) -> Outcome:
        """Assemble the outcome of a run whose finalist passed the gate."""
        return self._assemble(
            OutcomeVerdict.ADOPTED,
            run_id=run_id,
            subject=subject,
            winner=finalist,
            merge=selection.merge if selection else None,
            limitations=tuple(limitations),
            obligations=gate_result.obligations,
            revisions=tuple(revisions),
            selection=selection,
            versions=tuple(versions),
        )

    def unresolved(
        self,
        run_id: str,
        subject: str,
        revisions: Sequence[RevisionRecord],
        versions: Sequence[RunVersion],
        exhaustion: Optional[EliminationExhaustion] = None,
        notes: str = "",
    ) -> Outcome:
        """Assemble an unresolved outcome (closed by diagnosis or forced by the bound)."""
        return self._assemble(
            OutcomeVerdict.UNRESOLVED,
            run_id=run_id,
            subject=subject,
            revisions=tuple(revisions),
            versions=tuple(versions),
            exhaustion=exhaustion,
            notes=notes,
        )

    def closed(
        self,
        verdict: OutcomeVerdict,
        run_id: str,
        subject: str,
        revisions: Sequence[RevisionRecord],
        versions: Sequence[RunVersion],
        notes: str,
        selection: Optional[SelectionRecord] = None,
    ) -> Outcome:
        """Assemble a rejected or abandoned outcome."""
        return self._assemble(
            verdict,
            run_id=run_id,
            subject=subject,
            revisions=tuple(revisions),
            versions=tuple(versions),
            selection=selection,
            notes=notes,
        )

    def _assemble(self, verdict: OutcomeVerdict, **fields) -> Outcome:
        outcome = Outcome(
            protocol_id=self.catalogue.protocol_id,
            verdict=verdict,
            verdict_label=self.catalogue.verdict_label(verdict),
            **fields,
        )
        logger.info(
            f"Run {outcome.run_id}: outcome '{outcome.verdict_label}' "
            f"(winner={outcome.winner_id}, limitations={len(outcome.limitations)}, "
            f"revisions={outcome.revision_count})"
        )
        return outcome


def render_transcript(outcome: Outcome) -> str:
    """
    Get human-readable transcript of a finished run.

    Args:
        outcome: The outcome to format

    Returns:
        Formatted transcript string
    """
    lines = [
        "=" * 80,
        "DIALECTICAL RUN TRANSCRIPT",
        "=" * 80,
        f"Run: {outcome.run_id}",
        f"Protocol: {outcome.protocol_id}",
        f"Subject: {outcome.subject}",
        f"Verdict: {outcome.verdict_label} ({outcome.verdict.value})",
        "",
    ]

    for version in outcome.versions:
        lines.extend([f"VERSION {version.version}", "-" * 80])
        if version.requirements:
            lines.append("Requirements:")
            lines.extend(f"  {r.id}: {r.statement}" for r in version.requirements)
        lines.append("Candidates:")
        lines.extend(
            f"  {c.id}: {c.description or '(no description)'}" for c in version.candidates
        )
        if version.challenges:
            lines.append("Challenges:")
            for challenge in version.challenges:
                rebuttal = challenge.rebuttal
                answer = (
                    f"{rebuttal.kind} ({'valid' if rebuttal.valid else 'invalid'})"
                    if rebuttal
                    else "no rebuttal"
                )
                lines.append(
                    f"  {challenge.id} -> {challenge.target} [{challenge.subtype}]: {answer}"
                )
        if version.derivation is not None:
            lines.append("Derivation:")
            lines.extend(
                f"  eliminated {r.candidate_id}: {r.reason} (by {r.challenge_id})"
                for r in version.derivation.eliminated
            )
            lines.extend(
                f"  survives {r.candidate_id}"
                + (f" with limitations {list(r.limitations)}" if r.limitations else "")
                for r in version.derivation.survivors
            )
        lines.append("")

    if outcome.revisions:
        lines.extend(["REVISIONS", "-" * 80])
        lines.extend(
            f"  #{r.revision}: {r.diagnosis} -> {r.resolution.value}"
            + (" (forced unresolved)" if r.forced_unresolved else "")
            + f" | {r.notes}"
            for r in outcome.revisions
        )
        lines.append("")

    if outcome.selection:
        selection = outcome.selection
        lines.extend(
            [
                "SELECTION",
                "-" * 80,
                f"  Method: {selection.method}",
                f"  Finalist: {selection.finalist_id}",
                f"  Criterion: {selection.criterion or 'N/A'}",
                f"  Rationale: {selection.rationale}",
            ]
        )
        lines.extend(
            f"  Rejected {alt.candidate_id}: {alt.reason}"
            for alt in selection.alternatives_rejected
        )
        lines.append("")

    if outcome.obligations:
        lines.extend(["OBLIGATIONS", "-" * 80])
        lines.extend(
            f"  [{'x' if o.satisfied else ' '}] {o.property}"
            + (f" (blocked: {o.blocker})" if o.blocker else "")
            for o in outcome.obligations
        )
        lines.append("")

    lines.extend(
        [
            "FINAL RESULT",
            "-" * 80,
            f"Winner: {outcome.winner_id or 'N/A'}",
            f"Limitations: {list(outcome.limitations) or 'none'}",
            f"Notes: {outcome.notes or 'N/A'}",
            "=" * 80,
        ]
    )
    return "\n".join(lines)

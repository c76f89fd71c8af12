"""
Selection/collapse resolver: reduces a multi-survivor result to one finalist.

Step 1 tries a strength-preserving merge when one is proposed. Step 2
applies the protocol's ordered tie-break criteria. This is the single point
where an unstructured judgement is permitted, so every decision is recorded
with a rationale and the rejected alternatives.
"""

from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from loguru import logger

from dialectics.core.errors import AmbiguousSelection, ValidationError
from dialectics.core.schemas import (
    Candidate,
    CriterionAssessment,
    MergeDescriptor,
    MergeProposal,
    RejectedAlternative,
    SelectionJudgement,
    SelectionRecord,
    SurvivorRecord,
)
from dialectics.core.taxonomy import ProtocolCatalogue, TieBreakCriterion, TieBreakMethod


class SelectionResolver:
    """
    Merge-or-rank resolver parameterized by the protocol's tie-break order.

    A merge is accepted only if the merged candidate:
    (a) claims every requirement claimed by any merged survivor,
    (b) introduces no failure mode absent from all merged survivors,
    (c) is not weaker than any merged survivor on any claim.
    """

    def __init__(self, catalogue: ProtocolCatalogue):
        self.catalogue = catalogue

    def check_merge(self, proposal: MergeProposal, survivors: Sequence[Candidate]) -> List[str]:
        """
        Check a merge proposal against the survivors it replaces.

        Returns:
            List of problems; empty when the merge is acceptable
        """
        merged = proposal.candidate
        merged_claims = merged.claim_map()
        problems: List[str] = []

        for survivor in survivors:
            for requirement_id, strength in survivor.claim_map().items():
                merged_strength = merged_claims.get(requirement_id)
                if merged_strength is None:
                    problems.append(
                        f"merge drops requirement '{requirement_id}' claimed by '{survivor.id}'"
                    )
                elif merged_strength.rank < strength.rank:
                    problems.append(
                        f"merge is weaker than '{survivor.id}' on '{requirement_id}' "
                        f"({merged_strength.value} < {strength.value})"
                    )

        known_failures = {mode for survivor in survivors for mode in survivor.failure_modes}
        for mode in merged.failure_modes:
            if mode not in known_failures:
                problems.append(f"merge introduces new failure mode '{mode}'")

        return problems

    def resolve(
        self,
        survivors: Sequence[SurvivorRecord],
        candidates: Mapping[str, Candidate],
        merge_proposal: Optional[MergeProposal] = None,
        assessments: Sequence[CriterionAssessment] = (),
        judgement: Optional[SelectionJudgement] = None,
    ) -> SelectionRecord:
        """
        Reduce survivors to exactly one finalist.

        Args:
            survivors: Survivor records from the derivation (more than one)
            candidates: Candidate lookup by id for the current run version
            merge_proposal: Optional synthesized candidate to collapse survivors
            assessments: Argued scores for ranked criteria
            judgement: Explicit evaluator choice for the judgement criterion

        Returns:
            SelectionRecord naming the finalist

        Raises:
            ValidationError: on malformed selection input
            AmbiguousSelection: when no criterion leaves exactly one finalist
        """
        if len(survivors) < 2:
            raise ValidationError(
                "Selection requires more than one survivor",
                record_ids=[s.candidate_id for s in survivors],
            )

        merge_note = ""
        if merge_proposal is not None:
            record, problems = self._try_merge(merge_proposal, survivors, candidates)
            if record is not None:
                return record
            merge_note = f"Merge rejected ({'; '.join(problems)}). "

        return self._rank(survivors, assessments, judgement, merge_note)

    # ------------------------------------------------------------------
    # Merge
    # ------------------------------------------------------------------

    def _try_merge(
        self,
        proposal: MergeProposal,
        survivors: Sequence[SurvivorRecord],
        candidates: Mapping[str, Candidate],
    ) -> Tuple[Optional[SelectionRecord], List[str]]:
        survivor_ids = [s.candidate_id for s in survivors]
        replaces = list(proposal.replaces) if proposal.replaces else survivor_ids

        unknown = [cid for cid in replaces if cid not in survivor_ids]
        if unknown:
            raise ValidationError(
                f"Merge proposal replaces non-surviving candidates {unknown}",
                record_ids=unknown,
            )
        if set(replaces) != set(survivor_ids):
            raise ValidationError(
                "Merge proposal must replace every survivor to yield a single finalist",
                record_ids=[cid for cid in survivor_ids if cid not in replaces],
            )
        if proposal.candidate.id in survivor_ids:
            raise ValidationError(
                f"Merged candidate id '{proposal.candidate.id}' collides with a survivor",
                record_ids=[proposal.candidate.id],
            )

        merged_survivors = [candidates[cid] for cid in replaces]
        problems = self.check_merge(proposal, merged_survivors)
        if problems:
            logger.warning(
                f"Merge of {replaces} into '{proposal.candidate.id}' rejected: {problems}"
            )
            return None, problems

        limitations: List[str] = []
        for survivor in survivors:
            for limitation in survivor.limitations:
                if limitation not in limitations:
                    limitations.append(limitation)

        logger.info(f"Merged {replaces} into '{proposal.candidate.id}'")
        record = SelectionRecord(
            method="merge",
            finalist_id=proposal.candidate.id,
            rationale=proposal.argument,
            merge=MergeDescriptor(
                merged=proposal.candidate,
                replaces=tuple(replaces),
                limitations=tuple(limitations),
            ),
        )
        return record, []

    # ------------------------------------------------------------------
    # Ranked choice
    # ------------------------------------------------------------------

    def _rank(
        self,
        survivors: Sequence[SurvivorRecord],
        assessments: Sequence[CriterionAssessment],
        judgement: Optional[SelectionJudgement],
        merge_note: str,
    ) -> SelectionRecord:
        by_id = {s.candidate_id: s for s in survivors}
        assessment_by_criterion = self._index_assessments(assessments)

        remaining = [s.candidate_id for s in survivors]
        rejected: List[RejectedAlternative] = []
        tried: List[str] = []

        for criterion in self.catalogue.tie_break_criteria:
            outcome = self._apply(
                criterion, remaining, by_id, assessment_by_criterion.get(criterion.tag), judgement
            )
            if outcome is None:
                logger.debug(f"Tie-break '{criterion.tag}' not applicable (no evaluator input)")
                continue
            tried.append(criterion.tag)
            kept, reasons, explanation = outcome
            if not kept:
                raise ValidationError(
                    f"Tie-break '{criterion.tag}' kept none of {remaining}",
                    record_ids=remaining,
                )

            for cid in remaining:
                if cid not in kept:
                    rejected.append(
                        RejectedAlternative(
                            candidate_id=cid,
                            reason=reasons.get(cid) or criterion.rejection_reason,
                        )
                    )
            remaining = kept

            if len(remaining) == 1:
                finalist = remaining[0]
                logger.info(f"Selected '{finalist}' by tie-break '{criterion.tag}'")
                return SelectionRecord(
                    method="ranked",
                    finalist_id=finalist,
                    criterion=criterion.tag,
                    rationale=f"{merge_note}{explanation}",
                    alternatives_rejected=tuple(rejected),
                )

        logger.warning(f"Selection ambiguous between {remaining} after criteria {tried}")
        raise AmbiguousSelection(
            f"No tie-break criterion discriminates between {remaining}; "
            f"explicit evaluator judgement required",
            record_ids=remaining,
            criteria_tried=tried,
        )

    def _apply(
        self,
        criterion: TieBreakCriterion,
        remaining: List[str],
        by_id: Dict[str, SurvivorRecord],
        assessment: Optional[CriterionAssessment],
        judgement: Optional[SelectionJudgement],
    ) -> Optional[Tuple[List[str], Dict[str, str], str]]:
        """
        Apply one criterion to the remaining survivors.

        Returns:
            (kept ids, per-id rejection reasons, explanation), or None when the
            criterion needs evaluator input that was not supplied
        """
        if criterion.method == TieBreakMethod.FEWEST_LIMITATIONS:
            counts = {cid: len(by_id[cid].limitations) for cid in remaining}
            best = min(counts.values())
            kept = [cid for cid in remaining if counts[cid] == best]
            explanation = (
                f"{', '.join(kept)} carries the fewest acknowledged limitations ({best}); "
                f"counts: " + ", ".join(f"{cid}={counts[cid]}" for cid in remaining)
            )
            return kept, {}, explanation

        if criterion.method == TieBreakMethod.RANKED_ASSESSMENT:
            if assessment is None:
                return None
            missing = [cid for cid in remaining if cid not in assessment.scores]
            if missing:
                raise ValidationError(
                    f"Assessment for '{criterion.tag}' does not score {missing}",
                    record_ids=missing,
                )
            best_score = max(assessment.scores[cid] for cid in remaining)
            kept = [cid for cid in remaining if assessment.scores[cid] == best_score]
            explanation = (
                f"{', '.join(kept)} ranks highest on {criterion.tag} "
                f"({best_score:g}): {assessment.argument}"
            )
            return kept, {}, explanation

        if criterion.method == TieBreakMethod.EVALUATOR_JUDGEMENT:
            if judgement is None:
                return None
            if judgement.finalist_id not in remaining:
                raise ValidationError(
                    f"Evaluator judgement names '{judgement.finalist_id}', which is not among "
                    f"the remaining survivors {remaining}",
                    record_ids=[judgement.finalist_id],
                )
            reasons = {
                cid: reason
                for cid, reason in judgement.rejection_reasons.items()
                if reason and reason.strip()
            }
            return [judgement.finalist_id], reasons, judgement.rationale

        raise ValidationError(
            f"Unsupported tie-break method '{criterion.method}'", record_ids=[criterion.tag]
        )

    def _index_assessments(
        self, assessments: Sequence[CriterionAssessment]
    ) -> Dict[str, CriterionAssessment]:
        indexed: Dict[str, CriterionAssessment] = {}
        for assessment in assessments:
            criterion = self.catalogue.criterion(assessment.criterion)
            if criterion is None or criterion.method != TieBreakMethod.RANKED_ASSESSMENT:
                raise ValidationError(
                    f"Assessment names '{assessment.criterion}', which is not a ranked "
                    f"criterion of {self.catalogue.protocol_id}",
                    record_ids=[assessment.criterion],
                )
            if assessment.criterion in indexed:
                raise ValidationError(
                    f"Duplicate assessment for '{assessment.criterion}'",
                    record_ids=[assessment.criterion],
                )
            indexed[assessment.criterion] = assessment
        return indexed

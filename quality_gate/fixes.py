"""
Batch Fix Application

Applies the fixes proposed by a validation result one at a time and records
the outcome of each.
"""

import logging
from typing import Iterable, Optional

from quality_gate.models import (
    Fix, FixBatchResult, FixOutcome, FixStatus, ValidationResult,
)
from quality_gate.validators.base import BaseValidator


class FixApplier:
    """Applies fixes sequentially so that fixes to one file never interleave."""

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run
        self.logger = logging.getLogger(__name__)

    async def apply_fixes(
        self,
        validator: BaseValidator,
        result: ValidationResult,
        fixes: Optional[Iterable[Fix]] = None
    ) -> FixBatchResult:
        """
        Apply the fixes of a validation result with the validator that produced it.

        Args:
            validator: Validator whose fix actions the fixes use
            result: Validation result holding the issues the fixes address
            fixes: Subset of ``result.fixes`` to apply; all of them by default

        Returns:
            FixBatchResult with one outcome per fix, in application order
        """
        batch = FixBatchResult()
        selected = list(result.fixes if fixes is None else fixes)
        self.logger.info(f"Applying {len(selected)} fixes with {validator.name} (dry_run={self.dry_run})")

        for fix in selected:
            batch.outcomes.append(await self._apply_one(validator, result, fix))

        self.logger.info(
            f"Fixes finished: {len(batch.applied)} applied, "
            f"{len(batch.skipped)} skipped, {len(batch.failed)} failed"
        )
        return batch

    async def _apply_one(self, validator: BaseValidator, result: ValidationResult, fix: Fix) -> FixOutcome:
        issue = result.find_issue(fix.issue_id)
        if issue is None:
            return FixOutcome(fix, FixStatus.SKIPPED, f"No issue {fix.issue_id} in result")
        if not validator.can_auto_fix(issue):
            return FixOutcome(fix, FixStatus.SKIPPED, f"Issue {fix.issue_id} is not auto-fixable")
        if self.dry_run:
            self.logger.info(f"[dry run] Would apply {fix.description} for {fix.issue_id}")
            return FixOutcome(fix, FixStatus.SKIPPED, "Dry run")

        try:
            await validator.apply_fix(fix)
        except Exception as e:
            self.logger.error(f"Fix for {fix.issue_id} failed: {e}")
            return FixOutcome(fix, FixStatus.FAILED, str(e))

        return FixOutcome(fix, FixStatus.APPLIED, fix.description)

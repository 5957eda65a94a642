"""
Quality Gate Orchestrator

Runs the enabled gates against one module and combines their outcomes: the
module passes only if every enabled gate passes.
"""

import asyncio
import logging
from datetime import datetime
from typing import Dict, List, Optional

from quality_gate.config import GateConfig
from quality_gate.core.exceptions import ConfigurationError
from quality_gate.fixes import FixApplier
from quality_gate.models import GateName, GateReport, GateResult, ValidationTarget
from quality_gate.validators.base import BaseValidator
from quality_gate.validators.coverage import CoverageThresholdAnalyzer
from quality_gate.validators.coverage_data import CoverageDataset, load_coverage_dataset
from quality_gate.validators.patterns import DatabasePatternValidator
from quality_gate.validators.quality import DatabaseQualityValidator
from quality_gate.utils.logging import LogCategory


FIX_ORDER = (GateName.DATABASE_QUALITY, GateName.DATABASE_PATTERNS)


class GateOrchestrator:
    """Coordinates the database and coverage gates for a module."""

    def __init__(
        self,
        config: GateConfig,
        validators: Optional[Dict[GateName, BaseValidator]] = None,
        coverage_analyzer: Optional[CoverageThresholdAnalyzer] = None
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Gate configuration
            validators: Rule validators per gate; the built-in ones by default
            coverage_analyzer: Analyzer used by the coverage gate
        """
        self.config = config
        self.logger = logging.getLogger(__name__)
        if validators is None:
            validators = {
                GateName.DATABASE_PATTERNS: DatabasePatternValidator(),
                GateName.DATABASE_QUALITY: DatabaseQualityValidator(),
            }
        self.validators: Dict[GateName, BaseValidator] = validators
        self.coverage_analyzer = coverage_analyzer or CoverageThresholdAnalyzer()
        self.fix_applier = FixApplier(dry_run=config.dry_run)

    async def run_all_gates(
        self, target: ValidationTarget, coverage: Optional[CoverageDataset] = None
    ) -> GateReport:
        """
        Run every enabled gate concurrently.

        Args:
            target: Categorized module files
            coverage: Coverage dataset; loaded from ``config.coverage_file`` when omitted

        Returns:
            GateReport that passes iff every enabled gate passes
        """
        gates: List[GateName] = list(self.config.enabled_gates)
        self.logger.info(
            f"Running {len(gates)} gates for {target.module_path}",
            extra={"category": LogCategory.GATE}
        )

        results = await asyncio.gather(
            *(self.run_gate(gate, target, coverage, apply_fixes=False) for gate in gates),
            return_exceptions=True
        )

        report = GateReport(module_path=target.module_path)
        for gate, result in zip(gates, results):
            if isinstance(result, Exception):
                self.logger.error(f"Gate {gate.value} failed: {result}")
                result = GateResult(gate=gate, passed=False, error_message=str(result))
            report.gates.append(result)

        if self.config.auto_fix:
            # content fixes first: renames invalidate the paths they refer to
            for gate in FIX_ORDER:
                gate_result = report.get(gate)
                if gate_result is not None:
                    await self._apply_fixes(gate_result)

        status = "passed" if report.passed else f"failed ({', '.join(g.value for g in report.failed_gates)})"
        self.logger.info(f"Quality gates {status} for {target.module_path}", extra={"category": LogCategory.GATE})
        return report

    async def run_gate(
        self,
        gate: GateName,
        target: ValidationTarget,
        coverage: Optional[CoverageDataset] = None,
        apply_fixes: bool = True
    ) -> GateResult:
        """
        Run a single gate.

        Errors raised by the gate are reported as a failed GateResult. With
        ``auto_fix`` configured, the gate's fixes are applied afterwards
        unless ``apply_fixes`` is false.
        """
        gate = GateName(gate)
        start_time = datetime.now()

        try:
            if gate == GateName.TEST_COVERAGE:
                result = self._run_coverage_gate(coverage)
            else:
                result = await self._run_validator_gate(gate, target)
        except Exception as e:
            self.logger.error(f"Gate {gate.value} raised: {e}")
            result = GateResult(gate=gate, passed=False, error_message=str(e))

        result.execution_time = (datetime.now() - start_time).total_seconds()

        if apply_fixes and self.config.auto_fix:
            await self._apply_fixes(result)
        return result

    async def _apply_fixes(self, gate_result: GateResult) -> None:
        validator = self.validators.get(gate_result.gate)
        if validator is None or gate_result.result is None or not gate_result.result.fixes:
            return
        gate_result.fix_batch = await self.fix_applier.apply_fixes(validator, gate_result.result)

    async def _run_validator_gate(self, gate: GateName, target: ValidationTarget) -> GateResult:
        validator = self.validators.get(gate)
        if validator is None:
            raise ConfigurationError(f"No validator registered for gate {gate.value}")

        validation = await validator.validate(target)
        return GateResult(
            gate=gate,
            passed=validation.is_valid,
            result=validation,
            score=float(validation.score)
        )

    def _run_coverage_gate(self, coverage: Optional[CoverageDataset]) -> GateResult:
        if coverage is None:
            coverage = load_coverage_dataset(self.config.coverage_file)

        report = self.coverage_analyzer.analyze_coverage(coverage)
        validation = self.coverage_analyzer.validate_thresholds(report)
        return GateResult(
            gate=GateName.TEST_COVERAGE,
            passed=validation.is_valid,
            coverage=validation,
            score=validation.overall_score
        )

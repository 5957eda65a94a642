"""
Coverage Threshold Analyzer

Aggregates per-file coverage into layer coverage, validates it against the
fixed layer threshold table and points at the files most in need of tests.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from quality_gate.models import (
    COVERAGE_THRESHOLDS, LAYERS, METRICS, CoverageGap, CoverageMetric, CoverageMetrics,
    CoveragePercentage, CoverageReport, FileCoverage, Layer, LayerCoverage, LayerResult,
    Priority, Recommendation, TestSuggestion, TestType, ThresholdValidation, UncoveredCode,
    Violation, ViolationSeverity,
)
from quality_gate.reporters.markdown import render_coverage_report
from quality_gate.validators.coverage_data import FileCoverageData, MetricCounts


TEST_TYPES: Dict[Layer, TestType] = {
    Layer.DOMAIN: TestType.UNIT,
    Layer.APPLICATION: TestType.UNIT,
    Layer.INFRASTRUCTURE: TestType.INTEGRATION,
    Layer.PRESENTATION: TestType.E2E,
}

TEST_FILE_SUFFIXES: Dict[TestType, str] = {
    TestType.UNIT: ".spec.ts",
    TestType.INTEGRATION: ".integration.spec.ts",
    TestType.E2E: ".e2e.spec.ts",
}


def threshold_for(layer: Layer) -> float:
    return COVERAGE_THRESHOLDS[Layer(layer)]


def violation_severity(actual: float, required: float) -> ViolationSeverity:
    """CRITICAL more than 20 points below the threshold, MAJOR more than 10."""
    if actual < required - 20:
        return ViolationSeverity.CRITICAL
    if actual < required - 10:
        return ViolationSeverity.MAJOR
    return ViolationSeverity.MINOR


class CoverageThresholdAnalyzer:
    """Validates layer coverage against the fixed threshold table."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def analyze_coverage(self, dataset: Iterable[FileCoverageData]) -> CoverageReport:
        """
        Aggregate a per-file dataset into a coverage report.

        Args:
            dataset: Per-file coverage counts tagged by layer

        Returns:
            CoverageReport with per-layer sums, the derived overall metrics and
            per-file entries; an empty dataset yields an all-zero report
        """
        totals: Dict[Layer, Dict[CoverageMetric, MetricCounts]] = {
            layer: {metric: MetricCounts() for metric in METRICS} for layer in LAYERS
        }
        by_file: List[FileCoverage] = []

        for data in dataset:
            layer = Layer(data.layer)
            if layer not in totals:
                continue
            for metric in METRICS:
                counts = data.get(metric)
                totals[layer][metric].total += counts.total
                totals[layer][metric].covered += counts.covered
            by_file.append(FileCoverage(
                file_path=data.file_path,
                layer=layer,
                coverage=self._metrics_from_counts(
                    {metric: data.get(metric) for metric in METRICS}, threshold_for(layer)
                ),
                uncovered_lines=sorted(data.uncovered_lines)
            ))

        by_layer = LayerCoverage(**{
            layer.value: self._metrics_from_counts(totals[layer], threshold_for(layer))
            for layer in LAYERS
        })
        overall = self._overall_metrics(by_layer)

        self.logger.info(
            f"Analyzed coverage of {len(by_file)} files: "
            f"lines {overall.lines.percentage:.2f}%"
        )
        return CoverageReport(overall=overall, by_layer=by_layer, by_file=by_file)

    def _metrics_from_counts(
        self, counts: Dict[CoverageMetric, MetricCounts], threshold: float
    ) -> CoverageMetrics:
        return CoverageMetrics(**{
            metric.value: CoveragePercentage.from_counts(counts[metric].total, counts[metric].covered, threshold)
            for metric in METRICS
        })

    def _overall_metrics(self, by_layer: LayerCoverage) -> CoverageMetrics:
        counts: Dict[CoverageMetric, MetricCounts] = {}
        for metric in METRICS:
            counts[metric] = MetricCounts(
                total=sum(metrics.get(metric).total for _, metrics in by_layer.items()),
                covered=sum(metrics.get(metric).covered for _, metrics in by_layer.items()),
            )
        return self._metrics_from_counts(counts, threshold_for(Layer.OVERALL))

    def validate_thresholds(self, report: CoverageReport) -> ThresholdValidation:
        """
        Check every layer metric against its threshold.

        The overall layer is reported in ``layer_results`` but takes no part
        in ``violations`` or ``overall_score``.
        """
        layer_results: List[LayerResult] = []
        violations: List[Violation] = []

        for layer, metrics in report.by_layer.items():
            result = self._evaluate_layer(layer, metrics)
            layer_results.append(result)
            for gap in result.gaps:
                violations.append(Violation(
                    layer=layer,
                    metric=gap.metric,
                    actual=gap.actual,
                    required=gap.required,
                    gap=gap.gap,
                    severity=violation_severity(gap.actual, gap.required)
                ))

        overall_score = sum(result.score for result in layer_results) / len(layer_results)
        layer_results.append(self._evaluate_layer(Layer.OVERALL, report.overall))

        recommendations = self._generate_recommendations(violations) if violations else []
        is_valid = not violations

        if is_valid:
            self.logger.info(f"Coverage thresholds met (score {overall_score:.2f})")
        else:
            self.logger.warning(
                f"Coverage thresholds violated: {len(violations)} violations (score {overall_score:.2f})"
            )

        return ThresholdValidation(
            is_valid=is_valid,
            violations=violations,
            layer_results=layer_results,
            overall_score=overall_score,
            recommendations=recommendations
        )

    def _evaluate_layer(self, layer: Layer, metrics: CoverageMetrics) -> LayerResult:
        required = threshold_for(layer)
        gaps: List[CoverageGap] = []
        for metric, value in metrics.items():
            gap = max(0.0, required - value.percentage)
            if gap > 0:
                gaps.append(CoverageGap(metric=metric, actual=value.percentage, required=required, gap=gap))

        return LayerResult(
            layer=layer,
            meets_threshold=not gaps,
            gaps=gaps,
            score=metrics.threshold_score(),
            coverage=metrics
        )

    def _generate_recommendations(self, violations: List[Violation]) -> List[Recommendation]:
        by_layer: Dict[Layer, List[Violation]] = {}
        for violation in violations:
            by_layer.setdefault(violation.layer, []).append(violation)

        recommendations: List[Recommendation] = []
        for layer, layer_violations in by_layer.items():
            worst = max(layer_violations, key=lambda v: v.gap)
            severities = {v.severity for v in layer_violations}
            if ViolationSeverity.CRITICAL in severities:
                priority = Priority.HIGH
            elif ViolationSeverity.MAJOR in severities:
                priority = Priority.MEDIUM
            else:
                priority = Priority.LOW

            title_layer = layer.value.capitalize()
            test_type = TEST_TYPES[layer]
            recommendations.append(Recommendation(
                id=f"{layer.value}-coverage-gap",
                title=f"Coverage Gap in {title_layer} Layer",
                description=(
                    f"The {layer.value} layer is {worst.gap:.2f}% below its {worst.required:.0f}% "
                    f"threshold for {worst.metric.value}."
                ),
                priority=priority,
                layer=layer,
                metric=worst.metric,
                estimated_impact=round(worst.gap, 2),
                suggested_actions=[
                    f"Add {test_type.value} tests for uncovered {layer.value} components",
                    f"Focus on {worst.metric.value} coverage first",
                    "Review and improve existing test quality",
                ]
            ))
        return recommendations

    def identify_uncovered_code(self, report: CoverageReport) -> List[UncoveredCode]:
        """
        List files with uncovered lines, most urgent first.

        Returns:
            One entry per file with at least one uncovered line, sorted by
            priority (high first) and then by ascending coverage
        """
        uncovered: List[UncoveredCode] = []
        for file_coverage in report.by_file:
            count = file_coverage.uncovered_count
            if count == 0:
                continue

            aggregate = file_coverage.aggregate_percentage
            uncovered.append(UncoveredCode(
                file_path=file_coverage.file_path,
                layer=file_coverage.layer,
                uncovered_lines=list(file_coverage.uncovered_lines),
                uncovered_count=count,
                suggested_tests=self._suggest_tests(file_coverage.file_path, file_coverage.layer, count),
                priority=self._priority(file_coverage.layer, aggregate),
                coverage=aggregate
            ))

        uncovered.sort(key=lambda entry: (-entry.priority.rank, entry.coverage))
        return uncovered

    @staticmethod
    def _priority(layer: Layer, aggregate: float) -> Priority:
        threshold = threshold_for(layer)
        if layer == Layer.DOMAIN or aggregate < threshold / 2:
            return Priority.HIGH
        if aggregate < threshold:
            return Priority.MEDIUM
        return Priority.LOW

    @staticmethod
    def _suggest_tests(file_path: str, layer: Layer, uncovered_count: int) -> List[TestSuggestion]:
        source = Path(file_path)
        base_name = source.name[:-3] if source.name.endswith('.ts') else source.stem
        test_type = TEST_TYPES[layer]
        test_file_path = str(source.parent / '__tests__' / f"{base_name}{TEST_FILE_SUFFIXES[test_type]}")

        if layer == Layer.DOMAIN:
            description = f"Add unit tests for {base_name} domain logic"
            effort = Priority.HIGH if uncovered_count > 10 else Priority.MEDIUM
        elif layer == Layer.APPLICATION:
            description = f"Add unit tests for {base_name} handlers"
            effort = Priority.MEDIUM
        elif layer == Layer.INFRASTRUCTURE:
            description = f"Add integration tests for {base_name}"
            effort = Priority.HIGH
        else:
            description = f"Add e2e tests for {base_name} endpoints"
            effort = Priority.MEDIUM

        return [TestSuggestion(
            type=test_type,
            description=description,
            test_file_path=test_file_path,
            estimated_effort=effort
        )]

    def generate_coverage_report(
        self, report: CoverageReport, validation: Optional[ThresholdValidation] = None
    ) -> str:
        """Render the report and its threshold validation as Markdown."""
        if validation is None:
            validation = self.validate_thresholds(report)
        return render_coverage_report(report, validation)

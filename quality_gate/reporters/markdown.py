"""
Markdown Coverage Report

Renders a coverage report and its threshold validation as Markdown.
"""

from typing import List

from quality_gate.models import (
    COVERAGE_THRESHOLDS, CoverageMetrics, CoverageReport, Layer, ThresholdValidation,
)


class MarkdownReportGenerator:
    """Generator for Markdown coverage reports."""

    @property
    def file_extension(self) -> str:
        return '.md'

    def generate_coverage_report(self, report: CoverageReport, validation: ThresholdValidation) -> str:
        """
        Build the Markdown text for a coverage report.

        Args:
            report: Aggregated coverage
            validation: Threshold validation of ``report``

        Returns:
            Markdown with overall, per-layer, violation and recommendation sections
        """
        sections = [
            self._create_header(report),
            self._create_overall_section(report, validation),
            self._create_layers_section(report),
        ]

        if validation.violations:
            sections.append(self._create_violations_section(validation))

        if validation.recommendations:
            sections.append(self._create_recommendations_section(validation))

        return '\n\n'.join(sections) + '\n'

    def _create_header(self, report: CoverageReport) -> str:
        return f"# Test Coverage Report\n\n*Generated: {report.timestamp.isoformat()}*"

    def _create_overall_section(self, report: CoverageReport, validation: ThresholdValidation) -> str:
        status = "✅ Passed" if validation.is_valid else "❌ Failed"
        return (
            "## Overall Coverage\n\n"
            f"**Status**: {status}\n"
            f"**Score**: {validation.overall_score:.2f}\n\n"
            + self._create_metrics_table(report.overall, COVERAGE_THRESHOLDS[Layer.OVERALL])
        )

    def _create_layers_section(self, report: CoverageReport) -> str:
        content = ["## Coverage by Layer"]
        for layer, metrics in report.by_layer.items():
            content.append(
                f"### {layer.value.capitalize()} Layer\n\n"
                + self._create_metrics_table(metrics, COVERAGE_THRESHOLDS[layer])
            )
        return '\n\n'.join(content)

    def _create_metrics_table(self, metrics: CoverageMetrics, threshold: float) -> str:
        rows = [
            "| Metric | Coverage | Threshold | Status |",
            "|--------|----------|-----------|--------|",
        ]
        for metric, value in metrics.items():
            glyph = '✅' if value.meets_threshold else '❌'
            rows.append(
                f"| {metric.value.capitalize()} | {value.percentage:.2f}% | {threshold:.0f}% | {glyph} |"
            )
        return '\n'.join(rows)

    def _create_violations_section(self, validation: ThresholdValidation) -> str:
        lines = ["## Coverage Violations", ""]
        for violation in validation.violations:
            lines.append(
                f"- **{violation.layer.value}** {violation.metric.value}: "
                f"{violation.actual:.2f}% (required: {violation.required:.0f}%, "
                f"gap: {violation.gap:.2f}%, severity: {violation.severity.value})"
            )
        return '\n'.join(lines)

    def _create_recommendations_section(self, validation: ThresholdValidation) -> str:
        content: List[str] = ["## Recommendations"]
        for recommendation in validation.recommendations:
            block = [
                f"### {recommendation.title}",
                "",
                recommendation.description,
                "",
                f"**Priority:** {recommendation.priority.value}",
                f"**Estimated Impact:** {recommendation.estimated_impact:.2f}%",
            ]
            if recommendation.suggested_actions:
                block.extend(["", "**Suggested Actions:**"])
                block.extend(f"- {action}" for action in recommendation.suggested_actions)
            content.append('\n'.join(block))
        return '\n\n'.join(content)


def render_coverage_report(report: CoverageReport, validation: ThresholdValidation) -> str:
    """Render ``report`` with the default Markdown generator."""
    return MarkdownReportGenerator().generate_coverage_report(report, validation)

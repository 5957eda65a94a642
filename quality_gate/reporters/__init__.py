"""
Report Generation Modules

Contains the Markdown coverage report generator.
"""

from quality_gate.reporters.markdown import MarkdownReportGenerator, render_coverage_report

__all__ = [
    "MarkdownReportGenerator",
    "render_coverage_report",
]

"""
Validation Modules

Contains the rule validators for migrations, seeds and entities and the
coverage threshold analyzer.
"""

from quality_gate.validators.base import BaseValidator, FileKind, IssueCollector
from quality_gate.validators.patterns import DatabasePatternValidator, PatternFixAction
from quality_gate.validators.quality import DatabaseQualityValidator, QualityFixAction
from quality_gate.validators.coverage import CoverageThresholdAnalyzer
from quality_gate.validators.coverage_data import FileCoverageData, MetricCounts, load_coverage_dataset

__all__ = [
    "BaseValidator",
    "FileKind",
    "IssueCollector",
    "DatabasePatternValidator",
    "PatternFixAction",
    "DatabaseQualityValidator",
    "QualityFixAction",
    "CoverageThresholdAnalyzer",
    "FileCoverageData",
    "MetricCounts",
    "load_coverage_dataset",
]

"""
Core Data Models for Module Quality Gates

Contains the issue/fix result model, the coverage data structures and the
gate report types shared by validators, the coverage analyzer and the
orchestrator.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple


class IssueSeverity(str, Enum):
    """Severity levels for issues found during validation."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class IssueCategory(str, Enum):
    """Rule families an issue can belong to."""
    STRUCTURE = "structure"      # naming, missing file, missing method
    CONTENT = "content"          # pattern present/absent
    RELATIONAL = "relational"    # constraints, indexes, soft delete
    QUALITY = "quality"          # entity decorators, timestamps


# Deductions used for the advisory score of a validation result
SEVERITY_WEIGHTS: Dict[IssueSeverity, int] = {
    IssueSeverity.ERROR: 10,
    IssueSeverity.WARNING: 5,
    IssueSeverity.INFO: 1,
}


@dataclass
class Issue:
    """One detected rule violation."""
    id: str
    message: str
    severity: IssueSeverity
    category: IssueCategory
    rule: str
    location: str = ""
    auto_fixable: bool = False


@dataclass
class Fix:
    """An automated remediation proposed for an auto-fixable issue."""
    issue_id: str
    description: str
    action: Enum
    parameters: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Requirement:
    """Static catalog entry describing one rule a validator enforces."""
    id: str
    name: str
    description: str
    category: IssueCategory
    severity: IssueSeverity
    auto_fixable: bool = False


@dataclass
class ValidationTarget:
    """Categorized file paths of one module, produced by external discovery."""
    module_path: str
    migration_paths: List[str] = field(default_factory=list)
    seed_paths: List[str] = field(default_factory=list)
    entity_paths: List[str] = field(default_factory=list)


@dataclass
class ValidationResult:
    """Snapshot of the issues and fixes produced by one validation run."""
    is_valid: bool
    issues: List[Issue] = field(default_factory=list)
    fixes: List[Fix] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def score(self) -> int:
        """Advisory 0-100 score; does not influence ``is_valid``."""
        deductions = sum(SEVERITY_WEIGHTS[issue.severity] for issue in self.issues)
        return max(0, 100 - deductions)

    @property
    def errors(self) -> List[Issue]:
        return [issue for issue in self.issues if issue.severity == IssueSeverity.ERROR]

    @property
    def warnings(self) -> List[Issue]:
        return [issue for issue in self.issues if issue.severity == IssueSeverity.WARNING]

    def issues_for_rule(self, rule: str) -> List[Issue]:
        """All issues raised by a given rule."""
        return [issue for issue in self.issues if issue.rule == rule]

    def find_issue(self, issue_id: str) -> Optional[Issue]:
        """First issue with the given identity, if any."""
        for issue in self.issues:
            if issue.id == issue_id:
                return issue
        return None


# ---------------------------------------------------------------------------
# Coverage
# ---------------------------------------------------------------------------


class Layer(str, Enum):
    """Architectural layers with their own coverage thresholds."""
    DOMAIN = "domain"
    APPLICATION = "application"
    INFRASTRUCTURE = "infrastructure"
    PRESENTATION = "presentation"
    OVERALL = "overall"


class CoverageMetric(str, Enum):
    """Coverage metrics tracked per layer and per file."""
    LINES = "lines"
    FUNCTIONS = "functions"
    BRANCHES = "branches"
    STATEMENTS = "statements"


LAYERS: Tuple[Layer, ...] = (
    Layer.DOMAIN,
    Layer.APPLICATION,
    Layer.INFRASTRUCTURE,
    Layer.PRESENTATION,
)

METRICS: Tuple[CoverageMetric, ...] = (
    CoverageMetric.LINES,
    CoverageMetric.FUNCTIONS,
    CoverageMetric.BRANCHES,
    CoverageMetric.STATEMENTS,
)

# Fixed threshold table, identical across the four metrics of a layer
COVERAGE_THRESHOLDS: Dict[Layer, float] = {
    Layer.DOMAIN: 95.0,
    Layer.APPLICATION: 90.0,
    Layer.INFRASTRUCTURE: 85.0,
    Layer.PRESENTATION: 85.0,
    Layer.OVERALL: 90.0,
}


class ViolationSeverity(str, Enum):
    """Severity tiers of a coverage threshold violation."""
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"


class Priority(str, Enum):
    """Priority of uncovered code and coverage recommendations."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {"high": 3, "medium": 2, "low": 1}[self.value]


class TestType(str, Enum):
    """Kinds of tests suggested for uncovered code."""
    __test__ = False  # keep pytest from collecting this enum

    UNIT = "unit"
    INTEGRATION = "integration"
    E2E = "e2e"


@dataclass
class CoveragePercentage:
    """Coverage of a single metric."""
    total: int
    covered: int
    percentage: float
    threshold: float

    @property
    def meets_threshold(self) -> bool:
        return self.percentage >= self.threshold

    @classmethod
    def from_counts(cls, total: int, covered: int, threshold: float) -> "CoveragePercentage":
        """Build a percentage from raw counts, clamped to [0, 100]."""
        total = max(0, int(total))
        covered = max(0, min(int(covered), total))
        percentage = (covered / total) * 100 if total > 0 else 0.0
        return cls(total=total, covered=covered, percentage=percentage, threshold=threshold)


@dataclass
class CoverageMetrics:
    """The four coverage metrics of a file, a layer or the whole module."""
    lines: CoveragePercentage
    functions: CoveragePercentage
    branches: CoveragePercentage
    statements: CoveragePercentage

    def get(self, metric: CoverageMetric) -> CoveragePercentage:
        return getattr(self, CoverageMetric(metric).value)

    def items(self) -> Iterator[Tuple[CoverageMetric, CoveragePercentage]]:
        for metric in METRICS:
            yield metric, self.get(metric)

    def mean_percentage(self) -> float:
        """Unweighted mean of the four metric percentages."""
        return sum(value.percentage for _, value in self.items()) / len(METRICS)

    def threshold_score(self) -> float:
        """
        Mean of the four metrics scored against their thresholds.

        Each metric scores ``min(100, percentage / threshold * 100)``, so a
        layer exactly at its thresholds scores 100 and an uncovered one 0.
        """
        total = 0.0
        for _, value in self.items():
            if value.threshold <= 0:
                total += 100.0
            else:
                total += min(100.0, value.percentage / value.threshold * 100)
        return total / len(METRICS)

    @classmethod
    def empty(cls, threshold: float) -> "CoverageMetrics":
        return cls(**{
            metric.value: CoveragePercentage.from_counts(0, 0, threshold)
            for metric in METRICS
        })


@dataclass
class LayerCoverage:
    """Coverage metrics for each of the four layers."""
    domain: CoverageMetrics
    application: CoverageMetrics
    infrastructure: CoverageMetrics
    presentation: CoverageMetrics

    def get(self, layer: Layer) -> CoverageMetrics:
        return getattr(self, Layer(layer).value)

    def items(self) -> Iterator[Tuple[Layer, CoverageMetrics]]:
        for layer in LAYERS:
            yield layer, self.get(layer)


@dataclass
class FileCoverage:
    """Coverage of one source file, tagged with its layer."""
    file_path: str
    layer: Layer
    coverage: CoverageMetrics
    uncovered_lines: List[int] = field(default_factory=list)

    @property
    def uncovered_count(self) -> int:
        if self.uncovered_lines:
            return len(self.uncovered_lines)
        lines = self.coverage.lines
        return max(0, lines.total - lines.covered)

    @property
    def aggregate_percentage(self) -> float:
        return self.coverage.mean_percentage()


@dataclass
class CoverageReport:
    """Coverage of a module aggregated per layer and per file."""
    overall: CoverageMetrics
    by_layer: LayerCoverage
    by_file: List[FileCoverage] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class CoverageGap:
    """A failing metric of one layer."""
    metric: CoverageMetric
    actual: float
    required: float
    gap: float


@dataclass
class Violation:
    """A (layer, metric) pair whose coverage is below its threshold."""
    layer: Layer
    metric: CoverageMetric
    actual: float
    required: float
    gap: float
    severity: ViolationSeverity


@dataclass
class LayerResult:
    """Threshold evaluation of one layer."""
    layer: Layer
    meets_threshold: bool
    gaps: List[CoverageGap]
    score: float
    coverage: Optional[CoverageMetrics] = None


@dataclass
class Recommendation:
    """Suggested follow-up for a layer with coverage violations."""
    id: str
    title: str
    description: str
    priority: Priority
    layer: Layer
    metric: CoverageMetric
    estimated_impact: float
    suggested_actions: List[str] = field(default_factory=list)


@dataclass
class ThresholdValidation:
    """Outcome of validating a coverage report against the threshold table."""
    is_valid: bool
    violations: List[Violation]
    layer_results: List[LayerResult]
    overall_score: float
    recommendations: List[Recommendation] = field(default_factory=list)

    def layer_result(self, layer: Layer) -> Optional[LayerResult]:
        for result in self.layer_results:
            if result.layer == layer:
                return result
        return None


@dataclass
class TestSuggestion:
    """A test that would exercise uncovered code."""
    __test__ = False

    type: TestType
    description: str
    test_file_path: str
    estimated_effort: Priority


@dataclass
class UncoveredCode:
    """A file with uncovered lines and the tests suggested for it."""
    file_path: str
    layer: Layer
    uncovered_lines: List[int]
    uncovered_count: int
    suggested_tests: List[TestSuggestion]
    priority: Priority
    coverage: float


# ---------------------------------------------------------------------------
# Fix application
# ---------------------------------------------------------------------------


class FixStatus(str, Enum):
    """Outcome of applying one fix."""
    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class FixOutcome:
    """Record of one fix applied (or not) by the fix applier."""
    fix: Fix
    status: FixStatus
    message: str = ""


@dataclass
class FixBatchResult:
    """Results of applying a batch of fixes."""
    outcomes: List[FixOutcome] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)

    def _with_status(self, status: FixStatus) -> List[FixOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status == status]

    @property
    def applied(self) -> List[FixOutcome]:
        return self._with_status(FixStatus.APPLIED)

    @property
    def skipped(self) -> List[FixOutcome]:
        return self._with_status(FixStatus.SKIPPED)

    @property
    def failed(self) -> List[FixOutcome]:
        return self._with_status(FixStatus.FAILED)

    @property
    def success(self) -> bool:
        return not self.failed


# ---------------------------------------------------------------------------
# Gates
# ---------------------------------------------------------------------------


class GateName(str, Enum):
    """Named validation categories that must pass independently."""
    DATABASE_PATTERNS = "database_patterns"
    DATABASE_QUALITY = "database_quality"
    TEST_COVERAGE = "test_coverage"


@dataclass
class GateResult:
    """Outcome of one gate."""
    gate: GateName
    passed: bool
    result: Optional[ValidationResult] = None
    coverage: Optional[ThresholdValidation] = None
    score: Optional[float] = None
    execution_time: float = 0.0
    error_message: Optional[str] = None
    fix_batch: Optional[FixBatchResult] = None


@dataclass
class GateReport:
    """Combined pass/fail outcome of every enabled gate for one module."""
    module_path: str
    gates: List[GateResult] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def passed(self) -> bool:
        return all(gate.passed for gate in self.gates)

    @property
    def failed_gates(self) -> List[GateName]:
        return [gate.gate for gate in self.gates if not gate.passed]

    @property
    def automated_fixes(self) -> List[Fix]:
        fixes: List[Fix] = []
        for gate in self.gates:
            if gate.result is not None:
                fixes.extend(gate.result.fixes)
        return fixes

    def get(self, gate: GateName) -> Optional[GateResult]:
        for result in self.gates:
            if result.gate == gate:
                return result
        return None

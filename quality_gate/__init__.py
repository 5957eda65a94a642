"""
Module Quality Gates

A rule-based quality gate engine that checks migrations, seeds and
persistence entities of a module, validates its test coverage per
architectural layer and applies the automated fixes it can.
"""

__version__ = "0.1.0"

from quality_gate.config import GateConfig, configure_logging, load_config
from quality_gate.models import (
    Fix,
    GateName,
    GateReport,
    Issue,
    IssueCategory,
    IssueSeverity,
    ValidationResult,
    ValidationTarget,
)
from quality_gate.orchestrator import GateOrchestrator

__all__ = [
    "GateConfig",
    "configure_logging",
    "load_config",
    "Fix",
    "GateName",
    "GateReport",
    "Issue",
    "IssueCategory",
    "IssueSeverity",
    "ValidationResult",
    "ValidationTarget",
    "GateOrchestrator",
]

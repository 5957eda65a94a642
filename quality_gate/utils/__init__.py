"""
Utilities module for the quality gate engine.
"""

from quality_gate.utils.logging import (
    setup_logging,
    get_logger,
    LogCategory,
    LogEntry,
    StructuredFormatter,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "LogCategory",
    "LogEntry",
    "StructuredFormatter",
]

"""
Core module for the quality gate engine.

This module contains the exception hierarchy used throughout the package.
"""

from quality_gate.core.exceptions import (
    QualityGateError,
    ConfigurationError,
    ValidationError,
    FileAccessError,
    CoverageDataError,
    FixError,
    UnknownFixActionError,
)

__all__ = [
    "QualityGateError",
    "ConfigurationError",
    "ValidationError",
    "FileAccessError",
    "CoverageDataError",
    "FixError",
    "UnknownFixActionError",
]

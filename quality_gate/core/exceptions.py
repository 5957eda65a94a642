"""
Custom exceptions for the quality gate engine.

This module defines the exception classes raised by validators, the
coverage analyzer, the fix applier and the configuration layer.
"""

from typing import Any, Dict, List, Optional


class QualityGateError(Exception):
    """Base exception class for quality gate errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}


class ConfigurationError(QualityGateError):
    """Raised when there's an error in configuration."""
    pass


class ValidationError(QualityGateError):
    """Raised when a validation run cannot be completed."""

    def __init__(
        self,
        message: str,
        failed_checks: Optional[List[str]] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.failed_checks = failed_checks or []


class FileAccessError(QualityGateError):
    """Raised when a source file cannot be read or written."""

    def __init__(self, message: str, file_path: str, **kwargs):
        super().__init__(message, **kwargs)
        self.file_path = file_path


class CoverageDataError(QualityGateError):
    """Raised when a coverage dataset is malformed."""
    pass


class FixError(QualityGateError):
    """Raised when an automated fix cannot be applied."""
    pass


class UnknownFixActionError(FixError):
    """Raised when a fix names an action the validator does not handle."""

    def __init__(self, action: Any, validator: str):
        super().__init__(
            f"Unknown fix action for {validator}: {action}",
            details={"action": str(action), "validator": validator}
        )
        self.action = action
        self.validator = validator

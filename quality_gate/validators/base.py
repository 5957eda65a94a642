"""
Base Validator Interface

Defines the issue accumulator and the common interface shared by every
rule validator: per-file rule evaluation, fix dispatch and file helpers.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, Tuple, Type

from quality_gate.core.exceptions import FileAccessError, UnknownFixActionError, ValidationError
from quality_gate.models import (
    Fix, Issue, IssueCategory, IssueSeverity, Requirement, ValidationResult,
    ValidationTarget,
)


FixHandler = Callable[[Dict[str, Any]], Awaitable[None]]


class FileKind(str, Enum):
    """Kinds of module files a validator can be asked to check."""
    MIGRATION = "migration"
    SEED = "seed"
    ENTITY = "entity"


class IssueCollector:
    """
    Accumulates issues and fixes for a single validation run.

    A collector is created for every ``validate()`` call, so concurrent runs
    on the same validator instance never share issues.
    """

    def __init__(self):
        self.issues: List[Issue] = []
        self.fixes: List[Fix] = []

    def reset(self) -> None:
        """Clear both accumulators."""
        self.issues = []
        self.fixes = []

    def add_issue(
        self,
        id: str,
        message: str,
        severity: IssueSeverity,
        category: IssueCategory,
        rule: str,
        location: Optional[str] = None,
        auto_fixable: bool = False
    ) -> Issue:
        issue = Issue(
            id=id,
            message=message,
            severity=severity,
            category=category,
            rule=rule,
            location=location or "",
            auto_fixable=auto_fixable
        )
        self.issues.append(issue)
        return issue

    def add_fix(
        self,
        issue_id: str,
        description: str,
        action: Enum,
        parameters: Optional[Dict[str, Any]] = None
    ) -> Fix:
        fix = Fix(
            issue_id=issue_id,
            description=description,
            action=action,
            parameters=dict(parameters or {})
        )
        self.fixes.append(fix)
        return fix

    def has_errors(self) -> bool:
        return any(issue.severity == IssueSeverity.ERROR for issue in self.issues)

    def create_result(self, is_valid: bool, metadata: Optional[Dict[str, Any]] = None) -> ValidationResult:
        """
        Snapshot the accumulated issues and fixes.

        The accumulator is left untouched; the returned result owns copies
        of the issue and fix lists.
        """
        return ValidationResult(
            is_valid=is_valid,
            issues=list(self.issues),
            fixes=list(self.fixes),
            metadata=dict(metadata or {})
        )


class BaseValidator(ABC):
    """Abstract base class for all rule validators."""

    # Category used for synthetic issues raised when rule evaluation fails
    default_category: IssueCategory = IssueCategory.CONTENT
    # Closed set of fix actions this validator can apply
    fix_action_type: Optional[Type[Enum]] = None
    # File kinds this validator evaluates, in evaluation order
    file_kinds: Tuple[FileKind, ...] = (FileKind.MIGRATION, FileKind.SEED, FileKind.ENTITY)

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__module__)

    @property
    def name(self) -> str:
        """Return the validator name."""
        return self.__class__.__name__

    @abstractmethod
    def get_requirements(self) -> List[Requirement]:
        """
        Return the static catalog of rules this validator enforces.

        Returns:
            List of requirements; the list never shrinks between releases
        """
        pass

    @abstractmethod
    async def validate_file(self, collector: IssueCollector, kind: FileKind, file_path: str) -> None:
        """
        Run the validator's rule list against one file.

        Args:
            collector: Accumulator of the current validation run
            kind: Which kind of module file ``file_path`` is
            file_path: Path to the file
        """
        pass

    @abstractmethod
    def _fix_handlers(self) -> Dict[Enum, FixHandler]:
        """Map every member of ``fix_action_type`` to its handler."""
        pass

    async def validate(self, target: ValidationTarget) -> ValidationResult:
        """
        Validate every file of the target and return the collected result.

        Exceptions raised while evaluating a file are turned into a
        ``validation-error`` issue and evaluation continues with the next file.

        Args:
            target: Categorized file paths of the module

        Returns:
            ValidationResult with ``is_valid`` false iff an ERROR issue exists
        """
        collector = IssueCollector()
        collector.reset()

        try:
            files = list(self.iter_files(target))
        except Exception as e:
            self.logger.error(f"{self.name} could not read validation target: {e}")
            self._record_failure(collector, 'validation-error', target.module_path, e)
            return collector.create_result(False, {"error": str(e), "total_issues": len(collector.issues)})

        self.logger.debug(f"{self.name} validating {len(files)} files in {target.module_path}")

        for kind, file_path in files:
            try:
                await self.validate_file(collector, kind, file_path)
            except Exception as e:
                self.logger.error(f"{self.name} failed on {file_path}: {e}")
                self._record_failure(
                    collector, f"validation-error-{Path(file_path).name}", file_path, e
                )

        is_valid = not collector.has_errors()
        metadata = self.build_metadata(target, collector)

        self.logger.info(
            f"{self.name} finished for {target.module_path}: "
            f"{len(collector.issues)} issues, valid={is_valid}"
        )
        return collector.create_result(is_valid, metadata)

    def iter_files(self, target: ValidationTarget) -> Iterator[Tuple[FileKind, str]]:
        """
        Yield ``(kind, path)`` pairs for the file kinds this validator checks.

        Raises:
            ValidationError: If a checked path field is not a list of paths
        """
        paths_by_kind = {
            FileKind.MIGRATION: ("migration_paths", target.migration_paths),
            FileKind.SEED: ("seed_paths", target.seed_paths),
            FileKind.ENTITY: ("entity_paths", target.entity_paths or []),
        }
        failed_checks = [
            field_name for kind, (field_name, paths) in paths_by_kind.items()
            if kind in self.file_kinds and not isinstance(paths, (list, tuple))
        ]
        if failed_checks:
            raise ValidationError(
                f"Target {target.module_path} has non-list path fields: {', '.join(failed_checks)}",
                failed_checks=failed_checks
            )

        for kind in self.file_kinds:
            for file_path in paths_by_kind[kind][1]:
                yield kind, str(file_path)

    def build_metadata(self, target: ValidationTarget, collector: IssueCollector) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {}
        if FileKind.MIGRATION in self.file_kinds:
            metadata["migrations_checked"] = len(target.migration_paths)
        if FileKind.SEED in self.file_kinds:
            metadata["seeds_checked"] = len(target.seed_paths)
        if FileKind.ENTITY in self.file_kinds:
            metadata["entities_checked"] = len(target.entity_paths or [])
        metadata["total_issues"] = len(collector.issues)
        return metadata

    def _record_failure(self, collector: IssueCollector, issue_id: str, location: str, error: Exception) -> None:
        collector.add_issue(
            issue_id,
            f"{self.name} failed: {error}",
            IssueSeverity.ERROR,
            self.default_category,
            'validation-error',
            location
        )

    def can_auto_fix(self, issue: Issue) -> bool:
        return issue.auto_fixable

    async def apply_fix(self, fix: Fix) -> None:
        """
        Apply one fix produced by this validator.

        Raises:
            UnknownFixActionError: If the action is not one of this validator's
            FileAccessError: If the target file cannot be read or written
        """
        action = self._resolve_action(fix.action)
        handler = self._fix_handlers().get(action)
        if handler is None:
            raise UnknownFixActionError(fix.action, self.name)

        self.logger.info(f"Applying {action.value} for {fix.issue_id}")
        await handler(fix.parameters)

    def _resolve_action(self, action: Any) -> Enum:
        if self.fix_action_type is None:
            raise UnknownFixActionError(action, self.name)
        if isinstance(action, Enum) and not isinstance(action, self.fix_action_type):
            raise UnknownFixActionError(action, self.name)
        try:
            return self.fix_action_type(action)
        except ValueError:
            raise UnknownFixActionError(action, self.name) from None

    # File helpers

    def file_exists(self, file_path: str) -> bool:
        """Return True if the path resolves to a regular file; never raises."""
        try:
            return Path(file_path).is_file()
        except OSError:
            return False

    def read_file(self, file_path: str) -> str:
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise FileAccessError(f"Failed to read file {file_path}: {e}", str(file_path)) from e

    def write_file(self, file_path: str, content: str) -> None:
        path = Path(file_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            raise FileAccessError(f"Failed to write file {file_path}: {e}", str(file_path)) from e

"""
Database Pattern Validator

Validates naming conventions and structural completeness of migration and
seed files:
- Migration file naming (timestamp-Description.ts)
- Seed file naming (timestamp-seed-module-entity.ts)
- Migration structure (up/down methods)
- Hardcoded database identifiers and environment variable usage
- Seed error handling, idempotency and logging
"""

import os
import re
import time
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from quality_gate.core.exceptions import FileAccessError, FixError
from quality_gate.models import IssueCategory, IssueSeverity, Requirement
from quality_gate.validators.base import BaseValidator, FileKind, FixHandler, IssueCollector


MIGRATION_NAME_PATTERN = re.compile(r'^\d{13}-[A-Z][a-zA-Z0-9]*\.ts$')
SEED_NAME_PATTERN = re.compile(r'^\d{13}-seed-[a-z-]+-[a-z-]+\.ts$')

MIGRATION_HARDCODED_PATTERNS = [
    re.compile(r'CREATE DATABASE\s+["`\']?[a-zA-Z_][a-zA-Z0-9_]*["`\']?', re.IGNORECASE),
    re.compile(r'\bUSE\s+["`\']?[a-zA-Z_][a-zA-Z0-9_]*["`\']?', re.IGNORECASE),
    re.compile(r'telemetryflow_db', re.IGNORECASE),
    re.compile(r'postgres_db', re.IGNORECASE),
    re.compile(r"'localhost'", re.IGNORECASE),
    re.compile(r"'127\.0\.0\.1'", re.IGNORECASE),
]

SEED_HARDCODED_PATTERNS = [
    re.compile(r'telemetryflow_db', re.IGNORECASE),
    re.compile(r'postgres_db', re.IGNORECASE),
    re.compile(r"'localhost'", re.IGNORECASE),
    re.compile(r"'127\.0\.0\.1'", re.IGNORECASE),
]

ENV_VAR_PATTERNS = [
    re.compile(r'process\.env\.'),
    re.compile(r'\$\{[A-Z_]+\}'),
]

ENV_SENSITIVE_KEYWORDS = ('CONNECTION', 'HOST', 'PORT')

SEED_IDEMPOTENCY_PATTERNS = [
    re.compile(r'findOne.*where', re.IGNORECASE),
    re.compile(r'findOneBy', re.IGNORECASE),
    re.compile(r'IF NOT EXISTS', re.IGNORECASE),
    re.compile(r'ON CONFLICT', re.IGNORECASE),
    re.compile(r'UPSERT', re.IGNORECASE),
]

_TIMESTAMP_PREFIX = re.compile(r'^(\d{13})')
_LEADING_DIGITS = re.compile(r'^\d+-?')


class PatternFixAction(str, Enum):
    """Fix actions the pattern validator can apply."""
    RENAME_MIGRATION_FILE = "rename-migration-file"
    RENAME_SEED_FILE = "rename-seed-file"


def _current_timestamp() -> str:
    return str(int(time.time() * 1000))


def _strip_extension(name: str) -> str:
    return name[:-3] if name.endswith('.ts') else os.path.splitext(name)[0]


def suggest_migration_name(current_name: str, timestamp: Optional[str] = None) -> str:
    """
    Derive a conforming migration file name from a non-conforming one.

    A leading 13-digit timestamp is kept; otherwise ``timestamp`` (or the
    current epoch in milliseconds) is used. The remainder is PascalCased.
    """
    match = _TIMESTAMP_PREFIX.match(current_name)
    stamp = match.group(1) if match else (timestamp or _current_timestamp())

    remainder = _LEADING_DIGITS.sub('', _strip_extension(current_name))
    parts = [part for part in re.split(r'[^a-zA-Z0-9]+', remainder) if part]
    description = ''.join(part[0].upper() + part[1:] for part in parts)
    if not description or not description[0].isalpha():
        description = f"Migration{description}"

    return f"{stamp}-{description}.ts"


def suggest_seed_name(current_name: str, timestamp: Optional[str] = None) -> str:
    """
    Derive a conforming seed file name from a non-conforming one.

    The result follows ``<timestamp>-seed-<module>-<entity>.ts``; missing
    parts default to ``module`` and ``entity``.
    """
    match = _TIMESTAMP_PREFIX.match(current_name)
    stamp = match.group(1) if match else (timestamp or _current_timestamp())

    remainder = _LEADING_DIGITS.sub('', _strip_extension(current_name))
    remainder = re.sub(r'^seed[-_]?', '', remainder, flags=re.IGNORECASE)
    # camelCase and snake_case to kebab-case
    remainder = re.sub(r'([a-z])([A-Z])', r'\1-\2', remainder).lower()
    parts = [part for part in re.split(r'[^a-z]+', remainder) if part]

    module = parts[0] if parts else 'module'
    entity = '-'.join(parts[1:]) if len(parts) > 1 else 'entity'
    return f"{stamp}-seed-{module}-{entity}.ts"


class DatabasePatternValidator(BaseValidator):
    """Validator for migration/seed naming and structural completeness."""

    default_category = IssueCategory.STRUCTURE
    fix_action_type = PatternFixAction
    file_kinds = (FileKind.MIGRATION, FileKind.SEED)

    async def validate_file(self, collector: IssueCollector, kind: FileKind, file_path: str) -> None:
        if kind == FileKind.MIGRATION:
            self._validate_migration_file(collector, file_path)
        elif kind == FileKind.SEED:
            self._validate_seed_file(collector, file_path)

    # Migrations

    def _validate_migration_file(self, collector: IssueCollector, migration_path: str) -> None:
        file_name = Path(migration_path).name

        if not MIGRATION_NAME_PATTERN.match(file_name):
            issue_id = f"migration-naming-{file_name}"
            collector.add_issue(
                issue_id,
                f'Migration file "{file_name}" does not follow naming convention: timestamp-Description.ts',
                IssueSeverity.ERROR,
                IssueCategory.STRUCTURE,
                'migration-naming',
                migration_path,
                True
            )
            collector.add_fix(
                issue_id,
                'Rename migration file to follow timestamp-Description.ts pattern',
                PatternFixAction.RENAME_MIGRATION_FILE,
                {"file_path": migration_path, "current_name": file_name}
            )

        if not self.file_exists(migration_path):
            collector.add_issue(
                f"migration-existence-{file_name}",
                f'Migration file "{file_name}" does not exist',
                IssueSeverity.ERROR,
                IssueCategory.STRUCTURE,
                'migration-existence',
                migration_path
            )
            return

        content = self.read_file(migration_path)
        self._validate_migration_content(collector, content, migration_path, file_name)

    def _validate_migration_content(
        self, collector: IssueCollector, content: str, file_path: str, file_name: str
    ) -> None:
        for method in ('up', 'down'):
            signature = f'async {method}(queryRunner: QueryRunner)'
            # "public async up(...)" contains the bare signature as well
            if signature not in content:
                collector.add_issue(
                    f"migration-{method}-method-{file_name}",
                    f'Migration "{file_name}" is missing {method}() method',
                    IssueSeverity.ERROR,
                    IssueCategory.STRUCTURE,
                    f'migration-{method}-method',
                    file_path,
                    True
                )

        matches = self._find_matches(MIGRATION_HARDCODED_PATTERNS, content)
        if matches:
            collector.add_issue(
                f"migration-hardcoded-values-{file_name}",
                f'Migration "{file_name}" contains hardcoded database names: {", ".join(matches)}',
                IssueSeverity.ERROR,
                IssueCategory.CONTENT,
                'migration-hardcoded-values',
                file_path
            )

        has_env_vars = any(pattern.search(content) for pattern in ENV_VAR_PATTERNS)
        needs_env_vars = any(keyword in content for keyword in ENV_SENSITIVE_KEYWORDS)
        if needs_env_vars and not has_env_vars:
            collector.add_issue(
                f"migration-env-vars-{file_name}",
                f'Migration "{file_name}" should use environment variables for configuration',
                IssueSeverity.WARNING,
                IssueCategory.CONTENT,
                'migration-env-vars',
                file_path
            )

    # Seeds

    def _validate_seed_file(self, collector: IssueCollector, seed_path: str) -> None:
        file_name = Path(seed_path).name

        if not SEED_NAME_PATTERN.match(file_name):
            issue_id = f"seed-naming-{file_name}"
            collector.add_issue(
                issue_id,
                f'Seed file "{file_name}" does not follow naming convention: timestamp-seed-module-entity.ts',
                IssueSeverity.ERROR,
                IssueCategory.STRUCTURE,
                'seed-naming',
                seed_path,
                True
            )
            collector.add_fix(
                issue_id,
                'Rename seed file to follow timestamp-seed-module-entity.ts pattern',
                PatternFixAction.RENAME_SEED_FILE,
                {"file_path": seed_path, "current_name": file_name}
            )

        if not self.file_exists(seed_path):
            collector.add_issue(
                f"seed-existence-{file_name}",
                f'Seed file "{file_name}" does not exist',
                IssueSeverity.ERROR,
                IssueCategory.STRUCTURE,
                'seed-existence',
                seed_path
            )
            return

        content = self.read_file(seed_path)
        self._validate_seed_content(collector, content, seed_path, file_name)

    def _validate_seed_content(
        self, collector: IssueCollector, content: str, file_path: str, file_name: str
    ) -> None:
        matches = self._find_matches(SEED_HARDCODED_PATTERNS, content)
        if matches:
            collector.add_issue(
                f"seed-hardcoded-values-{file_name}",
                f'Seed file "{file_name}" contains hardcoded values: {", ".join(matches)}',
                IssueSeverity.ERROR,
                IssueCategory.CONTENT,
                'seed-hardcoded-values',
                file_path
            )

        if 'try' not in content and 'catch' not in content:
            collector.add_issue(
                f"seed-error-handling-{file_name}",
                f'Seed file "{file_name}" should include error handling (try/catch)',
                IssueSeverity.WARNING,
                IssueCategory.CONTENT,
                'seed-error-handling',
                file_path,
                True
            )

        if not any(pattern.search(content) for pattern in SEED_IDEMPOTENCY_PATTERNS):
            collector.add_issue(
                f"seed-idempotency-{file_name}",
                f'Seed file "{file_name}" should implement idempotency checks',
                IssueSeverity.WARNING,
                IssueCategory.CONTENT,
                'seed-idempotency',
                file_path,
                True
            )

        if 'console.log' not in content and 'logger' not in content:
            collector.add_issue(
                f"seed-logging-{file_name}",
                f'Seed file "{file_name}" should include logging for operations',
                IssueSeverity.INFO,
                IssueCategory.CONTENT,
                'seed-logging',
                file_path,
                True
            )

    @staticmethod
    def _find_matches(patterns: List[re.Pattern], content: str) -> List[str]:
        matches: List[str] = []
        for pattern in patterns:
            for match in pattern.finditer(content):
                if match.group(0) not in matches:
                    matches.append(match.group(0))
        return matches

    def get_requirements(self) -> List[Requirement]:
        return [
            Requirement(
                id='migration-naming',
                name='Migration File Naming',
                description='Migration files must follow timestamp-Description.ts pattern',
                category=IssueCategory.STRUCTURE,
                severity=IssueSeverity.ERROR,
                auto_fixable=True
            ),
            Requirement(
                id='migration-up-method',
                name='Migration Up Method',
                description='Migration files must include up() method',
                category=IssueCategory.STRUCTURE,
                severity=IssueSeverity.ERROR,
                auto_fixable=True
            ),
            Requirement(
                id='migration-down-method',
                name='Migration Down Method',
                description='Migration files must include down() method',
                category=IssueCategory.STRUCTURE,
                severity=IssueSeverity.ERROR,
                auto_fixable=True
            ),
            Requirement(
                id='migration-hardcoded-values',
                name='No Hardcoded Database Names',
                description='Migration files must not contain hardcoded database names',
                category=IssueCategory.CONTENT,
                severity=IssueSeverity.ERROR,
                auto_fixable=False
            ),
            Requirement(
                id='migration-env-vars',
                name='Environment Variable Usage',
                description='Migration files should use environment variables for configuration',
                category=IssueCategory.CONTENT,
                severity=IssueSeverity.WARNING,
                auto_fixable=False
            ),
            Requirement(
                id='seed-naming',
                name='Seed File Naming',
                description='Seed files must follow timestamp-seed-module-entity.ts pattern',
                category=IssueCategory.STRUCTURE,
                severity=IssueSeverity.ERROR,
                auto_fixable=True
            ),
            Requirement(
                id='seed-hardcoded-values',
                name='No Hardcoded Values in Seeds',
                description='Seed files must not contain hardcoded database values',
                category=IssueCategory.CONTENT,
                severity=IssueSeverity.ERROR,
                auto_fixable=False
            ),
            Requirement(
                id='seed-error-handling',
                name='Seed Error Handling',
                description='Seed files should include proper error handling',
                category=IssueCategory.CONTENT,
                severity=IssueSeverity.WARNING,
                auto_fixable=True
            ),
            Requirement(
                id='seed-idempotency',
                name='Seed Idempotency',
                description='Seed files should implement idempotency checks',
                category=IssueCategory.CONTENT,
                severity=IssueSeverity.WARNING,
                auto_fixable=True
            ),
            Requirement(
                id='seed-logging',
                name='Seed Logging',
                description='Seed files should include logging for operations',
                category=IssueCategory.CONTENT,
                severity=IssueSeverity.INFO,
                auto_fixable=True
            ),
        ]

    # Fixes

    def _fix_handlers(self) -> Dict[Enum, FixHandler]:
        return {
            PatternFixAction.RENAME_MIGRATION_FILE: self._rename_migration_file,
            PatternFixAction.RENAME_SEED_FILE: self._rename_seed_file,
        }

    async def _rename_migration_file(self, parameters: Dict[str, Any]) -> None:
        file_path = parameters["file_path"]
        current_name = parameters.get("current_name") or Path(file_path).name
        self._rename(file_path, suggest_migration_name(current_name))

    async def _rename_seed_file(self, parameters: Dict[str, Any]) -> None:
        file_path = parameters["file_path"]
        current_name = parameters.get("current_name") or Path(file_path).name
        self._rename(file_path, suggest_seed_name(current_name))

    def _rename(self, file_path: str, new_name: str) -> None:
        source = Path(file_path)
        destination = source.with_name(new_name)

        if not source.is_file():
            raise FileAccessError(f"Cannot rename missing file {file_path}", str(file_path))
        if destination.exists():
            raise FixError(
                f"Cannot rename {source.name} to {new_name}: destination exists",
                details={"file_path": str(source), "new_name": new_name}
            )

        try:
            source.rename(destination)
        except OSError as e:
            raise FileAccessError(f"Failed to rename {file_path}: {e}", str(file_path)) from e

        self.logger.info(f"Renamed {source.name} -> {new_name}")

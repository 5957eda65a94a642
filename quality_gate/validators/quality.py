"""
Database Quality Validator

Validates relational integrity and entity shape:
- Foreign key constraints for *_id uuid columns
- Performance indexes for commonly queried columns
- Soft delete columns on user-related tables and entities
- Seed idempotency, error handling and logging
- Entity decorators, primary keys and timestamps
"""

import re
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Tuple

from quality_gate.core.exceptions import FixError
from quality_gate.models import IssueCategory, IssueSeverity, Requirement
from quality_gate.validators.base import BaseValidator, FileKind, FixHandler, IssueCollector


# Columns that are usually filtered on and therefore deserve an index
INDEXED_COLUMNS = [
    'email', 'code', 'name', 'slug', 'status', 'is_active', 'isActive',
    'created_at', 'createdAt', 'updated_at', 'updatedAt', 'deleted_at', 'deletedAt',
    'organization_id', 'tenant_id', 'workspace_id', 'user_id', 'role_id',
]

USER_RELATED_TABLES = ('users', 'roles', 'permissions', 'organizations', 'tenants')
USER_RELATED_ENTITIES = ('User', 'Role', 'Permission', 'Organization', 'Tenant')

MIGRATION_SOFT_DELETE_PATTERNS = [
    re.compile(r'deleted_at\W+timestamp', re.IGNORECASE),
    re.compile(r'deletedAt\W+timestamp', re.IGNORECASE),
    re.compile(r'is_deleted\W+boolean', re.IGNORECASE),
    re.compile(r'isDeleted\W+boolean', re.IGNORECASE),
]

ENTITY_SOFT_DELETE_PATTERN = re.compile(r'deleted_at|deletedAt|is_deleted|isDeleted|@DeleteDateColumn')

FK_COLUMN_PATTERN = re.compile(r'["`\']?(\w+_id)["`\']?\s+uuid', re.IGNORECASE)
FK_CONSTRAINT_PATTERN = re.compile(r'CONSTRAINT\s+["`\']?FK_\w+["`\']?\s+FOREIGN\s+KEY', re.IGNORECASE)
FK_REFERENCE_PATTERN = re.compile(r'REFERENCES\s+["`\']?\w+["`\']?\s*\(', re.IGNORECASE)
CONSTRAINT_NAME_PATTERN = re.compile(r'CONSTRAINT\s+["`\']?(\w+)["`\']?\s+FOREIGN\s+KEY', re.IGNORECASE)
INDEX_STATEMENT_PATTERN = re.compile(r'CREATE\s+(?:UNIQUE\s+)?INDEX[^;]*;', re.IGNORECASE)
TABLE_NAME_PATTERN = re.compile(
    r'CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?(?:["`\']?\w+["`\']?\.)?["`\']?(\w+)["`\']?',
    re.IGNORECASE
)
CREATE_TABLE_QUERY_PATTERN = re.compile(r'await\s+queryRunner\.query\(\s*`\s*CREATE\s+TABLE[^`]*`\s*\);')

SEED_WRITE_PATTERNS = [
    re.compile(r'\.save\('),
    re.compile(r'\.insert\('),
    re.compile(r'INSERT\s+INTO', re.IGNORECASE),
]

SEED_IDEMPOTENCY_PATTERNS = [
    re.compile(r'findOne\('),
    re.compile(r'findOneBy\('),
    re.compile(r'WHERE\s+NOT\s+EXISTS', re.IGNORECASE),
    re.compile(r'ON\s+CONFLICT\s+DO\s+NOTHING', re.IGNORECASE),
    re.compile(r'IF\s+NOT\s+EXISTS', re.IGNORECASE),
    re.compile(r'UPSERT', re.IGNORECASE),
    re.compile(r'INSERT\s+IGNORE', re.IGNORECASE),
]

SEED_ERROR_HANDLING_PATTERNS = [
    re.compile(r'try\s*\{[\s\S]*\}\s*catch'),
    re.compile(r'\.catch\('),
    re.compile(r'throw new Error'),
    re.compile(r'console\.error'),
    re.compile(r'logger\.error'),
]

SEED_LOGGING_PATTERNS = [
    re.compile(r'console\.log'),
    re.compile(r'logger\.'),
    re.compile(r'Logger\('),
]

SEED_FUNCTION_PATTERN = re.compile(
    r'export\s+(?:default\s+)?async\s+function\s+(\w+)\s*\([^)]*\)\s*(?::\s*Promise<void>\s*)?\{'
)
INSERT_TABLE_PATTERN = re.compile(r'INSERT\s+INTO\s+["`\']?(\w+)', re.IGNORECASE)

PROPERTY_PATTERN = re.compile(r'\s+(\w+):\s*\w+;')
COLUMN_DECORATOR_PATTERN = re.compile(r'@\w*Column\b')


class QualityFixAction(str, Enum):
    """Fix actions the quality validator can apply."""
    ADD_FOREIGN_KEY_CONSTRAINTS = "add-foreign-key-constraints"
    ADD_PERFORMANCE_INDEXES = "add-performance-indexes"
    ADD_SOFT_DELETE_COLUMNS = "add-soft-delete-columns"
    ADD_SEED_IDEMPOTENCY = "add-seed-idempotency"
    ADD_SEED_ERROR_HANDLING = "add-seed-error-handling"
    ADD_SEED_LOGGING = "add-seed-logging"
    ADD_ENTITY_TIMESTAMPS = "add-entity-timestamps"
    ADD_ENTITY_SOFT_DELETE = "add-entity-soft-delete"


class TableBlock(NamedTuple):
    """A ``CREATE TABLE (...)`` block located in migration text."""
    start: int
    close: int  # index of the closing parenthesis, or len(content) if unbalanced
    text: str


def _matching_close(content: str, open_index: int, opening: str, closing: str) -> int:
    depth = 0
    for index in range(open_index, len(content)):
        char = content[index]
        if char == opening:
            depth += 1
        elif char == closing:
            depth -= 1
            if depth == 0:
                return index
    return len(content)


def find_table_blocks(content: str) -> List[TableBlock]:
    """
    Locate every ``CREATE TABLE`` block and its balanced parenthesis body.

    Nested calls such as ``uuid_generate_v4()`` stay inside the block.
    """
    blocks: List[TableBlock] = []
    for match in re.finditer(r'CREATE\s+TABLE', content, re.IGNORECASE):
        open_index = content.find('(', match.end())
        if open_index == -1:
            continue
        close = _matching_close(content, open_index, '(', ')')
        blocks.append(TableBlock(match.start(), close, content[match.start():close + 1]))
    return blocks


def table_name(content: str, default: str = 'unknown_table') -> str:
    """Name of the first table created in ``content``."""
    match = TABLE_NAME_PATTERN.search(content)
    return match.group(1) if match else default


def referenced_table(column: str) -> str:
    """Pluralize the prefix of a ``<name>_id`` column: organization_id -> organizations."""
    prefix = column[:-3] if column.endswith('_id') else column
    return f"{prefix}s"


def _insert_before_close(content: str, close: int, addition: str) -> str:
    # keep the whitespace that precedes the closing parenthesis
    head = content[:close].rstrip()
    trailing = content[len(head):close]
    return f"{head},\n{addition}{trailing}{content[close:]}"


class DatabaseQualityValidator(BaseValidator):
    """Validator for relational integrity of migrations and entity shape."""

    default_category = IssueCategory.QUALITY
    fix_action_type = QualityFixAction
    file_kinds = (FileKind.MIGRATION, FileKind.SEED, FileKind.ENTITY)

    async def validate_file(self, collector: IssueCollector, kind: FileKind, file_path: str) -> None:
        # existence is reported by the pattern validator
        if not self.file_exists(file_path):
            self.logger.debug(f"Skipping missing file {file_path}")
            return

        content = self.read_file(file_path)
        file_name = Path(file_path).name

        if kind == FileKind.MIGRATION:
            self._check_foreign_keys(collector, content, file_path, file_name)
            self._check_indexes(collector, content, file_path, file_name)
            self._check_migration_soft_delete(collector, content, file_path, file_name)
        elif kind == FileKind.SEED:
            self._check_seed_idempotency(collector, content, file_path, file_name)
            self._check_seed_error_handling(collector, content, file_path, file_name)
            self._check_seed_logging(collector, content, file_path, file_name)
        elif kind == FileKind.ENTITY:
            self._check_entity_decorators(collector, content, file_path, file_name)
            self._check_entity_timestamps(collector, content, file_path, file_name)
            self._check_entity_soft_delete(collector, content, file_path, file_name)

    # Migrations

    def _check_foreign_keys(self, collector: IssueCollector, content: str, file_path: str, file_name: str) -> None:
        missing: List[str] = []
        for block in find_table_blocks(content):
            columns = [match.group(1) for match in FK_COLUMN_PATTERN.finditer(block.text)]
            if not columns:
                continue
            # any constraint or reference in the block satisfies every column
            if FK_CONSTRAINT_PATTERN.search(block.text) or FK_REFERENCE_PATTERN.search(block.text):
                continue
            missing.extend(column for column in columns if column not in missing)

        if missing:
            issue_id = f"migration-foreign-keys-{file_name}"
            collector.add_issue(
                issue_id,
                f'Migration "{file_name}" has foreign key columns without constraints: {", ".join(missing)}',
                IssueSeverity.ERROR,
                IssueCategory.RELATIONAL,
                'migration-foreign-keys',
                file_path,
                True
            )
            collector.add_fix(
                issue_id,
                'Add foreign key constraints for relationship columns',
                QualityFixAction.ADD_FOREIGN_KEY_CONSTRAINTS,
                {"file_path": file_path, "foreign_key_columns": missing}
            )

        bad_names = [
            match.group(1) for match in CONSTRAINT_NAME_PATTERN.finditer(content)
            if not match.group(1).startswith('FK_')
        ]
        if bad_names:
            collector.add_issue(
                f"migration-constraint-naming-{file_name}",
                f'Migration "{file_name}" has foreign key constraints not prefixed with FK_: {", ".join(bad_names)}',
                IssueSeverity.WARNING,
                IssueCategory.RELATIONAL,
                'migration-constraint-naming',
                file_path
            )

    def _check_indexes(self, collector: IssueCollector, content: str, file_path: str, file_name: str) -> None:
        missing: List[str] = []
        for column in INDEXED_COLUMNS:
            column_pattern = rf'["`\']?{column}["`\']?\s+(?:uuid|varchar|text|integer|bigint)'
            if not re.search(column_pattern, content, re.IGNORECASE):
                continue
            index_pattern = rf'INDEX[^;]*["`\']?{column}["`\']?'
            if not re.search(index_pattern, content, re.IGNORECASE):
                missing.append(column)

        if missing:
            issue_id = f"migration-performance-indexes-{file_name}"
            collector.add_issue(
                issue_id,
                f'Migration "{file_name}" is missing indexes on: {", ".join(missing)}',
                IssueSeverity.WARNING,
                IssueCategory.RELATIONAL,
                'migration-performance-indexes',
                file_path,
                True
            )
            collector.add_fix(
                issue_id,
                'Add performance indexes for commonly queried columns',
                QualityFixAction.ADD_PERFORMANCE_INDEXES,
                {"file_path": file_path, "columns": missing}
            )

        unnamed = [
            statement.group(0) for statement in INDEX_STATEMENT_PATTERN.finditer(content)
            if 'IDX_' not in statement.group(0)
        ]
        if unnamed:
            collector.add_issue(
                f"migration-index-naming-{file_name}",
                f'Migration "{file_name}" has {len(unnamed)} index(es) not following the IDX_ naming convention',
                IssueSeverity.WARNING,
                IssueCategory.RELATIONAL,
                'migration-index-naming',
                file_path
            )

    def _check_migration_soft_delete(
        self, collector: IssueCollector, content: str, file_path: str, file_name: str
    ) -> None:
        created = [
            name.lower() for name in (
                table_name(block.text, '') for block in find_table_blocks(content)
            ) if name
        ]
        tables = [table for table in USER_RELATED_TABLES if table in created]
        if not tables:
            return

        if any(pattern.search(content) for pattern in MIGRATION_SOFT_DELETE_PATTERNS):
            return

        issue_id = f"migration-soft-delete-{file_name}"
        collector.add_issue(
            issue_id,
            f'Migration "{file_name}" creates {", ".join(tables)} without a soft delete column',
            IssueSeverity.WARNING,
            IssueCategory.RELATIONAL,
            'migration-soft-delete',
            file_path,
            True
        )
        collector.add_fix(
            issue_id,
            'Add deleted_at column for soft delete',
            QualityFixAction.ADD_SOFT_DELETE_COLUMNS,
            {"file_path": file_path}
        )

    # Seeds

    def _check_seed_idempotency(self, collector: IssueCollector, content: str, file_path: str, file_name: str) -> None:
        writes = any(pattern.search(content) for pattern in SEED_WRITE_PATTERNS)
        if not writes:
            return
        if any(pattern.search(content) for pattern in SEED_IDEMPOTENCY_PATTERNS):
            return

        issue_id = f"seed-idempotency-{file_name}"
        collector.add_issue(
            issue_id,
            f'Seed file "{file_name}" writes data without an existence check',
            IssueSeverity.ERROR,
            IssueCategory.CONTENT,
            'seed-idempotency',
            file_path,
            True
        )
        collector.add_fix(
            issue_id,
            'Add an existence check before inserting seed data',
            QualityFixAction.ADD_SEED_IDEMPOTENCY,
            {"file_path": file_path}
        )

    def _check_seed_error_handling(
        self, collector: IssueCollector, content: str, file_path: str, file_name: str
    ) -> None:
        if any(pattern.search(content) for pattern in SEED_ERROR_HANDLING_PATTERNS):
            return

        issue_id = f"seed-error-handling-{file_name}"
        collector.add_issue(
            issue_id,
            f'Seed file "{file_name}" has no error handling',
            IssueSeverity.WARNING,
            IssueCategory.CONTENT,
            'seed-error-handling',
            file_path,
            True
        )
        collector.add_fix(
            issue_id,
            'Wrap the seed body in try/catch',
            QualityFixAction.ADD_SEED_ERROR_HANDLING,
            {"file_path": file_path}
        )

    def _check_seed_logging(self, collector: IssueCollector, content: str, file_path: str, file_name: str) -> None:
        if any(pattern.search(content) for pattern in SEED_LOGGING_PATTERNS):
            return

        issue_id = f"seed-logging-{file_name}"
        collector.add_issue(
            issue_id,
            f'Seed file "{file_name}" does not log its progress',
            IssueSeverity.INFO,
            IssueCategory.CONTENT,
            'seed-logging',
            file_path,
            True
        )
        collector.add_fix(
            issue_id,
            'Add start and completion logging to the seed',
            QualityFixAction.ADD_SEED_LOGGING,
            {"file_path": file_path}
        )

    # Entities

    def _check_entity_decorators(
        self, collector: IssueCollector, content: str, file_path: str, file_name: str
    ) -> None:
        if '@Entity' not in content:
            collector.add_issue(
                f"entity-decorators-{file_name}",
                f'Entity "{file_name}" is missing the @Entity decorator',
                IssueSeverity.ERROR,
                IssueCategory.QUALITY,
                'entity-decorators',
                file_path,
                True
            )

        if '@PrimaryGeneratedColumn' not in content and '@PrimaryColumn' not in content:
            collector.add_issue(
                f"entity-primary-key-{file_name}",
                f'Entity "{file_name}" has no primary key column',
                IssueSeverity.ERROR,
                IssueCategory.QUALITY,
                'entity-primary-key',
                file_path
            )

        properties = len(PROPERTY_PATTERN.findall(content))
        columns = len(COLUMN_DECORATOR_PATTERN.findall(content))
        if properties > columns + 1:
            collector.add_issue(
                f"entity-column-decorators-{file_name}",
                f'Entity "{file_name}" declares {properties} properties but only {columns} @Column decorators',
                IssueSeverity.WARNING,
                IssueCategory.QUALITY,
                'entity-column-decorators',
                file_path
            )

    def _check_entity_timestamps(
        self, collector: IssueCollector, content: str, file_path: str, file_name: str
    ) -> None:
        if re.search(r'created_at|createdAt|updated_at|updatedAt', content):
            return

        issue_id = f"entity-timestamps-{file_name}"
        collector.add_issue(
            issue_id,
            f'Entity "{file_name}" has no created/updated timestamp columns',
            IssueSeverity.WARNING,
            IssueCategory.QUALITY,
            'entity-timestamps',
            file_path,
            True
        )
        collector.add_fix(
            issue_id,
            'Add createdAt and updatedAt columns',
            QualityFixAction.ADD_ENTITY_TIMESTAMPS,
            {"file_path": file_path}
        )

    def _check_entity_soft_delete(
        self, collector: IssueCollector, content: str, file_path: str, file_name: str
    ) -> None:
        user_related = any(
            entity in file_name or f'class {entity}' in content
            for entity in USER_RELATED_ENTITIES
        )
        if not user_related or ENTITY_SOFT_DELETE_PATTERN.search(content):
            return

        issue_id = f"entity-soft-delete-{file_name}"
        collector.add_issue(
            issue_id,
            f'Entity "{file_name}" should support soft delete',
            IssueSeverity.WARNING,
            IssueCategory.QUALITY,
            'entity-soft-delete',
            file_path,
            True
        )
        collector.add_fix(
            issue_id,
            'Add a deletedAt column for soft delete',
            QualityFixAction.ADD_ENTITY_SOFT_DELETE,
            {"file_path": file_path}
        )

    def get_requirements(self) -> List[Requirement]:
        return [
            Requirement(
                id='migration-foreign-keys',
                name='Foreign Key Constraints',
                description='Relationship columns must have foreign key constraints',
                category=IssueCategory.RELATIONAL,
                severity=IssueSeverity.ERROR,
                auto_fixable=True
            ),
            Requirement(
                id='migration-constraint-naming',
                name='Constraint Naming',
                description='Foreign key constraints should be prefixed with FK_',
                category=IssueCategory.RELATIONAL,
                severity=IssueSeverity.WARNING,
                auto_fixable=False
            ),
            Requirement(
                id='migration-performance-indexes',
                name='Performance Indexes',
                description='Commonly queried columns should be indexed',
                category=IssueCategory.RELATIONAL,
                severity=IssueSeverity.WARNING,
                auto_fixable=True
            ),
            Requirement(
                id='migration-index-naming',
                name='Index Naming',
                description='Indexes should be named with the IDX_ prefix',
                category=IssueCategory.RELATIONAL,
                severity=IssueSeverity.WARNING,
                auto_fixable=False
            ),
            Requirement(
                id='migration-soft-delete',
                name='Soft Delete Support',
                description='User-related tables should support soft delete',
                category=IssueCategory.RELATIONAL,
                severity=IssueSeverity.WARNING,
                auto_fixable=True
            ),
            Requirement(
                id='seed-idempotency',
                name='Seed Idempotency',
                description='Seeds that write data must check for existing rows first',
                category=IssueCategory.CONTENT,
                severity=IssueSeverity.ERROR,
                auto_fixable=True
            ),
            Requirement(
                id='seed-error-handling',
                name='Seed Error Handling',
                description='Seeds should handle and report errors',
                category=IssueCategory.CONTENT,
                severity=IssueSeverity.WARNING,
                auto_fixable=True
            ),
            Requirement(
                id='seed-logging',
                name='Seed Logging',
                description='Seeds should log their progress',
                category=IssueCategory.CONTENT,
                severity=IssueSeverity.INFO,
                auto_fixable=True
            ),
            Requirement(
                id='entity-decorators',
                name='Entity Decorators',
                description='Entities must be decorated with @Entity',
                category=IssueCategory.QUALITY,
                severity=IssueSeverity.ERROR,
                auto_fixable=True
            ),
            Requirement(
                id='entity-primary-key',
                name='Entity Primary Key',
                description='Entities must declare a primary key column',
                category=IssueCategory.QUALITY,
                severity=IssueSeverity.ERROR,
                auto_fixable=False
            ),
            Requirement(
                id='entity-column-decorators',
                name='Entity Column Decorators',
                description='Entity properties should be mapped with @Column',
                category=IssueCategory.QUALITY,
                severity=IssueSeverity.WARNING,
                auto_fixable=False
            ),
            Requirement(
                id='entity-timestamps',
                name='Entity Timestamps',
                description='Entities should track creation and update times',
                category=IssueCategory.QUALITY,
                severity=IssueSeverity.WARNING,
                auto_fixable=True
            ),
            Requirement(
                id='entity-soft-delete',
                name='Entity Soft Delete',
                description='User-related entities should support soft delete',
                category=IssueCategory.QUALITY,
                severity=IssueSeverity.WARNING,
                auto_fixable=True
            ),
        ]

    # Fixes

    def _fix_handlers(self) -> Dict[Enum, FixHandler]:
        return {
            QualityFixAction.ADD_FOREIGN_KEY_CONSTRAINTS: self._add_foreign_key_constraints,
            QualityFixAction.ADD_PERFORMANCE_INDEXES: self._add_performance_indexes,
            QualityFixAction.ADD_SOFT_DELETE_COLUMNS: self._add_soft_delete_columns,
            QualityFixAction.ADD_SEED_IDEMPOTENCY: self._add_seed_idempotency,
            QualityFixAction.ADD_SEED_ERROR_HANDLING: self._add_seed_error_handling,
            QualityFixAction.ADD_SEED_LOGGING: self._add_seed_logging,
            QualityFixAction.ADD_ENTITY_TIMESTAMPS: self._add_entity_timestamps,
            QualityFixAction.ADD_ENTITY_SOFT_DELETE: self._add_entity_soft_delete,
        }

    def _first_block(self, content: str, file_path: str) -> TableBlock:
        blocks = find_table_blocks(content)
        if not blocks or blocks[0].close >= len(content):
            raise FixError(
                f"No complete CREATE TABLE block in {file_path}",
                details={"file_path": file_path}
            )
        return blocks[0]

    async def _add_foreign_key_constraints(self, parameters: Dict[str, Any]) -> None:
        file_path = parameters["file_path"]
        content = self.read_file(file_path)
        stem = re.sub(r'\W', '_', Path(file_path).name.replace('.ts', ''))
        wanted = parameters.get("foreign_key_columns", [])

        targets: List[Tuple[TableBlock, List[str]]] = []
        for block in find_table_blocks(content):
            if block.close >= len(content):
                continue
            if FK_CONSTRAINT_PATTERN.search(block.text) or FK_REFERENCE_PATTERN.search(block.text):
                continue
            columns: List[str] = []
            for match in FK_COLUMN_PATTERN.finditer(block.text):
                if match.group(1) in wanted and match.group(1) not in columns:
                    columns.append(match.group(1))
            if columns:
                targets.append((block, columns))

        if not targets:
            raise FixError(
                f"No unconstrained CREATE TABLE block declares {', '.join(wanted)} in {file_path}",
                details={"file_path": file_path, "foreign_key_columns": list(wanted)}
            )

        # last block first so earlier offsets stay valid
        for block, columns in reversed(targets):
            constraints = ",\n".join(
                f'        CONSTRAINT "FK_{stem}_{column}" FOREIGN KEY ("{column}") '
                f'REFERENCES "{referenced_table(column)}"("id")'
                for column in columns
            )
            content = _insert_before_close(content, block.close, constraints)

        self.write_file(file_path, content)

    async def _add_performance_indexes(self, parameters: Dict[str, Any]) -> None:
        file_path = parameters["file_path"]
        content = self.read_file(file_path)

        anchor = CREATE_TABLE_QUERY_PATTERN.search(content)
        if anchor is None:
            raise FixError(
                f"No CREATE TABLE query to anchor indexes in {file_path}",
                details={"file_path": file_path}
            )

        table = table_name(content)
        statements = ''.join(
            f'\n    await queryRunner.query(`CREATE INDEX IF NOT EXISTS "IDX_{table}_{column}" '
            f'ON "{table}"("{column}")`);'
            for column in parameters.get("columns", [])
        )
        content = content[:anchor.end()] + statements + content[anchor.end():]
        self.write_file(file_path, content)

    async def _add_soft_delete_columns(self, parameters: Dict[str, Any]) -> None:
        file_path = parameters["file_path"]
        content = self.read_file(file_path)
        block = self._first_block(content, file_path)
        content = _insert_before_close(content, block.close, '        "deleted_at" timestamp NULL')
        self.write_file(file_path, content)

    def _seed_function(self, content: str, file_path: str):
        match = SEED_FUNCTION_PATTERN.search(content)
        if match is None:
            raise FixError(
                f"No exported seed function in {file_path}",
                details={"file_path": file_path}
            )
        body_open = match.end() - 1
        body_close = _matching_close(content, body_open, '{', '}')
        if body_close >= len(content):
            raise FixError(f"Unbalanced seed function body in {file_path}", details={"file_path": file_path})
        return match, body_open, body_close

    async def _add_seed_idempotency(self, parameters: Dict[str, Any]) -> None:
        file_path = parameters["file_path"]
        content = self.read_file(file_path)
        _, body_open, _ = self._seed_function(content, file_path)

        insert = INSERT_TABLE_PATTERN.search(content)
        entity = insert.group(1) if insert else 'table_name'
        check = (
            "\n  // Skip when the data already exists"
            f"\n  const existing = await dataSource.getRepository('{entity}').findOne({{ where: {{}} }});"
            "\n  if (existing) {"
            "\n    console.log('Data already exists, skipping seed');"
            "\n    return;"
            "\n  }\n"
        )
        content = content[:body_open + 1] + check + content[body_open + 1:]
        self.write_file(file_path, content)

    async def _add_seed_error_handling(self, parameters: Dict[str, Any]) -> None:
        file_path = parameters["file_path"]
        content = self.read_file(file_path)
        match, body_open, body_close = self._seed_function(content, file_path)

        body = content[body_open + 1:body_close].strip('\n')
        indented = '\n'.join(f'  {line}' if line.strip() else line for line in body.split('\n'))
        wrapped = (
            "{\n  try {\n"
            f"{indented}\n"
            "  } catch (error) {\n"
            f"    console.error('Seed {match.group(1)} failed:', error);\n"
            "    throw error;\n"
            "  }\n}"
        )
        content = content[:body_open] + wrapped + content[body_close + 1:]
        self.write_file(file_path, content)

    async def _add_seed_logging(self, parameters: Dict[str, Any]) -> None:
        file_path = parameters["file_path"]
        content = self.read_file(file_path)
        match, body_open, body_close = self._seed_function(content, file_path)
        name = match.group(1)

        head = content[:body_close].rstrip()
        content = (
            content[:body_open + 1]
            + f"\n  console.log('Running seed {name}...');"
            + head[body_open + 1:]
            + f"\n  console.log('Seed {name} completed');\n"
            + content[body_close:]
        )
        self.write_file(file_path, content)

    def _insert_entity_members(self, file_path: str, members: str) -> None:
        content = self.read_file(file_path)
        close = content.rfind('}')
        if close == -1:
            raise FixError(f"No class body in {file_path}", details={"file_path": file_path})
        head = content[:close].rstrip()
        self.write_file(file_path, f"{head}\n{members}\n{content[close:]}")

    async def _add_entity_timestamps(self, parameters: Dict[str, Any]) -> None:
        self._insert_entity_members(
            parameters["file_path"],
            "\n  @CreateDateColumn({ name: 'created_at' })\n"
            "  createdAt: Date;\n"
            "\n  @UpdateDateColumn({ name: 'updated_at' })\n"
            "  updatedAt: Date;"
        )

    async def _add_entity_soft_delete(self, parameters: Dict[str, Any]) -> None:
        self._insert_entity_members(
            parameters["file_path"],
            "\n  @DeleteDateColumn({ name: 'deleted_at' })\n"
            "  deletedAt?: Date;"
        )

"""
Tests for Database Pattern Validator

Covers file naming, existence, migration structure, hardcoded values and
seed content rules, plus the rename fixes.
"""

import re
from pathlib import Path

import pytest

from quality_gate.core.exceptions import FixError
from quality_gate.models import IssueCategory, IssueSeverity, ValidationTarget
from quality_gate.validators.patterns import (
    MIGRATION_NAME_PATTERN, SEED_NAME_PATTERN, DatabasePatternValidator, PatternFixAction,
    suggest_migration_name, suggest_seed_name,
)


def _target(module_dir, migrations=(), seeds=()):
    return ValidationTarget(
        module_path=str(module_dir),
        migration_paths=list(migrations),
        seed_paths=list(seeds),
    )


class TestNaming:
    """Test migration and seed file naming rules."""

    @pytest.mark.asyncio
    async def test_conforming_files_are_valid(self, pattern_validator, valid_target):
        result = await pattern_validator.validate(valid_target)
        assert result.is_valid
        assert result.issues == []
        assert result.metadata["migrations_checked"] == 1
        assert result.metadata["seeds_checked"] == 1

    @pytest.mark.asyncio
    async def test_bad_migration_name(self, pattern_validator, module_dir, write_file, sources):
        path = write_file("migrations", "create-users-table.ts", sources.valid_migration)
        result = await pattern_validator.validate(_target(module_dir, migrations=[path]))

        issue = result.find_issue("migration-naming-create-users-table.ts")
        assert issue is not None
        assert issue.severity == IssueSeverity.ERROR
        assert issue.category == IssueCategory.STRUCTURE
        assert issue.auto_fixable
        assert not result.is_valid

        fix = result.fixes[0]
        assert fix.issue_id == issue.id
        assert fix.action == PatternFixAction.RENAME_MIGRATION_FILE
        assert fix.parameters == {"file_path": path, "current_name": "create-users-table.ts"}

    @pytest.mark.asyncio
    async def test_bad_seed_name(self, pattern_validator, module_dir, write_file, sources):
        path = write_file("seeds", "seed-users.ts", sources.valid_seed)
        result = await pattern_validator.validate(_target(module_dir, seeds=[path]))

        issue = result.find_issue("seed-naming-seed-users.ts")
        assert issue is not None
        assert issue.auto_fixable
        assert result.fixes[0].action == PatternFixAction.RENAME_SEED_FILE

    @pytest.mark.parametrize("name,valid", [
        ("1704240000001-CreateUsersTable.ts", True),
        ("1704240000001-createUsersTable.ts", False),
        ("170424000001-CreateUsersTable.ts", False),
        ("1704240000001-CreateUsersTable.js", False),
        ("create-users-table.ts", False),
    ])
    def test_migration_name_pattern(self, name, valid):
        assert bool(MIGRATION_NAME_PATTERN.match(name)) is valid

    @pytest.mark.parametrize("name,valid", [
        ("1704240000001-seed-iam-users.ts", True),
        ("1704240000001-seed-iam-role-permissions.ts", True),
        ("1704240000001-seed-users.ts", False),
        ("seed-users.ts", False),
        ("1704240000001-seed-IAM-users.ts", False),
    ])
    def test_seed_name_pattern(self, name, valid):
        assert bool(SEED_NAME_PATTERN.match(name)) is valid


class TestExistence:
    """Test missing file handling."""

    @pytest.mark.asyncio
    async def test_missing_migration(self, pattern_validator, module_dir):
        path = str(module_dir / "migrations" / "1704240000009-Missing.ts")
        result = await pattern_validator.validate(_target(module_dir, migrations=[path]))

        assert [issue.rule for issue in result.issues] == ["migration-existence"]
        assert result.issues[0].id == "migration-existence-1704240000009-Missing.ts"
        assert not result.is_valid

    @pytest.mark.asyncio
    async def test_missing_seed_skips_content_checks(self, pattern_validator, module_dir):
        path = str(module_dir / "seeds" / "1704240000009-seed-iam-users.ts")
        result = await pattern_validator.validate(_target(module_dir, seeds=[path]))
        assert [issue.rule for issue in result.issues] == ["seed-existence"]


class TestMigrationContent:
    """Test migration structure and content rules."""

    @pytest.mark.asyncio
    async def test_missing_down_method(self, pattern_validator, module_dir, write_file):
        content = (
            "export class CreateUsersTable1704240000001 {\n"
            "  public async up(queryRunner: QueryRunner): Promise<void> {}\n"
            "}\n"
        )
        path = write_file("migrations", "1704240000001-CreateUsersTable.ts", content)
        result = await pattern_validator.validate(_target(module_dir, migrations=[path]))

        assert result.find_issue("migration-up-method-1704240000001-CreateUsersTable.ts") is None
        issue = result.find_issue("migration-down-method-1704240000001-CreateUsersTable.ts")
        assert issue.severity == IssueSeverity.ERROR
        assert issue.auto_fixable

    @pytest.mark.asyncio
    async def test_signature_without_visibility_modifier(self, pattern_validator, module_dir, write_file):
        content = (
            "export class A {\n"
            "  async up(queryRunner: QueryRunner): Promise<void> {}\n"
            "  async down(queryRunner: QueryRunner): Promise<void> {}\n"
            "}\n"
        )
        path = write_file("migrations", "1704240000001-A.ts", content)
        result = await pattern_validator.validate(_target(module_dir, migrations=[path]))
        assert result.issues == []

    @pytest.mark.asyncio
    async def test_create_database_always_flagged(self, pattern_validator, module_dir, write_file, sources):
        content = sources.valid_migration.replace(
            'await queryRunner.query(`DROP TABLE IF EXISTS "users"`);',
            'await queryRunner.query(`CREATE DATABASE telemetryflow_db`);'
        )
        path = write_file("migrations", "1704240000001-CreateUsersTable.ts", content)
        result = await pattern_validator.validate(_target(module_dir, migrations=[path]))

        issues = result.issues_for_rule("migration-hardcoded-values")
        assert len(issues) == 1
        assert issues[0].severity == IssueSeverity.ERROR
        assert not issues[0].auto_fixable
        assert "telemetryflow_db" in issues[0].message
        assert result.fixes == []
        assert not result.is_valid

    @pytest.mark.asyncio
    async def test_env_vars_warning(self, pattern_validator, module_dir, write_file, sources):
        content = sources.valid_migration.replace(
            "export class", "const HOST = 'db';\nexport class"
        )
        path = write_file("migrations", "1704240000001-CreateUsersTable.ts", content)
        result = await pattern_validator.validate(_target(module_dir, migrations=[path]))

        issue = result.find_issue("migration-env-vars-1704240000001-CreateUsersTable.ts")
        assert issue.severity == IssueSeverity.WARNING
        assert result.is_valid

    @pytest.mark.asyncio
    async def test_env_vars_used(self, pattern_validator, module_dir, write_file, sources):
        content = sources.valid_migration.replace(
            "export class", "const HOST = process.env.DB_HOST;\nexport class"
        )
        path = write_file("migrations", "1704240000001-CreateUsersTable.ts", content)
        result = await pattern_validator.validate(_target(module_dir, migrations=[path]))
        assert result.issues_for_rule("migration-env-vars") == []


class TestSeedContent:
    """Test seed content rules."""

    @pytest.mark.asyncio
    async def test_bare_seed(self, pattern_validator, module_dir, write_file, sources):
        path = write_file("seeds", "1704240000001-seed-iam-users.ts", sources.bare_seed)
        result = await pattern_validator.validate(_target(module_dir, seeds=[path]))

        by_rule = {issue.rule: issue for issue in result.issues}
        assert by_rule["seed-error-handling"].severity == IssueSeverity.WARNING
        assert by_rule["seed-idempotency"].severity == IssueSeverity.WARNING
        assert by_rule["seed-logging"].severity == IssueSeverity.INFO
        assert all(issue.auto_fixable for issue in result.issues)
        assert result.is_valid

    @pytest.mark.asyncio
    async def test_hardcoded_loopback(self, pattern_validator, module_dir, write_file, sources):
        content = sources.valid_seed.replace("const repository", "const host = 'localhost';\n  const repository")
        path = write_file("seeds", "1704240000001-seed-iam-users.ts", content)
        result = await pattern_validator.validate(_target(module_dir, seeds=[path]))

        issue = result.find_issue("seed-hardcoded-values-1704240000001-seed-iam-users.ts")
        assert issue.severity == IssueSeverity.ERROR
        assert "'localhost'" in issue.message
        assert not result.is_valid


class TestNameSuggestions:
    """Test rename target derivation."""

    @pytest.mark.parametrize("current,expected", [
        ("create-users-table.ts", "1704240000001-CreateUsersTable.ts"),
        ("create_users_table.ts", "1704240000001-CreateUsersTable.ts"),
        ("1704240000777-createUsers.ts", "1704240000777-CreateUsers.ts"),
        ("1704240000777-add_roles.ts", "1704240000777-AddRoles.ts"),
        ("---.ts", "1704240000001-Migration.ts"),
    ])
    def test_migration_names(self, current, expected):
        assert suggest_migration_name(current, timestamp="1704240000001") == expected

    @pytest.mark.parametrize("current,expected", [
        ("seed-users.ts", "1704240000001-seed-users-entity.ts"),
        ("1704240000002-seed_iam_roles.ts", "1704240000002-seed-iam-roles.ts"),
        ("seedIamRolePermissions.ts", "1704240000001-seed-iam-role-permissions.ts"),
        ("seed.ts", "1704240000001-seed-module-entity.ts"),
    ])
    def test_seed_names(self, current, expected):
        assert suggest_seed_name(current, timestamp="1704240000001") == expected

    def test_suggestions_follow_conventions(self):
        assert MIGRATION_NAME_PATTERN.match(suggest_migration_name("2-fix-things.ts"))
        assert SEED_NAME_PATTERN.match(suggest_seed_name("users.ts"))

    def test_generated_timestamp_has_thirteen_digits(self):
        name = suggest_migration_name("create-users.ts")
        assert re.match(r"^\d{13}-CreateUsers\.ts$", name)


class TestRenameFixes:
    """Test applying the rename fixes."""

    @pytest.mark.asyncio
    async def test_rename_migration(self, pattern_validator, module_dir, write_file, sources):
        path = write_file("migrations", "1704240000001-create-users-table.ts", sources.valid_migration)
        result = await pattern_validator.validate(_target(module_dir, migrations=[path]))

        await pattern_validator.apply_fix(result.fixes[0])

        renamed = module_dir / "migrations" / "1704240000001-CreateUsersTable.ts"
        assert renamed.is_file()
        assert not Path(path).exists()
        assert renamed.read_text() == sources.valid_migration

        rerun = await pattern_validator.validate(_target(module_dir, migrations=[str(renamed)]))
        assert rerun.is_valid

    @pytest.mark.asyncio
    async def test_rename_seed(self, pattern_validator, module_dir, write_file, sources):
        path = write_file("seeds", "1704240000001-seed_iam_users.ts", sources.valid_seed)
        result = await pattern_validator.validate(_target(module_dir, seeds=[path]))

        await pattern_validator.apply_fix(result.fixes[0])

        assert (module_dir / "seeds" / "1704240000001-seed-iam-users.ts").is_file()

    @pytest.mark.asyncio
    async def test_rename_refuses_to_overwrite(self, pattern_validator, module_dir, write_file, sources):
        path = write_file("migrations", "1704240000001-create-users-table.ts", sources.valid_migration)
        write_file("migrations", "1704240000001-CreateUsersTable.ts", "existing")
        result = await pattern_validator.validate(_target(module_dir, migrations=[path]))

        with pytest.raises(FixError):
            await pattern_validator.apply_fix(result.fixes[0])
        assert Path(path).exists()


def test_requirements_catalog(pattern_validator):
    requirements = pattern_validator.get_requirements()
    ids = [requirement.id for requirement in requirements]
    assert len(requirements) >= 10
    assert len(set(ids)) == len(ids)
    assert {"migration-naming", "seed-naming", "migration-hardcoded-values"} <= set(ids)


def test_validator_name():
    assert DatabasePatternValidator().name == "DatabasePatternValidator"

"""
Tests for batch fix application.
"""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from quality_gate.core.exceptions import FixError
from quality_gate.fixes import FixApplier
from quality_gate.models import Fix, FixStatus, ValidationTarget
from quality_gate.validators.quality import QualityFixAction


@pytest.fixture
def bare_seed_target(module_dir, write_file, sources):
    path = write_file("seeds", "1704240000001-seed-iam-users.ts", sources.bare_seed)
    return ValidationTarget(module_path=str(module_dir), seed_paths=[path])


class TestFixApplier:
    """Test cases for FixApplier."""

    @pytest.mark.asyncio
    async def test_applies_every_fix(self, quality_validator, bare_seed_target):
        result = await quality_validator.validate(bare_seed_target)

        batch = await FixApplier().apply_fixes(quality_validator, result)

        assert len(batch.applied) == 3
        assert batch.success
        rerun = await quality_validator.validate(bare_seed_target)
        assert rerun.is_valid

    @pytest.mark.asyncio
    async def test_dry_run_leaves_files_untouched(self, quality_validator, bare_seed_target, sources):
        result = await quality_validator.validate(bare_seed_target)

        batch = await FixApplier(dry_run=True).apply_fixes(quality_validator, result)

        assert len(batch.skipped) == 3
        assert all(outcome.message == "Dry run" for outcome in batch.skipped)
        assert Path(bare_seed_target.seed_paths[0]).read_text() == sources.bare_seed

    @pytest.mark.asyncio
    async def test_subset_of_fixes(self, quality_validator, bare_seed_target):
        result = await quality_validator.validate(bare_seed_target)
        logging_fix = [fix for fix in result.fixes if fix.action == QualityFixAction.ADD_SEED_LOGGING]

        batch = await FixApplier().apply_fixes(quality_validator, result, logging_fix)

        assert [outcome.fix for outcome in batch.applied] == logging_fix
        rerun = await quality_validator.validate(bare_seed_target)
        assert rerun.issues_for_rule("seed-logging") == []
        assert rerun.issues_for_rule("seed-idempotency") != []

    @pytest.mark.asyncio
    async def test_fix_without_issue_is_skipped(self, quality_validator, bare_seed_target):
        result = await quality_validator.validate(bare_seed_target)
        stray = Fix("seed-logging-other.ts", "Add logging", QualityFixAction.ADD_SEED_LOGGING, {})

        batch = await FixApplier().apply_fixes(quality_validator, result, [stray])

        assert batch.outcomes[0].status == FixStatus.SKIPPED

    @pytest.mark.asyncio
    async def test_not_auto_fixable_issue_is_skipped(self, quality_validator, bare_seed_target):
        result = await quality_validator.validate(bare_seed_target)
        result.issues[0].auto_fixable = False
        fix = next(fix for fix in result.fixes if fix.issue_id == result.issues[0].id)

        batch = await FixApplier().apply_fixes(quality_validator, result, [fix])

        assert batch.outcomes[0].status == FixStatus.SKIPPED
        assert "not auto-fixable" in batch.outcomes[0].message

    @pytest.mark.asyncio
    async def test_failure_is_recorded_and_batch_continues(self, quality_validator, bare_seed_target):
        result = await quality_validator.validate(bare_seed_target)
        quality_validator.apply_fix = AsyncMock(side_effect=[FixError("no anchor"), None, None])

        batch = await FixApplier().apply_fixes(quality_validator, result)

        assert [outcome.status for outcome in batch.outcomes] == [
            FixStatus.FAILED, FixStatus.APPLIED, FixStatus.APPLIED
        ]
        assert batch.failed[0].message == "no anchor"
        assert not batch.success
        assert quality_validator.apply_fix.await_count == 3

    @pytest.mark.asyncio
    async def test_undecodable_file_fails_without_aborting_batch(self, quality_validator, module_dir, write_file,
                                                                 sources):
        broken = write_file("seeds", "1704240000001-seed-iam-roles.ts", sources.bare_seed)
        healthy = write_file("seeds", "1704240000002-seed-iam-users.ts", sources.bare_seed)
        target = ValidationTarget(module_path=str(module_dir), seed_paths=[broken, healthy])
        result = await quality_validator.validate(target)
        Path(broken).write_bytes(b"\xff\xfe" + sources.bare_seed.encode("utf-8"))
        logging_fixes = [fix for fix in result.fixes if fix.action == QualityFixAction.ADD_SEED_LOGGING]

        batch = await FixApplier().apply_fixes(quality_validator, result, logging_fixes)

        assert [outcome.status for outcome in batch.outcomes] == [FixStatus.FAILED, FixStatus.APPLIED]
        assert broken in batch.failed[0].message
        assert "console.log(" in Path(healthy).read_text()

    @pytest.mark.asyncio
    async def test_unexpected_error_is_recorded_as_failure(self, quality_validator, bare_seed_target):
        result = await quality_validator.validate(bare_seed_target)
        quality_validator.apply_fix = AsyncMock(side_effect=[ValueError("bad offset"), None, None])

        batch = await FixApplier().apply_fixes(quality_validator, result)

        assert [outcome.status for outcome in batch.outcomes] == [
            FixStatus.FAILED, FixStatus.APPLIED, FixStatus.APPLIED
        ]
        assert batch.failed[0].message == "bad offset"

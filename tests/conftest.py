"""
Pytest configuration and fixtures for the quality gate tests.

Provides module source files (migrations, seeds, entities) written to a
temporary module directory, validation targets and coverage datasets.
"""

from pathlib import Path
from types import SimpleNamespace
from typing import Callable, Dict, List

import pytest

from quality_gate.config import GateConfig
from quality_gate.models import Layer, ValidationTarget
from quality_gate.validators.coverage_data import FileCoverageData, MetricCounts
from quality_gate.validators.patterns import DatabasePatternValidator
from quality_gate.validators.quality import DatabaseQualityValidator


VALID_MIGRATION = '''import { MigrationInterface, QueryRunner } from 'typeorm';

export class CreateUsersTable1704240000001 implements MigrationInterface {
  public async up(queryRunner: QueryRunner): Promise<void> {
    await queryRunner.query(`
      CREATE TABLE IF NOT EXISTS "users" (
        "id" uuid PRIMARY KEY DEFAULT uuid_generate_v4(),
        "email" varchar(255) NOT NULL,
        "organization_id" uuid NOT NULL,
        "deleted_at" timestamp NULL,
        CONSTRAINT "FK_users_organization" FOREIGN KEY ("organization_id") REFERENCES "organizations"("id")
      )
    `);
    await queryRunner.query(`CREATE INDEX IF NOT EXISTS "IDX_users_email" ON "users"("email")`);
    await queryRunner.query(`CREATE INDEX IF NOT EXISTS "IDX_users_organization_id" ON "users"("organization_id")`);
  }

  public async down(queryRunner: QueryRunner): Promise<void> {
    await queryRunner.query(`DROP TABLE IF EXISTS "users"`);
  }
}
'''

UNCONSTRAINED_MIGRATION = '''import { MigrationInterface, QueryRunner } from 'typeorm';

export class CreateMembershipsTable1704240000002 implements MigrationInterface {
  public async up(queryRunner: QueryRunner): Promise<void> {
    await queryRunner.query(`
      CREATE TABLE "memberships" (
        "id" uuid PRIMARY KEY DEFAULT uuid_generate_v4(),
        "organization_id" uuid NOT NULL,
        "status" varchar(50) NOT NULL
      )
    `);
    await queryRunner.query(`CREATE INDEX "memberships_status" ON "memberships"("status")`);
  }

  public async down(queryRunner: QueryRunner): Promise<void> {
    await queryRunner.query(`DROP TABLE IF EXISTS "memberships"`);
  }
}
'''

ROLES_MIGRATION = '''import { MigrationInterface, QueryRunner } from 'typeorm';

export class CreateRolesTable1704240000003 implements MigrationInterface {
  public async up(queryRunner: QueryRunner): Promise<void> {
    await queryRunner.query(`
      CREATE TABLE "roles" (
        "id" uuid PRIMARY KEY DEFAULT uuid_generate_v4(),
        "title" character varying(100) NOT NULL
      )
    `);
  }

  public async down(queryRunner: QueryRunner): Promise<void> {
    await queryRunner.query(`DROP TABLE IF EXISTS "roles"`);
  }
}
'''

VALID_SEED = '''import { DataSource } from 'typeorm';

export async function seedIamUsers(dataSource: DataSource): Promise<void> {
  const repository = dataSource.getRepository('users');
  try {
    const existing = await repository.findOne({ where: { email: 'admin@example.com' } });
    if (existing) {
      console.log('Admin user already exists, skipping');
      return;
    }
    await repository.save({ email: 'admin@example.com', firstName: 'Admin' });
    console.log('Seeded admin user');
  } catch (error) {
    console.error('Failed to seed users:', error);
    throw error;
  }
}
'''

BARE_SEED = '''import { DataSource } from 'typeorm';

export async function seedUsers(dataSource: DataSource): Promise<void> {
  const repository = dataSource.getRepository('users');
  await repository.save({ email: 'admin@example.com' });
}
'''

VALID_ENTITY = '''import { Entity, PrimaryGeneratedColumn, Column, CreateDateColumn, UpdateDateColumn, DeleteDateColumn } from 'typeorm';

@Entity('users')
export class UserEntity {
  @PrimaryGeneratedColumn('uuid')
  id: string;

  @Column()
  email: string;

  @CreateDateColumn({ name: 'created_at' })
  createdAt: Date;

  @UpdateDateColumn({ name: 'updated_at' })
  updatedAt: Date;

  @DeleteDateColumn({ name: 'deleted_at' })
  deletedAt?: Date;
}
'''

BARE_ENTITY = '''export class RoleEntity {
  id: string;
  name: string;
  code: string;
}
'''


@pytest.fixture
def module_dir(tmp_path) -> Path:
    """Temporary module root with migrations, seeds and entities directories."""
    root = tmp_path / "modules" / "iam"
    for sub in ("migrations", "seeds", "entities"):
        (root / sub).mkdir(parents=True)
    return root


@pytest.fixture
def write_file(module_dir) -> Callable[[str, str, str], str]:
    """Write a module source file and return its path."""
    def _write(sub: str, name: str, content: str) -> str:
        path = module_dir / sub / name
        path.write_text(content, encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture
def valid_target(module_dir, write_file) -> ValidationTarget:
    """A module whose files satisfy every rule."""
    return ValidationTarget(
        module_path=str(module_dir),
        migration_paths=[write_file("migrations", "1704240000001-CreateUsersTable.ts", VALID_MIGRATION)],
        seed_paths=[write_file("seeds", "1704240000001-seed-iam-users.ts", VALID_SEED)],
        entity_paths=[write_file("entities", "user.entity.ts", VALID_ENTITY)],
    )


@pytest.fixture
def pattern_validator() -> DatabasePatternValidator:
    return DatabasePatternValidator()


@pytest.fixture
def quality_validator() -> DatabaseQualityValidator:
    return DatabaseQualityValidator()


@pytest.fixture
def gate_config(module_dir) -> GateConfig:
    return GateConfig(module_path=str(module_dir))


def make_file_coverage(
    file_path: str,
    layer: Layer,
    covered: int,
    total: int = 100,
    uncovered_lines: List[int] = None
) -> FileCoverageData:
    """Coverage entry whose four metrics all have ``covered`` out of ``total``."""
    return FileCoverageData(
        file_path=file_path,
        layer=layer,
        lines=MetricCounts(total, covered),
        functions=MetricCounts(total, covered),
        branches=MetricCounts(total, covered),
        statements=MetricCounts(total, covered),
        uncovered_lines=list(uncovered_lines or []),
    )


LAYER_PATHS: Dict[Layer, str] = {
    Layer.DOMAIN: "src/modules/iam/domain/aggregates/User.ts",
    Layer.APPLICATION: "src/modules/iam/application/commands/CreateUserHandler.ts",
    Layer.INFRASTRUCTURE: "src/modules/iam/infrastructure/persistence/UserRepository.ts",
    Layer.PRESENTATION: "src/modules/iam/presentation/controllers/UserController.ts",
}


@pytest.fixture
def passing_coverage() -> List[FileCoverageData]:
    """Every layer exactly at its threshold."""
    return [
        make_file_coverage(LAYER_PATHS[Layer.DOMAIN], Layer.DOMAIN, 95),
        make_file_coverage(LAYER_PATHS[Layer.APPLICATION], Layer.APPLICATION, 90),
        make_file_coverage(LAYER_PATHS[Layer.INFRASTRUCTURE], Layer.INFRASTRUCTURE, 85),
        make_file_coverage(LAYER_PATHS[Layer.PRESENTATION], Layer.PRESENTATION, 85),
    ]


@pytest.fixture
def make_coverage() -> Callable[..., FileCoverageData]:
    return make_file_coverage


@pytest.fixture
def layer_paths() -> Dict[Layer, str]:
    return dict(LAYER_PATHS)


@pytest.fixture
def sources() -> SimpleNamespace:
    """Sample TypeScript sources."""
    return SimpleNamespace(
        valid_migration=VALID_MIGRATION,
        unconstrained_migration=UNCONSTRAINED_MIGRATION,
        roles_migration=ROLES_MIGRATION,
        valid_seed=VALID_SEED,
        bare_seed=BARE_SEED,
        valid_entity=VALID_ENTITY,
        bare_entity=BARE_ENTITY,
    )

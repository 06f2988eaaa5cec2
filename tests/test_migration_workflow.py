from __future__ import annotations

import shutil
from pathlib import Path

import pytest
from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine, inspect

from shipwright.core.settings import Settings
from shipwright.errors import ConfigError, MigrationError
from shipwright.migrations.environment import load_metadata
from shipwright.migrations.workflow import ENV_PY, MigrationWorkflow

from conftest import DEMO_ROOT

BROKEN_REVISION = '''\
"""broken"""

revision = "badc0ffee001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    raise RuntimeError("this revision cannot be applied")


def downgrade() -> None:
    pass
'''


def _versions(settings: Settings) -> list[Path]:
    return sorted((Path(settings.migrations_dir) / "versions").glob("*.py"))


def _temp_files(settings: Settings) -> list[Path]:
    temp = Path(settings.migration_temp_db)
    return [p for p in temp.parent.glob(temp.name + "*")]


def test_init_creates_repository(workflow: MigrationWorkflow, migration_settings: Settings):
    repo = Path(migration_settings.migrations_dir)

    assert (repo / "env.py").read_text(encoding="utf-8") == ENV_PY
    assert (repo / "versions").is_dir()
    assert (repo / "script.py.mako").exists()
    assert Path(migration_settings.alembic_config_file).exists()


def test_init_refuses_non_empty_directory(workflow: MigrationWorkflow):
    with pytest.raises(MigrationError) as ei:
        workflow.init()
    assert ei.value.step == "init"


def test_first_run_generates_initial_revision(workflow: MigrationWorkflow, migration_settings: Settings):
    path = workflow.autogenerate("create notes")

    assert path is not None
    assert _versions(migration_settings) == [path]
    text = path.read_text(encoding="utf-8")
    assert "create_table('notes'" in text
    assert _temp_files(migration_settings) == []
    # the application's own database is never touched
    assert not (Path(migration_settings.migrations_dir).parent / "app.db").exists()


def test_second_run_without_model_changes_writes_nothing(workflow: MigrationWorkflow, migration_settings: Settings):
    first = workflow.autogenerate("create notes")

    second = workflow.autogenerate("nothing changed")

    assert second is None
    assert _versions(migration_settings) == [first]
    assert _temp_files(migration_settings) == []


def test_model_change_yields_exactly_one_revision(
    workflow: MigrationWorkflow, migration_settings: Settings, models: MetaData
):
    first = workflow.autogenerate("create notes")
    Table("tags", models, Column("id", Integer, primary_key=True), Column("name", String(64), nullable=False))

    second = workflow.autogenerate("add tags")

    assert second is not None
    assert _versions(migration_settings) == sorted([first, second])
    text = second.read_text(encoding="utf-8")
    assert "create_table('tags'" in text
    assert "create_table('notes'" not in text
    assert first.name.split("_", 1)[0] in text  # down_revision chains to the first
    assert workflow.autogenerate("again") is None


def test_broken_history_aborts_and_cleans_up(workflow: MigrationWorkflow, migration_settings: Settings):
    broken = Path(migration_settings.migrations_dir) / "versions" / "badc0ffee001_broken.py"
    broken.write_text(BROKEN_REVISION, encoding="utf-8")

    with pytest.raises(MigrationError) as ei:
        workflow.autogenerate("should not be written")

    assert ei.value.step == "upgrade"
    assert _versions(migration_settings) == [broken]
    assert _temp_files(migration_settings) == []


def test_failed_cleanup_does_not_mask_migration_error(
    workflow: MigrationWorkflow, migration_settings: Settings, monkeypatch, caplog
):
    (Path(migration_settings.migrations_dir) / "versions" / "badc0ffee001_broken.py").write_text(
        BROKEN_REVISION, encoding="utf-8"
    )
    real_discard = workflow.discard_temp_database
    calls = []

    def discard():
        calls.append(1)
        if len(calls) > 1:
            raise PermissionError("scratch database is locked")
        return real_discard()

    monkeypatch.setattr(workflow, "discard_temp_database", discard)

    with pytest.raises(MigrationError) as ei:
        workflow.autogenerate("should not be written")

    assert ei.value.step == "upgrade"
    assert len(calls) == 2
    assert "Could not remove scratch database" in caplog.text


def test_stale_scratch_database_is_replaced(workflow: MigrationWorkflow, migration_settings: Settings):
    temp = Path(migration_settings.migration_temp_db)
    temp.write_bytes(b"left over from a crashed run")
    Path(str(temp) + "-journal").write_bytes(b"")

    path = workflow.autogenerate("create notes")

    assert path is not None
    assert _temp_files(migration_settings) == []


def test_upgrade_applies_generated_revisions(workflow: MigrationWorkflow, migration_settings: Settings):
    workflow.autogenerate("create notes")

    workflow.upgrade()

    engine = create_engine(migration_settings.database_url)
    try:
        tables = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
    assert {"notes", "alembic_version"} <= tables


def test_upgrade_failure_is_wrapped(workflow: MigrationWorkflow, migration_settings: Settings):
    (Path(migration_settings.migrations_dir) / "versions" / "badc0ffee001_broken.py").write_text(
        BROKEN_REVISION, encoding="utf-8"
    )

    with pytest.raises(MigrationError) as ei:
        workflow.upgrade()
    assert ei.value.step == "upgrade"


def test_demo_revisions_match_demo_models(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    shutil.copytree(DEMO_ROOT / "alembic", tmp_path / "alembic")
    settings = Settings(
        alembic_config_file=str(DEMO_ROOT / "alembic.ini"),
        migrations_dir=str(tmp_path / "alembic"),
        migration_temp_db=str(tmp_path / ".autogen.db"),
        target_metadata="notes.db.base:Base.metadata",
    )

    assert MigrationWorkflow(settings).autogenerate("demo drift") is None
    assert not (tmp_path / ".autogen.db").exists()


def test_load_metadata():
    from notes.db.base import Base

    assert load_metadata("notes.db.base:Base.metadata") is Base.metadata
    with pytest.raises(ConfigError):
        load_metadata("notes.db.base")
    with pytest.raises(ConfigError):
        load_metadata("notes.db.base:Base")

from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from shipwright.cli import app

from conftest import DEMO_ROOT

runner = CliRunner()


def test_wheel_inspect(compiled_wheel: Path):
    result = runner.invoke(app, ["wheel", "inspect", str(compiled_wheel)])

    assert result.exit_code == 0, result.output
    assert "cp312" in result.output
    assert "linux_x86_64" in result.output


def test_wheel_verify_filter_verify(compiled_wheel: Path):
    result = runner.invoke(app, ["wheel", "verify", str(compiled_wheel), "-x", "notes/main.py"])
    assert result.exit_code == 2
    assert "notes/core.py" in result.output

    result = runner.invoke(app, ["wheel", "filter", str(compiled_wheel), "-x", "notes/main.py"])
    assert result.exit_code == 0, result.output
    assert "removed notes/core.py" in result.output

    result = runner.invoke(app, ["wheel", "verify", str(compiled_wheel), "-x", "notes/main.py"])
    assert result.exit_code == 0, result.output
    assert "OK" in result.output


def test_wheel_inspect_bad_name(tmp_path: Path):
    bogus = tmp_path / "notes.tar.gz"
    bogus.write_bytes(b"")

    result = runner.invoke(app, ["wheel", "inspect", str(bogus)])

    assert result.exit_code == 1


def test_sources_lists_demo_selection():
    result = runner.invoke(app, ["sources", "--project", str(DEMO_ROOT)])

    assert result.exit_code == 0, result.output
    assert "compile" in result.output
    assert "source" in result.output


def test_sources_missing_manifest(tmp_path: Path):
    result = runner.invoke(app, ["sources", "--project", str(tmp_path)])

    assert result.exit_code == 1


def test_db_commands_use_environment(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ALEMBIC_CONFIG", str(tmp_path / "alembic.ini"))
    monkeypatch.setenv("MIGRATIONS_DIR", str(tmp_path / "migrations"))
    monkeypatch.setenv("MIGRATION_TEMP_DB", str(tmp_path / ".autogen.db"))
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{(tmp_path / 'notes.db').as_posix()}")
    monkeypatch.setenv("TARGET_METADATA", "notes.db.base:Base.metadata")

    result = runner.invoke(app, ["db", "init"])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["db", "autogenerate", "-m", "initial"])
    assert result.exit_code == 0, result.output
    assert "generated" in result.output
    assert len(list((tmp_path / "migrations" / "versions").glob("*.py"))) == 1

    result = runner.invoke(app, ["db", "autogenerate", "-m", "again"])
    assert result.exit_code == 0, result.output
    assert "No changes detected" in result.output

    result = runner.invoke(app, ["db", "upgrade"])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "notes.db").exists()
    assert not (tmp_path / ".autogen.db").exists()

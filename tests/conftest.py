from __future__ import annotations

import csv
import io
from pathlib import Path
import sys
import zipfile

# Ensure the demo application is importable
REPO_ROOT = Path(__file__).resolve().parents[1]
DEMO_ROOT = REPO_ROOT / "demo"
sys.path.insert(0, str(DEMO_ROOT))


import pytest
from sqlalchemy import Column, Integer, MetaData, String, Table

from shipwright.core.settings import Settings
from shipwright.migrations.workflow import MigrationWorkflow

BINARY = ".cpython-312-x86_64-linux-gnu.so"
WHEEL_NAME = "notes-0.1.0-cp312-cp312-linux_x86_64.whl"


def make_wheel(path: Path, members: dict[str, bytes]) -> Path:
    """Write a minimal wheel with a RECORD listing every member."""
    dist_info = "notes-0.1.0.dist-info"
    files = dict(members)
    files[f"{dist_info}/METADATA"] = b"Metadata-Version: 2.1\nName: notes\nVersion: 0.1.0\n"
    files[f"{dist_info}/WHEEL"] = b"Wheel-Version: 1.0\nRoot-Is-Purelib: false\nTag: cp312-cp312-linux_x86_64\n"
    record = io.StringIO()
    writer = csv.writer(record, lineterminator="\n")
    writer.writerows([name, "sha256=x", len(data)] for name, data in files.items())
    writer.writerow([f"{dist_info}/RECORD", "", ""])
    files[f"{dist_info}/RECORD"] = record.getvalue().encode("utf-8")

    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as z:
        for name, data in files.items():
            z.writestr(name, data)
    return path


@pytest.fixture()
def compiled_wheel(tmp_path: Path) -> Path:
    # core compiled, main excluded, __init__ left as source
    return make_wheel(
        tmp_path / "dist" / WHEEL_NAME,
        {
            "notes/__init__.py": b"",
            "notes/core.py": b"def f():\n    return 1\n",
            f"notes/core{BINARY}": b"\x7fELF",
            "notes/main.py": b"from notes.core import f\n",
        },
    )


@pytest.fixture()
def migration_settings(tmp_path: Path, monkeypatch) -> Settings:
    monkeypatch.chdir(tmp_path)
    return Settings(
        alembic_config_file=str(tmp_path / "alembic.ini"),
        migrations_dir=str(tmp_path / "migrations"),
        migration_temp_db=str(tmp_path / ".autogen.db"),
        database_url=f"sqlite:///{(tmp_path / 'app.db').as_posix()}",
        target_metadata="notes.db.base:Base.metadata",
    )


@pytest.fixture()
def models() -> MetaData:
    md = MetaData()
    Table(
        "notes",
        md,
        Column("id", Integer, primary_key=True),
        Column("title", String(200), nullable=False),
    )
    return md


@pytest.fixture()
def workflow(migration_settings: Settings, models: MetaData) -> MigrationWorkflow:
    wf = MigrationWorkflow(migration_settings, target_metadata=models)
    wf.init()
    return wf

from __future__ import annotations

import logging
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from shipwright.errors import BuildError, WheelError
from shipwright.packaging.build_py import EXT_SUFFIX, compiled_counterpart
from shipwright.packaging.config import BuildConfig, load_build_config
from shipwright.packaging.selection import select_sources
from shipwright.packaging.wheel import FilterReport, WheelName, filter_wheel, verify_wheel

logger = logging.getLogger(__name__)

Runner = Callable[..., "subprocess.CompletedProcess[str]"]


@dataclass
class BuildResult:
    wheel: Path
    name: WheelName
    report: FilterReport
    problems: List[str]


class PackagingPipeline:
    """Drives setuptools through ``shipwright.packaging.setup_script``.

    Order for a binary wheel: ``build_ext --inplace`` so binaries land beside the
    sources, then ``bdist_wheel`` which drops the shadowed sources, then a
    post-build filter and verification of the archive.
    """

    def __init__(
        self,
        project_root: str | Path = ".",
        config_file: str = "shipwright.yaml",
        *,
        dist_dir: str = "dist",
        python: str = sys.executable,
        runner: Optional[Runner] = None,
    ) -> None:
        self.project_root = Path(project_root).resolve()
        self.config_path = self.project_root / config_file
        self.dist_dir = self.project_root / dist_dir
        self.python = python
        self._run = runner or subprocess.run
        self._config: Optional[BuildConfig] = None

    @property
    def config(self) -> BuildConfig:
        if self._config is None:
            self._config = load_build_config(self.config_path)
        return self._config

    def _setup(self, *args: str) -> str:
        cmd = [self.python, "-m", "shipwright.packaging.setup_script", str(self.config_path), *args]
        logger.info("Running %s", " ".join(args))
        proc = self._run(
            cmd,
            cwd=str(self.project_root),
            capture_output=True,
            text=True,
            check=False,
        )
        output = (proc.stdout or "") + (proc.stderr or "")
        if proc.returncode != 0:
            logger.error("setup %s failed (exit %s)", " ".join(args), proc.returncode)
            raise BuildError(cmd, proc.returncode, output)
        logger.debug("%s", output)
        return output

    def build_sdist(self) -> str:
        return self._setup("sdist", "--dist-dir", str(self.dist_dir))

    def build_inplace(self) -> str:
        return self._setup("build_ext", "--inplace")

    def build_wheel(self) -> Path:
        before = set(self.dist_dir.glob("*.whl")) if self.dist_dir.exists() else set()
        self._setup("bdist_wheel", "--dist-dir", str(self.dist_dir))
        return self._newest_wheel(before)

    def _newest_wheel(self, before: Sequence[Path] = ()) -> Path:
        wheels = [p for p in self.dist_dir.glob("*.whl")] if self.dist_dir.exists() else []
        if not wheels:
            raise WheelError(f"No wheel produced in {self.dist_dir}")
        fresh = [p for p in wheels if p not in set(before)]
        return max(fresh or wheels, key=lambda p: p.stat().st_mtime)

    def run(self) -> BuildResult:
        self.build_inplace()
        wheel = self.build_wheel()
        name = WheelName.parse(wheel)
        if name.is_pure:
            logger.warning("Wheel %s is not platform specific; were any modules compiled?", wheel.name)
        report = filter_wheel(wheel, self.config.exclude)
        problems = verify_wheel(wheel, self.config.exclude)
        for p in problems:
            logger.warning("%s: %s", wheel.name, p)
        return BuildResult(wheel=wheel, name=name, report=report, problems=problems)

    def clean(self) -> List[Path]:
        """Remove in-place binaries and the C that Cython generated for them."""
        removed: List[Path] = []
        build_dir = self.project_root / self.config.build_dir
        for rel in select_sources(self.project_root, self.config.exclude, self.config.top_level_dirs()):
            src = self.project_root / rel
            candidates = (
                Path(compiled_counterpart(str(src), EXT_SUFFIX)),
                (build_dir / rel).with_suffix(".c"),
                src.with_suffix(".c"),
            )
            for artifact in candidates:
                if artifact.exists():
                    artifact.unlink()
                    removed.append(artifact)
        _prune_empty_dirs(build_dir)
        for p in removed:
            logger.info("Removed %s", p.relative_to(self.project_root))
        return removed


def _prune_empty_dirs(root: Path) -> None:
    if not root.is_dir():
        return
    for d in sorted((p for p in root.rglob("*") if p.is_dir()), key=lambda p: len(p.parts), reverse=True):
        if not any(d.iterdir()):
            d.rmdir()
    if not any(root.iterdir()):
        root.rmdir()

from __future__ import annotations

import logging
import os
import shutil
import sysconfig
from typing import FrozenSet, Iterable, List, Tuple

from setuptools.command.build_py import build_py as _build_py
from setuptools.command.sdist import sdist as _sdist

from shipwright.packaging.selection import SOURCE_SUFFIX, normalize_path

logger = logging.getLogger(__name__)

EXT_SUFFIX: str = sysconfig.get_config_var("EXT_SUFFIX") or (".pyd" if os.name == "nt" else ".so")


def compiled_counterpart(path: str, ext_suffix: str = EXT_SUFFIX) -> str:
    """``pkg/core.py`` -> ``pkg/core.cpython-312-x86_64-linux-gnu.so``."""
    if not path.endswith(SOURCE_SUFFIX):
        raise ValueError(f"not a source file: {path}")
    return path[: -len(SOURCE_SUFFIX)] + ext_suffix


class BuildPy(_build_py):
    """``build_py`` that leaves out modules already compiled in place.

    Run ``build_ext --inplace`` first so the binaries sit next to their sources;
    every module with such a sibling is dropped from the wheel while the binary
    itself is shipped by ``build_ext``. Files listed in ``excluded`` are always
    kept as source. ``sdist`` asks for the full module list through
    ``get_source_files`` and gets it unfiltered.
    """

    excluded: FrozenSet[str] = frozenset()
    ext_suffix: str = EXT_SUFFIX

    _unfiltered = False

    def get_source_files(self) -> List[str]:
        self._unfiltered = True
        try:
            return super().get_source_files()
        finally:
            self._unfiltered = False

    def find_package_modules(self, package, package_dir) -> List[Tuple[str, str, str]]:
        modules = super().find_package_modules(package, package_dir)
        if self._unfiltered:
            return modules
        kept = []
        for pkg, mod, filepath in modules:
            rel = normalize_path(filepath)
            binary = compiled_counterpart(filepath, self.ext_suffix)
            if rel in self.excluded:
                if os.path.exists(binary):
                    logger.warning("Ignoring stale binary for excluded module %s: %s", rel, binary)
                kept.append((pkg, mod, filepath))
                continue
            if os.path.exists(binary):
                logger.debug("Dropping %s, compiled as %s", rel, os.path.basename(binary))
                continue
            kept.append((pkg, mod, filepath))
        return kept


def build_py_class(excluded: Iterable[str] = (), ext_suffix: str = EXT_SUFFIX) -> type:
    """Return a ``BuildPy`` subclass bound to an exclusion list, for ``cmdclass``."""
    return type(
        "BuildPy",
        (BuildPy,),
        {
            "excluded": frozenset(normalize_path(p) for p in excluded),
            "ext_suffix": ext_suffix,
        },
    )


MANIFEST_NAME = "shipwright.yaml"

SDIST_SETUP_PY = '''\
from shipwright.packaging.setup_script import run_setup

run_setup("shipwright.yaml")
'''

SDIST_PYPROJECT = '''\
[build-system]
requires = ["setuptools>=68", "wheel", "Cython>=3.0", "shipwright"]
build-backend = "setuptools.build_meta"
'''


class Sdist(_sdist):
    """``sdist`` whose tarball can be built again without a hand-written setup.py.

    The manifest is copied in as ``shipwright.yaml`` and a ``setup.py`` plus a
    ``pyproject.toml`` naming the build requirements are generated, unless the
    project already ships its own.
    """

    manifest: str = MANIFEST_NAME

    def make_release_tree(self, base_dir, files) -> None:
        super().make_release_tree(base_dir, files)
        manifest = os.path.join(base_dir, MANIFEST_NAME)
        if not os.path.exists(manifest):
            shutil.copyfile(self.manifest, manifest)
        for name, text in (("setup.py", SDIST_SETUP_PY), ("pyproject.toml", SDIST_PYPROJECT)):
            target = os.path.join(base_dir, name)
            if os.path.exists(target):
                logger.info("Keeping the project's own %s in the source distribution", name)
                continue
            with open(target, "w", encoding="utf-8") as f:
                f.write(text)


def sdist_class(manifest: str) -> type:
    """Return an ``Sdist`` subclass that ships ``manifest``, for ``cmdclass``."""
    return type("Sdist", (Sdist,), {"manifest": str(manifest)})

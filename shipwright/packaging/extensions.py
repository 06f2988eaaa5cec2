from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from setuptools import find_packages

from shipwright.packaging.build_py import build_py_class, sdist_class
from shipwright.packaging.config import BuildConfig
from shipwright.packaging.selection import select_sources

logger = logging.getLogger(__name__)


def cython_extensions(config: BuildConfig, root: str | Path = ".") -> List[Any]:
    """Cythonize every selected source file of the project."""
    from Cython.Build import cythonize

    sources = select_sources(root, config.exclude, packages=config.top_level_dirs())
    if not sources:
        logger.warning("No sources selected for compilation in %s", root)
        return []
    logger.info("Compiling %d module(s), keeping %d as source", len(sources), len(config.exclude))
    return cythonize(
        sources,
        compiler_directives=config.directives(),
        build_dir=config.build_dir,
        quiet=True,
    )


def setup_kwargs(config: BuildConfig, root: str | Path = ".", manifest: Optional[str] = None) -> Dict[str, Any]:
    """Keyword arguments for ``setup()``; with ``manifest`` the sdist ships it and a build entry point."""
    kwargs: Dict[str, Any] = dict(
        name=config.name,
        version=config.version,
        packages=find_packages(where=str(root), include=config.packages),
        ext_modules=cython_extensions(config, root),
        cmdclass={"build_py": build_py_class(config.exclude)},
        install_requires=list(config.install_requires),
        zip_safe=False,
    )
    if manifest is not None:
        kwargs["cmdclass"]["sdist"] = sdist_class(manifest)
    if config.python_requires:
        kwargs["python_requires"] = config.python_requires
    return kwargs

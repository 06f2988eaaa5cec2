"""Cython wheel packaging: compile selected modules, ship binaries without their sources."""

from .build_py import EXT_SUFFIX, BuildPy, build_py_class, compiled_counterpart
from .config import BuildConfig, load_build_config
from .selection import normalize_path, select_sources
from .wheel import FilterReport, WheelName, filter_wheel, verify_wheel

__all__ = [
    "EXT_SUFFIX",
    "BuildConfig",
    "BuildPy",
    "FilterReport",
    "WheelName",
    "build_py_class",
    "compiled_counterpart",
    "filter_wheel",
    "load_build_config",
    "normalize_path",
    "select_sources",
    "verify_wheel",
]

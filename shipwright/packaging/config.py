from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from shipwright.errors import ConfigError
from shipwright.packaging.selection import normalize_path


class BuildConfig(BaseModel):
    """Package manifest read from ``shipwright.yaml``.

    ``exclude`` lists project-relative files that must stay plain source in the
    wheel (typically the entry point). Matching is exact after normalization.
    """

    name: str = Field(min_length=1)
    version: str = Field(min_length=1)
    packages: List[str] = Field(default_factory=list)
    exclude: List[str] = Field(default_factory=list)
    language_level: str = "3"
    compiler_directives: Dict[str, Any] = Field(default_factory=dict)
    python_requires: Optional[str] = None
    install_requires: List[str] = Field(default_factory=list)
    build_dir: str = "build/cython"

    @field_validator("language_level", mode="before")
    @classmethod
    def _language_level_str(cls, v: Any) -> str:
        v = str(v).strip()
        if v not in ("2", "3", "3str"):
            raise ValueError("language_level must be one of 2, 3, 3str")
        return v

    @field_validator("exclude")
    @classmethod
    def _normalize_exclude(cls, v: List[str]) -> List[str]:
        out: List[str] = []
        for p in v:
            n = normalize_path(p)
            if not n.endswith(".py"):
                raise ValueError(f"excluded path must be a .py file: {p}")
            if n not in out:
                out.append(n)
        return out

    @model_validator(mode="after")
    def _default_packages(self) -> "BuildConfig":
        if not self.packages:
            self.packages = [self.name, f"{self.name}.*"]
        return self

    def directives(self) -> Dict[str, Any]:
        d = dict(self.compiler_directives)
        d["language_level"] = self.language_level
        return d

    def top_level_dirs(self) -> List[str]:
        """Top-level package directories named by ``packages``."""
        tops: List[str] = []
        for pattern in self.packages:
            top = pattern.split(".", 1)[0]
            if top and "*" not in top and top not in tops:
                tops.append(top)
        return tops


def load_build_config(path: str | Path) -> BuildConfig:
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Build config not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid build config root in {path} (expected mapping)")
    try:
        return BuildConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid build config {path}: {e}") from e

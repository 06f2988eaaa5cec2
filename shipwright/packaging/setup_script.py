"""Run setuptools for a project described by a ``shipwright.yaml`` manifest.

    python -m shipwright.packaging.setup_script shipwright.yaml bdist_wheel

Must be started from the project root: setuptools resolves package paths
against the working directory.
"""

from __future__ import annotations

import sys
from typing import List, Optional

from setuptools import setup

from shipwright.core.logging import configure_logging
from shipwright.packaging.config import load_build_config
from shipwright.packaging.extensions import setup_kwargs


def run_setup(config_path: str, commands: Optional[List[str]] = None):
    """Run ``setup()`` for the manifest; without ``commands`` setuptools reads ``sys.argv``."""
    config = load_build_config(config_path)
    kwargs = setup_kwargs(config, manifest=config_path)
    if commands is not None:
        kwargs["script_args"] = list(commands)
    return setup(**kwargs)


def main(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    if len(argv) < 2:
        print("usage: python -m shipwright.packaging.setup_script MANIFEST COMMAND [ARGS...]", file=sys.stderr)
        return 2
    configure_logging()
    run_setup(argv[0], argv[1:])
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

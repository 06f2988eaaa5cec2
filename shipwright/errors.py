from __future__ import annotations

from typing import Optional, Sequence


class ShipwrightError(RuntimeError):
    pass


class ConfigError(ShipwrightError):
    pass


class BuildError(ShipwrightError):
    """A packaging subprocess exited with a non-zero status."""

    def __init__(self, command: Sequence[str], returncode: int, output: str = "") -> None:
        self.command = list(command)
        self.returncode = int(returncode)
        self.output = output or ""
        super().__init__(f"Command failed with exit code {self.returncode}: {' '.join(self.command)}")

    def tail(self, lines: int = 20) -> str:
        return "\n".join(self.output.splitlines()[-lines:])


class WheelError(ShipwrightError):
    pass


class MigrationError(ShipwrightError):
    def __init__(self, message: str, *, step: Optional[str] = None) -> None:
        self.step = step
        super().__init__(message)

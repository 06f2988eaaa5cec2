from __future__ import annotations

import csv
import io
import logging
import os
import re
import tempfile
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set

from shipwright.errors import WheelError
from shipwright.packaging.selection import SOURCE_SUFFIX, normalize_path

logger = logging.getLogger(__name__)

# name-version(-build)?-python-abi-platform.whl
_WHEEL_RE = re.compile(
    r"^(?P<distribution>[^-]+)-(?P<version>[^-]+)(?:-(?P<build>\d[^-]*))?"
    r"-(?P<python>[^-]+)-(?P<abi>[^-]+)-(?P<platform>[^-]+)\.whl$"
)

# core.so, core.pyd, core.cpython-312-x86_64-linux-gnu.so, core.cp312-win_amd64.pyd, core.abi3.so
_BINARY_RE = re.compile(r"^(?P<stem>[^.]+)(?:\.[^/]+)?\.(?:so|pyd)$")


@dataclass(frozen=True)
class WheelName:
    distribution: str
    version: str
    python_tag: str
    abi_tag: str
    platform_tag: str
    build_tag: Optional[str] = None

    @classmethod
    def parse(cls, filename: str | os.PathLike) -> "WheelName":
        name = Path(filename).name
        m = _WHEEL_RE.match(name)
        if not m:
            raise WheelError(f"Not a wheel file name: {name}")
        return cls(
            distribution=m.group("distribution"),
            version=m.group("version"),
            python_tag=m.group("python"),
            abi_tag=m.group("abi"),
            platform_tag=m.group("platform"),
            build_tag=m.group("build"),
        )

    @property
    def is_pure(self) -> bool:
        return self.platform_tag == "any" and self.abi_tag == "none"

    def __str__(self) -> str:
        parts = [self.distribution, self.version]
        if self.build_tag:
            parts.append(self.build_tag)
        parts += [self.python_tag, self.abi_tag, self.platform_tag]
        return "-".join(parts) + ".whl"


@dataclass
class FilterReport:
    wheel: Path
    dropped: List[str] = field(default_factory=list)
    kept: List[str] = field(default_factory=list)


def binary_modules(names: Iterable[str]) -> Set[str]:
    """Map archive binaries to the source path they replace (``pkg/core.py``)."""
    out: Set[str] = set()
    for name in names:
        directory, _, base = name.rpartition("/")
        m = _BINARY_RE.match(base)
        if not m:
            continue
        src = m.group("stem") + SOURCE_SUFFIX
        out.add(f"{directory}/{src}" if directory else src)
    return out


def sources_to_drop(names: Sequence[str], excluded: Iterable[str] = ()) -> List[str]:
    """Archive members that are sources shadowed by a compiled sibling."""
    excluded_set = {normalize_path(p) for p in excluded}
    compiled = binary_modules(names)
    return [
        n
        for n in names
        if n.endswith(SOURCE_SUFFIX) and n in compiled and n not in excluded_set
    ]


def _record_name(names: Sequence[str]) -> str:
    for n in names:
        parts = n.split("/")
        if len(parts) == 2 and parts[0].endswith(".dist-info") and parts[1] == "RECORD":
            return n
    raise WheelError("Wheel has no .dist-info/RECORD")


def _open(path: Path) -> zipfile.ZipFile:
    try:
        return zipfile.ZipFile(path)
    except (OSError, zipfile.BadZipFile) as e:
        raise WheelError(f"Cannot read wheel {path}: {e}") from e


def filter_wheel(
    path: str | os.PathLike,
    excluded: Iterable[str] = (),
    output: Optional[str | os.PathLike] = None,
) -> FilterReport:
    """Rewrite a wheel without sources that ship next to their compiled module.

    Dropped members are also removed from ``RECORD``. The rewrite goes to a temp
    file in the target directory and is moved into place with ``os.replace``.
    """
    src = Path(path)
    dst = Path(output) if output else src
    excluded = list(excluded)

    with _open(src) as zin:
        names = zin.namelist()
        record = _record_name(names)
        drop = set(sources_to_drop(names, excluded))
        report = FilterReport(wheel=dst, dropped=sorted(drop))
        report.kept = [n for n in names if n not in drop]

        if not drop and dst == src:
            logger.info("Nothing to filter in %s", src.name)
            return report

        dst.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".shipwright-", suffix=".whl", dir=str(dst.parent))
        os.close(fd)
        try:
            with zipfile.ZipFile(tmp, "w", compression=zipfile.ZIP_DEFLATED) as zout:
                for info in zin.infolist():
                    if info.filename in drop:
                        continue
                    data = zin.read(info.filename)
                    if info.filename == record:
                        data = _strip_record(data, drop)
                    zout.writestr(info, data)
            os.replace(tmp, dst)
        finally:
            if os.path.exists(tmp):
                os.remove(tmp)

    for n in report.dropped:
        logger.info("Removed %s from %s", n, dst.name)
    return report


def _strip_record(data: bytes, drop: Set[str]) -> bytes:
    # RECORD is CSV; paths holding commas or quotes come quoted
    rows = csv.reader(io.StringIO(data.decode("utf-8")))
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerows(row for row in rows if row and row[0] not in drop)
    return out.getvalue().encode("utf-8")


def verify_wheel(path: str | os.PathLike, excluded: Iterable[str] = ()) -> List[str]:
    """Return human-readable violations; an empty list means the wheel is clean."""
    excluded_set = {normalize_path(p) for p in excluded}
    with _open(Path(path)) as z:
        names = z.namelist()

    problems: List[str] = []
    name_set = set(names)
    compiled = binary_modules(names)

    for n in names:
        if n.endswith(SOURCE_SUFFIX) and n in compiled and n not in excluded_set:
            problems.append(f"source shipped next to compiled module: {n}")
    for ex in sorted(excluded_set):
        if ex not in name_set:
            problems.append(f"excluded file missing from wheel: {ex}")
        if ex in compiled:
            problems.append(f"excluded file shipped as compiled module: {ex}")
    return problems

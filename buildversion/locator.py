"""Lookup of the declaration targets inside an Automation Studio project tree."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import TargetConfig

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    "Binaries",
    "Temp",
    "Diagnosis",
    "__pycache__",
}


@dataclass(frozen=True)
class Targets:
    """Resolved file locations for one run."""

    declaration_file: Optional[Path]
    global_file: Path


def find_directory(root: Path, name: str) -> Optional[Path]:
    """Return the first directory called ``name`` below ``root``.

    Directories are visited top-down in sorted order, so the same tree always
    yields the same answer.
    """
    for dirpath, dirnames, _ in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in _EXCLUDED_DIRS)
        for dirname in dirnames:
            if dirname == name:
                return Path(dirpath) / dirname
    return None


def resolve_targets(
    root: Path,
    target: TargetConfig,
    *,
    declaration_file: Path | None = None,
    global_file: Path | None = None,
) -> Targets:
    """Combine explicit paths with the configured search rules."""
    if declaration_file is None:
        program_dir = find_directory(root, target.program)
        if program_dir is not None:
            declaration_file = program_dir / target.declaration_file
    if global_file is None:
        global_file = root / target.global_file
    return Targets(declaration_file=declaration_file, global_file=global_file)


__all__ = ["Targets", "find_directory", "resolve_targets"]

"""Scripted stand-in for the git executable."""

from __future__ import annotations

import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

Key = Tuple[str, ...]

SHA1 = "abc1234def5678901234567890abcdef12345678"
COMMIT_DATE_ISO = "2024-05-01T13:45:00+00:00"


def commit_date_local() -> datetime:
    """The scripted commit date as the collector reports it (naive local time)."""
    return datetime(2024, 5, 1, 13, 45, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)


def clean_repository() -> Dict[Key, Optional[str]]:
    """Responses for a clean checkout of ``main`` three commits after tag 1.2.0."""
    return {
        ("--version",): "git version 2.43.0\n",
        ("config", "--local", "--list"): "core.bare=false\nremote.origin.url=https://example.com/r.git\n",
        ("config", "--get", "remote.origin.url"): "https://example.com/r.git\n",
        ("symbolic-ref", "--short", "-q", "HEAD"): "main\n",
        ("describe", "--tags", "--abbrev=0"): "1.2.0\n",
        ("describe", "--tags", "--long"): "1.2.0-3-gabc1234\n",
        ("rev-parse", "HEAD"): SHA1 + "\n",
        ("diff", "HEAD", "--shortstat"): "",
        ("log", "-1", "--format=%cI"): COMMIT_DATE_ISO + "\n",
        ("log", "-1", "--format=%an%n%ae"): "Jane Doe\njane@example.com\n",
    }


class FakeGit:
    """Callable matching the ``runner(args, cwd=...)`` convention.

    Commands without a scripted response (or scripted as ``None``) fail the way
    git does, with a non-zero exit.
    """

    def __init__(self, responses: Dict[Key, Optional[str]] | None = None, *, missing: bool = False) -> None:
        self.responses = dict(responses or {})
        self.missing = missing
        self.calls: List[Tuple[Key, Path]] = []

    def __call__(self, args: Iterable[str], *, cwd: Path) -> str:
        command = list(args)
        key = tuple(command[1:])
        self.calls.append((key, Path(cwd)))
        if self.missing:
            raise FileNotFoundError(2, "No such file or directory", command[0])
        response = self.responses.get(key)
        if response is None:
            raise subprocess.CalledProcessError(128, command)
        return response

    def commands(self) -> List[Key]:
        return [key for key, _ in self.calls]


__all__ = ["COMMIT_DATE_ISO", "FakeGit", "SHA1", "clean_repository", "commit_date_local"]

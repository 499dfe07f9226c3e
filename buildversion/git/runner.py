"""Synchronous git invocation with a success flag instead of exceptions."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Sequence

from ..logging import get_logger


@dataclass(frozen=True)
class CommandResult:
    """Trimmed stdout of a git command and whether it succeeded."""

    output: str
    ok: bool


class CommandRunner:
    """Runs one git command at a time and reports failure through ``ok``.

    The process-spawning callable follows the ``runner(args, cwd=...)``
    convention: it returns stdout and raises ``subprocess.CalledProcessError``
    on a non-zero exit or ``OSError`` when the executable cannot be launched.
    There is no timeout; a hung git process blocks the run.
    """

    def __init__(
        self,
        executable: str = "git",
        runner: Callable[..., str] | None = None,
    ) -> None:
        self.executable = executable
        self._runner = runner or self._default_runner
        self.logger = get_logger("git")

    def run(self, working_dir: Path | str, args: Sequence[str]) -> CommandResult:
        command = [self.executable, *args]
        try:
            output = self._runner(command, cwd=Path(working_dir))
        except subprocess.CalledProcessError as exc:
            self.logger.debug("%s exited with %s", " ".join(command), exc.returncode)
            return CommandResult(output="", ok=False)
        except OSError as exc:
            self.logger.debug("Could not launch %s: %s", self.executable, exc)
            return CommandResult(output="", ok=False)
        stripped = (output or "").strip()
        self.logger.debug("%s -> %r", " ".join(command), stripped)
        return CommandResult(output=stripped, ok=True)

    @staticmethod
    def _default_runner(args: Iterable[str], *, cwd: Path) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            stdin=subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
        return completed.stdout


__all__ = ["CommandResult", "CommandRunner"]

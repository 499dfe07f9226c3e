"""In-place update of the version variable in a shared declarations file."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional

from ..logging import get_logger
from ..models import BuildMetadata, RepositoryMetadata
from . import literals
from .grammar import SOURCE_ERRORS, find_declaration, replace_spans

PatchStatus = Literal["PATCHED", "UNCHANGED", "NOT_FOUND", "FAILED"]


@dataclass(frozen=True)
class PatchResult:
    """Outcome of patching the shared declarations file."""

    path: Path
    status: PatchStatus
    variable: Optional[str] = None
    error: Optional[str] = None

    @property
    def initialized(self) -> bool:
        return self.status in ("PATCHED", "UNCHANGED")


class GlobalVariablePatcher:
    """Rewrites the initializer of the first variable typed ``type_name``.

    The patcher never adds a declaration. If the file does not declare a
    variable of the version type it reports ``NOT_FOUND`` and leaves the file
    alone. Only the first declaration is considered.
    """

    def __init__(self, generator: str = "BuildVersion", type_name: str = "BuildVersionType") -> None:
        self.generator = generator
        self.type_name = type_name
        self.logger = get_logger("patcher")

    def render(
        self,
        text: str,
        repository: RepositoryMetadata,
        build: BuildMetadata,
    ) -> tuple[str, Optional[str]]:
        """Return the patched text and the patched identifier (``None`` when absent)."""
        declaration = find_declaration(text, self.type_name)
        if declaration is None:
            return text, None
        initializer = literals.version_initializer(
            literals.script_payload(self.generator),
            literals.git_payload(repository),
            literals.project_payload(build),
        )
        replacement = f"{declaration.identifier} : {self.type_name} := {initializer};"
        return replace_spans(text, [(declaration.span, replacement)]), declaration.identifier

    def patch(
        self,
        path: Path,
        repository: RepositoryMetadata,
        build: BuildMetadata,
    ) -> PatchResult:
        if not path.is_file():
            self.logger.debug("Shared declarations file %s does not exist", path)
            return PatchResult(path=path, status="NOT_FOUND")

        try:
            with path.open("r", encoding="utf-8", errors=SOURCE_ERRORS, newline="") as handle:
                text = handle.read()
        except OSError as exc:
            self.logger.error("Could not read %s: %s", path, exc)
            return PatchResult(path=path, status="FAILED", error=str(exc))

        patched, identifier = self.render(text, repository, build)
        if identifier is None:
            self.logger.debug("No %s variable declared in %s", self.type_name, path)
            return PatchResult(path=path, status="NOT_FOUND")
        if patched == text:
            return PatchResult(path=path, status="UNCHANGED", variable=identifier)

        try:
            with path.open("w", encoding="utf-8", errors=SOURCE_ERRORS, newline="") as handle:
                handle.write(patched)
        except OSError as exc:
            self.logger.error("Could not write %s: %s", path, exc)
            return PatchResult(path=path, status="FAILED", variable=identifier, error=str(exc))

        self.logger.info("Patched %s in %s", identifier, path)
        return PatchResult(path=path, status="PATCHED", variable=identifier)


__all__ = ["GlobalVariablePatcher", "PatchResult", "PatchStatus"]

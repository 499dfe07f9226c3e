"""Creation and in-place refresh of the generated version declaration file."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Literal, Optional

from jinja2 import Environment, StrictUndefined

from ..logging import get_logger
from ..models import BuildMetadata, RepositoryMetadata
from . import literals
from .grammar import SOURCE_ERRORS, BlockMatcher, replace_spans

SynthesisStatus = Literal["CREATED", "UPDATED", "UNCHANGED", "FAILED"]

DECLARATION_TEMPLATE = """\
(*This file was automatically generated by {{ generator }} on {{ date }}.*)
(*Do not modify the contents of this file.*)
VAR
    {{ variable }} : {{ type_name }} := (
        Script:={{ script }}, Git:={{ git }}, Project:={{ project }}
    );
END_VAR
"""


@dataclass(frozen=True)
class SynthesisResult:
    """Outcome of writing the generated declaration file."""

    path: Path
    status: SynthesisStatus
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != "FAILED"


class DeclarationSynthesizer:
    """Writes the version declaration, keeping everything outside the block intact."""

    def __init__(
        self,
        generator: str = "BuildVersion",
        *,
        variable: str = "BuildVersion",
        type_name: str = "BuildVersionType",
        matcher: BlockMatcher | None = None,
    ) -> None:
        self.generator = generator
        self.variable = variable
        self.type_name = type_name
        self.matcher = matcher or BlockMatcher(type_name)
        self._env = Environment(
            autoescape=False,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )
        self._template = self._env.from_string(DECLARATION_TEMPLATE)
        self.logger = get_logger("synthesizer")

    def render(
        self,
        existing: str,
        repository: RepositoryMetadata,
        build: BuildMetadata,
        generated_at: datetime,
    ) -> tuple[str, bool]:
        """Return the new file text and whether an existing block was reused.

        A reused block keeps its Script payload; only the header fields and the
        Git and Project payloads are replaced.
        """
        git = literals.git_payload(repository)
        project = literals.project_payload(build)
        date = literals.header_date(generated_at)

        match = self.matcher.match(existing)
        if match is not None:
            updated = replace_spans(
                existing,
                [
                    (match.generator, self.generator),
                    (match.date, date),
                    (match.git, git),
                    (match.project, project),
                ],
            )
            return updated, True

        rendered = self._template.render(
            generator=self.generator,
            date=date,
            variable=self.variable,
            type_name=self.type_name,
            script=literals.script_payload(self.generator),
            git=git,
            project=project,
        )
        return rendered, False

    def synthesize(
        self,
        path: Path,
        repository: RepositoryMetadata,
        build: BuildMetadata,
        generated_at: datetime,
    ) -> SynthesisResult:
        try:
            existing = _read_text(path)
        except OSError as exc:
            self.logger.error("Could not read %s: %s", path, exc)
            return SynthesisResult(path=path, status="FAILED", error=str(exc))

        content, reused = self.render(existing or "", repository, build, generated_at)
        if reused and content == existing:
            self.logger.info("%s is already up to date", path)
            return SynthesisResult(path=path, status="UNCHANGED")

        if not reused and existing:
            self.logger.warning(
                "No generated block found in %s; replacing the file with a fresh declaration", path
            )

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8", errors=SOURCE_ERRORS, newline="") as handle:
                handle.write(content)
        except OSError as exc:
            self.logger.error("Could not write %s: %s", path, exc)
            return SynthesisResult(path=path, status="FAILED", error=str(exc))

        status: SynthesisStatus = "UPDATED" if reused else "CREATED"
        self.logger.info("%s %s", "Updated" if reused else "Created", path)
        return SynthesisResult(path=path, status=status)


def _read_text(path: Path) -> Optional[str]:
    """Read ``path`` without newline translation, or ``None`` when it does not exist."""
    if not path.exists():
        return None
    with path.open("r", encoding="utf-8", errors=SOURCE_ERRORS, newline="") as handle:
        return handle.read()


__all__ = ["DECLARATION_TEMPLATE", "DeclarationSynthesizer", "SynthesisResult", "SynthesisStatus"]

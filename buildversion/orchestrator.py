"""Pipeline orchestration: collect, validate, synthesize, patch."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from .build_context import BuildContextBuilder
from .config import BuildVersionConfig, FailurePolicy, load_config
from .declarations import (
    DeclarationSynthesizer,
    GlobalVariablePatcher,
    PatchResult,
    SynthesisResult,
)
from .diagnostics import Diagnostics, Issue, IssueCategory
from .git import CommandRunner, MetadataCollector
from .locator import Targets, resolve_targets
from .logging import get_logger
from .models import BuildMetadata, RepositoryMetadata


class BuildVersionError(RuntimeError):
    """Raised when a run hits a condition configured (or required) to be fatal."""

    def __init__(self, message: str, category: IssueCategory) -> None:
        super().__init__(message)
        self.category = category


@dataclass
class RunOutcome:
    """Everything a completed run produced."""

    repository: RepositoryMetadata
    build: BuildMetadata
    targets: Targets
    synthesis: Optional[SynthesisResult]
    patch: Optional[PatchResult]
    issues: List[Issue]

    @property
    def initialized(self) -> bool:
        synthesized = self.synthesis is not None and self.synthesis.ok
        patched = self.patch is not None and self.patch.initialized
        return synthesized or patched


class Orchestrator:
    """Runs one project through the pipeline, strictly in order."""

    def __init__(
        self,
        runner: CommandRunner | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._runner = runner
        self._clock = clock
        self.logger = get_logger("orchestrator")

    def collect(
        self,
        project_root: Path | str,
        config: BuildVersionConfig | None = None,
        diagnostics: Diagnostics | None = None,
    ) -> Tuple[RepositoryMetadata, Diagnostics]:
        """Collect repository metadata only; nothing is written."""
        root = Path(project_root).expanduser().resolve()
        config = config or self._load_config(root)
        if diagnostics is None:
            diagnostics = Diagnostics()
        collector = MetadataCollector(self._runner or CommandRunner(config.git_executable))
        return collector.collect(root, diagnostics), diagnostics

    def run(
        self,
        project_root: Path | str,
        build_arguments: Sequence[str],
        *,
        config: BuildVersionConfig | None = None,
        declaration_file: Path | None = None,
        global_file: Path | None = None,
    ) -> RunOutcome:
        root = Path(project_root).expanduser().resolve()
        self.logger.info("Starting buildversion run for %s", root)
        config = config or self._load_config(root)
        policy = config.policy
        diagnostics = Diagnostics()

        repository, _ = self.collect(root, config, diagnostics)
        if policy.error_on_repository_check_failure:
            self._fail_on(diagnostics, IssueCategory.TOOL_MISSING, IssueCategory.NO_REPOSITORY)
        if policy.error_on_uncommitted_changes:
            self._fail_on(diagnostics, IssueCategory.UNCOMMITTED_CHANGES)

        build = BuildContextBuilder(self._clock).build(build_arguments, diagnostics)
        if policy.error_on_missing_arguments:
            self._fail_on(diagnostics, IssueCategory.MISSING_ARGUMENTS)

        targets = resolve_targets(
            root,
            config.target,
            declaration_file=declaration_file,
            global_file=global_file,
        )
        generated_at = build.build_date

        synthesis: Optional[SynthesisResult] = None
        if targets.declaration_file is not None:
            synthesizer = DeclarationSynthesizer(
                config.generator_name,
                variable=config.target.variable,
                type_name=config.target.type_name,
            )
            synthesis = synthesizer.synthesize(targets.declaration_file, repository, build, generated_at)
            if not synthesis.ok:
                self._fail(
                    diagnostics,
                    IssueCategory.WRITE_FAILED,
                    f"could not write {synthesis.path}: {synthesis.error}",
                )
        else:
            self.logger.info(
                "No '%s' program directory found below %s; skipping declaration file",
                config.target.program,
                root,
            )

        patcher = GlobalVariablePatcher(config.generator_name, config.target.type_name)
        patch = patcher.patch(targets.global_file, repository, build)
        if patch.status == "FAILED":
            self._fail(
                diagnostics,
                IssueCategory.WRITE_FAILED,
                f"could not update {patch.path}: {patch.error}",
            )

        outcome = RunOutcome(
            repository=repository,
            build=build,
            targets=targets,
            synthesis=synthesis,
            patch=patch,
            issues=diagnostics.issues,
        )
        if not outcome.initialized:
            diagnostics.record(
                IssueCategory.NO_INITIALIZATION_TARGET,
                f"no {config.target.type_name} declaration was generated or patched",
            )
            if policy.error_if_no_initialization_target:
                self._fail_on(diagnostics, IssueCategory.NO_INITIALIZATION_TARGET)

        self.logger.info(
            "Finished with %d warning(s); version %s", len(diagnostics.issues), repository.version
        )
        return outcome

    # ------------------------------------------------------------------
    # Internals

    def _load_config(self, root: Path) -> BuildVersionConfig:
        return load_config(root)

    def _fail_on(self, diagnostics: Diagnostics, *categories: IssueCategory) -> None:
        issues = diagnostics.of(*categories)
        if issues:
            first = issues[0]
            self._fail(diagnostics, first.category, first.describe(), record=False)

    def _fail(
        self,
        diagnostics: Diagnostics,
        category: IssueCategory,
        message: str,
        *,
        record: bool = True,
    ) -> None:
        if record:
            diagnostics.record(category, message)
        self.logger.error("Aborting: %s", message)
        raise BuildVersionError(message, category)


def apply_overrides(config: BuildVersionConfig, **flags: bool) -> BuildVersionConfig:
    """Return ``config`` with additional failure flags switched on."""
    policy: FailurePolicy = config.policy.enable(**flags)
    return replace(config, policy=policy)


__all__ = ["BuildVersionError", "Orchestrator", "RunOutcome", "apply_overrides"]

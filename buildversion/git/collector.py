"""Repository metadata collection with per-field fallbacks."""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

from ..diagnostics import Diagnostics, IssueCategory
from ..logging import get_logger
from ..models import (
    DEFAULT_DATE,
    FIELD_LIMIT,
    NONE,
    UNKNOWN,
    URL_LIMIT,
    RepositoryMetadata,
    truncate_utf8,
)
from .runner import CommandRunner

_STRING_LIMITS = {"remote_url": URL_LIMIT}


@dataclass
class RepositoryMetadataBuilder:
    """Accumulates repository facts one field at a time.

    Each field starts at its sentinel so the record is complete whichever
    queries succeed. ``build`` applies the byte limits last.
    """

    remote_url: str = UNKNOWN
    branch: str = UNKNOWN
    tag: str = NONE
    additional_commits: int = 0
    version: str = NONE
    sha1: str = UNKNOWN
    describe: str = NONE
    uncommitted_changes: str = NONE
    has_uncommitted_changes: bool = False
    commit_date: datetime = DEFAULT_DATE
    author_name: str = UNKNOWN
    author_email: str = UNKNOWN

    def build(self) -> RepositoryMetadata:
        values = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if isinstance(value, str):
                value = truncate_utf8(value, _STRING_LIMITS.get(item.name, FIELD_LIMIT))
            values[item.name] = value
        return RepositoryMetadata(**values)


def parse_describe(tag: str, describe: str) -> Optional[int]:
    """Return the commit count encoded in a long describe string.

    ``1.2.0-3-gabc1234`` minus the tag ``1.2.0`` leaves ``-3-gabc1234``, which
    splits into exactly three segments. Anything else returns ``None``.
    """
    suffix = describe.replace(tag, "", 1)
    segments = suffix.split("-")
    if len(segments) != 3:
        return None
    try:
        count = int(segments[1])
    except ValueError:
        return None
    return count if count >= 0 else None


def format_version(tag: str, additional_commits: int) -> str:
    if additional_commits > 0:
        return f"{tag}-{additional_commits}"
    return tag


def parse_commit_date(value: str) -> Optional[datetime]:
    """Parse strict ISO-8601 git output into a naive local timestamp."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed.replace(microsecond=0)


class MetadataCollector:
    """Runs the fixed git query sequence for one project."""

    def __init__(self, runner: CommandRunner | None = None) -> None:
        self.runner = runner or CommandRunner()
        self.logger = get_logger("collector")

    def collect(self, project_root: Path | str, diagnostics: Diagnostics) -> RepositoryMetadata:
        root = Path(project_root)
        builder = RepositoryMetadataBuilder()

        if not self._git(root, "--version").ok:
            diagnostics.record(
                IssueCategory.TOOL_MISSING,
                f"'{self.runner.executable}' is not available; repository information cannot be determined",
            )
            return builder.build()

        if not self._git(root, "config", "--local", "--list").ok:
            diagnostics.record(
                IssueCategory.NO_REPOSITORY,
                f"{root} is not inside a git repository; repository information cannot be determined",
            )
            return builder.build()

        self._collect_remote(root, builder, diagnostics)
        self._collect_branch(root, builder, diagnostics)
        self._collect_tag(root, builder, diagnostics)
        self._collect_sha(root, builder, diagnostics)
        self._collect_changes(root, builder, diagnostics)
        self._collect_commit_date(root, builder, diagnostics)
        self._collect_author(root, builder, diagnostics)

        metadata = builder.build()
        self.logger.info(
            "Collected %s on %s (%s)", metadata.version, metadata.branch, metadata.sha1
        )
        return metadata

    # ------------------------------------------------------------------
    # Individual queries

    def _collect_remote(self, root: Path, builder: RepositoryMetadataBuilder, diagnostics: Diagnostics) -> None:
        result = self._git(root, "config", "--get", "remote.origin.url")
        if result.ok and result.output:
            builder.remote_url = result.output
            return
        diagnostics.record(
            IssueCategory.FIELD_FALLBACK,
            "no 'origin' remote is configured",
            field="remote_url",
        )

    def _collect_branch(self, root: Path, builder: RepositoryMetadataBuilder, diagnostics: Diagnostics) -> None:
        result = self._git(root, "symbolic-ref", "--short", "-q", "HEAD")
        if result.ok and result.output:
            builder.branch = result.output
            return
        diagnostics.record(
            IssueCategory.FIELD_FALLBACK,
            "HEAD is detached; no current branch",
            field="branch",
        )

    def _collect_tag(self, root: Path, builder: RepositoryMetadataBuilder, diagnostics: Diagnostics) -> None:
        result = self._git(root, "describe", "--tags", "--abbrev=0")
        if not result.ok or not result.output:
            diagnostics.record(
                IssueCategory.FIELD_FALLBACK,
                "no tag is reachable from HEAD",
                field="tag",
            )
            return

        tag = result.output
        builder.tag = tag
        builder.version = tag

        describe = self._git(root, "describe", "--tags", "--long")
        if not describe.ok or not describe.output:
            builder.describe = UNKNOWN
            diagnostics.record(
                IssueCategory.FIELD_FALLBACK,
                "long describe output is unavailable",
                field="describe",
            )
            return

        builder.describe = describe.output
        count = parse_describe(tag, describe.output)
        if count is None:
            diagnostics.record(
                IssueCategory.MALFORMED_DESCRIBE,
                f"unexpected describe output {describe.output!r} for tag {tag!r}; assuming 0 additional commits",
                field="additional_commits",
            )
            return
        builder.additional_commits = count
        builder.version = format_version(tag, count)

    def _collect_sha(self, root: Path, builder: RepositoryMetadataBuilder, diagnostics: Diagnostics) -> None:
        result = self._git(root, "rev-parse", "HEAD")
        if result.ok and result.output:
            builder.sha1 = result.output
            return
        diagnostics.record(
            IssueCategory.FIELD_FALLBACK,
            "latest commit hash is unavailable",
            field="sha1",
        )

    def _collect_changes(self, root: Path, builder: RepositoryMetadataBuilder, diagnostics: Diagnostics) -> None:
        result = self._git(root, "diff", "HEAD", "--shortstat")
        if not result.ok:
            builder.uncommitted_changes = UNKNOWN
            diagnostics.record(
                IssueCategory.FIELD_FALLBACK,
                "working tree status is unavailable",
                field="uncommitted_changes",
            )
            return
        if not result.output:
            return
        builder.uncommitted_changes = result.output
        builder.has_uncommitted_changes = True
        diagnostics.record(
            IssueCategory.UNCOMMITTED_CHANGES,
            f"working tree has uncommitted changes ({result.output})",
            field="uncommitted_changes",
        )

    def _collect_commit_date(self, root: Path, builder: RepositoryMetadataBuilder, diagnostics: Diagnostics) -> None:
        result = self._git(root, "log", "-1", "--format=%cI")
        parsed = parse_commit_date(result.output) if result.ok and result.output else None
        if parsed is not None:
            builder.commit_date = parsed
            return
        diagnostics.record(
            IssueCategory.FIELD_FALLBACK,
            "latest commit date is unavailable",
            field="commit_date",
        )

    def _collect_author(self, root: Path, builder: RepositoryMetadataBuilder, diagnostics: Diagnostics) -> None:
        result = self._git(root, "log", "-1", "--format=%an%n%ae")
        author = _split_author(result.output) if result.ok else None
        if author is not None:
            builder.author_name, builder.author_email = author
            return
        diagnostics.record(
            IssueCategory.FIELD_FALLBACK,
            "latest commit author is unavailable",
            field="author",
        )

    def _git(self, root: Path, *args: str):
        return self.runner.run(root, args)


def _split_author(output: str) -> Optional[Tuple[str, str]]:
    lines = output.splitlines()
    if len(lines) != 2:
        return None
    name, email = (line.strip() for line in lines)
    if not name or not email:
        return None
    return name, email


__all__ = [
    "MetadataCollector",
    "RepositoryMetadataBuilder",
    "format_version",
    "parse_commit_date",
    "parse_describe",
]

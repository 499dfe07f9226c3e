"""Rendering of metadata records as IEC 61131-3 structured literals."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Tuple

from .. import __version__
from ..models import BuildMetadata, RepositoryMetadata

HEADER_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_ESCAPES = {
    "$": "$$",
    "'": "$'",
    "\n": "$N",
    "\r": "$R",
    "\t": "$T",
}


def string_literal(value: str) -> str:
    """Quote ``value`` as a single-quoted STRING literal."""
    return "'" + "".join(_ESCAPES.get(char, char) for char in value) + "'"


def date_literal(value: datetime) -> str:
    """Render a DATE_AND_TIME literal, e.g. ``DT#2024-05-01-13:45:00``."""
    return "DT#" + value.strftime("%Y-%m-%d-%H:%M:%S")


def header_date(value: datetime) -> str:
    return value.strftime(HEADER_DATE_FORMAT)


def structure(members: Iterable[Tuple[str, str]]) -> str:
    """Join ``(name, rendered value)`` pairs into ``(A:=1,B:='x')``."""
    return "(" + ",".join(f"{name}:={value}" for name, value in members) + ")"


def script_payload(generator: str, version: str = __version__) -> str:
    return structure(
        [
            ("Name", string_literal(generator)),
            ("Version", string_literal(version)),
        ]
    )


def git_payload(repository: RepositoryMetadata) -> str:
    return structure(
        [
            ("URL", string_literal(repository.remote_url)),
            ("Branch", string_literal(repository.branch)),
            ("Tag", string_literal(repository.tag)),
            ("AdditionalCommits", str(repository.additional_commits)),
            ("Version", string_literal(repository.version)),
            ("Sha1", string_literal(repository.sha1)),
            ("Describe", string_literal(repository.describe)),
            ("UncommittedChanges", string_literal(repository.uncommitted_changes)),
            ("ChangeWarning", "1" if repository.has_uncommitted_changes else "0"),
            ("CommitDate", date_literal(repository.commit_date)),
            ("CommitAuthorName", string_literal(repository.author_name)),
            ("CommitAuthorEmail", string_literal(repository.author_email)),
        ]
    )


def project_payload(build: BuildMetadata) -> str:
    return structure(
        [
            ("ASVersion", string_literal(build.tool_version)),
            ("UserName", string_literal(build.user_name)),
            ("ProjectName", string_literal(build.project_name)),
            ("Configuration", string_literal(build.configuration)),
            ("BuildMode", string_literal(build.build_mode)),
            ("BuildDate", date_literal(build.build_date)),
        ]
    )


def version_initializer(script: str, git: str, project: str) -> str:
    """Composite initializer holding the three version members."""
    return f"(Script:={script}, Git:={git}, Project:={project})"


__all__ = [
    "HEADER_DATE_FORMAT",
    "date_literal",
    "git_payload",
    "header_date",
    "project_payload",
    "script_payload",
    "string_literal",
    "structure",
    "version_initializer",
]

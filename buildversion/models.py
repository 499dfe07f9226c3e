"""Immutable metadata records shared across buildversion components."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

UNKNOWN = "Unknown"
NONE = "None"
DEFAULT_DATE = datetime(1970, 1, 1, 0, 0, 0)

# Byte limits of the STRING[n] members of BuildVersionType.
URL_LIMIT = 255
FIELD_LIMIT = 80

PLACEHOLDER_PREFIX = "$"


def truncate_utf8(value: str, limit: int) -> str:
    """Trim ``value`` to at most ``limit`` UTF-8 bytes without splitting a character."""
    encoded = value.encode("utf-8")
    if len(encoded) <= limit:
        return value
    # A partial trailing sequence is dropped by the decoder.
    return encoded[:limit].decode("utf-8", errors="ignore")


@dataclass(frozen=True)
class RepositoryMetadata:
    """Facts about the repository the project is built from.

    Every field carries a usable value. Defaults are the sentinels used when
    a fact cannot be determined, so ``RepositoryMetadata()`` describes a build
    made outside version control.
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


@dataclass(frozen=True)
class BuildMetadata:
    """Build invocation context passed in by the build tool."""

    tool_version: str
    user_name: str
    project_name: str
    configuration: str
    build_mode: str
    build_date: datetime

    @classmethod
    def unknown(cls, build_date: datetime) -> "BuildMetadata":
        return cls(
            tool_version=UNKNOWN,
            user_name=UNKNOWN,
            project_name=UNKNOWN,
            configuration=UNKNOWN,
            build_mode=UNKNOWN,
            build_date=build_date,
        )


__all__ = [
    "BuildMetadata",
    "DEFAULT_DATE",
    "FIELD_LIMIT",
    "NONE",
    "PLACEHOLDER_PREFIX",
    "RepositoryMetadata",
    "UNKNOWN",
    "URL_LIMIT",
    "truncate_utf8",
]

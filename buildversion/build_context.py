"""Validation of the build-invocation parameters passed by the build tool."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Sequence

from .diagnostics import Diagnostics, IssueCategory
from .logging import get_logger
from .models import FIELD_LIMIT, PLACEHOLDER_PREFIX, UNKNOWN, BuildMetadata, truncate_utf8

# Order in which the build tool passes the values.
BUILD_FIELDS = ("tool_version", "user_name", "project_name", "configuration", "build_mode")


def _local_now() -> datetime:
    return datetime.now().replace(microsecond=0)


class BuildContextBuilder:
    """Turns the five raw build arguments into a ``BuildMetadata`` record."""

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or _local_now
        self.logger = get_logger("build_context")

    def build(self, arguments: Sequence[str], diagnostics: Diagnostics) -> BuildMetadata:
        build_date = self._clock()
        if len(arguments) != len(BUILD_FIELDS):
            diagnostics.record(
                IssueCategory.MISSING_ARGUMENTS,
                f"expected {len(BUILD_FIELDS)} build arguments "
                f"({', '.join(BUILD_FIELDS)}), got {len(arguments)}",
            )
            return BuildMetadata.unknown(build_date)

        values = {
            name: self._sanitize(name, raw, diagnostics)
            for name, raw in zip(BUILD_FIELDS, arguments)
        }
        metadata = BuildMetadata(build_date=build_date, **values)
        self.logger.debug("Build context: %s", metadata)
        return metadata

    @staticmethod
    def _sanitize(name: str, raw: str, diagnostics: Diagnostics) -> str:
        value = (raw or "").strip()
        if not value:
            diagnostics.record(IssueCategory.PLACEHOLDER, "value is empty", field=name)
            return UNKNOWN
        if value.startswith(PLACEHOLDER_PREFIX):
            diagnostics.record(
                IssueCategory.PLACEHOLDER,
                f"unexpanded placeholder {value!r} was not substituted by the build tool",
                field=name,
            )
            return UNKNOWN
        return truncate_utf8(value, FIELD_LIMIT)


__all__ = ["BUILD_FIELDS", "BuildContextBuilder"]

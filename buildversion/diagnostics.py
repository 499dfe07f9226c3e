"""Issue tracking for a single buildversion run."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .logging import get_logger


class IssueCategory(Enum):
    """Failure conditions a run can run into."""

    TOOL_MISSING = "tool_missing"
    NO_REPOSITORY = "no_repository"
    FIELD_FALLBACK = "field_fallback"
    MALFORMED_DESCRIBE = "malformed_describe"
    UNCOMMITTED_CHANGES = "uncommitted_changes"
    MISSING_ARGUMENTS = "missing_arguments"
    PLACEHOLDER = "placeholder"
    NO_INITIALIZATION_TARGET = "no_initialization_target"
    WRITE_FAILED = "write_failed"


@dataclass(frozen=True)
class Issue:
    """A single recorded fallback or failure."""

    category: IssueCategory
    message: str
    field: Optional[str] = None

    def describe(self) -> str:
        if self.field:
            return f"{self.field}: {self.message}"
        return self.message


@dataclass
class Diagnostics:
    """Collects issues raised while a run progresses and logs each one."""

    logger: logging.Logger = field(default_factory=lambda: get_logger("diagnostics"))
    issues: List[Issue] = field(default_factory=list)

    def record(
        self,
        category: IssueCategory,
        message: str,
        *,
        field: Optional[str] = None,
    ) -> Issue:
        issue = Issue(category=category, message=message, field=field)
        self.issues.append(issue)
        self.logger.warning("%s", issue.describe())
        return issue

    def of(self, *categories: IssueCategory) -> List[Issue]:
        wanted = set(categories)
        return [issue for issue in self.issues if issue.category in wanted]

    def has(self, *categories: IssueCategory) -> bool:
        return bool(self.of(*categories))

    def fields_with_fallback(self) -> List[str]:
        return [
            issue.field
            for issue in self.issues
            if issue.category is IssueCategory.FIELD_FALLBACK and issue.field
        ]


__all__ = ["Diagnostics", "Issue", "IssueCategory"]

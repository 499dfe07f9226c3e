"""Tests for repository metadata collection."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from buildversion.diagnostics import Diagnostics, IssueCategory
from buildversion.git.collector import (
    MetadataCollector,
    RepositoryMetadataBuilder,
    parse_commit_date,
    parse_describe,
)
from buildversion.git.runner import CommandRunner
from buildversion.models import DEFAULT_DATE, RepositoryMetadata
from tests._fixtures.fake_git import SHA1, FakeGit, clean_repository, commit_date_local


def _collect(tmp_path: Path, fake: FakeGit) -> tuple[RepositoryMetadata, Diagnostics]:
    diagnostics = Diagnostics()
    collector = MetadataCollector(CommandRunner(runner=fake))
    return collector.collect(tmp_path, diagnostics), diagnostics


def test_collects_clean_repository_after_tag(tmp_path: Path) -> None:
    metadata, diagnostics = _collect(tmp_path, FakeGit(clean_repository()))

    assert metadata.remote_url == "https://example.com/r.git"
    assert metadata.branch == "main"
    assert metadata.tag == "1.2.0"
    assert metadata.additional_commits == 3
    assert metadata.version == "1.2.0-3"
    assert metadata.describe == "1.2.0-3-gabc1234"
    assert metadata.sha1 == SHA1
    assert metadata.uncommitted_changes == "None"
    assert metadata.has_uncommitted_changes is False
    assert metadata.commit_date == commit_date_local()
    assert metadata.author_name == "Jane Doe"
    assert metadata.author_email == "jane@example.com"
    assert diagnostics.issues == []


def test_queries_run_in_fixed_order(tmp_path: Path) -> None:
    fake = FakeGit(clean_repository())
    _collect(tmp_path, fake)

    assert fake.commands() == list(clean_repository().keys())
    assert all(cwd == tmp_path for _, cwd in fake.calls)


def test_missing_tool_aborts_with_sentinels(tmp_path: Path) -> None:
    fake = FakeGit(missing=True)
    metadata, diagnostics = _collect(tmp_path, fake)

    assert metadata == RepositoryMetadata()
    assert fake.commands() == [("--version",)]
    assert [issue.category for issue in diagnostics.issues] == [IssueCategory.TOOL_MISSING]


def test_missing_repository_aborts_with_sentinels(tmp_path: Path) -> None:
    responses = clean_repository()
    responses[("config", "--local", "--list")] = None
    fake = FakeGit(responses)

    metadata, diagnostics = _collect(tmp_path, fake)

    assert metadata == RepositoryMetadata()
    assert len(fake.calls) == 2
    assert diagnostics.has(IssueCategory.NO_REPOSITORY)
    assert not diagnostics.has(IssueCategory.TOOL_MISSING)


def test_repository_without_tags_uses_none_sentinels(tmp_path: Path) -> None:
    responses = clean_repository()
    responses[("describe", "--tags", "--abbrev=0")] = None
    fake = FakeGit(responses)

    metadata, diagnostics = _collect(tmp_path, fake)

    assert metadata.tag == "None"
    assert metadata.version == "None"
    assert metadata.describe == "None"
    assert metadata.additional_commits == 0
    assert ("describe", "--tags", "--long") not in fake.commands()
    assert diagnostics.fields_with_fallback() == ["tag"]


def test_malformed_describe_keeps_tag_as_version(tmp_path: Path) -> None:
    responses = clean_repository()
    responses[("describe", "--tags", "--long")] = "1.2.0-weird\n"

    metadata, diagnostics = _collect(tmp_path, FakeGit(responses))

    assert metadata.additional_commits == 0
    assert metadata.version == "1.2.0"
    assert metadata.describe == "1.2.0-weird"
    assert diagnostics.has(IssueCategory.MALFORMED_DESCRIBE)


def test_unavailable_describe_falls_back_to_tag(tmp_path: Path) -> None:
    responses = clean_repository()
    responses[("describe", "--tags", "--long")] = None

    metadata, diagnostics = _collect(tmp_path, FakeGit(responses))

    assert metadata.tag == "1.2.0"
    assert metadata.version == "1.2.0"
    assert metadata.describe == "Unknown"
    assert metadata.additional_commits == 0
    assert diagnostics.fields_with_fallback() == ["describe"]


def test_tag_on_head_has_plain_version(tmp_path: Path) -> None:
    responses = clean_repository()
    responses[("describe", "--tags", "--long")] = "1.2.0-0-gabc1234\n"

    metadata, _ = _collect(tmp_path, FakeGit(responses))

    assert metadata.additional_commits == 0
    assert metadata.version == "1.2.0"


def test_hyphenated_tag_is_parsed(tmp_path: Path) -> None:
    responses = clean_repository()
    responses[("describe", "--tags", "--abbrev=0")] = "v2.0-rc1\n"
    responses[("describe", "--tags", "--long")] = "v2.0-rc1-7-g1234abc\n"

    metadata, diagnostics = _collect(tmp_path, FakeGit(responses))

    assert metadata.additional_commits == 7
    assert metadata.version == "v2.0-rc1-7"
    assert not diagnostics.has(IssueCategory.MALFORMED_DESCRIBE)


def test_dirty_tree_is_flagged(tmp_path: Path) -> None:
    responses = clean_repository()
    responses[("diff", "HEAD", "--shortstat")] = " 2 files changed, 5 insertions(+), 1 deletion(-)\n"

    metadata, diagnostics = _collect(tmp_path, FakeGit(responses))

    assert metadata.has_uncommitted_changes is True
    assert metadata.uncommitted_changes == "2 files changed, 5 insertions(+), 1 deletion(-)"
    assert diagnostics.has(IssueCategory.UNCOMMITTED_CHANGES)


def test_each_field_falls_back_independently(tmp_path: Path) -> None:
    responses = clean_repository()
    for key in (
        ("config", "--get", "remote.origin.url"),
        ("symbolic-ref", "--short", "-q", "HEAD"),
        ("rev-parse", "HEAD"),
        ("diff", "HEAD", "--shortstat"),
        ("log", "-1", "--format=%cI"),
        ("log", "-1", "--format=%an%n%ae"),
    ):
        responses[key] = None

    metadata, diagnostics = _collect(tmp_path, FakeGit(responses))

    assert metadata.remote_url == "Unknown"
    assert metadata.branch == "Unknown"
    assert metadata.sha1 == "Unknown"
    assert metadata.uncommitted_changes == "Unknown"
    assert metadata.has_uncommitted_changes is False
    assert metadata.commit_date == DEFAULT_DATE
    assert metadata.author_name == "Unknown"
    assert metadata.author_email == "Unknown"
    assert metadata.version == "1.2.0-3"
    assert diagnostics.fields_with_fallback() == [
        "remote_url",
        "branch",
        "sha1",
        "uncommitted_changes",
        "commit_date",
        "author",
    ]


def test_author_name_and_email_fail_together(tmp_path: Path) -> None:
    responses = clean_repository()
    responses[("log", "-1", "--format=%an%n%ae")] = "Jane Doe\n"

    metadata, _ = _collect(tmp_path, FakeGit(responses))

    assert metadata.author_name == "Unknown"
    assert metadata.author_email == "Unknown"


def test_unparseable_commit_date_uses_default(tmp_path: Path) -> None:
    responses = clean_repository()
    responses[("log", "-1", "--format=%cI")] = "yesterday\n"

    metadata, diagnostics = _collect(tmp_path, FakeGit(responses))

    assert metadata.commit_date == DEFAULT_DATE
    assert diagnostics.fields_with_fallback() == ["commit_date"]


def test_long_values_are_truncated_to_field_limits(tmp_path: Path) -> None:
    responses = clean_repository()
    responses[("config", "--get", "remote.origin.url")] = "https://example.com/" + "r" * 400
    responses[("symbolic-ref", "--short", "-q", "HEAD")] = "feature/x" + "é" * 60

    metadata, _ = _collect(tmp_path, FakeGit(responses))

    assert len(metadata.remote_url.encode("utf-8")) == 255
    branch_bytes = metadata.branch.encode("utf-8")
    # 80 bytes would end inside a two-byte character, so that character is dropped.
    assert len(branch_bytes) == 79
    assert metadata.branch == "feature/x" + "é" * 35


def test_builder_truncates_after_sentinels() -> None:
    builder = RepositoryMetadataBuilder()
    builder.author_name = "x" * 120

    metadata = builder.build()

    assert metadata.author_name == "x" * 80
    assert metadata.branch == "Unknown"


@pytest.mark.parametrize(
    ("tag", "describe", "expected"),
    [
        ("1.2.0", "1.2.0-3-gabc1234", 3),
        ("1.2.0", "1.2.0-0-gabc1234", 0),
        ("release-1", "release-1-12-gdeadbee", 12),
        ("1.2.0", "1.2.0", None),
        ("1.2.0", "1.2.0-3-gabc-dirty", None),
        ("1.2.0", "1.2.0-x-gabc1234", None),
    ],
)
def test_parse_describe(tag: str, describe: str, expected: int | None) -> None:
    assert parse_describe(tag, describe) == expected


def test_parse_commit_date_handles_offsets_and_zulu() -> None:
    aware = parse_commit_date("2024-05-01T13:45:00Z")
    naive = parse_commit_date("2024-05-01T13:45:00")

    assert aware == commit_date_local()
    assert naive == datetime(2024, 5, 1, 13, 45)
    assert parse_commit_date("not a date") is None

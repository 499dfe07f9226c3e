"""Git access for repository metadata."""

from .collector import MetadataCollector, RepositoryMetadataBuilder
from .runner import CommandResult, CommandRunner

__all__ = ["CommandResult", "CommandRunner", "MetadataCollector", "RepositoryMetadataBuilder"]

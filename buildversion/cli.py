"""CLI entrypoints for buildversion commands."""

from __future__ import annotations

import argparse
import sys
from dataclasses import fields, replace
from pathlib import Path

from .config import ConfigError, load_config
from .logging import configure_logging
from .orchestrator import BuildVersionError, Orchestrator, RunOutcome, apply_overrides


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_project_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "project_root",
        help="Path to the Automation Studio project root.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Configuration file (defaults to PROJECT_ROOT/.buildversion.yml).",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write a debug log to this file.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="buildversion",
        description="Inject git and build information into Automation Studio variable declarations.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Write the version declaration and patch the global version variable.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_project_options(generate_parser)
    generate_parser.add_argument(
        "build_args",
        nargs="*",
        metavar="BUILD_ARG",
        help="Build context in order: AS version, user name, project name, configuration, build mode.",
    )
    generate_parser.add_argument(
        "--target",
        type=Path,
        default=None,
        help="Declaration file to generate (skips the program directory search).",
    )
    generate_parser.add_argument(
        "--program",
        default=None,
        help="Program directory searched for below PROJECT_ROOT (defaults to the configured program).",
    )
    generate_parser.add_argument(
        "--global-file",
        type=Path,
        default=None,
        help="Shared declarations file holding the version variable.",
    )
    generate_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only print warnings and errors.",
    )
    for flag, help_text in (
        ("--error-on-missing-arguments", "Fail when the build arguments are missing."),
        ("--error-on-repository-check-failure", "Fail when git or the repository is unavailable."),
        ("--error-on-uncommitted-changes", "Fail when the working tree has uncommitted changes."),
        ("--error-if-no-initialization-target", "Fail when no version declaration could be written."),
    ):
        generate_parser.add_argument(flag, action="store_true", help=help_text)

    show_parser = subparsers.add_parser(
        "show",
        help="Print the repository metadata without writing anything.",
    )
    _add_verbose_option(show_parser, suppress_default=True)
    _add_project_options(show_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for buildversion commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        quiet=bool(getattr(args, "quiet", False)),
        log_file=args.log_file,
    )

    project_root = Path(args.project_root).expanduser().resolve()
    try:
        config = load_config(args.config or project_root)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    orchestrator = Orchestrator()

    if args.command == "generate":
        config = apply_overrides(
            config,
            error_on_missing_arguments=args.error_on_missing_arguments,
            error_on_repository_check_failure=args.error_on_repository_check_failure,
            error_on_uncommitted_changes=args.error_on_uncommitted_changes,
            error_if_no_initialization_target=args.error_if_no_initialization_target,
        )
        if args.program:
            config = replace(config, target=replace(config.target, program=args.program))
        try:
            outcome = orchestrator.run(
                project_root,
                args.build_args,
                config=config,
                declaration_file=args.target,
                global_file=args.global_file,
            )
        except BuildVersionError as exc:
            parser.exit(1, f"buildversion failed: {exc}\n")
        except Exception as exc:  # pragma: no cover
            parser.exit(1, f"buildversion failed: {exc}\nRun with --verbose for more details.\n")
        _print_outcome(outcome)
    elif args.command == "show":
        repository, _ = orchestrator.collect(project_root, config)
        for item in fields(repository):
            print(f"{item.name}: {getattr(repository, item.name)}")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _print_outcome(outcome: RunOutcome) -> None:
    if outcome.synthesis is not None:
        print(f"{outcome.synthesis.status.lower()}: {_relativize(outcome.synthesis.path)}")
    if outcome.patch is not None and outcome.patch.initialized:
        print(f"{outcome.patch.status.lower()}: {_relativize(outcome.patch.path)} ({outcome.patch.variable})")
    if not outcome.initialized:
        print("No version declaration was initialized")
    print(f"version {outcome.repository.version} ({outcome.repository.sha1})")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])

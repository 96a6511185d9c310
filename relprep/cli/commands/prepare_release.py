"""prepare-release command - cut a release branch and advance development."""

from __future__ import annotations

import json
from enum import StrEnum
from pathlib import Path

import typer

from relprep.cli.context import build_context
from relprep.core.errors import ErrorCode
from relprep.core.result import Err, Ok
from relprep.output.console import ConsoleProtocol, Style
from relprep.output.errors import print_release_hint, release_error_exit_code
from relprep.services.release.model import ReleaseBranchInfo, ReleaseInfo
from relprep.services.release.semver import parse_version
from relprep.services.release.workflow import ReleaseManager


class OutputFormat(StrEnum):
    text = "text"
    json = "json"


def prepare_release(
    project_dir: Path = typer.Argument(
        Path("."), help="Directory governed by the version file (default: current dir)"
    ),
    next_version: str | None = typer.Option(
        None,
        "--next-version",
        help="Version to set on the current branch (default: from versionIncrement)",
        show_default=False,
    ),
    tag: str | None = typer.Option(
        None,
        "--tag",
        help="Prerelease tag for the release branch, e.g. rc (default: none)",
        show_default=False,
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.text, "--format", help="Output format"
    ),
) -> None:
    """Create (or advance) the release branch and bump the development version."""
    ctx = build_context(machine_output=output_format == OutputFormat.json)

    parsed_next = None
    if next_version is not None:
        parsed_next = parse_version(next_version)
        if parsed_next is None:
            ctx.console.error(f"invalid --next-version: {next_version!r}")
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    manager = ReleaseManager(ctx.console)
    result = manager.prepare_release(
        project_dir.expanduser(), release_unstable_tag=tag, next_version=parsed_next
    )

    match result:
        case Err(e):
            print_release_hint(e, ctx.console)
            raise typer.Exit(code=release_error_exit_code(e))
        case Ok(info):
            if output_format == OutputFormat.json:
                typer.echo(json.dumps(info.to_dict(), indent=2))
            else:
                _print_summary(ctx.console, info)


def _print_summary(console: ConsoleProtocol, info: ReleaseInfo) -> None:
    _print_branch(console, info.current_branch)
    if info.new_branch is not None:
        _print_branch(console, info.new_branch)


def _print_branch(console: ConsoleProtocol, branch: ReleaseBranchInfo) -> None:
    commit = branch.commit[:8] or "-"
    console.print(f"{branch.name}: {branch.version} ({commit})", Style.DIM)

from __future__ import annotations

from dataclasses import dataclass

from relprep.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    console: ConsoleProtocol


def build_context(*, machine_output: bool = False) -> CLIContext:
    """Build the CLI context.

    With `machine_output`, progress lines go to stderr so stdout carries
    only the command's structured result.
    """
    return CLIContext(console=RichConsole(progress_to_stderr=machine_output))

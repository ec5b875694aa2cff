"""Where a reconciliation run reports its results.

The orchestrator only ever calls set_output and fail; GitHubActionsOutput maps
those onto the runner's file commands, RecordingOutput keeps them in memory for
the CLI and for tests.
"""

from __future__ import annotations

import os
import secrets
import sys
from pathlib import Path
from typing import Protocol, TextIO

OUTPUT_FILE_ENV = "GITHUB_OUTPUT"


class OutputSink(Protocol):
    """Receives key/value results and at most one failure message."""

    def set_output(self, name: str, value: str) -> None: ...

    def fail(self, message: str) -> None: ...


def _escape_command_data(value: str) -> str:
    # Workflow command data escaping
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class GitHubActionsOutput:
    """Writes outputs and failures using GitHub Actions workflow commands."""

    def __init__(self, output_file: Path | None = None, stream: TextIO | None = None) -> None:
        if output_file is None and os.environ.get(OUTPUT_FILE_ENV):
            output_file = Path(os.environ[OUTPUT_FILE_ENV])
        self._output_file = output_file
        self._stream = stream or sys.stdout
        self.exit_code = 0

    def set_output(self, name: str, value: str) -> None:
        """Publish one step output."""
        value = value or ""
        if self._output_file is None:
            # Runners without GITHUB_OUTPUT still honor the legacy command
            print(f"::set-output name={name}::{_escape_command_data(value)}", file=self._stream)
            return

        if "\n" in value:
            delimiter = f"ghadelimiter_{secrets.token_hex(8)}"
            entry = f"{name}<<{delimiter}\n{value}\n{delimiter}\n"
        else:
            entry = f"{name}={value}\n"

        with self._output_file.open("a", encoding="utf-8") as handle:
            handle.write(entry)

    def fail(self, message: str) -> None:
        """Mark the step as failed with a single error annotation."""
        print(f"::error::{_escape_command_data(message)}", file=self._stream)
        self.exit_code = 1


class RecordingOutput:
    """Keeps outputs and the failure message in memory."""

    def __init__(self) -> None:
        self.outputs: dict[str, str] = {}
        self.failure: str | None = None

    @property
    def exit_code(self) -> int:
        return 0 if self.failure is None else 1

    def set_output(self, name: str, value: str) -> None:
        self.outputs[name] = value

    def fail(self, message: str) -> None:
        self.failure = message

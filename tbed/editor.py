"""External editor invocation.

The extension sends the user's editor command first, as a
``Command`` control header. The text is then written to a temp
file, the editor runs on it in the foreground, and the file is
read back once the editor exits.
"""
from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass

from returns.io import IOFailure, IOResult
from returns.result import Failure, Result, Success
from returns.unsafe import unsafe_perform_io

from tbed import io_ops
from tbed.errors import BridgeError
from tbed.message import COMMAND_KEY, parse_control_header

logger = logging.getLogger(io_ops.LOGGER_NAME)


@dataclass(frozen=True)
class Editor:
    """User-configured editor command line."""

    command: str

    @classmethod
    def from_command_message(
        cls,
        content: str,
    ) -> Result[Editor, BridgeError]:
        """Build an Editor from the extension's command message."""
        header = parse_control_header(content)
        if (
            header is None
            or header.key != COMMAND_KEY
            or not header.value.strip()
        ):
            return Failure(
                BridgeError(
                    operation="Editor.from_command_message",
                    error_type="MissingEditorCommandError",
                    message=(
                        "Expected a 'Command: <editor>' control header"
                        " with a non-empty command"
                    ),
                    context={"content_snippet": content[:200]},
                ),
            )
        return Success(cls(command=header.value.strip()))

    def argv(self, path: str) -> Result[list[str], BridgeError]:
        """Split the command with shell rules and append the file path."""
        try:
            parts = shlex.split(self.command, comments=True)
        except ValueError as exc:
            return Failure(
                BridgeError(
                    operation="Editor.argv",
                    error_type="InvalidEditorCommandError",
                    message=f"Could not parse editor command: {exc}",
                    context={"command": self.command},
                ),
            )
        if not parts:
            return Failure(
                BridgeError(
                    operation="Editor.argv",
                    error_type="InvalidEditorCommandError",
                    message="Editor command has no program to run",
                    context={"command": self.command},
                ),
            )
        return Success([*parts, path])

    def edit(self, text: str) -> IOResult[str, BridgeError]:
        """Round-trip text through the editor via a temp file.

        The temp file is removed whether or not the edit succeeds.
        """
        file_result = io_ops.write_temp_file(text)
        if isinstance(file_result, IOFailure):
            return file_result
        path = unsafe_perform_io(file_result.unwrap())
        logger.debug("edit: file %s created", path)
        try:
            return self._run(path)
        finally:
            io_ops.remove_file(path)

    def _run(self, path: str) -> IOResult[str, BridgeError]:
        argv_result = self.argv(path)
        if isinstance(argv_result, Failure):
            return IOFailure(argv_result.failure())
        argv = argv_result.unwrap()

        logger.debug("running editor %s", argv)
        run_result = io_ops.run_editor_process(argv)
        if isinstance(run_result, IOFailure):
            return run_result
        return_code = unsafe_perform_io(run_result.unwrap())
        if return_code != 0:
            return IOFailure(
                BridgeError(
                    operation="Editor.edit",
                    error_type="EditorExitError",
                    message=f"Editor exited with code {return_code}",
                    context={"argv": argv, "return_code": return_code},
                ),
            )
        return io_ops.read_text_file(path)

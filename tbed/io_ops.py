"""I/O boundary for the tbed native host.

All external I/O (stdin, stdout, temp files, the editor process,
the log file) goes through here. Tests mock these functions at
this boundary.
"""
from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import IO

from returns.io import IOFailure, IOResult, IOSuccess

from tbed.errors import BridgeError

LOGGER_NAME = "tbed"
_MAX_LOG_LINES = 1000
_TEMP_PREFIX = "tbed-"


def _get_stdin_buffer() -> IO[bytes]:
    """Return stdin binary buffer. Mockable seam."""
    return sys.stdin.buffer


def _get_stdout_buffer() -> IO[bytes]:
    """Return stdout binary buffer. Mockable seam."""
    return sys.stdout.buffer


def setup_logging(log_file: str, *, debug: bool) -> logging.Logger:
    """Send the tbed logger to a file, never to stdout.

    stdout carries the wire protocol, so diagnostics must go
    elsewhere. The file is trimmed to its last lines on startup.
    If it cannot be opened the host keeps running without it.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.propagate = False

    if logger.handlers:
        return logger

    path = Path(log_file)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)

        if path.exists():
            try:
                lines = path.read_text(encoding="utf-8").splitlines()
                if len(lines) > _MAX_LOG_LINES:
                    path.write_text(
                        "\n".join(lines[-_MAX_LOG_LINES:]) + "\n",
                        encoding="utf-8",
                    )
            except (OSError, UnicodeDecodeError):
                pass

        handler = logging.FileHandler(str(path), encoding="utf-8")
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    except OSError:
        logger.addHandler(logging.NullHandler())

    return logger


def write_temp_file(text: str) -> IOResult[str, BridgeError]:
    """Write text to a new tbed- prefixed temp file, return its path."""
    try:
        fd, name = tempfile.mkstemp(prefix=_TEMP_PREFIX, text=True)
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
    except OSError as exc:
        return IOFailure(
            BridgeError(
                operation="io_ops.write_temp_file",
                error_type=type(exc).__name__,
                message=f"Could not write temp file: {exc}",
            ),
        )
    return IOSuccess(name)


def read_text_file(path: str) -> IOResult[str, BridgeError]:
    """Read a UTF-8 file back. Returns IOResult, never raises."""
    try:
        with open(path, encoding="utf-8", newline="") as f:  # noqa: PTH123
            return IOSuccess(f.read())
    except FileNotFoundError:
        return IOFailure(
            BridgeError(
                operation="io_ops.read_text_file",
                error_type="FileNotFoundError",
                message=f"File not found: {path}",
                context={"path": path},
            ),
        )
    except (OSError, UnicodeDecodeError) as exc:
        return IOFailure(
            BridgeError(
                operation="io_ops.read_text_file",
                error_type=type(exc).__name__,
                message=f"Error reading {path}: {exc}",
                context={"path": path},
            ),
        )


def remove_file(path: str) -> None:
    """Delete a file if it still exists. Mockable seam."""
    Path(path).unlink(missing_ok=True)


def run_editor_process(argv: list[str]) -> IOResult[int, BridgeError]:
    """Run the editor in the foreground and wait for it.

    The child inherits stdin, stdout and stderr. The exit code is
    returned as a value; the caller decides what non-zero means.
    """
    try:
        completed = subprocess.run(argv, check=False)  # noqa: S603
    except FileNotFoundError:
        return IOFailure(
            BridgeError(
                operation="io_ops.run_editor_process",
                error_type="EditorSpawnError",
                message=f"Editor not found: {argv[0]}",
                context={"argv": argv},
            ),
        )
    except OSError as exc:
        return IOFailure(
            BridgeError(
                operation="io_ops.run_editor_process",
                error_type="EditorSpawnError",
                message=f"Could not start editor: {exc}",
                context={"argv": argv},
            ),
        )
    return IOSuccess(completed.returncode)


def find_executable(name: str) -> str | None:
    """Locate an executable on PATH. Mockable seam."""
    return shutil.which(name)


def makedirs(path: str) -> None:
    """Create directory and parents. Mockable seam."""
    os.makedirs(path, exist_ok=True)  # noqa: PTH103


def write_file(path: str, content: str) -> None:
    """Write string content to a file. Mockable seam."""
    with open(path, "w", encoding="utf-8") as f:  # noqa: PTH123
        f.write(content)


def print_output(message: str) -> None:
    """Print a message to stdout. Mockable seam."""
    print(message)  # noqa: T201

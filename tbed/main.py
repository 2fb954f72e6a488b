"""Main entry point for the tbed native messaging host.

Thunderbird starts one host process per edit: it sends the editor
command, then the compose text; the host runs the editor and sends
the edited text back, paged if needed, and exits.
"""
from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import click
from returns.io import IOFailure, IOResult
from returns.result import Failure
from returns.unsafe import unsafe_perform_io

from tbed import io_ops
from tbed.byteorder import detect_byte_order
from tbed.config import (
    DEFAULT_LOG_FILE,
    DEFAULT_PAGE_SIZE,
    HostConfig,
)
from tbed.connection import Connection
from tbed.editor import Editor
from tbed.protocol import receive_logical_message, send_logical_message

if TYPE_CHECKING:
    from tbed.errors import BridgeError

logger = logging.getLogger(io_ops.LOGGER_NAME)


def run_exchange(
    conn: Connection,
    config: HostConfig,
) -> IOResult[int, BridgeError]:
    """Receive command and text, edit, send the result back.

    Nothing is written to the connection unless the edit succeeds.
    Returns the number of frames sent.
    """
    command_result = receive_logical_message(conn)
    if isinstance(command_result, IOFailure):
        return command_result
    editor_result = Editor.from_command_message(
        unsafe_perform_io(command_result.unwrap()),
    )
    if isinstance(editor_result, Failure):
        return IOFailure(editor_result.failure())
    editor = editor_result.unwrap()
    logger.info("editor command: %s", editor.command)

    text_result = receive_logical_message(conn)
    if isinstance(text_result, IOFailure):
        return text_result
    text = unsafe_perform_io(text_result.unwrap())
    logger.info("received message: %d chars", len(text))

    edited_result = editor.edit(text)
    if isinstance(edited_result, IOFailure):
        return edited_result
    edited = unsafe_perform_io(edited_result.unwrap())

    return send_logical_message(conn, edited, config.page_size_limit)


@click.command(context_settings={"ignore_unknown_options": True})
@click.option(
    "--log-file",
    default=DEFAULT_LOG_FILE,
    envvar="TBED_LOG_FILE",
    show_default=True,
    help="File receiving diagnostic output (never stdout).",
)
@click.option(
    "--debug/--no-debug",
    default=True,
    envvar="TBED_DEBUG",
    help="Log protocol details at DEBUG level.",
)
@click.option(
    "--page-size",
    default=DEFAULT_PAGE_SIZE,
    envvar="TBED_PAGE_SIZE",
    type=click.IntRange(min=1, max=DEFAULT_PAGE_SIZE),
    show_default=True,
    help=(
        "Characters of text per outgoing page, at most half the 1 MiB"
        " frame ceiling. Escaped or multi-byte text takes up to 6 bytes"
        " per character, so pages near the cap can still be refused."
    ),
)
@click.argument("browser_args", nargs=-1, type=click.UNPROCESSED)
def main(
    log_file: str,
    debug: bool,
    page_size: int,
    browser_args: tuple[str, ...],
) -> None:
    """Run one editor exchange with the mail extension over stdio.

    The browser passes its own arguments (manifest path, extension
    id); they are logged and otherwise ignored.
    """
    order_result = detect_byte_order()
    if isinstance(order_result, Failure):
        click.echo(str(order_result.failure()), err=True)
        sys.exit(1)

    config = HostConfig(
        byte_order=order_result.unwrap(),
        page_size_limit=page_size,
        log_file=log_file,
        debug=debug,
    )
    io_ops.setup_logging(config.log_file, debug=config.debug)
    logger.debug(
        "host started: byte order %s, page size %d, args %s",
        config.byte_order,
        config.page_size_limit,
        browser_args,
    )

    result = run_exchange(Connection.from_stdio(config), config)
    if isinstance(result, IOFailure):
        error = unsafe_perform_io(result.failure())
        logger.error("%s failure: %s", error.category, error)
        sys.exit(1)
    logger.debug("host finished")


if __name__ == "__main__":
    main()

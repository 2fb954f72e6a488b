"""Control-header handshake for logical messages.

Outbound: a message longer than one page is announced with a
``Pages: <N>`` control frame, then its N data frames follow in
order. Inbound: the first frame is inspected for the same header
and, when present, exactly N more frames are read and joined.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from returns.io import IOFailure, IOResult, IOSuccess
from returns.result import Failure
from returns.unsafe import unsafe_perform_io

from tbed import io_ops
from tbed.message import Message, declared_page_count, join_pages

if TYPE_CHECKING:
    from tbed.connection import Connection
    from tbed.errors import BridgeError

logger = logging.getLogger(io_ops.LOGGER_NAME)


def receive_logical_message(
    conn: Connection,
) -> IOResult[str, BridgeError]:
    """Read one logical message, following a Pages header if sent.

    Anything but a ``Pages: <n>`` header, including the extension's
    ``Command`` header, is returned unchanged as the whole message.
    """
    first_result = conn.read_frame()
    if isinstance(first_result, IOFailure):
        return first_result
    first = unsafe_perform_io(first_result.unwrap())

    count_result = declared_page_count(first)
    if isinstance(count_result, Failure):
        return IOFailure(count_result.failure())
    expected = count_result.unwrap()
    if expected is None:
        return IOSuccess(first)
    logger.debug("receive: message with %d pages", expected)

    contents = [first]
    for page in range(1, expected + 1):
        frame_result = conn.read_frame()
        if isinstance(frame_result, IOFailure):
            return frame_result
        logger.debug("receive: page %d/%d", page, expected)
        contents.append(unsafe_perform_io(frame_result.unwrap()))

    return IOResult.from_result(join_pages(contents))


def send_logical_message(
    conn: Connection,
    text: str,
    page_size_limit: int,
) -> IOResult[int, BridgeError]:
    """Page text and write every frame in order.

    Returns the number of frames written, control frame included.
    Stops at the first failed write.
    """
    message_result = Message.from_plaintext(text, page_size_limit)
    if isinstance(message_result, Failure):
        return IOFailure(message_result.failure())
    message = message_result.unwrap()
    logger.debug(
        "send: %d chars in %d pages (control page: %s)",
        len(text),
        message.page_count,
        message.has_control_page,
    )

    for index, page in enumerate(message.pages):
        write_result = conn.write_frame(page)
        if isinstance(write_result, IOFailure):
            return write_result
        logger.debug("send: frame %d/%d", index + 1, len(message.pages))

    logger.info("message sent: %d frames", len(message.pages))
    return IOSuccess(len(message.pages))

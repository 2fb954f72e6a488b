"""Length-prefixed frame I/O over a pair of binary streams.

Each frame is a 4-byte unsigned length in the host's native byte
order followed by that many bytes of UTF-8 JSON encoding a single
string.
"""
from __future__ import annotations

import json
import logging
import struct
from typing import IO, TYPE_CHECKING

from returns.io import IOFailure, IOResult, IOSuccess

from tbed import io_ops
from tbed.errors import BridgeError

if TYPE_CHECKING:
    from tbed.config import HostConfig

HEADER_SIZE = 4
_MAX_LENGTH = 0xFFFFFFFF

logger = logging.getLogger(io_ops.LOGGER_NAME)


def encode_length(length: int, config: HostConfig) -> bytes:
    """Pack a body length into the 4-byte header."""
    if not 0 <= length <= _MAX_LENGTH:
        msg = f"Frame length out of uint32 range: {length}"
        raise ValueError(msg)
    return struct.pack(config.length_format, length)


def decode_length(header: bytes, config: HostConfig) -> int:
    """Unpack the 4-byte header into a body length."""
    length: int = struct.unpack(config.length_format, header)[0]
    return length


class Connection:
    """Reader/writer pair bound to the extension for one exchange."""

    def __init__(
        self,
        reader: IO[bytes],
        writer: IO[bytes],
        config: HostConfig,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self.config = config

    @classmethod
    def from_stdio(cls, config: HostConfig) -> Connection:
        """Bind the process's binary stdin and stdout."""
        return cls(
            io_ops._get_stdin_buffer(),  # noqa: SLF001
            io_ops._get_stdout_buffer(),  # noqa: SLF001
            config,
        )

    def read_frame(self) -> IOResult[str, BridgeError]:
        """Read one frame and return its decoded string.

        Short reads are fatal: the stream position is unknown after
        a partial frame, so nothing is retried.
        """
        header = self._reader.read(HEADER_SIZE)
        if len(header) < HEADER_SIZE:
            return IOFailure(
                BridgeError(
                    operation="Connection.read_frame",
                    error_type="TruncatedHeaderError",
                    message=(
                        f"Expected {HEADER_SIZE}-byte length header,"
                        f" got {len(header)} bytes"
                    ),
                    context={"received": len(header)},
                ),
            )
        declared = decode_length(header, self.config)
        logger.debug("read: header %s -> length %d", header.hex(), declared)

        body = self._reader.read(declared)
        if len(body) != declared:
            return IOFailure(
                BridgeError(
                    operation="Connection.read_frame",
                    error_type="TruncatedBodyError",
                    message=(
                        "Received message length different from"
                        f" declared: mismatch {len(body)} != {declared}"
                    ),
                    context={"declared": declared, "received": len(body)},
                ),
            )

        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            return IOFailure(
                BridgeError(
                    operation="Connection.read_frame",
                    error_type="InvalidJSONError",
                    message=f"Invalid JSON in native message: {exc}",
                    context={"body_snippet": body[:100].hex()},
                ),
            )
        if not isinstance(payload, str):
            return IOFailure(
                BridgeError(
                    operation="Connection.read_frame",
                    error_type="InvalidJSONError",
                    message=(
                        "Native message must be a JSON string,"
                        f" got {type(payload).__name__}"
                    ),
                ),
            )
        logger.debug("read: %d chars", len(payload))
        return IOSuccess(payload)

    def write_frame(self, payload: str) -> IOResult[int, BridgeError]:
        """Write one already JSON-encoded page as a frame.

        Header and body go out in a single write followed by a flush.
        Returns the body length in bytes.
        """
        body = payload.encode("utf-8")
        if len(body) > self.config.max_frame_size:
            return IOFailure(
                BridgeError(
                    operation="Connection.write_frame",
                    error_type="FrameTooLargeError",
                    message=(
                        f"Frame body of {len(body)} bytes exceeds"
                        f" {self.config.max_frame_size}"
                    ),
                    context={
                        "length": len(body),
                        "max_frame_size": self.config.max_frame_size,
                    },
                ),
            )
        header = encode_length(len(body), self.config)
        try:
            self._writer.write(header + body)
            self._writer.flush()
        except OSError as exc:
            return IOFailure(
                BridgeError(
                    operation="Connection.write_frame",
                    error_type="WriteError",
                    message=f"Could not write frame: {exc}",
                    context={"length": len(body)},
                ),
            )
        logger.debug("send: header %s, %d bytes", header.hex(), len(body))
        return IOSuccess(len(body))

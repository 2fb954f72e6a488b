"""Shared test fixtures for the tbed test suite."""
from __future__ import annotations

import json
import logging
import struct
from collections.abc import Callable, Iterator
from io import BytesIO

import pytest

from tbed.config import HostConfig
from tbed.connection import Connection
from tbed.io_ops import LOGGER_NAME


@pytest.fixture
def host_config() -> HostConfig:
    """Return a little-endian HostConfig with default sizes."""
    return HostConfig(byte_order="little", log_file="unused.log")


@pytest.fixture
def make_frame() -> Callable[[str], bytes]:
    """Return a builder for little-endian frames of a JSON string."""

    def _make(content: str) -> bytes:
        body = json.dumps(content).encode("utf-8")
        return struct.pack("<I", len(body)) + body

    return _make


@pytest.fixture
def make_connection(
    host_config: HostConfig,
) -> Callable[[bytes], tuple[Connection, BytesIO]]:
    """Return a builder for a Connection over in-memory streams."""

    def _make(data: bytes) -> tuple[Connection, BytesIO]:
        out = BytesIO()
        return Connection(BytesIO(data), out, host_config), out

    return _make


@pytest.fixture(autouse=True)
def _reset_tbed_logger() -> Iterator[None]:
    """Drop handlers added by setup_logging between tests."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


@pytest.fixture
def read_frames() -> Callable[[bytes], list[str]]:
    """Return a splitter of little-endian wire output into strings."""
    return _read_frames


def _read_frames(raw: bytes) -> list[str]:
    frames: list[str] = []
    offset = 0
    while offset < len(raw):
        (length,) = struct.unpack("<I", raw[offset:offset + 4])
        body = raw[offset + 4:offset + 4 + length]
        frames.append(json.loads(body))
        offset += 4 + length
    return frames

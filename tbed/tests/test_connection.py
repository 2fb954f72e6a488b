"""Tests for length-prefixed frame I/O."""
from __future__ import annotations

import struct
import sys
from io import BytesIO
from typing import TYPE_CHECKING

import pytest
from returns.io import IOFailure, IOSuccess
from returns.unsafe import unsafe_perform_io

from tbed.config import HostConfig
from tbed.connection import (
    HEADER_SIZE,
    Connection,
    decode_length,
    encode_length,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from pytest_mock import MockerFixture

    ConnFactory = Callable[[bytes], tuple[Connection, BytesIO]]


def _failure_type(result: IOFailure) -> str:
    return unsafe_perform_io(result.failure()).error_type


class TestLengthCodec:
    """Tests for encode_length and decode_length."""

    @pytest.mark.parametrize("order", ["little", "big"])
    @pytest.mark.parametrize("length", [0, 1, 4, 1048576])
    def test_round_trip(self, order: str, length: int) -> None:
        """Encoding then decoding with the same order is lossless."""
        config = HostConfig(byte_order=order)  # type: ignore[arg-type]
        header = encode_length(length, config)
        assert len(header) == HEADER_SIZE
        assert decode_length(header, config) == length

    def test_native_order_matches_struct_native(self) -> None:
        """The detected order produces the platform's native layout."""
        config = HostConfig(byte_order=sys.byteorder)  # type: ignore[arg-type]
        assert encode_length(7, config) == struct.pack("=I", 7)

    def test_big_endian_layout(self) -> None:
        """Big-endian puts the high byte first."""
        config = HostConfig(byte_order="big")
        assert encode_length(7, config) == b"\x00\x00\x00\x07"

    def test_rejects_out_of_range(self, host_config: HostConfig) -> None:
        """Lengths outside uint32 raise ValueError."""
        with pytest.raises(ValueError, match="uint32"):
            encode_length(2**32, host_config)


class TestReadFrame:
    """Tests for Connection.read_frame."""

    def test_reads_string_frame(
        self,
        make_connection: ConnFactory,
        make_frame: Callable[[str], bytes],
    ) -> None:
        """A complete frame yields its decoded string."""
        conn, _ = make_connection(make_frame("hello"))
        assert conn.read_frame() == IOSuccess("hello")

    def test_reads_consecutive_frames(
        self,
        make_connection: ConnFactory,
        make_frame: Callable[[str], bytes],
    ) -> None:
        """Frames are read one at a time, in order."""
        conn, _ = make_connection(make_frame("one") + make_frame("two"))
        assert conn.read_frame() == IOSuccess("one")
        assert conn.read_frame() == IOSuccess("two")

    def test_reads_utf8_body(
        self,
        make_connection: ConnFactory,
    ) -> None:
        """Raw UTF-8 in the body decodes."""
        body = '"olá 😀"'.encode()
        conn, _ = make_connection(struct.pack("<I", len(body)) + body)
        assert conn.read_frame() == IOSuccess("olá 😀")

    def test_empty_input_is_truncated_header(
        self,
        make_connection: ConnFactory,
    ) -> None:
        """EOF before any byte fails on the header."""
        conn, _ = make_connection(b"")
        result = conn.read_frame()
        assert isinstance(result, IOFailure)
        assert _failure_type(result) == "TruncatedHeaderError"

    def test_short_header_fails(
        self,
        make_connection: ConnFactory,
    ) -> None:
        """Fewer than 4 header bytes fail."""
        conn, _ = make_connection(b"\x01\x02")
        result = conn.read_frame()
        assert isinstance(result, IOFailure)
        assert _failure_type(result) == "TruncatedHeaderError"

    def test_declared_length_mismatch_fails(
        self,
        make_connection: ConnFactory,
    ) -> None:
        """[len=5]["ab"] is a length mismatch, not a short string."""
        conn, _ = make_connection(struct.pack("<I", 5) + b'"ab"')
        result = conn.read_frame()
        assert isinstance(result, IOFailure)
        error = unsafe_perform_io(result.failure())
        assert error.error_type == "TruncatedBodyError"
        assert "mismatch" in error.message
        assert error.context == {"declared": 5, "received": 4}

    def test_invalid_json_fails(
        self,
        make_connection: ConnFactory,
    ) -> None:
        """A body that is not JSON fails."""
        conn, _ = make_connection(struct.pack("<I", 8) + b"not json")
        result = conn.read_frame()
        assert isinstance(result, IOFailure)
        assert _failure_type(result) == "InvalidJSONError"

    def test_invalid_utf8_fails(
        self,
        make_connection: ConnFactory,
    ) -> None:
        """A body that is not UTF-8 fails as invalid JSON."""
        conn, _ = make_connection(struct.pack("<I", 3) + b'"\xff"')
        result = conn.read_frame()
        assert isinstance(result, IOFailure)
        assert _failure_type(result) == "InvalidJSONError"

    def test_non_string_json_fails(
        self,
        make_connection: ConnFactory,
    ) -> None:
        """Only JSON strings are valid messages."""
        body = b'{"action": "x"}'
        conn, _ = make_connection(struct.pack("<I", len(body)) + body)
        result = conn.read_frame()
        assert isinstance(result, IOFailure)
        assert _failure_type(result) == "InvalidJSONError"

    def test_big_endian_config_reads_big_endian_header(self) -> None:
        """The configured order decodes the header."""
        body = b'"hi"'
        conn = Connection(
            BytesIO(struct.pack(">I", len(body)) + body),
            BytesIO(),
            HostConfig(byte_order="big"),
        )
        assert conn.read_frame() == IOSuccess("hi")


class TestWriteFrame:
    """Tests for Connection.write_frame."""

    def test_scenario_hello(
        self,
        make_connection: ConnFactory,
    ) -> None:
        """'"hello"' goes out with a length header of 7."""
        conn, out = make_connection(b"")
        result = conn.write_frame('"hello"')
        assert result == IOSuccess(7)
        assert out.getvalue() == struct.pack("<I", 7) + b'"hello"'

    def test_length_counts_utf8_bytes(
        self,
        make_connection: ConnFactory,
    ) -> None:
        """The header holds the byte length, not the char length."""
        conn, out = make_connection(b"")
        conn.write_frame('"é"')
        written = out.getvalue()
        assert struct.unpack("<I", written[:4])[0] == 4
        assert written[4:] == '"é"'.encode()

    @pytest.mark.parametrize("length", [0, 1, 4, 1048576])
    def test_written_header_reads_back(
        self,
        make_connection: ConnFactory,
        length: int,
    ) -> None:
        """Header written for N bytes decodes to N."""
        conn, out = make_connection(b"")
        conn.write_frame("x" * length)
        header = out.getvalue()[:HEADER_SIZE]
        assert decode_length(header, conn.config) == length

    def test_refuses_oversize_frame(
        self,
        make_connection: ConnFactory,
    ) -> None:
        """Bodies above the frame ceiling are not written at all."""
        conn, out = make_connection(b"")
        result = conn.write_frame("x" * (1048576 + 1))
        assert isinstance(result, IOFailure)
        assert _failure_type(result) == "FrameTooLargeError"
        assert out.getvalue() == b""

    def test_flushes_after_write(
        self,
        mocker: MockerFixture,
        host_config: HostConfig,
    ) -> None:
        """Header and body are written together, then flushed."""
        writer = mocker.MagicMock()
        conn = Connection(BytesIO(), writer, host_config)
        conn.write_frame('"ok"')
        assert writer.method_calls == [
            mocker.call.write(struct.pack("<I", 4) + b'"ok"'),
            mocker.call.flush(),
        ]

    def test_write_error_fails(
        self,
        mocker: MockerFixture,
        host_config: HostConfig,
    ) -> None:
        """OSError from the stream becomes a WriteError failure."""
        writer = mocker.MagicMock()
        writer.write.side_effect = BrokenPipeError("closed")
        conn = Connection(BytesIO(), writer, host_config)
        result = conn.write_frame('"ok"')
        assert isinstance(result, IOFailure)
        assert _failure_type(result) == "WriteError"


class TestFromStdio:
    """Tests for binding the process streams."""

    def test_uses_io_ops_seams(
        self,
        mocker: MockerFixture,
        host_config: HostConfig,
        make_frame: Callable[[str], bytes],
    ) -> None:
        """from_stdio reads stdin and writes stdout buffers."""
        stdin = BytesIO(make_frame("in"))
        stdout = BytesIO()
        mocker.patch(
            "tbed.io_ops._get_stdin_buffer",
            return_value=stdin,
        )
        mocker.patch(
            "tbed.io_ops._get_stdout_buffer",
            return_value=stdout,
        )
        conn = Connection.from_stdio(host_config)
        assert conn.read_frame() == IOSuccess("in")
        conn.write_frame('"out"')
        assert stdout.getvalue().endswith(b'"out"')

"""Native byte order detection.

Native messaging length prefixes are written in the host's own byte
order, so the order is probed once at startup and carried in the
HostConfig from then on.
"""
from __future__ import annotations

import struct
from typing import Literal

from returns.result import Failure, Result, Success

from tbed.errors import BridgeError

ByteOrder = Literal["little", "big"]

_PROBE = 0xABCD
_BIG_ENDIAN = b"\xab\xcd"
_LITTLE_ENDIAN = b"\xcd\xab"


def native_probe() -> bytes:
    """Pack the probe pattern using the platform's in-memory layout."""
    return struct.pack("=H", _PROBE)


def detect_byte_order(
    packed: bytes | None = None,
) -> Result[ByteOrder, BridgeError]:
    """Classify the native layout of the 16-bit probe pattern.

    ``packed`` defaults to the real native packing. Returns
    Success("little"|"big"), or Failure when the bytes match
    neither order.
    """
    probe = native_probe() if packed is None else packed
    if probe == _LITTLE_ENDIAN:
        return Success("little")
    if probe == _BIG_ENDIAN:
        return Success("big")
    return Failure(
        BridgeError(
            operation="detect_byte_order",
            error_type="IndeterminateByteOrderError",
            message="Could not determine native byte order",
            context={"probe": probe.hex()},
        ),
    )

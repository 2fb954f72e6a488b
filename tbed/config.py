"""Immutable host configuration built once at process start."""
from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tbed.byteorder import ByteOrder

MAX_FRAME_SIZE = 1048576
DEFAULT_PAGE_SIZE = MAX_FRAME_SIZE // 2
DEFAULT_LOG_FILE = str(
    Path("~/.local/state/tbed/tbed.log").expanduser(),
)


class HostConfig(BaseModel):
    """Settings shared by the Connection, paging and logging.

    ``page_size_limit`` counts characters of plaintext per page and
    may be at most half of ``max_frame_size`` (bytes of JSON body).
    Pages of mostly multi-byte or escaped characters can still
    expand past the ceiling; those writes fail with
    ``FrameTooLargeError``.
    """

    model_config = ConfigDict(frozen=True)

    byte_order: ByteOrder
    max_frame_size: int = Field(default=MAX_FRAME_SIZE, gt=0)
    page_size_limit: int = Field(default=DEFAULT_PAGE_SIZE, gt=0)
    log_file: str = DEFAULT_LOG_FILE
    debug: bool = True

    @model_validator(mode="after")
    def _page_fits_frame(self) -> HostConfig:
        if self.page_size_limit > self.max_frame_size // 2:
            msg = (
                f"page_size_limit ({self.page_size_limit}) exceeds half of"
                f" max_frame_size ({self.max_frame_size})"
            )
            raise ValueError(msg)
        return self

    @property
    def length_format(self) -> str:
        """struct format for the 4-byte unsigned length prefix."""
        return "<I" if self.byte_order == "little" else ">I"

"""Logical messages split into wire pages and joined back.

A logical message that fits in one page travels as a single
JSON-encoded string. Anything larger is preceded by a control
header page::

    --tbed-hdr
    Pages: <N>

followed by exactly N data pages. The extension uses the same
header convention to send the editor command (``Command: <cmd>``).
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING

from returns.result import Failure, Result, Success

from tbed.errors import BridgeError

if TYPE_CHECKING:
    from collections.abc import Iterable

CONTROL_MARKER = "--tbed-hdr"
PAGES_KEY = "Pages"
COMMAND_KEY = "Command"


@dataclass(frozen=True)
class ControlHeader:
    """Decoded ``Key: value`` line of a control header page."""

    key: str
    value: str


def encode_page(content: str) -> str:
    """JSON-encode page content as it is written on the wire."""
    return json.dumps(content, ensure_ascii=False)


def decode_page(page: str) -> Result[str, BridgeError]:
    """Decode one JSON-encoded page back to its string content."""
    try:
        content = json.loads(page)
    except json.JSONDecodeError as exc:
        return Failure(
            BridgeError(
                operation="decode_page",
                error_type="InvalidPageError",
                message=f"Page is not valid JSON: {exc}",
                context={"page_snippet": page[:100]},
            ),
        )
    if not isinstance(content, str):
        return Failure(
            BridgeError(
                operation="decode_page",
                error_type="InvalidPageError",
                message=(
                    "Page must encode a JSON string,"
                    f" got {type(content).__name__}"
                ),
                context={"page_snippet": page[:100]},
            ),
        )
    return Success(content)


def build_control_header(key: str, value: object) -> str:
    """Return the decoded text of a control header page."""
    return f"{CONTROL_MARKER}\n{key}: {value}"


def parse_control_header(content: str) -> ControlHeader | None:
    """Recognize a control header in decoded page content.

    Only the marker line followed by exactly one ``Key: value``
    line is a header. Anything else, including text that merely
    starts with the marker, is ordinary content and gives None.
    """
    prefix = f"{CONTROL_MARKER}\n"
    if not content.startswith(prefix):
        return None
    line = content[len(prefix):]
    key, sep, value = line.partition(": ")
    if not sep or not key or "\n" in line:
        return None
    return ControlHeader(key=key, value=value)


def declared_page_count(content: str) -> Result[int | None, BridgeError]:
    """Return the page count announced by a ``Pages`` header.

    Success(None) means the content is not a ``Pages: <digits>``
    header. A header announcing zero pages is a failure.
    """
    header = parse_control_header(content)
    if header is None or header.key != PAGES_KEY:
        return Success(None)
    if not (header.value.isascii() and header.value.isdigit()):
        return Success(None)
    count = int(header.value)
    if count < 1:
        return Failure(
            BridgeError(
                operation="declared_page_count",
                error_type="MalformedControlHeaderError",
                message=f"Pages header announces {count} pages",
                context={"header": content},
            ),
        )
    return Success(count)


def join_pages(contents: Iterable[str]) -> Result[str, BridgeError]:
    """Reassemble plaintext from decoded page contents.

    A leading ``Pages`` header is dropped and its count used as an
    upper bound on the data pages consumed. Without a header every
    page is concatenated in order.
    """
    pages = iter(contents)
    first = next(pages, None)
    if first is None:
        return Success("")

    count_result = declared_page_count(first)
    if isinstance(count_result, Failure):
        return count_result
    expected = count_result.unwrap()
    if expected is None:
        return Success(first + "".join(pages))

    parts: list[str] = []
    for content in pages:
        if len(parts) == expected:
            break
        parts.append(content)
    return Success("".join(parts))


@dataclass(frozen=True)
class Message:
    """One logical text payload as an ordered tuple of wire pages.

    ``pages`` holds JSON-encoded strings in transmission order,
    the control page first when there is one. ``page_count``
    counts data pages only.
    """

    pages: tuple[str, ...]
    page_count: int

    @property
    def has_control_page(self) -> bool:
        """True when a ``Pages`` header precedes the data pages."""
        return self.page_count > 1

    @classmethod
    def from_plaintext(
        cls,
        text: str,
        page_size_limit: int,
    ) -> Result[Message, BridgeError]:
        """Split text into pages of at most page_size_limit characters."""
        if page_size_limit <= 0:
            return Failure(
                BridgeError(
                    operation="Message.from_plaintext",
                    error_type="InvalidPageSizeError",
                    message=(
                        "Page size limit must be positive,"
                        f" got {page_size_limit}"
                    ),
                    context={"page_size_limit": page_size_limit},
                ),
            )

        count = -(-len(text) // page_size_limit)
        if count == 0:
            return Failure(
                BridgeError(
                    operation="Message.from_plaintext",
                    error_type="EmptyPayloadError",
                    message="Refusing to page an empty payload",
                    context={"page_size_limit": page_size_limit},
                ),
            )

        if count == 1:
            return Success(cls(pages=(encode_page(text),), page_count=1))

        header = build_control_header(PAGES_KEY, count)
        pages = [encode_page(header)]
        for start in range(0, len(text), page_size_limit):
            pages.append(encode_page(text[start:start + page_size_limit]))
        return Success(cls(pages=tuple(pages), page_count=count))

    def to_plaintext(self) -> Result[str, BridgeError]:
        """Decode every page and join the data pages back into plaintext.

        Page 0 is skipped only when the message was paged, so text
        that happens to look like a header survives unchanged. At most
        ``page_count`` data pages are joined.
        """
        contents: list[str] = []
        for page in self.pages:
            decoded = decode_page(page)
            if isinstance(decoded, Failure):
                return decoded
            contents.append(decoded.unwrap())
        if not self.has_control_page:
            return Success("".join(contents))
        return Success("".join(contents[1:self.page_count + 1]))

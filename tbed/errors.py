"""Error value carried by every failing tbed operation."""
from __future__ import annotations

from dataclasses import dataclass, field

ENVIRONMENT_ERRORS = frozenset({"IndeterminateByteOrderError"})
FRAMING_ERRORS = frozenset({
    "TruncatedHeaderError",
    "TruncatedBodyError",
    "InvalidJSONError",
    "FrameTooLargeError",
    "WriteError",
})
PAGING_ERRORS = frozenset({
    "EmptyPayloadError",
    "InvalidPageSizeError",
    "InvalidPageError",
    "MalformedControlHeaderError",
})

# Longest context rendering kept on one log line.
CONTEXT_LOG_LIMIT = 300


@dataclass(frozen=True)
class BridgeError:
    """Structured failure of a protocol, paging or editor operation.

    Carried inside ``returns`` containers; never raised. The host
    entry point logs it and exits.
    """

    operation: str
    error_type: str
    message: str
    context: dict[str, object] = field(default_factory=dict)

    @property
    def category(self) -> str:
        """Taxonomy bucket: environment, framing, paging or collaborator.

        Editor failures and temp-file ``OSError`` names fall into
        collaborator.
        """
        if self.error_type in ENVIRONMENT_ERRORS:
            return "environment"
        if self.error_type in FRAMING_ERRORS:
            return "framing"
        if self.error_type in PAGING_ERRORS:
            return "paging"
        return "collaborator"

    def __str__(self) -> str:
        line = f"{self.error_type} in {self.operation}: {self.message}"
        if not self.context:
            return line
        ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        if len(ctx) > CONTEXT_LOG_LIMIT:
            ctx = ctx[: CONTEXT_LOG_LIMIT - 3] + "..."
        return f"{line} ({ctx})"

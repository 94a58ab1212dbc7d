from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx


class RoutingError(RuntimeError):
    """Raised when the routing service cannot produce a usable road geometry."""

    def __init__(self, message: str, *, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code


@dataclass(frozen=True)
class RoutingErrorInfo:
    code: str
    kind: str
    message: str


def classify_routing_error(exc: BaseException) -> RoutingErrorInfo:
    """Classify routing failures into stable codes for fallback reasons and logs."""

    # Client errors carry the transport exception as their cause; classify that when present.
    cause = exc.__cause__ if isinstance(exc, RoutingError) and exc.__cause__ is not None else exc
    text = str(exc)
    lower = str(cause).lower()

    if isinstance(cause, httpx.HTTPStatusError):
        status = int(cause.response.status_code)
        if status == 429:
            return RoutingErrorInfo(code="rate_limited", kind="http", message=f"HTTP 429 rate limited: {text}")
        return RoutingErrorInfo(code=f"http_{status}", kind="http", message=f"HTTP {status}: {text}")

    if isinstance(cause, httpx.TimeoutException):
        return RoutingErrorInfo(code="timeout", kind="network", message=text)

    if isinstance(cause, httpx.ConnectError):
        if "name or service not known" in lower or "temporary failure in name resolution" in lower:
            return RoutingErrorInfo(code="dns", kind="network", message=text)
        return RoutingErrorInfo(code="connect_error", kind="network", message=text)

    if isinstance(cause, httpx.TransportError):
        return RoutingErrorInfo(code="transport_error", kind="network", message=text)

    if isinstance(exc, RoutingError) and exc.code:
        return RoutingErrorInfo(code=exc.code, kind="response", message=text)

    return RoutingErrorInfo(code="unknown", kind="unknown", message=text)

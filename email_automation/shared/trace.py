"""Request tracing: trace-ID generation, contextvar propagation, header helpers.

Every evaluated conversation message gets a trace ID (``tr_<hex12>``) that
follows the invocation through the gate, the synthesizer and the outbound
provider request via the ``X-Trace-Id`` header.

Separate module (not utils.py) to keep tracing concerns isolated.
"""

from __future__ import annotations

import contextvars
import uuid

TRACE_HEADER = "X-Trace-Id"

current_trace_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "current_trace_id", default=None,
)


def new_trace_id() -> str:
    """Generate a fresh trace ID: ``tr_<12-hex-chars>``."""
    return f"tr_{uuid.uuid4().hex[:12]}"


def trace_headers() -> dict[str, str]:
    """Return headers dict with ``X-Trace-Id`` if one is active."""
    tid = current_trace_id.get()
    return {TRACE_HEADER: tid} if tid else {}

"""Response envelopes and JSON serialization for Structured Thinking MCP."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import orjson


def success_envelope(**payload: Any) -> dict[str, Any]:
    """Build the uniform success envelope.

    Args:
        **payload: Operation-specific keys (e.g. ``thoughtCaptured=...``).

    Returns:
        Envelope dict with ``status: "success"`` followed by the payload.

    """
    return {"status": "success", **payload}


def failure_envelope(message: str, kind: str) -> dict[str, Any]:
    """Build the uniform failure envelope.

    Args:
        message: Human-readable error message.
        kind: Error kind name (``InvalidStage``, ``ValidationError``, ...).

    Returns:
        Envelope dict with status, error, errorKind and timestamp.

    """
    return {
        "status": "failed",
        "error": message,
        "errorKind": kind,
        "timestamp": datetime.now(UTC).isoformat(),
    }


def is_success(envelope: dict[str, Any]) -> bool:
    """Check whether an envelope reports success."""
    return envelope.get("status") == "success"


def safe_json_serialize(obj: Any, *, indent: bool = True) -> str:
    """Safely serialize objects to JSON.

    Args:
        obj: Object to serialize. Can be an object with a to_dict() method,
             a dict, or any JSON-serializable object.
        indent: Pretty-print with two-space indentation.

    Returns:
        JSON string representation of the object.

    """
    opts = orjson.OPT_INDENT_2 if indent else 0
    try:
        if hasattr(obj, "to_dict"):
            obj = obj.to_dict()
        result: bytes = orjson.dumps(obj, option=opts, default=str)
        return result.decode("utf-8")
    except TypeError as e:
        return orjson.dumps(
            {"error": f"Serialization failed: {e!s}", "type": type(obj).__name__}
        ).decode("utf-8")

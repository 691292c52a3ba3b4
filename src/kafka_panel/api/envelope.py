"""Uniform JSON envelope for every API response."""

from datetime import UTC, datetime
from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel

from kafka_panel.models import WireModel


def timestamp() -> str:
    """Current UTC time as an ISO 8601 string."""
    return datetime.now(UTC).isoformat()


def to_json(value: Any) -> Any:
    """Convert wire models (or lists and dicts of them) to JSON-ready values."""
    if isinstance(value, WireModel):
        return value.to_wire()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, list):
        return [to_json(item) for item in value]
    if isinstance(value, dict):
        return {key: to_json(item) for key, item in value.items()}
    return value


def envelope(success: bool, status_code: int = 200, **fields: Any) -> JSONResponse:
    """Build ``{success, data?, error?, message?, details?, ..., timestamp}``.

    Fields passed as None are left out; empty lists and zeroed objects are kept.
    """
    content: dict[str, Any] = {"success": success}
    for key, value in fields.items():
        if value is not None:
            content[key] = to_json(value)
    content["timestamp"] = timestamp()
    return JSONResponse(status_code=status_code, content=content)


def ok(data: Any = None, message: str | None = None, **extra: Any) -> JSONResponse:
    """Successful response."""
    return envelope(True, 200, data=data, message=message, **extra)


def fail(
    error: str,
    status_code: int,
    message: str | None = None,
    details: Any = None,
    **extra: Any,
) -> JSONResponse:
    """Failed response."""
    return envelope(False, status_code, error=error, message=message, details=details, **extra)

"""
Durable encoding of StatusRecord values.

Records are stored as JSON objects with camelCase keys and ISO-8601
timestamps. Decoding also understands the older layout
({"working", "httpStatus", "error", "lastCheck"}) that carries no milestones.
Anything that cannot be decoded raises MalformedStatusError.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from .domain import StatusRecord
from .errors import MalformedStatusError

_TIMESTAMP_FIELDS = ("lastCheckedAt", "firstCheckedAt", "firstFailureAt", "firstSuccessAt")


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_timestamp(value: Any, field: str) -> Optional[datetime]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise MalformedStatusError(f"Field {field} is not a timestamp string: {value!r}")
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as err:
        raise MalformedStatusError(f"Field {field} is not an ISO-8601 timestamp: {value!r}") from err
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_optional(value: Any, expected: type, field: str) -> Any:
    # bool is a subclass of int and must not pass as an HTTP status.
    if value is None:
        return None
    if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
        raise MalformedStatusError(f"Field {field} has an unexpected type: {value!r}")
    return value


def record_to_dict(record: StatusRecord) -> Dict[str, Any]:
    return {
        "healthy": record.healthy,
        "httpStatus": record.http_status,
        "error": record.error,
        "lastCheckedAt": _format_timestamp(record.last_checked_at),
        "firstCheckedAt": _format_timestamp(record.first_checked_at),
        "firstFailureAt": _format_timestamp(record.first_failure_at),
        "firstSuccessAt": _format_timestamp(record.first_success_at),
    }


def record_from_dict(data: Dict[str, Any]) -> StatusRecord:
    """
    Builds a StatusRecord from its decoded JSON object.

    Raises:
        MalformedStatusError: If the object does not describe a status record.
    """
    if not isinstance(data, dict):
        raise MalformedStatusError(f"Status record must be a JSON object, got {type(data).__name__}")

    if "healthy" not in data and "working" in data:
        # Layout written before milestone timestamps were tracked.
        return StatusRecord(
            healthy=_parse_optional(data.get("working"), bool, "working"),
            http_status=_parse_optional(data.get("httpStatus"), int, "httpStatus"),
            error=_parse_optional(data.get("error"), str, "error"),
            last_checked_at=_parse_timestamp(data.get("lastCheck"), "lastCheck"),
            first_checked_at=None,
        )

    if "healthy" not in data:
        raise MalformedStatusError("Status record has no health field.")

    timestamps = {field: _parse_timestamp(data.get(field), field) for field in _TIMESTAMP_FIELDS}
    return StatusRecord(
        healthy=_parse_optional(data.get("healthy"), bool, "healthy"),
        http_status=_parse_optional(data.get("httpStatus"), int, "httpStatus"),
        error=_parse_optional(data.get("error"), str, "error"),
        last_checked_at=timestamps["lastCheckedAt"],
        first_checked_at=timestamps["firstCheckedAt"],
        first_failure_at=timestamps["firstFailureAt"],
        first_success_at=timestamps["firstSuccessAt"],
    )


def encode_status_record(record: StatusRecord) -> str:
    return json.dumps(record_to_dict(record))


def decode_status_record(raw: Union[str, bytes, None]) -> Optional[StatusRecord]:
    """
    Decodes a serialized record; None (no stored value) decodes to None.

    Raises:
        MalformedStatusError: If the value is not valid JSON or not a status record.
    """
    if raw is None:
        return None
    try:
        data = json.loads(raw)
    except ValueError as err:
        raise MalformedStatusError(f"Status record is not valid JSON: {err}") from err
    return record_from_dict(data)

"""Encode/decode Python values to/from Firestore REST API 'fields' format.

Also encodes queued writes (set / update / delete) into REST ``Write``
objects for ``documents:batchWrite``.
"""

import base64
import re
from datetime import datetime
from typing import Any

from tripzi.infrastructure.firebase.field_values import (
    DELETE_FIELD,
    ArrayRemove,
)

_SIMPLE_SEGMENT = re.compile(r"^[A-Za-z_][A-Za-z_0-9]*$")


def _encode_value(v: Any) -> dict:
    if v is None:
        return {"nullValue": None}
    if isinstance(v, bool):
        return {"booleanValue": v}
    if isinstance(v, int):
        return {"integerValue": str(v)}
    if isinstance(v, float):
        return {"doubleValue": v}
    if isinstance(v, datetime):
        return {"timestampValue": v.strftime("%Y-%m-%dT%H:%M:%S.%fZ")}
    if isinstance(v, str):
        return {"stringValue": v}
    if isinstance(v, bytes):
        return {"bytesValue": base64.standard_b64encode(v).decode("ascii")}
    if isinstance(v, list | tuple):
        return {"arrayValue": {"values": [_encode_value(x) for x in v]}}
    if isinstance(v, dict):
        return {"mapValue": {"fields": {k: _encode_value(x) for k, x in v.items()}}}
    raise TypeError(f"Unsupported Firestore value type: {type(v)}")


def encode_document(data: dict[str, Any]) -> dict:
    """Convert a Python dict to Firestore REST Document.fields format."""
    return {"fields": {k: _encode_value(v) for k, v in data.items()}}


def _decode_value(obj: dict) -> Any:
    if "nullValue" in obj:
        return None
    if "booleanValue" in obj:
        return obj["booleanValue"]
    if "integerValue" in obj:
        return int(obj["integerValue"])
    if "doubleValue" in obj:
        return obj["doubleValue"]
    if "timestampValue" in obj:
        return datetime.fromisoformat(obj["timestampValue"].replace("Z", "+00:00"))
    if "stringValue" in obj:
        return obj["stringValue"]
    if "referenceValue" in obj:
        return obj["referenceValue"]
    if "bytesValue" in obj:
        return base64.standard_b64decode(obj["bytesValue"])
    if "geoPointValue" in obj:
        return dict(obj["geoPointValue"])
    if "arrayValue" in obj:
        vals = obj.get("arrayValue", {}).get("values") or []
        return [_decode_value(x) for x in vals]
    if "mapValue" in obj:
        fields = obj["mapValue"].get("fields") or {}
        return {k: _decode_value(x) for k, x in fields.items()}
    return None


def decode_document(fields: dict | None) -> dict:
    """Convert Firestore REST Document.fields to a Python dict."""
    if not fields:
        return {}
    return {k: _decode_value(v) for k, v in fields.items()}


def field_path(*segments: str) -> str:
    """Join segments into a Firestore field path, backtick-quoting non-simple ones.

    ``field_path("participantDetails", "9f-uid")`` -> ``participantDetails.`9f-uid```
    """
    quoted = []
    for segment in segments:
        if _SIMPLE_SEGMENT.match(segment):
            quoted.append(segment)
        else:
            escaped = segment.replace("\\", "\\\\").replace("`", "\\`")
            quoted.append(f"`{escaped}`")
    return ".".join(quoted)


def split_field_path(path: str) -> list[str]:
    """Inverse of field_path: split on unquoted dots and unescape quoted segments."""
    segments: list[str] = []
    current: list[str] = []
    quoted = False
    escaped = False
    for ch in path:
        if escaped:
            current.append(ch)
            escaped = False
        elif quoted and ch == "\\":
            escaped = True
        elif ch == "`":
            quoted = not quoted
        elif ch == "." and not quoted:
            segments.append("".join(current))
            current = []
        else:
            current.append(ch)
    if quoted:
        raise ValueError(f"Unterminated backtick in field path: {path!r}")
    segments.append("".join(current))
    if any(not s for s in segments):
        raise ValueError(f"Empty segment in field path: {path!r}")
    return segments


def _set_nested(target: dict[str, Any], segments: list[str], value: Any) -> None:
    for segment in segments[:-1]:
        target = target.setdefault(segment, {})
    target[segments[-1]] = value


def encode_write(write: dict[str, Any], database_prefix: str) -> dict:
    """Convert a queued write into a REST ``Write``.

    ``write`` has a relative ``path`` and exactly one of:
      - ``delete: True``
      - ``update``: field path -> value, ``DELETE_FIELD`` or
        ``ArrayRemove``; applied only if the document exists.
    """
    name = f"{database_prefix}/{write['path']}"
    if write.get("delete"):
        return {"delete": name}
    if "update" not in write:
        raise ValueError(f"Write for {write['path']!r} has neither delete nor update")

    fields: dict[str, Any] = {}
    mask: list[str] = []
    transforms: list[dict] = []
    for path, value in write["update"].items():
        canonical = field_path(*split_field_path(path))
        if isinstance(value, ArrayRemove):
            transforms.append({
                "fieldPath": canonical,
                "removeAllFromArray": {"values": [_encode_value(v) for v in value.values]},
            })
        elif value is DELETE_FIELD:
            mask.append(canonical)
        else:
            mask.append(canonical)
            _set_nested(fields, split_field_path(path), value)

    out: dict[str, Any] = {
        "update": {"name": name, **encode_document(fields)},
        "updateMask": {"fieldPaths": mask},
        "currentDocument": {"exists": True},
    }
    if transforms:
        out["updateTransforms"] = transforms
    return out

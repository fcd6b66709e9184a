"""Parsing of OpenAPI vendor extension values given as raw JSON."""

from __future__ import annotations

import json
from typing import Any

EXT_PROP_GO_TYPE = "x-go-type"
EXT_PROP_GO_IMPORT = "x-go-type-import"
EXT_GO_NAME = "x-go-name"
EXT_GO_TYPE_NAME = "x-go-type-name"
EXT_PROP_GO_JSON_IGNORE = "x-go-json-ignore"
EXT_PROP_OMIT_EMPTY = "x-omitempty"
EXT_PROP_EXTRA_TAGS = "x-oapi-codegen-extra-tags"


class ExtensionError(ValueError):
    """Raised when an extension value cannot be interpreted."""


def _decode(value: Any) -> Any:
    if not isinstance(value, (str, bytes, bytearray)):
        raise ExtensionError(f"failed to convert type: {type(value).__name__}")
    try:
        return json.loads(value)
    except ValueError as exc:
        raise ExtensionError(f"failed to unmarshal json: {exc}") from exc


def _mismatch(decoded: Any, expected: str) -> ExtensionError:
    return ExtensionError(
        f"failed to unmarshal json: cannot unmarshal {type(decoded).__name__} into {expected}"
    )


def ext_string(value: Any) -> str:
    """Decode a raw JSON extension value holding a string."""
    decoded = _decode(value)
    if decoded is None:
        return ""
    if not isinstance(decoded, str):
        raise _mismatch(decoded, "string")
    return decoded


def ext_type_name(value: Any) -> str:
    """Decode an x-go-type-name value."""
    return ext_string(value)


def ext_parse_go_field_name(value: Any) -> str:
    """Decode an x-go-name value."""
    return ext_string(value)


def _ext_bool(value: Any) -> bool:
    decoded = _decode(value)
    if decoded is None:
        return False
    if not isinstance(decoded, bool):
        raise _mismatch(decoded, "bool")
    return decoded


def ext_parse_omit_empty(value: Any) -> bool:
    """Decode an x-omitempty value."""
    return _ext_bool(value)


def ext_parse_go_json_ignore(value: Any) -> bool:
    """Decode an x-go-json-ignore value."""
    return _ext_bool(value)


def ext_extra_tags(value: Any) -> dict[str, str]:
    """Decode an x-oapi-codegen-extra-tags value into a tag mapping."""
    decoded = _decode(value)
    if decoded is None:
        return {}
    if not isinstance(decoded, dict):
        raise _mismatch(decoded, "map of strings")
    for tag_value in decoded.values():
        if not isinstance(tag_value, str):
            raise _mismatch(tag_value, "string")
    return dict(decoded)
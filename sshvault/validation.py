"""Input normalization for connection and folder payloads.

Payloads arrive already parsed (dicts from the CLI, an HTTP layer or an
import file). Keys may be snake_case or camelCase.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from sshvault.exceptions import ValidationError
from sshvault.types import ConnectionInput

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})


def _pick(payload: Mapping[str, Any], name: str, alias: str, default: Any = None) -> Any:
    if name in payload:
        return payload[name]
    return payload.get(alias, default)


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _require_utf8(value: str, field: str) -> str:
    """Lone surrogates (e.g. from a JSON ``\\ud800`` escape) cannot be stored or encrypted."""
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise ValidationError(f"{field} is not valid text", field=field) from exc
    return value


def as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def parse_positive_int(value: Any) -> Optional[int]:
    """Return *value* as an int > 0, or ``None`` if it is not one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not value.is_integer():
            return None
        number = int(value)
    elif isinstance(value, str):
        text = value.strip()
        if not (text.isascii() and text.isdigit()):
            return None
        number = int(text)
    else:
        return None
    return number if number > 0 else None


def normalize_connection(payload: Mapping[str, Any] | ConnectionInput) -> ConnectionInput:
    """Trim, coerce and validate a connection payload.

    ``folder_id`` and ``sort_order`` are lenient: anything that is not a
    positive integer becomes ``None`` and is filled in by the store.

    Raises:
        ValidationError: if name, host or username is blank, or a static
            connection lacks a positive integer port, or a field holds text
            that cannot be encoded as UTF-8.
    """
    if isinstance(payload, ConnectionInput):
        payload = payload.model_dump()
    if not isinstance(payload, Mapping):
        raise ValidationError("connection payload must be an object")

    name = _text(payload.get("name")).strip()
    host = _text(payload.get("host")).strip()
    username = _text(payload.get("username")).strip()
    password = _text(payload.get("password"))
    port_is_dynamic = as_bool(_pick(payload, "port_is_dynamic", "portIsDynamic", False))

    for field, value in (("name", name), ("host", host), ("username", username)):
        if not value:
            raise ValidationError("name, host, and username are required", field=field)
    for field, value in (("name", name), ("host", host), ("username", username), ("password", password)):
        _require_utf8(value, field)

    port = None
    if not port_is_dynamic:
        port = parse_positive_int(payload.get("port"))
        if port is None:
            raise ValidationError("static port is required", field="port")

    return ConnectionInput(
        name=name,
        host=host,
        username=username,
        password=password,
        port=port,
        port_is_dynamic=port_is_dynamic,
        folder_id=parse_positive_int(_pick(payload, "folder_id", "folderId")),
        sort_order=parse_positive_int(_pick(payload, "sort_order", "sortOrder")),
    )


def normalize_folder_name(name: Any) -> str:
    """Raises ValidationError for a blank or unencodable name."""
    trimmed = _text(name).strip()
    if not trimmed:
        raise ValidationError("folder name is required", field="name")
    return _require_utf8(trimmed, "name")

from __future__ import annotations

import re
from typing import Any, Mapping

# Order matters only for payload readability.
SETTINGS_FIELDS: tuple[str, ...] = (
    "trafficLimitBytes",
    "trafficLimitStrategy",
    "hwidDeviceLimit",
    "activeInternalSquads",
    "externalSquadUuid",
    "description",
    "tag",
    "telegramId",
    "email",
)

_INT_RE = re.compile(r"-?[0-9]+")

# The panel may serialize these as strings (bigint columns).
NUMERIC_FIELDS = frozenset({"trafficLimitBytes", "hwidDeviceLimit", "telegramId"})


def extract_settings(request: Mapping[str, Any]) -> dict[str, Any]:
    """Return only the settings keys the caller actually supplied.

    ``request`` must be presence-tagged: a key is there only if it was sent,
    so an explicit ``None`` survives while an omitted field does not.
    """
    return {k: request[k] for k in SETTINGS_FIELDS if k in request}


def has_settings_fields(request: Mapping[str, Any]) -> bool:
    return any(k in request for k in SETTINGS_FIELDS)


def squad_uuids(current: Mapping[str, Any]) -> list[str]:
    squads = current.get("activeInternalSquads") or []
    out: list[str] = []
    for sq in squads:
        if isinstance(sq, Mapping):
            uid = sq.get("uuid")
            if uid:
                out.append(str(uid))
        elif isinstance(sq, str):
            out.append(sq)
    return out


def _as_int(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        s = value.strip()
        if _INT_RE.fullmatch(s):
            return int(s)
    return value


def field_differs(field: str, requested: Any, current: Any) -> bool:
    if field in NUMERIC_FIELDS:
        return _as_int(requested) != _as_int(current)
    return requested != current


def diff_settings(current: Mapping[str, Any], request: Mapping[str, Any]) -> dict[str, Any]:
    """Minimal update: supplied settings whose value differs from ``current``.

    Squad membership is compared as a set of uuids; numeric fields are
    compared after normalizing integer-like strings.
    """
    changes: dict[str, Any] = {}
    for field, value in extract_settings(request).items():
        if field == "activeInternalSquads":
            wanted = sorted(str(x) for x in (value or []))
            if wanted != sorted(squad_uuids(current)):
                changes[field] = value
            continue
        if field_differs(field, value, current.get(field)):
            changes[field] = value
    return changes


def needs_settings_update(current: Mapping[str, Any], request: Mapping[str, Any]) -> bool:
    return bool(diff_settings(current, request))

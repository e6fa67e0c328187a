"""
Shift configuration per location.

Settings are stored as LocationConfig rows under the "shift." prefix and
merged over the defaults below, so a location with no rows behaves like
DEFAULT_SHIFT_CONFIG.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace

from ..validation import ValidationError
from . import location_service

KEY_PREFIX = "shift."


@dataclass(frozen=True)
class ShiftConfig:
    shifts_enabled: bool = True           # a shift must be open to sell
    shift_duration_hours: int = 8
    auto_close_shift: bool = False        # close automatically once the duration elapses
    require_opening_amount: bool = True
    require_closing_count: bool = True

    def to_dict(self) -> dict:
        return asdict(self)


DEFAULT_SHIFT_CONFIG = ShiftConfig()

_FIELD_TYPES = {f.name: f.type for f in fields(ShiftConfig)}


def _parse_stored(name: str, raw: str | None):
    if raw is None:
        return getattr(DEFAULT_SHIFT_CONFIG, name)
    if _FIELD_TYPES[name] in (bool, "bool"):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    try:
        return int(raw)
    except ValueError:
        return getattr(DEFAULT_SHIFT_CONFIG, name)


def _coerce_input(name: str, value):
    if name not in _FIELD_TYPES:
        raise ValidationError(f"Unknown shift setting: {name}")

    if _FIELD_TYPES[name] in (bool, "bool"):
        if not isinstance(value, bool):
            raise ValidationError(f"{name} must be a boolean")
        return value

    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer")
    if value <= 0 or value > 72:
        raise ValidationError(f"{name} must be between 1 and 72")
    return value


def get_shift_config(location_id: int) -> ShiftConfig:
    location_service.get_location(location_id)
    stored = {
        row.key[len(KEY_PREFIX):]: row.value
        for row in location_service.get_location_configs(location_id)
        if row.key.startswith(KEY_PREFIX)
    }
    values = {
        name: _parse_stored(name, stored.get(name))
        for name in _FIELD_TYPES
    }
    return ShiftConfig(**values)


def update_shift_config(location_id: int, **values) -> ShiftConfig:
    """Partial update; unspecified settings keep their current value."""
    cleaned = {name: _coerce_input(name, value) for name, value in values.items()}

    for name, value in cleaned.items():
        stored = str(value).lower() if isinstance(value, bool) else str(value)
        location_service.set_location_config(location_id, KEY_PREFIX + name, stored)

    return replace(get_shift_config(location_id), **cleaned)


def reset_shift_config(location_id: int) -> ShiftConfig:
    location_service.get_location(location_id)
    for name in _FIELD_TYPES:
        location_service.delete_location_config(location_id, KEY_PREFIX + name)
    return DEFAULT_SHIFT_CONFIG

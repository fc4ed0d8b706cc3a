from __future__ import annotations

from typing import Any, Iterable, Optional

from ..core.exceptions import ValidationError


def require_positive_id(value: Any, field_name: str) -> int:
    try:
        v = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is invalid", field=field_name)
    if v <= 0:
        raise ValidationError(f"{field_name} is invalid", field=field_name)
    return v


def require_min_length(value: Any, field_name: str, min_len: int) -> str:
    v = optional_text(value, field_name) or ""
    if len(v) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters", field=field_name)
    return v


def require_max_length(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    if value is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} must be at most {max_len} characters", field=field_name)
    return value


def require_coordinates(lat: Any, lng: Any, field_name: str) -> tuple[float, float]:
    try:
        lat_f, lng_f = float(lat), float(lng)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must have numeric lat/lng", field=field_name)
    if not -90.0 <= lat_f <= 90.0 or not -180.0 <= lng_f <= 180.0:
        raise ValidationError(f"{field_name} is out of range", field=field_name)
    return lat_f, lng_f


def optional_text(value: Any, field_name: str = "value") -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be text", field=field_name)
    return value.strip() or None


def require_id_list(values: Any, field_name: str) -> tuple[int, ...]:
    """Positive ids in first-seen order, duplicates dropped."""
    if values is None:
        return ()
    if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
        raise ValidationError(f"{field_name} must be a list of ids", field=field_name)
    return tuple(dict.fromkeys(require_positive_id(v, field_name) for v in values))

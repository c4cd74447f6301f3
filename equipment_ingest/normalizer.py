"""Map a spreadsheet row onto the fixed equipment-record schema."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional

from .field_map import lookup
from .tag_resolver import ResolvedTag, resolve_tag
from .validators import (
    validate_date,
    validate_identifier,
    validate_integer,
    validate_number,
    validate_string,
)

MISSING_TAG_REASON = "missing required field: tag"

# logical field -> validator, in column order of the equipment table
RECORD_FIELDS: Dict[str, Callable[[Any], Any]] = {
    "created": validate_date,
    "sent": validate_date,
    "form_id": validate_identifier,
    "form_name": validate_string,
    "user_name": validate_string,
    "assigned_date": validate_date,
    "assigned_time": validate_string,
    "assigned_location": validate_string,
    "assigned_location_code": validate_identifier,
    "first_answer": validate_date,
    "last_answer": validate_date,
    "minutes_to_perform": validate_integer,
    "latitude": validate_number,
    "longitude": validate_number,
    "zona_cliente": validate_string,
    "ejecutado_por": validate_string,
    "tipo_equipo": validate_string,
    "marca_modelo": validate_string,
    "otro_cliente": validate_string,
    "servicio": validate_string,
}


class RowValidationError(ValueError):
    def __init__(self, row_number: Any, reason: str) -> None:
        super().__init__(reason)
        self.row_number = row_number
        self.reason = reason


@dataclass
class EquipmentDraft:
    """A fully typed record ready for upsert, plus where it came from."""

    row_number: Any
    tag: ResolvedTag
    values: Dict[str, Any]
    raw: Mapping[str, Any] = field(repr=False, default_factory=dict)

    @property
    def equipment_tag(self) -> str:
        return self.tag.value

    @property
    def assigned_date(self) -> Optional[datetime]:
        return self.values.get("assigned_date")


def normalize_row(
    row_number: Any,
    data: Mapping[str, Any],
    fallback_tag: Any = None,
    tag_resolver: Optional[Callable[..., ResolvedTag]] = None,
) -> EquipmentDraft:
    if not isinstance(data, Mapping):
        raise RowValidationError(row_number, "row data must be an object")

    resolved = (tag_resolver or resolve_tag)(data, fallback_tag=fallback_tag, row_number=row_number)
    if resolved is None or not (resolved.value or "").strip():
        raise RowValidationError(row_number, MISSING_TAG_REASON)

    values = {name: validator(lookup(data, name)) for name, validator in RECORD_FIELDS.items()}
    values["tipo_equipo"] = values["tipo_equipo"] or resolved.components.type
    return EquipmentDraft(row_number=row_number, tag=resolved, values=values, raw=data)

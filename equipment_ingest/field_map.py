"""Alias table for the spreadsheet's human-readable column labels.

Each logical field lists the column labels it has been submitted under, in
priority order. The first label holding a usable value wins.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "created": ("created",),
    "sent": ("sent",),
    "form_id": ("form_id",),
    "form_name": ("form_name",),
    "user_name": ("user", "user_name"),
    "assigned_date": ("assigned_date",),
    "assigned_time": ("assigned_time",),
    "assigned_location": ("assigned_location",),
    "assigned_location_code": ("assigned_location_code",),
    "first_answer": ("first_answer",),
    "last_answer": ("last_answer",),
    "minutes_to_perform": ("minutes_to_perform",),
    "latitude": ("latitude",),
    "longitude": ("longitude",),
    "zona_cliente": ("Zona - Cliente",),
    "ejecutado_por": ("Ejecutado por",),
    "tipo_equipo": ("Tipo de Equipo",),
    "marca_modelo": ("Marca - Modelo", "Marca"),
    "otro_cliente": ("Otro - Cliente",),
    "servicio": ("Servicio",),
    # equipment tag and its components
    "tag": ("Numero de Equipo (Tag)", "Tag", "Numero del Equipo"),
    "area": ("Area",),
    "tag_type": ("Tipo de Equipo Tag", "Tipo de Equipo"),
    "tag_number": ("Numero del Equipo Tag", "Numero del Equipo"),
}


def _has_value(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def first_value(data: Mapping[str, Any], aliases: Sequence[str]) -> Optional[Any]:
    """Return the raw value of the first alias that holds something non-blank."""
    for key in aliases:
        value = data.get(key)
        if _has_value(value):
            return value
    return None


def lookup(data: Mapping[str, Any], field: str) -> Optional[Any]:
    return first_value(data, FIELD_ALIASES[field])

from datetime import datetime, timezone

import pytest

from equipment_ingest.normalizer import MISSING_TAG_REASON, RowValidationError, normalize_row
from equipment_ingest.tag_resolver import ResolvedTag, TagComponents


def test_full_row_is_typed() -> None:
    data = {
        "created": "2024-03-05T10:00:00Z",
        "form_id": 98123,
        "form_name": "Inspeccion de sellos",
        "user": "jperez",
        "assigned_date": "2024-03-05T00:00:00Z",
        "assigned_time": "08:00",
        "minutes_to_perform": "45",
        "latitude": "-33.45",
        "longitude": "-70.66",
        "Zona - Cliente": "Norte | Minera | Planta",
        "Ejecutado por": "Juan",
        "Tipo de Equipo": "Bomba",
        "Marca": "Goulds",
        "Servicio": "Mantencion",
        "Numero de Equipo (Tag)": "P-101",
    }
    draft = normalize_row(5, data)

    assert draft.row_number == 5
    assert draft.equipment_tag == "P-101"
    assert draft.assigned_date == datetime(2024, 3, 5, tzinfo=timezone.utc)
    assert draft.values["form_id"] == "98123"
    assert draft.values["user_name"] == "jperez"
    assert draft.values["minutes_to_perform"] == 45
    assert draft.values["latitude"] == -33.45
    assert draft.values["marca_modelo"] == "Goulds"
    assert draft.values["otro_cliente"] is None


def test_bad_optional_fields_become_null() -> None:
    draft = normalize_row(
        1,
        {"Tag": "P-1", "latitude": "north", "sent": "yesterday", "minutes_to_perform": "", "Servicio": 5},
    )
    assert draft.values["latitude"] is None
    assert draft.values["sent"] is None
    assert draft.values["minutes_to_perform"] is None
    assert draft.values["servicio"] is None


def test_row_without_any_tag_still_normalizes() -> None:
    draft = normalize_row(9, {"form_name": "x"})
    assert draft.equipment_tag == "AUTO-9"
    assert draft.tag.synthetic


def test_empty_resolved_tag_fails_validation() -> None:
    def no_tag(data, fallback_tag=None, row_number=None):
        return ResolvedTag("", "field", TagComponents(None, None, None))

    with pytest.raises(RowValidationError) as info:
        normalize_row(2, {}, tag_resolver=no_tag)
    assert info.value.row_number == 2
    assert info.value.reason == MISSING_TAG_REASON


def test_non_mapping_data_fails_validation() -> None:
    with pytest.raises(RowValidationError):
        normalize_row(4, ["not", "a", "dict"])

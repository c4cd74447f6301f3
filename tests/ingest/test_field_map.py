from equipment_ingest.field_map import FIELD_ALIASES, first_value, lookup


def test_brand_model_prefers_combined_label() -> None:
    data = {"Marca - Modelo": "Goulds 3196", "Marca": "Goulds"}
    assert lookup(data, "marca_modelo") == "Goulds 3196"


def test_brand_model_falls_back_to_brand_only() -> None:
    assert lookup({"Marca - Modelo": "  ", "Marca": "Flowserve"}, "marca_modelo") == "Flowserve"


def test_first_value_skips_blank_and_missing() -> None:
    assert first_value({"a": "", "b": None, "c": 0}, ("a", "b", "c")) == 0
    assert first_value({}, ("a",)) is None


def test_tag_aliases_are_ordered() -> None:
    assert FIELD_ALIASES["tag"][0] == "Numero de Equipo (Tag)"
    assert lookup({"Tag": "B-2", "Numero de Equipo (Tag)": "A-1"}, "tag") == "A-1"

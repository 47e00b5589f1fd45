# tests/test_normalizer.py

from ibge_portal.reports.normalizer import (
    FlatValue, SeriesValue, Unrecognized, first_series_value, normalize_item,
    normalize_records, parse_item,
)

FLAT = {
    "id": "93",
    "variavel": {"nome": "População residente"},
    "unidade": {"nome": "Pessoas"},
    "localidade": {"nome": "Rio de Janeiro"},
    "periodo": "2022",
    "valor": 16054524,
}

SERIES = {
    "id": "93",
    "variavel": "População residente",
    "unidade": "Pessoas",
    "resultados": [{
        "series": [
            {"localidade": {"id": "1", "nome": "Brasil"}, "serie": {"2010": "1"}},
            {"localidade": {"id": "1", "nivel": {"id": "N1"}, "nome": "Brasil"},
             "serie": {"2022": "203080756", "2021": "0"}},
            {"localidade": {"id": "3", "nivel": {"id": "N2"}}, "serie": {"2022": "99"}},
        ],
    }],
}


def test_parse_item_tags_shapes():
    assert isinstance(parse_item(FLAT), FlatValue)
    assert isinstance(parse_item(SERIES), SeriesValue)
    assert isinstance(parse_item({"id": "1"}), Unrecognized)
    assert isinstance(parse_item("texto"), Unrecognized)


def test_flat_item():
    row = normalize_item(FLAT).as_row()
    assert row == {
        "id": "93",
        "variavel": "População residente",
        "unidade": "Pessoas",
        "localidade": "Rio de Janeiro",
        "periodo": "2022",
        "valor": 16054524,
    }


def test_series_item_takes_first_entry_with_level():
    record = normalize_item(SERIES)
    assert record.value == "203080756"
    assert record.variable_name == "População residente"
    assert record.locality_name == "Brasil"


def test_series_without_level_has_no_value():
    assert first_series_value([{"localidade": {"nome": "X"}, "serie": {"2022": "1"}}]) is None
    assert first_series_value([]) is None


def test_unrecognized_item_keeps_ids_with_null_value():
    record = normalize_item({"id": 7, "variavel": {"nome": "V"}})
    assert record.id == "7"
    assert record.value is None
    assert record.locality_name == "Brasil"


def test_non_list_and_empty_payloads():
    assert normalize_records(None) == []
    assert normalize_records({"erro": "x"}) == []
    assert normalize_records([]) == []
    assert len(normalize_records([FLAT, SERIES])) == 2


def test_with_extra_appends_columns():
    row = normalize_item(FLAT).with_extra(tipo_relatorio="Demográfico").as_row()
    assert list(row)[-1] == "tipo_relatorio"
    assert row["tipo_relatorio"] == "Demográfico"


def test_series_with_non_mapping_serie_has_no_value():
    item = {"resultados": [{"series": [{"localidade": {"nivel": {"id": "N1"}}, "serie": ["1"]}]}]}
    assert first_series_value(item["resultados"][0]["series"]) is None
    assert normalize_item(item).value is None
    assert first_series_value([{"localidade": {"nivel": {"id": "N1"}}, "serie": "1"}]) is None

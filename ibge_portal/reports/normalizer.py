"""
ibge_portal/reports/normalizer.py
═══════════════════════════════════════════════════════════════════════════════
IBGE aggregate items come in (at least) two shapes:

  flat    {"id", "variavel": {...}, "unidade": {...}, "valor": 123}
  series  {"id", "variavel": "...", "unidade": "...",
           "resultados": [{"series": [{"localidade": {"nivel": {...}},
                                        "serie": {"2022": "203080756"}}]}]}

parse_item() tags each item as FlatValue / SeriesValue / Unrecognized and
normalize_item() turns any of them into one ReportRecord.

The series reduction is lossy on purpose: it keeps the first series entry
that carries a locality level (iteration order) and the first value of its
"serie" mapping. Everything else in the item is dropped.
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Union

log = logging.getLogger("normalizer")

DEFAULT_LOCALITY = "Brasil"


@dataclass(frozen=True)
class ReportRecord:
    id: str
    variable_name: str
    unit_name: str
    locality_name: str
    period: str
    value: Any = None
    extra: dict = field(default_factory=dict)

    def as_row(self) -> dict:
        row = {
            "id":         self.id,
            "variavel":   self.variable_name,
            "unidade":    self.unit_name,
            "localidade": self.locality_name,
            "periodo":    self.period,
            "valor":      self.value,
        }
        row.update(self.extra)
        return row

    def with_extra(self, **columns) -> "ReportRecord":
        return ReportRecord(
            id=self.id,
            variable_name=self.variable_name,
            unit_name=self.unit_name,
            locality_name=self.locality_name,
            period=self.period,
            value=self.value,
            extra={**self.extra, **columns},
        )


# ── Upstream shapes ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class FlatValue:
    item: dict
    value: Any


@dataclass(frozen=True)
class SeriesValue:
    item: dict
    series: list


@dataclass(frozen=True)
class Unrecognized:
    item: Any


UpstreamShape = Union[FlatValue, SeriesValue, Unrecognized]


def _name(value: Any) -> str:
    """IBGE uses both {"nome": "..."} objects and bare strings."""
    if isinstance(value, dict):
        return str(value.get("nome") or "")
    return str(value) if value else ""


def _series_entries(resultados: Any) -> Optional[list]:
    if not isinstance(resultados, list) or not resultados:
        return None
    first = resultados[0]
    if not isinstance(first, dict) or not first.get("series"):
        return None
    series = first["series"]
    if isinstance(series, dict):
        return list(series.values())
    if isinstance(series, list):
        return series
    return None


def parse_item(item: Any) -> UpstreamShape:
    if not isinstance(item, dict):
        return Unrecognized(item)
    if "valor" in item:
        return FlatValue(item, item["valor"])
    series = _series_entries(item.get("resultados"))
    if series is not None:
        return SeriesValue(item, series)
    return Unrecognized(item)


def first_series_value(series: list) -> Any:
    """Value of the first entry that has localidade.nivel, else None.

    A "serie" that is not a mapping yields None.
    """
    for entry in series:
        if not isinstance(entry, dict):
            continue
        localidade = entry.get("localidade")
        if isinstance(localidade, dict) and localidade.get("nivel"):
            serie = entry.get("serie")
            if not isinstance(serie, dict):
                return None
            for value in serie.values():
                return value
            return None
    return None


def _base_record(item: dict, value: Any) -> ReportRecord:
    localidade = item.get("localidade")
    return ReportRecord(
        id=str(item.get("id") or ""),
        variable_name=_name(item.get("variavel")),
        unit_name=_name(item.get("unidade")),
        locality_name=_name(localidade) or DEFAULT_LOCALITY,
        period=str(item.get("periodo") or ""),
        value=value,
    )


def normalize_flat(shape: FlatValue) -> ReportRecord:
    return _base_record(shape.item, shape.value)


def normalize_series(shape: SeriesValue) -> ReportRecord:
    return _base_record(shape.item, first_series_value(shape.series))


def normalize_unrecognized(shape: Unrecognized) -> ReportRecord:
    item = shape.item if isinstance(shape.item, dict) else {}
    return _base_record(item, None)


def normalize_item(item: Any) -> ReportRecord:
    shape = parse_item(item)
    if isinstance(shape, FlatValue):
        return normalize_flat(shape)
    if isinstance(shape, SeriesValue):
        return normalize_series(shape)
    log.debug(f"Unrecognized aggregate item shape: {type(item).__name__}")
    return normalize_unrecognized(shape)


def normalize_records(data: Any) -> list[ReportRecord]:
    """Normalize an upstream aggregate payload. Non-lists and empty lists → []."""
    if not isinstance(data, list) or not data:
        return []
    return [normalize_item(item) for item in data]

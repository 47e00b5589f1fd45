"""
ibge_portal/services/repository.py
In-memory locality store filled by the sync endpoints.

Upserts replace rows by id. Sync runs are logged per kind ("localidades",
"pib", ...) and the latest one of each kind is exposed on
GET /api/sincronizacao/status.
"""

import threading
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Optional


@dataclass
class Regiao:
    id: int
    sigla: str
    nome: str


@dataclass
class Estado:
    id: int
    sigla: str
    nome: str
    regiao_id: Optional[int]


@dataclass
class Municipio:
    id: int
    nome: str
    estado_id: Optional[int]


@dataclass
class SyncRecord:
    tipo: str
    status: str
    count: int
    finished_at: datetime
    error: Optional[str] = None

    def as_dict(self) -> dict:
        d = asdict(self)
        d["finished_at"] = self.finished_at.isoformat()
        return d


class LocalityRepository:
    def __init__(self):
        self._regioes:    dict[int, Regiao]    = {}
        self._estados:    dict[int, Estado]    = {}
        self._municipios: dict[int, Municipio] = {}
        self._syncs:      dict[str, SyncRecord] = {}
        self._lock = threading.Lock()

    def upsert_regiao(self, regiao: Regiao) -> None:
        with self._lock:
            self._regioes[regiao.id] = regiao

    def upsert_estado(self, estado: Estado) -> None:
        with self._lock:
            self._estados[estado.id] = estado

    def upsert_municipio(self, municipio: Municipio) -> None:
        with self._lock:
            self._municipios[municipio.id] = municipio

    def counts(self) -> dict[str, int]:
        with self._lock:
            return {
                "regioes":    len(self._regioes),
                "estados":    len(self._estados),
                "municipios": len(self._municipios),
            }

    def record_sync(self, tipo: str, status: str, count: int, error: Optional[str] = None) -> SyncRecord:
        rec = SyncRecord(tipo, status, count, datetime.now(timezone.utc), error)
        with self._lock:
            self._syncs[tipo] = rec
        return rec

    def sync_summary(self) -> dict[str, Optional[dict]]:
        with self._lock:
            return {tipo: rec.as_dict() for tipo, rec in self._syncs.items()}

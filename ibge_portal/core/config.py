"""
ibge_portal/core/config.py
═══════════════════════════════════════════════════════════════════════════════
Runtime settings + static registries.

  Settings             → everything read from environment variables
  INDICATOR_ENDPOINTS  → custom-report indicator → IBGE v1 endpoint
  REPORT_TYPES         → typed reports served by GET /api/relatorios/{tipo}
  PREDEFINED_REPORTS   → canned reports (indicators + periods + title)
  CACHE_RULES          → path prefix → response cache TTL (seconds)

IBGE endpoints used:
  {IBGE_API_BASE_URL}/localidades/...   → states, regions, municipalities
  {IBGE_AGREGADOS_URL}/{codigo}/...     → SIDRA aggregates (v3)
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
import os

import pytz

log = logging.getLogger("config")

BRT = pytz.timezone("America/Sao_Paulo")

_DEV_API_KEY = "chave-secreta-de-desenvolvimento"


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        self.ibge_base_url: str = os.getenv(
            "IBGE_API_BASE_URL", "https://servicodados.ibge.gov.br/api/v1"
        ).rstrip("/")
        self.agregados_url: str = os.getenv(
            "IBGE_AGREGADOS_URL", "https://servicodados.ibge.gov.br/api/v3/agregados"
        ).rstrip("/")
        self.host: str = os.getenv("HOST", "0.0.0.0")
        self.port: int = int(os.getenv("PORT", "5000"))
        self.api_key: str = os.getenv("API_KEY", _DEV_API_KEY)
        self.environment: str = os.getenv("ENVIRONMENT") or os.getenv("NODE_ENV") or "development"
        self.cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
        self.cache_default_ttl_s: int = int(os.getenv("CACHE_DEFAULT_TTL_S", "300"))
        self.sync_delay_s: float = float(os.getenv("SYNC_DELAY_S", "0.2"))
        self.upstream_timeout_s: float = float(os.getenv("UPSTREAM_TIMEOUT_S", "30"))
        self.frontend_build_dir: str = os.getenv("FRONTEND_BUILD_DIR", "frontend/build")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def localidades_url(self) -> str:
        return f"{self.ibge_base_url}/localidades"

    @property
    def cache_rules(self) -> list[tuple[str, int]]:
        return [(prefix, ttl or self.cache_default_ttl_s) for prefix, ttl in CACHE_RULES]

    def validate(self) -> list[str]:
        """Return warnings about settings that are unsafe for production."""
        warnings = []
        if self.api_key == _DEV_API_KEY:
            warnings.append("API_KEY not set, using the development bearer token")
        return warnings


# ── Response cache TTLs ───────────────────────────────────────────────────────
# First matching prefix wins. Paths matching nothing are never cached.
# None → CACHE_DEFAULT_TTL_S (Settings.cache_rules).
CACHE_RULES: list[tuple[str, int | None]] = [
    ("/api/localidades/estados",     3600),   # states rarely change
    ("/api/localidades/regioes",     3600),
    ("/api/agregados/categorias",    3600),
    ("/api/agregados/busca",         1800),
    ("/api/agregados/indicadores",   None),
    ("/api/agregados",               1800),
    ("/api/relatorios/modelos",      3600),
    ("/api/relatorios/informacoes",  3600),
    ("/api/relatorios/predefinidos", 3600),
    ("/api/relatorios",              None),
]

# ── Custom reports: indicator → endpoint ──────────────────────────────────────
# Unknown indicators fall back to /indicadores/{id}.
INDICATOR_ENDPOINTS: dict[str, str] = {
    "populacao":     "/populacao/estimativa",
    "densidade":     "/pesquisas/censo/indicadores",
    "pib":           "/economia/pib/municipal",
    "alfabetizacao": "/educacao/indicadores",
}

EXPORT_FORMATS = ["json", "pdf", "excel", "xlsx", "csv"]

# ── Typed reports (GET /api/relatorios/{tipo}) ────────────────────────────────
REPORT_TYPES: dict[str, dict] = {
    "demografico": {
        "label": "Demográfico",
        "aggregate": "1301",          # População residente
        "period_param": "ano",
    },
    "economico": {
        "label": "Econômico",
        "qualifier": "indicador",
        "default": "pib",
        "aggregates": {"pib": "1378", "renda": "4115", "desemprego": "6381"},
        "period_param": "periodo",
    },
    "educacao": {
        "label": "Educação",
        "qualifier": "nivel",
        "qualifier_column": "nivel_ensino",
        "default": "todos",
        "aggregates": {"fundamental": "2579", "medio": "2580", "superior": "2581"},
        "combined": ["fundamental", "medio"],
    },
    "saude": {
        "label": "Saúde",
        "qualifier": "indicador",
        "default": "expectativa_vida",
        "aggregates": {"expectativa_vida": "3175", "mortalidade": "3320"},
    },
    "habitacao": {
        "label": "Habitação",
        "aggregate": "5938",          # Domicílios por tipo
    },
    "personalizado": {
        "label": "Personalizado",
        "list_param": "agregados",
    },
}

REPORT_TEMPLATES: list[dict] = [
    {
        "id": "demografico",
        "nome": "Dados Demográficos",
        "descricao": "População, densidade demográfica e distribuição etária",
        "parametrosDisponiveis": [
            {"nome": "localidade", "tipo": "string", "obrigatorio": False, "descricao": "Código da localidade (BR, UF33, etc)"},
            {"nome": "ano",        "tipo": "number", "obrigatorio": False, "descricao": "Ano de referência"},
        ],
    },
    {
        "id": "economico",
        "nome": "Indicadores Econômicos",
        "descricao": "PIB, renda per capita e indicadores econômicos",
        "parametrosDisponiveis": [
            {"nome": "localidade", "tipo": "string", "obrigatorio": False, "descricao": "Código da localidade (BR, UF33, etc)"},
            {"nome": "indicador",  "tipo": "string", "obrigatorio": False, "descricao": "Tipo de indicador (pib, renda, desemprego)"},
            {"nome": "periodo",    "tipo": "string", "obrigatorio": False, "descricao": "Período desejado (ultimo, 2020, etc)"},
        ],
    },
    {
        "id": "educacao",
        "nome": "Educação",
        "descricao": "Matrículas e outros indicadores educacionais",
        "parametrosDisponiveis": [
            {"nome": "localidade", "tipo": "string", "obrigatorio": False, "descricao": "Código da localidade (BR, UF33, etc)"},
            {"nome": "nivel",      "tipo": "string", "obrigatorio": False, "descricao": "Nível de ensino (fundamental, medio, superior, todos)"},
        ],
    },
    {
        "id": "saude",
        "nome": "Saúde",
        "descricao": "Expectativa de vida, mortalidade e indicadores de saúde",
        "parametrosDisponiveis": [
            {"nome": "localidade", "tipo": "string", "obrigatorio": False, "descricao": "Código da localidade (BR, UF33, etc)"},
            {"nome": "indicador",  "tipo": "string", "obrigatorio": False, "descricao": "Tipo de indicador (expectativa_vida, mortalidade)"},
        ],
    },
    {
        "id": "habitacao",
        "nome": "Habitação",
        "descricao": "Domicílios por tipo",
        "parametrosDisponiveis": [
            {"nome": "localidade", "tipo": "string", "obrigatorio": False, "descricao": "Código da localidade (BR, UF33, etc)"},
        ],
    },
    {
        "id": "personalizado",
        "nome": "Relatório Personalizado",
        "descricao": "Crie um relatório com base em agregados selecionados",
        "parametrosDisponiveis": [
            {"nome": "agregados",  "tipo": "string", "obrigatorio": True,  "descricao": "Lista de códigos de agregados separados por vírgula"},
            {"nome": "localidade", "tipo": "string", "obrigatorio": False, "descricao": "Código da localidade (BR, UF33, etc)"},
        ],
    },
]

# ── Predefined reports (POST /api/relatorios/predefinidos/{id}) ───────────────
PREDEFINED_REPORTS: dict[str, dict] = {
    "censo2022": {
        "titulo": "Censo Demográfico 2022",
        "descricao": "Dados demográficos do Censo 2022 por município e estado",
        "indicadores": ["populacao", "densidade", "domicilios"],
        "periodos": ["2022"],
        "atualizadoEm": "2023-07-10",
    },
    "pib-municipal": {
        "titulo": "PIB Municipal",
        "descricao": "Produto Interno Bruto dos municípios brasileiros",
        "indicadores": ["pib", "pib-per-capita", "valor-adicionado"],
        "periodos": ["2018", "2019", "2020"],
        "atualizadoEm": "2023-03-22",
    },
    "educacao": {
        "titulo": "Indicadores de Educação",
        "descricao": "Dados sobre alfabetização, escolarização e instituições de ensino",
        "indicadores": ["alfabetizacao", "anos-estudo", "escolas"],
        "periodos": ["2021", "2022"],
        "atualizadoEm": "2023-05-15",
    },
    "emprego-renda": {
        "titulo": "Emprego e Renda",
        "descricao": "Estatísticas sobre trabalho, ocupação e rendimento",
        "indicadores": ["ocupacao", "desemprego", "renda-per-capita"],
        "periodos": ["2021", "2022", "2023"],
        "atualizadoEm": "2023-06-30",
    },
}

INDICATOR_CATALOGUE: dict[str, dict] = {
    "populacao": {
        "nome": "População",
        "descricao": "Estimativa populacional",
        "unidade": "pessoas",
        "periodos": ["2018", "2019", "2020", "2021", "2022"],
    },
    "pib": {
        "nome": "Produto Interno Bruto",
        "descricao": "Soma de todos os bens e serviços finais produzidos",
        "unidade": "R$",
        "periodos": ["2017", "2018", "2019", "2020"],
    },
}

REPORT_CATEGORIES: list[dict] = [
    {"id": "demografico", "nome": "Demográfico", "descricao": "Dados sobre população, faixa etária e distribuição geográfica",
     "indicadoresDisponiveis": ["populacao", "densidade", "faixa-etaria", "sexo"]},
    {"id": "economico",   "nome": "Econômico",   "descricao": "Dados econômicos como PIB, renda e produção",
     "indicadoresDisponiveis": ["pib", "pib-per-capita", "valor-adicionado", "renda"]},
    {"id": "social",      "nome": "Social",      "descricao": "Indicadores sociais como educação, saúde e trabalho",
     "indicadoresDisponiveis": ["alfabetizacao", "idh", "mortalidade", "ocupacao"]},
]

# ── Aggregate categories (GET /api/agregados/categorias) ──────────────────────
AGGREGATE_CATEGORIES: list[dict] = [
    {"id": "1301", "nome": "População residente, por situação do domicílio", "descricao": "Dados demográficos básicos"},
    {"id": "1378", "nome": "Produto Interno Bruto a preços correntes",       "descricao": "Indicadores econômicos"},
    {"id": "2579", "nome": "Matrículas nos ensinos Fundamental e Médio",     "descricao": "Dados educacionais"},
    {"id": "3175", "nome": "Esperança de vida ao nascer",                     "descricao": "Indicadores de saúde"},
    {"id": "5938", "nome": "Domicílios por tipo",                             "descricao": "Habitação e infraestrutura"},
    {"id": "6579", "nome": "Taxa de analfabetismo",                           "descricao": "Indicadores sociais"},
]

# ── Indicator sync (POST /api/sincronizacao/indicadores) ──────────────────────
SYNC_INDICATOR_PATHS: dict[str, str | None] = {
    "pib":       "/pesquisas/10080/periodos/2010|2015|2020/indicadores/37|38|47|48",
    "populacao": "/projecoes/populacao",
    "educacao":  None,   # nothing upstream yet; reported as an empty sync
}

"""
Leitura e validação das tabelas de entrada (camada PROCESSED).

Duas tabelas planas, no formato publicado pelo Our World in Data:

- emissões anuais de CO₂:   Entity, Code, Year, Annual CO₂ emissions
- continentes por entidade: Entity, Code, Year, Continent

Os cabeçalhos são normalizados para o schema interno:

    emissions:  entity (string), code (string, opcional), year (int),
                value (float, opcional)
    continents: entity (string), code (string, opcional), region (string)

Linhas inválidas (valor não numérico, ano não inteiro, entidade vazia,
região ausente) são descartadas e contabilizadas no LoadReport; nenhuma
linha isolada interrompe a carga.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from adapters import StorageAdapter
from common.errors import (
    DIVISION_BY_ZERO,
    DUPLICATE_ROW,
    MALFORMED_ROW,
    MISSING_JOIN_KEY,
    SchemaError,
)

logger = logging.getLogger(__name__)

EMISSIONS_COLUMNS = ["entity", "code", "year", "value"]
CONTINENT_COLUMNS = ["entity", "code", "region"]

# Cabeçalhos aceitos (já em minúsculas) -> nome interno
_COLUMN_ALIASES: Dict[str, str] = {
    "entity": "entity",
    "country": "entity",
    "code": "code",
    "iso_code": "code",
    "year": "year",
    "value": "value",
    "annual_co2_emissions": "value",
    "annual co2 emissions": "value",
    "annual co₂ emissions": "value",
    "region": "region",
    "continent": "region",
    "world_region": "region",
    "world_region_owid": "region",
    "world region according to owid": "region",
}


@dataclass(frozen=True)
class EmissionRecord:
    """Uma observação anual de emissões de uma entidade."""

    entity: str
    code: Optional[str]
    year: int
    value: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ContinentMapping:
    """Associação entidade -> região (continente)."""

    entity: str
    code: Optional[str]
    region: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class LoadReport:
    """
    Contadores de linhas descartadas/excluídas durante a carga e condições
    reportadas pelos estágios analíticos (ex.: divisão por zero num grupo).
    """

    emissions_rows_read: int = 0
    continent_rows_read: int = 0
    malformed_rows: int = 0
    duplicate_rows: int = 0
    ambiguous_codes: int = 0
    missing_join_key_rows: int = 0
    joined_rows: int = 0
    missing_join_entities: List[str] = field(default_factory=list)
    conditions: List[Dict[str, str]] = field(default_factory=list)

    @property
    def excluded_rows(self) -> int:
        return self.malformed_rows + self.duplicate_rows + self.missing_join_key_rows

    def record_condition(self, stage: str, group: str, condition: str, detail: str = "") -> None:
        self.conditions.append(
            {"stage": stage, "group": group, "condition": condition, "detail": detail},
        )

    def to_frame(self) -> pd.DataFrame:
        """Resumo em formato longo: (metric, value, detail)."""
        rows: List[Dict[str, Any]] = [
            {"metric": "emissions_rows_read", "value": self.emissions_rows_read, "detail": ""},
            {"metric": "continent_rows_read", "value": self.continent_rows_read, "detail": ""},
            {"metric": MALFORMED_ROW, "value": self.malformed_rows, "detail": ""},
            {"metric": DUPLICATE_ROW, "value": self.duplicate_rows, "detail": ""},
            {"metric": "ambiguous_code", "value": self.ambiguous_codes, "detail": ""},
            {
                "metric": MISSING_JOIN_KEY,
                "value": self.missing_join_key_rows,
                "detail": ";".join(self.missing_join_entities[:20]),
            },
            {"metric": "joined_rows", "value": self.joined_rows, "detail": ""},
        ]
        for cond in self.conditions:
            rows.append(
                {
                    "metric": f"{cond['stage']}:{cond['condition']}",
                    "value": 1,
                    "detail": f"{cond['group']} {cond['detail']}".strip(),
                }
            )
        return pd.DataFrame(rows, columns=["metric", "value", "detail"])

    def summary_lines(self) -> List[str]:
        lines = [
            f"rows read: emissions={self.emissions_rows_read} continents={self.continent_rows_read}",
            f"skipped: malformed={self.malformed_rows} duplicates={self.duplicate_rows}",
            f"excluded (no continent for code): {self.missing_join_key_rows}",
            f"joined rows used in analysis: {self.joined_rows}",
        ]
        n_div = sum(1 for c in self.conditions if c["condition"] == DIVISION_BY_ZERO)
        if n_div:
            lines.append(f"groups with zero denominators: {n_div}")
        return lines


def _normalize_header(name: Any) -> str:
    text = str(name).strip().lower()
    if text in _COLUMN_ALIASES:
        return _COLUMN_ALIASES[text]
    underscored = "_".join(text.split())
    return _COLUMN_ALIASES.get(underscored, underscored)


def _normalize_columns(df: pd.DataFrame, table: str, required: List[str]) -> pd.DataFrame:
    renamed = df.rename(columns={c: _normalize_header(c) for c in df.columns})
    # Um CSV da OWID pode trazer colunas extras (ex.: "year" no mapping)
    renamed = renamed.loc[:, ~renamed.columns.duplicated()]
    missing = [c for c in required if c not in renamed.columns]
    if missing:
        raise SchemaError(table, missing)
    return renamed[required].copy()


def _clean_text(series: pd.Series) -> pd.Series:
    s = series.astype("string").str.strip()
    return s.mask(s == "", pd.NA)


def _to_float(series: pd.Series) -> Tuple[pd.Series, pd.Series]:
    """
    Converte para float64.

    Retorna (valores, máscara de textos não vazios que não são números).
    Vazio/nulo vira NaN sem ser considerado inválido.
    """
    if pd.api.types.is_numeric_dtype(series):
        return series.astype("float64"), pd.Series(False, index=series.index)

    text = _clean_text(series)
    values = pd.Series(
        pd.to_numeric(text.to_numpy(dtype=object, na_value=np.nan), errors="coerce"),
        index=series.index,
        dtype="float64",
    )
    return values, values.isna() & text.notna()


def parse_emissions_table(
    raw: pd.DataFrame,
    *,
    report: Optional[LoadReport] = None,
) -> pd.DataFrame:
    """
    Converte a tabela bruta de emissões para o schema interno.

    - Linhas com entidade vazia, ano não inteiro ou valor não numérico
      (mas não vazio) são descartadas como malformadas.
    - Valor vazio é mantido como nulo (observação sem dado).
    - Duplicatas de (entity, year) mantêm a última ocorrência.
    """
    report = report if report is not None else LoadReport()
    df = _normalize_columns(raw, "emissions", EMISSIONS_COLUMNS)
    report.emissions_rows_read += int(df.shape[0])

    df["entity"] = _clean_text(df["entity"])
    df["code"] = _clean_text(df["code"])

    year_num, bad_year_text = _to_float(df["year"])
    bad_year = year_num.isna() | (year_num % 1 != 0) | bad_year_text

    value_num, bad_value = _to_float(df["value"])

    bad_entity = df["entity"].isna()
    malformed = bad_year | bad_value | bad_entity
    n_malformed = int(malformed.sum())
    if n_malformed:
        logger.warning("[loader] %s malformed emissions rows skipped", n_malformed)
    report.malformed_rows += n_malformed

    df = df.loc[~malformed].copy()
    df["year"] = year_num.loc[~malformed].astype("int64")
    df["value"] = value_num.loc[~malformed].astype("float64")

    before = df.shape[0]
    df = df.drop_duplicates(subset=["entity", "year"], keep="last")
    n_dup = before - int(df.shape[0])
    if n_dup:
        logger.warning("[loader] %s duplicate (entity, year) rows dropped", n_dup)
    report.duplicate_rows += n_dup

    return df[EMISSIONS_COLUMNS].reset_index(drop=True)


def parse_continents_table(
    raw: pd.DataFrame,
    *,
    report: Optional[LoadReport] = None,
) -> pd.DataFrame:
    """
    Converte a tabela bruta de continentes para o schema interno.

    - Região ausente ou entidade vazia: linha malformada.
    - Uma região por entidade (última ocorrência vence).
    - Um mesmo code não nulo em várias entidades duplicaria linhas no join;
      mantemos a primeira entidade e contabilizamos como ambíguo.
    """
    report = report if report is not None else LoadReport()
    df = _normalize_columns(raw, "continents", CONTINENT_COLUMNS)
    report.continent_rows_read += int(df.shape[0])

    df["entity"] = _clean_text(df["entity"])
    df["code"] = _clean_text(df["code"])
    df["region"] = _clean_text(df["region"])

    malformed = df["entity"].isna() | df["region"].isna()
    n_malformed = int(malformed.sum())
    if n_malformed:
        logger.warning("[loader] %s malformed continent rows skipped", n_malformed)
    report.malformed_rows += n_malformed
    df = df.loc[~malformed]

    before = df.shape[0]
    df = df.drop_duplicates(subset=["entity"], keep="last")
    n_dup = before - int(df.shape[0])
    report.duplicate_rows += n_dup

    ambiguous = df["code"].notna() & df.duplicated(subset=["code"], keep="first")
    n_ambiguous = int(ambiguous.sum())
    if n_ambiguous:
        logger.warning(
            "[loader] %s continent rows share a code with an earlier entity; ignored for the join",
            n_ambiguous,
        )
    report.ambiguous_codes += n_ambiguous
    df = df.loc[~ambiguous]

    return df[CONTINENT_COLUMNS].reset_index(drop=True)


def emissions_frame_from_records(records: Iterable[EmissionRecord]) -> pd.DataFrame:
    """DataFrame bruto de emissões a partir de EmissionRecord (uso programático/testes)."""
    rows = [r.to_dict() for r in records]
    return pd.DataFrame(rows, columns=EMISSIONS_COLUMNS)


def continents_frame_from_records(records: Iterable[ContinentMapping]) -> pd.DataFrame:
    rows = [r.to_dict() for r in records]
    return pd.DataFrame(rows, columns=CONTINENT_COLUMNS)


def read_raw_table(
    source: Path | str,
    *,
    storage: Optional[StorageAdapter] = None,
) -> pd.DataFrame:
    """
    Lê um CSV (com cabeçalho) como texto, do filesystem ou via StorageAdapter.

    Tudo é lido como string para que a validação de tipos aconteça em
    parse_*_table e linhas ruins sejam contabilizadas, não convertidas.
    """
    if storage is None:
        return pd.read_csv(Path(source), dtype=str, keep_default_na=False, na_values=[""])
    return storage.read_csv(str(source), dtype=str, keep_default_na=False, na_values=[""])


__all__ = [
    "EMISSIONS_COLUMNS",
    "CONTINENT_COLUMNS",
    "EmissionRecord",
    "ContinentMapping",
    "LoadReport",
    "parse_emissions_table",
    "parse_continents_table",
    "emissions_frame_from_records",
    "continents_frame_from_records",
    "read_raw_table",
]

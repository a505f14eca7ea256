"""
Join emissões x continentes (tabela analítica única).

- Chave do join: `code` (e não `entity`). Entidades com code nulo ou
  sem correspondência no mapping ficam fora de TODAS as análises; a
  exclusão é contabilizada (missing_join_key) e logada como warning.
- Schema resultante:
    region  - string
    entity  - string
    code    - string
    year    - int
    value   - float (pode ser nulo)
- Ordenado por (region, entity, year).
- Snapshot PROCESSED em Parquet, uma partição por região:
    processed/emissions_joined/region=<Regiao>/emissions_joined.parquet
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

import pandas as pd

from adapters import StorageAdapter
from .owid_tables import (
    LoadReport,
    parse_continents_table,
    parse_emissions_table,
    read_raw_table,
)

logger = logging.getLogger(__name__)

JOINED_COLUMNS = ["region", "entity", "code", "year", "value"]

PROCESSED_BASE_PREFIX = "processed/emissions_joined"
PROCESSED_FILE_NAME = "emissions_joined.parquet"


def empty_joined_frame() -> pd.DataFrame:
    """DataFrame vazio com schema estável."""
    return pd.DataFrame(
        {
            "region": pd.Series(dtype="string"),
            "entity": pd.Series(dtype="string"),
            "code": pd.Series(dtype="string"),
            "year": pd.Series(dtype="int64"),
            "value": pd.Series(dtype="float64"),
        }
    )


def join_observations(
    emissions: pd.DataFrame,
    continents: pd.DataFrame,
    *,
    report: Optional[LoadReport] = None,
) -> pd.DataFrame:
    """
    Executa o inner join (emissions.code = continents.code).

    Espera tabelas já normalizadas por parse_emissions_table /
    parse_continents_table.
    """
    report = report if report is not None else LoadReport()

    if emissions.empty:
        return empty_joined_frame()

    mapping = continents.loc[continents["code"].notna(), ["code", "region"]]

    joined = emissions.merge(mapping, on="code", how="left")
    unmatched = joined["region"].isna()
    n_unmatched = int(unmatched.sum())
    if n_unmatched:
        entities = sorted(joined.loc[unmatched, "entity"].astype(str).unique())
        report.missing_join_entities.extend(entities)
        logger.warning(
            "[join] %s emissions rows from %s entities have no continent for their code "
            "and are excluded (e.g. %s)",
            n_unmatched,
            len(entities),
            ", ".join(entities[:5]),
        )
    report.missing_join_key_rows += n_unmatched

    joined = joined.loc[~unmatched].copy()
    if joined.empty:
        return empty_joined_frame()

    joined["region"] = joined["region"].astype("string")
    joined["entity"] = joined["entity"].astype("string")
    joined["code"] = joined["code"].astype("string")
    joined["year"] = joined["year"].astype("int64")
    joined["value"] = joined["value"].astype("float64")

    joined = joined.sort_values(["region", "entity", "year"], kind="mergesort")
    joined = joined[JOINED_COLUMNS].reset_index(drop=True)
    report.joined_rows += int(joined.shape[0])
    return joined


def build_joined_observations(
    emissions_raw: pd.DataFrame,
    continents_raw: pd.DataFrame,
    *,
    report: Optional[LoadReport] = None,
) -> Tuple[pd.DataFrame, LoadReport]:
    """Valida as duas tabelas brutas e devolve (joined, report)."""
    report = report if report is not None else LoadReport()
    emissions = parse_emissions_table(emissions_raw, report=report)
    continents = parse_continents_table(continents_raw, report=report)
    joined = join_observations(emissions, continents, report=report)
    return joined, report


def load_joined_observations(
    emissions_source: Path | str,
    continents_source: Path | str,
    *,
    storage: Optional[StorageAdapter] = None,
) -> Tuple[pd.DataFrame, LoadReport]:
    """
    Carrega os dois CSVs (filesystem local ou StorageAdapter) e executa o join.
    """
    emissions_raw = read_raw_table(emissions_source, storage=storage)
    continents_raw = read_raw_table(continents_source, storage=storage)
    joined, report = build_joined_observations(emissions_raw, continents_raw)
    for line in report.summary_lines():
        logger.info("[loader] %s", line)
    return joined, report


def _region_partition(region: str) -> str:
    return "_".join(str(region).split())


def save_joined_observations_parquet_partitions(
    joined: pd.DataFrame,
    storage: StorageAdapter,
    *,
    base_prefix: str = PROCESSED_BASE_PREFIX,
) -> List[str]:
    """
    Salva a tabela analítica particionada por região:

        processed/emissions_joined/region=<Regiao>/emissions_joined.parquet

    Espaços no nome da região viram "_" apenas no caminho; a coluna
    `region` mantém o valor original. Retorna as localizações gravadas.
    """
    locations: List[str] = []
    for region, part in joined.groupby("region", sort=True):
        key = f"{base_prefix}/region={_region_partition(region)}/{PROCESSED_FILE_NAME}"
        locations.append(storage.write_table(part.reset_index(drop=True), key))
    logger.info("[processed] %s region partitions written under %s", len(locations), base_prefix)
    return locations


def read_joined_observations_parquet(
    storage: StorageAdapter,
    *,
    base_prefix: str = PROCESSED_BASE_PREFIX,
) -> pd.DataFrame:
    """Lê todas as partições gravadas por save_joined_observations_parquet_partitions."""
    keys = [k for k in storage.list_keys(base_prefix) if k.endswith(".parquet")]
    if not keys:
        return empty_joined_frame()

    parts = [storage.read_parquet(key) for key in keys]
    joined = pd.concat(parts, ignore_index=True)
    joined = joined.sort_values(["region", "entity", "year"], kind="mergesort")
    return joined[JOINED_COLUMNS].reset_index(drop=True)


__all__ = [
    "JOINED_COLUMNS",
    "empty_joined_frame",
    "join_observations",
    "build_joined_observations",
    "load_joined_observations",
    "PROCESSED_BASE_PREFIX",
    "save_joined_observations_parquet_partitions",
    "read_joined_observations_parquet",
]

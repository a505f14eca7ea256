"""
Transformations layer
----------------------

Módulos responsáveis por ler as tabelas de entrada (emissões e
continentes), validar linha a linha e produzir a tabela analítica
única (emissões x continente) consumida pela camada de análise.
"""

from .owid_tables import (  # noqa: F401
    CONTINENT_COLUMNS,
    EMISSIONS_COLUMNS,
    ContinentMapping,
    EmissionRecord,
    LoadReport,
    continents_frame_from_records,
    emissions_frame_from_records,
    parse_continents_table,
    parse_emissions_table,
    read_raw_table,
)
from .joined_observations import (  # noqa: F401
    JOINED_COLUMNS,
    PROCESSED_BASE_PREFIX,
    build_joined_observations,
    empty_joined_frame,
    join_observations,
    load_joined_observations,
    read_joined_observations_parquet,
    save_joined_observations_parquet_partitions,
)

__all__ = [
    "EMISSIONS_COLUMNS",
    "CONTINENT_COLUMNS",
    "JOINED_COLUMNS",
    "EmissionRecord",
    "ContinentMapping",
    "LoadReport",
    "parse_emissions_table",
    "parse_continents_table",
    "emissions_frame_from_records",
    "continents_frame_from_records",
    "read_raw_table",
    "empty_joined_frame",
    "join_observations",
    "build_joined_observations",
    "load_joined_observations",
    "PROCESSED_BASE_PREFIX",
    "save_joined_observations_parquet_partitions",
    "read_joined_observations_parquet",
]

"""
Analysis layer
--------------

Analytic stages over the joined emissions table:

- aggregator: regional/decade rollups, summary statistics, completeness
- ranker: top-N per region, top entity share, all-time totals
- temporal: growth rates, spikes, rolling averages, median flags
- reshaper: wide/long and zero-filled matrices
- charts / emissions_report: persisted tables, summary and PNG
"""

from .aggregator import (  # noqa: F401
    decade_summary,
    region_summary_stats,
    reporting_completeness,
    totals_by_region_year,
)
from .ranker import (  # noqa: F401
    top_entities_by_total,
    top_entity_share,
    top_n_by_average,
)
from .temporal import (  # noqa: F401
    first_last_year_growth,
    max_spike_per_region,
    median_flag,
    rolling_average,
    top_growth_rates,
    year_over_year_growth,
)
from .reshaper import (  # noqa: F401
    decade_average,
    long_from_wide,
    matrix_by_entity_region,
    matrix_by_region_year,
    wide_by_year,
)
from .charts import REGION_TOTALS_PNG_NAME, build_region_totals_chart  # noqa: F401
from .emissions_report import (  # noqa: F401
    ANALYTICS_BASE_PREFIX,
    ReportOptions,
    build_emissions_tables,
    run_emissions_analysis,
    run_date_str,
    write_load_summary,
    write_result_tables,
)

__all__ = [
    "totals_by_region_year",
    "decade_summary",
    "region_summary_stats",
    "reporting_completeness",
    "top_n_by_average",
    "top_entity_share",
    "top_entities_by_total",
    "year_over_year_growth",
    "max_spike_per_region",
    "top_growth_rates",
    "rolling_average",
    "median_flag",
    "first_last_year_growth",
    "wide_by_year",
    "long_from_wide",
    "matrix_by_region_year",
    "matrix_by_entity_region",
    "decade_average",
    "REGION_TOTALS_PNG_NAME",
    "build_region_totals_chart",
    "ANALYTICS_BASE_PREFIX",
    "ReportOptions",
    "build_emissions_tables",
    "run_emissions_analysis",
    "run_date_str",
    "write_result_tables",
    "write_load_summary",
]

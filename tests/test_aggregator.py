"""
tests/test_aggregator.py
------------------------
Regional rollups: yearly totals, decade summary, descriptive statistics
and reporting completeness.

Run with: python -m pytest tests/test_aggregator.py -v
"""

import math

import pandas as pd
import pytest

from analysis.aggregator import (
    COMPLETENESS_COLUMNS,
    SUMMARY_COLUMNS,
    TOTALS_COLUMNS,
    decade_of,
    decade_summary,
    region_summary_stats,
    reporting_completeness,
    totals_by_region_year,
)
from transformations import empty_joined_frame


class TestTotalsByRegionYear:
    """Per (region, year) sums."""

    def test_totals_ignore_null_values(self, joined):
        totals = totals_by_region_year(joined)
        asia_2001 = totals[(totals["region"] == "Asia") & (totals["year"] == 2001)]
        assert asia_2001["total_emissions"].iloc[0] == pytest.approx(4400.0)

    def test_ordered_by_region_then_year(self, joined):
        totals = totals_by_region_year(joined)
        keys = list(zip(totals["region"], totals["year"]))
        assert keys == sorted(keys)
        assert list(totals.columns) == TOTALS_COLUMNS

    def test_yearly_totals_sum_to_region_total(self, joined):
        totals = totals_by_region_year(joined)
        stats = region_summary_stats(joined).set_index("region")
        for region, group in totals.groupby("region"):
            assert group["total_emissions"].sum() == pytest.approx(
                stats.loc[region, "total_emissions"]
            )

    def test_does_not_mutate_input(self, joined):
        before = joined.copy()
        totals_by_region_year(joined)
        decade_summary(joined)
        pd.testing.assert_frame_equal(joined, before)

    def test_empty_input_gives_empty_result(self):
        out = totals_by_region_year(empty_joined_frame())
        assert out.empty
        assert list(out.columns) == TOTALS_COLUMNS


class TestDecadeSummary:
    """Decade bucketing and per-decade stats."""

    def test_decade_of_floors_year(self):
        years = pd.Series([1949, 1950, 2000, 2009])
        assert decade_of(years).tolist() == [1940, 1950, 2000, 2000]

    def test_decade_summary_counts_entities(self, make_joined):
        df = make_joined(
            [
                ("Asia", "China", 1949, 10.0),
                ("Asia", "China", 1950, 20.0),
                ("Asia", "India", 1951, 30.0),
                ("Asia", "India", 1952, None),
            ]
        )
        out = decade_summary(df)

        assert out["decade"].tolist() == [1940, 1950]
        fifties = out[out["decade"] == 1950].iloc[0]
        assert fifties["entity_count"] == 2
        assert fifties["mean_emissions"] == pytest.approx(25.0)
        assert fifties["min_emissions"] == 20.0
        assert fifties["max_emissions"] == 30.0
        assert fifties["total_emissions"] == 50.0


class TestRegionSummaryStats:
    """min/max/range/std/mean/median/total per region."""

    def test_stats_for_a_known_region(self, joined):
        stats = region_summary_stats(joined)
        europe = stats[stats["region"] == "Europe"].iloc[0]

        # values 400, 420, 760, 800
        assert list(stats.columns) == SUMMARY_COLUMNS
        assert europe["min_emissions"] == 400.0
        assert europe["max_emissions"] == 800.0
        assert europe["range_emissions"] == 400.0
        assert europe["mean_emissions"] == pytest.approx(595.0)
        assert europe["median_emissions"] == pytest.approx(590.0)
        assert europe["total_emissions"] == pytest.approx(2380.0)
        assert europe["total_entities"] == 2
        assert europe["total_years"] == 2

    def test_sample_versus_population_std(self, make_joined):
        df = make_joined([("Asia", "A", 2000, 1.0), ("Asia", "B", 2000, 3.0)])

        sample = region_summary_stats(df, ddof=1).iloc[0]["std_emissions"]
        population = region_summary_stats(df, ddof=0).iloc[0]["std_emissions"]

        assert sample == pytest.approx(round(math.sqrt(2.0), 2))
        assert population == pytest.approx(1.0)

    def test_single_observation_has_null_sample_std(self, make_joined):
        df = make_joined([("Oceania", "Fiji", 2000, 5.0)])
        stats = region_summary_stats(df)
        assert pd.isna(stats.iloc[0]["std_emissions"])
        assert stats.iloc[0]["range_emissions"] == 0.0


class TestReportingCompleteness:
    """Share of years reported within each entity's own span."""

    def test_gaps_reduce_completeness(self, make_joined):
        rows = [("Asia", "China", y, 1.0) for y in range(2000, 2010)]
        rows += [("Asia", "India", y, 1.0) for y in (2000, 2002, 2004, 2006, 2008, 2009)]
        out = reporting_completeness(make_joined(rows), min_years=5)

        assert list(out.columns) == COMPLETENESS_COLUMNS
        assert out["entity"].tolist() == ["China", "India"]
        india = out.iloc[1]
        assert india["years_reported"] == 6
        assert india["expected_years"] == 10
        assert india["reporting_completeness_pct"] == pytest.approx(60.0)

    def test_min_years_filters_short_series(self, joined):
        assert reporting_completeness(joined, min_years=3).empty
        assert reporting_completeness(joined, min_years=2).shape[0] == 5

    def test_limit(self, joined):
        assert reporting_completeness(joined, min_years=1, limit=2).shape[0] == 2
        assert reporting_completeness(joined, min_years=1, limit=None).shape[0] == 5

"""
tests/test_temporal.py
----------------------
Time-series analytics per entity:
- year-over-year growth against the previous reported year
- largest spike per region and top growth rates
- trailing rolling average
- median flags
- first vs last year regional growth

Run with: python -m pytest tests/test_temporal.py -v
"""

import pandas as pd
import pytest

from analysis.temporal import (
    FIRST_LAST_COLUMNS,
    GROWTH_COLUMNS,
    first_last_year_growth,
    max_spike_per_region,
    median_flag,
    rolling_average,
    top_growth_rates,
    year_over_year_growth,
)
from common.errors import DIVISION_BY_ZERO, DivisionByZeroError
from transformations import LoadReport, empty_joined_frame


@pytest.fixture
def gappy(make_joined):
    """One entity with a null year in the middle, rows shuffled."""
    df = make_joined(
        [
            ("Europe", "Ruritania", 1990, 100.0),
            ("Europe", "Ruritania", 1991, 150.0),
            ("Europe", "Ruritania", 1992, None),
            ("Europe", "Ruritania", 1993, 120.0),
        ]
    )
    return df.sample(frac=1.0, random_state=7).reset_index(drop=True)


def _by_year(df, column):
    return dict(zip(df["year"], df[column]))


class TestYearOverYearGrowth:
    """Growth versus the previous reported year."""

    def test_growth_skips_null_years(self, gappy):
        out = year_over_year_growth(gappy)
        growth = _by_year(out, "growth_rate")

        assert list(out.columns) == GROWTH_COLUMNS
        assert out["year"].tolist() == [1990, 1991, 1992, 1993]
        assert pd.isna(growth[1990])
        assert growth[1991] == pytest.approx(50.0)
        assert pd.isna(growth[1992])
        assert growth[1993] == pytest.approx(-20.0)
        assert _by_year(out, "prev_year")[1993] == 1991

    def test_non_positive_previous_value_gives_null(self, make_joined):
        df = make_joined(
            [
                ("Asia", "Tuvalu", 2000, 0.0),
                ("Asia", "Tuvalu", 2001, 5.0),
            ]
        )
        out = year_over_year_growth(df)
        assert out["growth_rate"].isna().all()

    def test_entity_filter(self, joined):
        out = year_over_year_growth(joined, entities=["India"])
        assert set(out["entity"]) == {"India"}
        assert out.iloc[1]["growth_rate"] == pytest.approx(10.0)

    def test_empty_input(self):
        out = year_over_year_growth(empty_joined_frame())
        assert out.empty
        assert list(out.columns) == GROWTH_COLUMNS


class TestSpikes:
    """Largest growth rates per region and overall."""

    def test_spike_ties_resolve_by_entity(self, make_joined):
        df = make_joined(
            [
                ("Africa", "Benin", 2000, 10.0),
                ("Africa", "Benin", 2001, 20.0),
                ("Africa", "Angola", 2000, 5.0),
                ("Africa", "Angola", 2001, 10.0),
                ("Africa", "Chad", 2000, 10.0),
                ("Africa", "Chad", 2001, 11.0),
            ]
        )
        out = max_spike_per_region(df)

        assert out.shape[0] == 1
        assert out.iloc[0]["entity"] == "Angola"
        assert out.iloc[0]["growth_rate"] == pytest.approx(100.0)

    def test_equal_spikes_of_one_entity_resolve_to_earliest_year(self, make_joined):
        df = make_joined(
            [
                ("Africa", "Benin", 2000, 10.0),
                ("Africa", "Benin", 2001, 20.0),
                ("Africa", "Benin", 2002, 40.0),
            ]
        )
        out = max_spike_per_region(df)

        assert out.shape[0] == 1
        assert out.iloc[0]["year"] == 2001
        assert out.iloc[0]["growth_rate"] == pytest.approx(100.0)

    def test_region_without_growth_has_no_row(self, make_joined):
        df = make_joined(
            [
                ("Asia", "China", 2000, 1.0),
                ("Asia", "China", 2001, 2.0),
                ("Oceania", "Fiji", 2000, 1.0),
            ]
        )
        out = max_spike_per_region(df)
        assert out["region"].tolist() == ["Asia"]

    def test_top_growth_rates_sorted_desc(self, joined):
        out = top_growth_rates(joined, limit=2)
        assert out["entity"].tolist() == ["China", "India"]
        assert out["growth_rate"].tolist() == [10.0, 10.0]


class TestRollingAverage:
    """Trailing mean over reported rows."""

    def test_partial_window_averages_available_rows(self, make_joined):
        df = make_joined(
            [
                ("Asia", "Laos", 2000, 1.0),
                ("Asia", "Laos", 2001, 2.0),
                ("Asia", "Laos", 2002, 6.0),
            ]
        )
        out = rolling_average(df, window=5)
        assert out["rolling_avg"].tolist() == pytest.approx([1.0, 1.5, 3.0])

    def test_null_rows_are_skipped_by_the_window(self, gappy):
        out = rolling_average(gappy, window=2)
        avg = _by_year(out, "rolling_avg")

        assert avg[1990] == pytest.approx(100.0)
        assert avg[1991] == pytest.approx(125.0)
        assert pd.isna(avg[1992])
        assert avg[1993] == pytest.approx(135.0)

    def test_window_must_be_positive(self, joined):
        with pytest.raises(ValueError):
            rolling_average(joined, window=0)


class TestMedianFlag:
    """Above/below/equal to the entity's own median."""

    def test_flags(self, make_joined):
        df = make_joined(
            [
                ("Asia", "Oman", 2000, 1.0),
                ("Asia", "Oman", 2001, 2.0),
                ("Asia", "Oman", 2002, 3.0),
                ("Asia", "Oman", 2003, None),
            ]
        )
        out = median_flag(df)

        assert out["median_emissions"].iloc[0] == pytest.approx(2.0)
        assert out["median_flag"].iloc[:3].tolist() == ["below", "equal", "above"]
        assert pd.isna(out["median_flag"].iloc[3])
        assert out["above_median"].tolist() == [False, False, True, False]


class TestFirstLastYearGrowth:
    """Regional total in the last year versus the first year."""

    def test_growth_per_region(self, joined):
        out = first_last_year_growth(joined).set_index("region")

        assert list(out.reset_index().columns) == FIRST_LAST_COLUMNS
        asia = out.loc["Asia"]
        assert asia["year_span"] == 1
        assert asia["first_year_total_emissions"] == pytest.approx(4500.0)
        assert asia["last_year_total_emissions"] == pytest.approx(4400.0)
        assert asia["emission_growth"] == pytest.approx(-100.0)
        assert asia["emission_growth_pct"] == pytest.approx(-2.22)

    def test_zero_first_year_total(self, make_joined):
        df = make_joined(
            [
                ("Antarctica", "Base A", 1990, 0.0),
                ("Antarctica", "Base A", 2000, 4.0),
            ]
        )
        report = LoadReport()
        out = first_last_year_growth(df, report=report)

        row = out.iloc[0]
        assert row["emission_growth"] == pytest.approx(4.0)
        assert pd.isna(row["emission_growth_pct"])
        assert row["condition"] == DIVISION_BY_ZERO
        assert report.conditions[0]["group"] == "Antarctica"

    def test_zero_first_year_total_strict(self, make_joined):
        df = make_joined(
            [
                ("Antarctica", "Base A", 1990, 0.0),
                ("Antarctica", "Base A", 2000, 4.0),
            ]
        )
        with pytest.raises(DivisionByZeroError):
            first_last_year_growth(df, strict=True)

    def test_all_null_first_year(self, make_joined):
        df = make_joined(
            [
                ("Oceania", "Nauru", 1990, None),
                ("Oceania", "Nauru", 2000, 3.0),
            ]
        )
        row = first_last_year_growth(df).iloc[0]
        assert pd.isna(row["first_year_total_emissions"])
        assert pd.isna(row["emission_growth"])

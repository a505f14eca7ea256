"""
tests/test_ranker.py
--------------------
Per-region rankings:
- top N by average with deterministic ties
- top entity share, including zero regional totals
- all-time totals across regions

Run with: python -m pytest tests/test_ranker.py -v
"""

import pandas as pd
import pytest

from analysis.ranker import (
    SHARE_COLUMNS,
    TOP_N_COLUMNS,
    top_entities_by_total,
    top_entity_share,
    top_n_by_average,
)
from common.errors import DIVISION_BY_ZERO, DivisionByZeroError
from transformations import LoadReport, empty_joined_frame


class TestTopNByAverage:
    """Top entities per region by mean annual emissions."""

    def test_three_rows_per_region_sorted_desc(self, make_joined):
        df = make_joined(
            [
                ("Asia", "China", 2000, 3000.0),
                ("Asia", "India", 2000, 1000.0),
                ("Asia", "Japan", 2000, 500.0),
                ("Asia", "Nepal", 2000, 5.0),
            ]
        )
        out = top_n_by_average(df, n=3)

        assert list(out.columns) == TOP_N_COLUMNS
        assert out["entity"].tolist() == ["China", "India", "Japan"]
        assert out["rank"].tolist() == [1, 2, 3]

    def test_fewer_entities_than_n(self, joined):
        out = top_n_by_average(joined, n=3)
        europe = out[out["region"] == "Europe"]
        assert europe["entity"].tolist() == ["Germany", "France"]

    def test_ties_break_on_entity_name(self, make_joined):
        df = make_joined(
            [
                ("Africa", "Zambia", 2000, 10.0),
                ("Africa", "Angola", 2000, 10.0),
                ("Africa", "Kenya", 2000, 10.0),
                ("Africa", "Benin", 2000, 10.0),
            ]
        )
        out = top_n_by_average(df, n=3)
        assert out["entity"].tolist() == ["Angola", "Benin", "Kenya"]

    def test_null_average_sorts_last(self, make_joined):
        df = make_joined(
            [
                ("Asia", "Aland", 2000, None),
                ("Asia", "Bhutan", 2000, 1.0),
            ]
        )
        out = top_n_by_average(df, n=2)
        assert out["entity"].tolist() == ["Bhutan", "Aland"]

    def test_n_must_be_positive(self, joined):
        with pytest.raises(ValueError):
            top_n_by_average(joined, n=0)


class TestTopEntityShare:
    """Share of the regional total held by the largest emitter."""

    def test_asia_share(self, joined):
        out = top_entity_share(joined, 2000)
        asia = out[out["region"] == "Asia"].iloc[0]

        assert list(out.columns) == SHARE_COLUMNS
        assert asia["top_entity"] == "China"
        assert asia["total_region_emissions"] == pytest.approx(4500.0)
        assert asia["top_entity_share_pct"] == pytest.approx(66.67)
        assert asia["rest_share_pct"] == pytest.approx(33.33)
        assert pd.isna(asia["condition"])

    def test_zero_total_reports_condition(self, make_joined):
        df = make_joined(
            [
                ("Antarctica", "Base A", 2000, 0.0),
                ("Antarctica", "Base B", 2000, 0.0),
            ]
        )
        report = LoadReport()
        out = top_entity_share(df, 2000, report=report)

        row = out.iloc[0]
        assert row["condition"] == DIVISION_BY_ZERO
        assert pd.isna(row["top_entity_share_pct"])
        assert pd.isna(row["rest_share_pct"])
        assert report.conditions == [
            {
                "stage": "top_entity_share",
                "group": "Antarctica",
                "condition": DIVISION_BY_ZERO,
                "detail": "year=2000",
            }
        ]

    def test_zero_total_raises_when_strict(self, make_joined):
        df = make_joined([("Antarctica", "Base A", 2000, 0.0)])
        with pytest.raises(DivisionByZeroError):
            top_entity_share(df, 2000, strict=True)

    def test_regions_without_values_in_year_are_skipped(self, joined):
        out = top_entity_share(joined, 1990)
        assert out.empty
        assert list(out.columns) == SHARE_COLUMNS

    def test_empty_input(self):
        assert top_entity_share(empty_joined_frame(), 2000).empty

    def test_tied_top_values_resolve_by_entity_name(self, make_joined):
        df = make_joined(
            [
                ("Asia", "Bhutan", 2000, 50.0),
                ("Asia", "Aland", 2000, 50.0),
                ("Asia", "Cyprus", 2000, 0.0),
            ]
        )
        row = top_entity_share(df, 2000).iloc[0]

        assert row["top_entity"] == "Aland"
        assert row["top_entity_share_pct"] == pytest.approx(50.0)
        assert row["rest_share_pct"] == pytest.approx(50.0)


class TestTopEntitiesByTotal:
    """All-time totals across every region."""

    def test_ordered_by_total(self, joined):
        out = top_entities_by_total(joined, limit=2)
        assert out["entity"].tolist() == ["China", "India"]
        assert out.iloc[0]["total_emissions"] == pytest.approx(6300.0)
        assert out.iloc[0]["years_reported"] == 2

"""
tests/test_reshaper.py
----------------------
Wide/long reshaping and zero-filled matrices.

Run with: python -m pytest tests/test_reshaper.py -v
"""

import pandas as pd
import pytest

from analysis.reshaper import (
    decade_average,
    long_from_wide,
    matrix_by_entity_region,
    matrix_by_region_year,
    wide_by_year,
    year_column,
)


class TestWideByYear:
    """One row per entity, one column per requested year."""

    def test_columns_and_null_fill(self, joined):
        wide = wide_by_year(joined, [2000, 2001, 2002])

        assert list(wide.columns) == ["entity", "year_2000", "year_2001", "year_2002"]
        assert wide["entity"].tolist() == ["China", "France", "Germany", "India", "Japan"]
        japan = wide[wide["entity"] == "Japan"].iloc[0]
        assert japan["year_2000"] == 500.0
        assert pd.isna(japan["year_2001"])
        assert wide["year_2002"].isna().all()

    def test_entity_filter_keeps_entities_without_data(self, joined):
        wide = wide_by_year(joined, [1990], entities=["China"])
        assert wide["entity"].tolist() == ["China"]
        assert pd.isna(wide.iloc[0]["year_1990"])

    def test_duplicate_years_rejected(self, joined):
        with pytest.raises(ValueError):
            wide_by_year(joined, [2000, 2000])

    def test_empty_year_list_rejected(self, joined):
        with pytest.raises(ValueError):
            wide_by_year(joined, [])


class TestLongFromWide:
    """Inverse of wide_by_year."""

    def test_round_trip_restores_non_null_rows(self, joined):
        years = [2000, 2001]
        long = long_from_wide(wide_by_year(joined, years))

        expected = joined[joined["year"].isin(years) & joined["value"].notna()]
        expected = (
            expected.assign(entity=expected["entity"].astype(str))
            .sort_values(["entity", "year"])[["entity", "year", "value"]]
            .reset_index(drop=True)
        )
        pd.testing.assert_frame_equal(long, expected, check_dtype=False)

    def test_year_column_names_parse_back(self):
        wide = pd.DataFrame({"entity": ["Chile"], year_column(1975): [12.5]})
        long = long_from_wide(wide)
        assert long["year"].tolist() == [1975]
        assert long["value"].tolist() == [12.5]


class TestMatrices:
    """Summed cross-tabs where missing cells are zero."""

    def test_region_by_year_zero_fill(self, joined):
        matrix = matrix_by_region_year(joined, [2000, 2001, 2002]).set_index("region")

        assert matrix.loc["Asia", "year_2000"] == pytest.approx(4500.0)
        assert matrix.loc["Asia", "year_2001"] == pytest.approx(4400.0)
        assert matrix.loc["Europe", "year_2002"] == 0.0

    def test_entity_by_region_zero_fill(self, joined):
        matrix = matrix_by_entity_region(joined).set_index("entity")

        assert list(matrix.columns) == ["Asia", "Europe"]
        assert matrix.loc["China", "Asia"] == pytest.approx(6300.0)
        assert matrix.loc["China", "Europe"] == 0.0
        assert matrix.loc["France", "Europe"] == pytest.approx(820.0)

    def test_entity_by_region_explicit_regions(self, joined):
        matrix = matrix_by_entity_region(joined, regions=["Asia", "Oceania"]).set_index("entity")

        assert list(matrix.columns) == ["Asia", "Oceania"]
        assert (matrix["Oceania"] == 0.0).all()
        assert matrix.loc["India", "Asia"] == pytest.approx(2100.0)
        # Europe is not requested: its entities keep a row of zeros
        assert matrix.loc["France"].tolist() == [0.0, 0.0]

    def test_wide_null_versus_matrix_zero(self, joined):
        wide = wide_by_year(joined, [2002]).set_index("entity")
        matrix = matrix_by_region_year(joined, [2002]).set_index("region")

        assert wide["year_2002"].isna().all()
        assert (matrix["year_2002"] == 0.0).all()


class TestDecadeAverage:
    def test_average_per_region_decade(self, joined):
        out = decade_average(joined)
        europe = out[out["region"] == "Europe"].iloc[0]
        assert europe["decade"] == 2000
        assert europe["avg_emissions"] == pytest.approx(595.0)

"""
tests/conftest.py
-----------------
Shared fixtures: small in-memory joined tables, raw OWID-style tables and
local storage/metadata rooted in tmp_path.
"""

from typing import Iterable, Optional, Tuple

import matplotlib

matplotlib.use("Agg")

import pandas as pd  # noqa: E402
import pytest  # noqa: E402

from adapters import LocalMetadataAdapter, LocalStorageAdapter  # noqa: E402


Row = Tuple[str, str, int, Optional[float]]


def _make_joined(rows: Iterable[Row]) -> pd.DataFrame:
    """(region, entity, year, value) tuples -> joined table; code = first 3 letters."""
    rows = list(rows)
    df = pd.DataFrame(
        {
            "region": pd.Series([r[0] for r in rows], dtype="string"),
            "entity": pd.Series([r[1] for r in rows], dtype="string"),
            "code": pd.Series([r[1][:3].upper() for r in rows], dtype="string"),
            "year": pd.Series([r[2] for r in rows], dtype="int64"),
            "value": pd.Series([r[3] for r in rows], dtype="float64"),
        }
    )
    return df.sort_values(["region", "entity", "year"], kind="mergesort").reset_index(drop=True)


@pytest.fixture
def make_joined():
    return _make_joined


@pytest.fixture
def joined():
    """Two regions, five entities, two years; Japan has no value in 2001."""
    return _make_joined(
        [
            ("Asia", "China", 2000, 3000.0),
            ("Asia", "China", 2001, 3300.0),
            ("Asia", "India", 2000, 1000.0),
            ("Asia", "India", 2001, 1100.0),
            ("Asia", "Japan", 2000, 500.0),
            ("Asia", "Japan", 2001, None),
            ("Europe", "France", 2000, 400.0),
            ("Europe", "France", 2001, 420.0),
            ("Europe", "Germany", 2000, 800.0),
            ("Europe", "Germany", 2001, 760.0),
        ]
    )


@pytest.fixture
def emissions_raw():
    """Emissions table as read from the OWID CSV (all text)."""
    return pd.DataFrame(
        [
            ["China", "CHN", "2000", "3000"],
            ["China", "CHN", "2001", "3300"],
            ["India", "IND", "2000", "1000"],
            ["France", "FRA", "2000", "400"],
            ["World", "", "2000", "25000"],
            ["Atlantis", "ATL", "2000", "7"],
        ],
        columns=["Entity", "Code", "Year", "Annual CO₂ emissions"],
    )


@pytest.fixture
def continents_raw():
    """Continent mapping as read from the OWID CSV (all text)."""
    return pd.DataFrame(
        [
            ["China", "CHN", "2015", "Asia"],
            ["India", "IND", "2015", "Asia"],
            ["France", "FRA", "2015", "Europe"],
        ],
        columns=["Entity", "Code", "Year", "Continent"],
    )


@pytest.fixture
def storage(tmp_path):
    return LocalStorageAdapter(tmp_path / "store")


@pytest.fixture
def metadata(tmp_path):
    return LocalMetadataAdapter(tmp_path / "metadata.json")

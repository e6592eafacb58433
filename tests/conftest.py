import numpy as np
import pandas as pd
import pytest

from macro_pipeline import clean

ECONOMIES = {
    "BRA": "Brazil",
    "CAN": "Canada",
    "CHN": "China",
    "DEU": "Germany",
    "FRA": "France",
    "GBR": "United Kingdom",
    "IND": "India",
    "ITA": "Italy",
    "JPN": "Japan",
    "NGA": "Nigeria",
    "USA": "United States",
}
YEARS = list(range(2000, 2024))


def make_raw(economies=ECONOMIES, years=YEARS, seed=0):
    """One complete row per (country, year), GDP growing ~3% a year with noise."""
    rng = np.random.default_rng(seed)
    rows = []
    for i, (iso3, name) in enumerate(economies.items()):
        gdp = 1e11 * (i + 1)
        for yr in years:
            gdp *= 1.03 + rng.normal(0, 0.01)
            rows.append({
                "country": name,
                "iso3c": iso3,
                "year": yr,
                "GDP": gdp,
                "GDP_per_capita": gdp / 5e7,
                "Inflation": float(rng.uniform(0, 8)),
                "Unemployment": float(rng.uniform(2, 12)),
                "Exports": float(rng.uniform(10, 50)),
                "Imports": float(rng.uniform(10, 50)),
            })
    return pd.DataFrame(rows)


@pytest.fixture
def raw_df():
    return make_raw()


@pytest.fixture
def clean_df(raw_df):
    return clean(raw_df)


@pytest.fixture
def make_raw_df():
    return make_raw

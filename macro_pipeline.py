# macro_pipeline.py
# Cleaning, derived metrics, filtering, reshaping and CSV export for the macro dashboard.

import logging
from datetime import date

import numpy as np
import pandas as pd

from dashboard_settings import (
    CLEAN_COLUMNS,
    COUNTRY_COLORS,
    FALLBACK_COLOR,
)

logger = logging.getLogger(__name__)

SERIES_SEP = " - "
KEY_COLUMNS = ["country", "year"]


class MissingColorMapping(KeyError):
    """Country has no entry in the static colour table."""


class ExportFailure(RuntimeError):
    """The filtered view could not be serialised to CSV."""


# -----------------------------
# Helpers
# -----------------------------


def safe_log(x):
    """Natural log for scalars or arrays. Nonpositive -> NaN. No runtime warnings."""
    if np.isscalar(x):
        x = float(x)
        return np.log(x) if x > 0 else np.nan
    x = np.asarray(x, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.where(x > 0, np.log(x), np.nan)


def _strip_strings(s):
    return s.map(lambda v: v.strip() if isinstance(v, str) else v)


# -----------------------------
# Cleaning + derived metrics
# -----------------------------


def clean(raw):
    """
    Build the clean table from raw observations (one row per country/year).

    distinct -> drop incomplete -> trim strings -> per country, sort by year,
    add log_GDP and gdp_growth (log-difference). The first year of each country
    has NaN growth, never 0. Rows are dropped, never errored.
    """
    n_raw = len(raw)
    df = raw.drop_duplicates()
    n_dupes = n_raw - len(df)

    df = df.dropna().copy()
    n_incomplete = n_raw - n_dupes - len(df)

    for col in df.columns:
        if not pd.api.types.is_numeric_dtype(df[col]):
            df[col] = _strip_strings(df[col])

    # " Japan" and "Japan" are only equal after trimming
    before = len(df)
    df = df.drop_duplicates(subset=KEY_COLUMNS, keep="first")
    n_key_dupes = before - len(df)

    if n_dupes or n_incomplete or n_key_dupes:
        logger.info(
            "Cleaning dropped %d duplicate, %d incomplete and %d same-key rows (%d -> %d)",
            n_dupes, n_incomplete, n_key_dupes, n_raw, len(df),
        )

    df["year"] = df["year"].astype(int)
    df = df.sort_values(KEY_COLUMNS, kind="mergesort")

    df["log_GDP"] = safe_log(df["GDP"])
    bad_gdp = int((df["GDP"] <= 0).sum())
    if bad_gdp:
        logger.warning("%d rows have nonpositive GDP; log_GDP is NaN for them", bad_gdp)

    df["gdp_growth"] = df.groupby("country", sort=False)["log_GDP"].diff()

    columns = [c for c in CLEAN_COLUMNS if c in df.columns]
    return df[columns].reset_index(drop=True)


def countries_in(clean_df):
    """Sorted, de-duplicated country names present in the clean table."""
    return sorted(clean_df["country"].dropna().unique())


# -----------------------------
# Filter
# -----------------------------


def filter_countries(clean_df, selected):
    """Rows whose country is selected. Keeps order and index labels; never mutates clean_df."""
    if not selected:
        return clean_df.iloc[0:0].copy()
    return clean_df[clean_df["country"].isin(list(selected))].copy()


# -----------------------------
# Reshape + colours
# -----------------------------


def to_long(filtered, indicator_pair):
    """
    Wide -> long for a pair of indicators: two rows per input row with
    columns country, year, indicator, value, series_key.
    """
    first, second = indicator_pair
    if first == second:
        raise ValueError(f"Indicator pair needs two different indicators, got {indicator_pair!r}")
    missing = {first, second} - set(filtered.columns)
    if missing:
        raise ValueError(f"Unknown indicators: {sorted(missing)}")

    long_df = filtered.melt(
        id_vars=KEY_COLUMNS,
        value_vars=[first, second],
        var_name="indicator",
        value_name="value",
    )
    long_df["series_key"] = long_df["country"] + SERIES_SEP + long_df["indicator"]
    return long_df


def base_color(country, colors=None):
    colors = COUNTRY_COLORS if colors is None else colors
    try:
        return colors[country]
    except KeyError:
        raise MissingColorMapping(country) from None


def resolve_color(country, colors=None, fallback=FALLBACK_COLOR):
    try:
        return base_color(country, colors)
    except MissingColorMapping:
        logger.warning("No colour assigned to %r; using fallback %s", country, fallback)
        return fallback


def country_colors(countries, colors=None):
    return {c: resolve_color(c, colors) for c in countries}


def series_colors(long_df, colors=None):
    """series_key -> colour of the series' country (the indicator is shown by line dash)."""
    pairs = long_df[["series_key", "country"]].drop_duplicates("series_key")
    by_country = country_colors(pairs["country"].unique(), colors)
    return {key: by_country[c] for key, c in zip(pairs["series_key"], pairs["country"])}


# -----------------------------
# Export
# -----------------------------


def export_filename(day=None):
    day = day or date.today()
    return f"macroeconomic_data_{day.isoformat()}.csv"


def _plain_decimal(v):
    return "" if pd.isna(v) else np.format_float_positional(v, trim="-")


def to_csv(filtered):
    """
    CSV bytes of the filtered view: fixed header order, no index, '\\n' line endings.
    Floats are positional decimals (never 1e-05), missing values are empty fields.
    """
    try:
        columns = [c for c in CLEAN_COLUMNS if c in filtered.columns]
        out = filtered[columns].copy()
        for col in out.columns:
            if pd.api.types.is_float_dtype(out[col]):
                out[col] = out[col].map(_plain_decimal)
        text = out.to_csv(index=False, lineterminator="\n")
        return text.encode("utf-8")
    except Exception as e:
        raise ExportFailure(f"Could not write CSV: {e}") from e

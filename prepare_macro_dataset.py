import logging
import os
import sys
from pathlib import Path

import pandas as pd
import wbgapi as wb

from dashboard_settings import (
    CACHE_PATH,
    CLEAN_COLUMNS,
    COUNTRIES,
    END_YEAR,
    INDICATORS,
    SCHEMA_VERSION,
    START_YEAR,
    configure_logging,
)
from macro_pipeline import clean

logger = logging.getLogger(__name__)


class FetchFailure(RuntimeError):
    """World Bank data could not be fetched and no usable snapshot exists."""


def fetch_raw(countries=COUNTRIES, indicators=INDICATORS, start=START_YEAR, end=END_YEAR):
    """
    Fetch WDI indicators for the given ISO-3 countries, years start..end inclusive.
    Returns one row per (country, year): country, iso3c, year, <indicator short names>.
    """
    codes = list(indicators.values())
    logger.info("Fetching WDI %s for %d countries (%d-%d)", ", ".join(codes), len(countries), start, end)
    try:
        wide = wb.data.DataFrame(
            codes, list(countries), time=range(start, end + 1),
            index=["economy", "time"], columns="series", numericTimeKeys=True,
        )
        names = {e["id"]: e["value"] for e in wb.economy.list(list(countries))}
    except Exception as e:
        raise FetchFailure(f"World Bank request failed: {e}") from e

    if wide is None or wide.empty:
        raise FetchFailure("World Bank returned no data")

    # MultiIndex (economy, time) -> columns
    wide = wide.reset_index().rename(columns={"economy": "iso3c", "time": "year"})
    missing = [c for c in codes if c not in wide.columns]
    if missing:
        raise FetchFailure(f"World Bank response is missing series: {missing}")

    wide = wide.rename(columns={code: name for name, code in indicators.items()})
    # 'YR2000' when the API ignores numericTimeKeys
    wide["year"] = pd.to_numeric(wide["year"].astype(str).str.replace("YR", "", regex=False), errors="coerce")
    wide["country"] = wide["iso3c"].map(names)

    raw = wide[["country", "iso3c", "year", *indicators]]
    logger.info("Fetched %d raw rows", len(raw))
    return raw


# -----------------------------
# Snapshot of the clean table
# -----------------------------


def save_snapshot(clean_df, path=CACHE_PATH):
    path = Path(path)
    tmp = path.with_name(path.name + ".tmp")
    payload = {
        "schema_version": SCHEMA_VERSION,
        "columns": list(clean_df.columns),
        "data": clean_df,
    }
    pd.to_pickle(payload, tmp)
    os.replace(tmp, path)
    return path


def load_snapshot(path=CACHE_PATH):
    """Clean table from the snapshot, or None if missing, unreadable or from another schema."""
    path = Path(path)
    if not path.exists():
        return None
    try:
        payload = pd.read_pickle(path)
    except Exception as e:
        logger.warning("Ignoring unreadable snapshot %s: %s", path, e)
        return None

    if not isinstance(payload, dict) or payload.get("schema_version") != SCHEMA_VERSION:
        logger.warning("Ignoring snapshot %s: schema version mismatch", path)
        return None
    df = payload.get("data")
    if not isinstance(df, pd.DataFrame) or list(df.columns) != CLEAN_COLUMNS:
        logger.warning("Ignoring snapshot %s: unexpected columns", path)
        return None
    return df


def load_clean_table(cache_path=CACHE_PATH, fetch=None):
    """
    Snapshot if usable, else fetch + clean + save. Raises FetchFailure when
    neither works; the dashboard must not start without data.
    """
    fetch = fetch or fetch_raw
    clean_df = load_snapshot(cache_path)
    if clean_df is not None:
        logger.info("Loaded cached data from %s", cache_path)
    else:
        clean_df = clean(fetch())
        if clean_df.empty:
            raise FetchFailure("No complete rows left after cleaning the fetched data")
        try:
            save_snapshot(clean_df, cache_path)
            logger.info("Fetched and saved fresh data to %s", cache_path)
        except OSError as e:
            logger.warning("Fetched fresh data but could not save snapshot %s: %s", cache_path, e)

    logger.info("Data loaded - Rows: %d", len(clean_df))
    return clean_df


def main():
    configure_logging()
    try:
        clean_df = clean(fetch_raw())
    except FetchFailure as e:
        logger.error("%s", e)
        return 1
    if clean_df.empty:
        logger.error("No complete rows left after cleaning; snapshot not written")
        return 1

    path = save_snapshot(clean_df)
    logger.info("Wrote %s: %d rows, %d countries, years %d-%d",
                path, len(clean_df), clean_df["country"].nunique(),
                clean_df["year"].min(), clean_df["year"].max())
    return 0


if __name__ == "__main__":
    sys.exit(main())

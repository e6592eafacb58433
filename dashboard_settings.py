# Dashboard settings: countries, indicators, colours and labels.
# Change the right hand side values as you like; everything else reads from here.

import logging
import os
from pathlib import Path

APP_TITLE = "Global Macroeconomic Dashboard"
APP_SUBTITLE = "Analyzing Economic Indicators Across 11 Major Economies (2000–2023)"

START_YEAR, END_YEAR = 2000, 2023

# ISO-3 codes as understood by the World Bank API
COUNTRIES = ["USA", "CHN", "JPN", "DEU", "GBR", "IND", "FRA", "ITA", "CAN", "BRA", "NGA"]

# Short name -> WDI code (keep names stable, they become column names)
INDICATORS = {
    "GDP": "NY.GDP.MKTP.CD",
    "GDP_per_capita": "NY.GDP.PCAP.CD",
    "Inflation": "FP.CPI.TOTL.ZG",
    "Unemployment": "SL.UEM.TOTL.ZS",
    "Exports": "NE.EXP.GNFS.ZS",
    "Imports": "NE.IMP.GNFS.ZS",
}

# Column order of the clean table (and of the exported CSV)
ID_COLUMNS = ["country", "iso3c", "year"]
DERIVED_COLUMNS = ["log_GDP", "gdp_growth"]
CLEAN_COLUMNS = ID_COLUMNS + list(INDICATORS) + DERIVED_COLUMNS

# Colour-blind friendly base colours, one per country
COUNTRY_COLORS = {
    "Brazil": "#0072B2",
    "Canada": "#D55E00",
    "China": "#009E73",
    "France": "#E69F00",
    "Germany": "#56B4E9",
    "India": "#F0E442",
    "Italy": "#CC79A7",
    "Japan": "#999999",
    "Nigeria": "#7F3C8D",
    "United Kingdom": "#00D9A3",
    "United States": "#CC0000",
}
FALLBACK_COLOR = "#444444"

# Line style per indicator in the dual-indicator charts
INDICATOR_DASH = {
    "Inflation": "solid",
    "Unemployment": "dash",
    "Exports": "solid",
    "Imports": "dash",
}

INFLATION_PAIR = ("Inflation", "Unemployment")
TRADE_PAIR = ("Exports", "Imports")

CHART_HELP = {
    "gdp": ("Total economic output measured in billions of USD. Rising trends indicate "
            "economic expansion, while declines suggest contraction or recession."),
    "growth": ("Year-over-year percentage change in GDP (log-difference). Positive values = "
               "economic expansion, negative values = recession. Volatility indicates economic "
               "instability or structural changes."),
    "inflation": ("The relationship between price increases (inflation) and joblessness "
                  "(unemployment). The Phillips Curve suggests these often move inversely. "
                  "High inflation erodes purchasing power; high unemployment indicates economic slack."),
    "trade": ("Trade openness and competitiveness. High exports indicate strong global demand "
              "for domestic goods. When imports exceed exports, countries run trade deficits, "
              "potentially affecting currency values."),
}

# Snapshot of the clean table; bump SCHEMA_VERSION whenever CLEAN_COLUMNS change
CACHE_PATH = Path(os.environ.get("MACRO_CACHE_PATH", "macro_data_clean.pkl"))
SCHEMA_VERSION = 1

HOST = os.environ.get("MACRO_DASH_HOST", "127.0.0.1")
PORT = int(os.environ.get("MACRO_DASH_PORT", "8050"))
DEBUG = os.environ.get("MACRO_DASH_DEBUG", "0") == "1"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def configure_logging(level=logging.INFO):
    """One stream handler on the root logger; safe to call more than once."""
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(handler)
    root.setLevel(level)

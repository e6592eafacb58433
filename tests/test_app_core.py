import base64
from datetime import date

import pytest
from dash import Dash, no_update

import app_core
from app_core import (
    EMPTY_SELECTION_MSG,
    as_selection,
    build_download,
    build_figures,
    country_options,
    create_app,
    download_response,
    pair_figure,
)
from dashboard_settings import APP_TITLE, COUNTRY_COLORS, FALLBACK_COLOR, TRADE_PAIR
from macro_pipeline import ExportFailure, filter_countries


def test_as_selection():
    assert as_selection(None) == set()
    assert as_selection([]) == set()
    assert as_selection("Japan") == {"Japan"}
    assert as_selection(["Japan", "China", "Japan"]) == {"Japan", "China"}


def test_country_options_sorted_with_first_as_default(clean_df):
    options, default = country_options(clean_df)
    values = [o["value"] for o in options]
    assert values == sorted(values)
    assert len(values) == 11
    assert default == ["Brazil"]


def test_empty_selection_gives_empty_state(clean_df):
    figures = build_figures(clean_df, [])
    assert len(figures) == 4
    for fig in figures:
        assert len(fig.data) == 0
        assert fig.layout.annotations[0].text == EMPTY_SELECTION_MSG


def test_unknown_selection_gives_empty_state(clean_df):
    figures = build_figures(clean_df, ["Atlantis"])
    assert all(len(fig.data) == 0 for fig in figures)
    assert "Atlantis" in figures[0].layout.annotations[0].text


def test_figures_one_trace_per_series(clean_df):
    gdp, growth, infl, trade = build_figures(clean_df, ["China", "United States"])

    assert {t.name for t in gdp.data} == {"China", "United States"}
    assert {t.name for t in growth.data} == {"China", "United States"}
    assert {t.name for t in infl.data} == {
        "China - Inflation", "China - Unemployment",
        "United States - Inflation", "United States - Unemployment",
    }
    assert len(trade.data) == 4


def test_gdp_figure_in_billions(clean_df):
    gdp = build_figures(clean_df, ["Germany"])[0]
    de = filter_countries(clean_df, {"Germany"})
    assert gdp.data[0].y[0] == pytest.approx(de["GDP"].iloc[0] / 1e9)
    assert gdp.data[0].line.color == COUNTRY_COLORS["Germany"]


def test_pair_figure_colour_by_country_dash_by_indicator(clean_df):
    view = filter_countries(clean_df, {"Nigeria", "India"})
    fig = pair_figure(view, TRADE_PAIR, "% of GDP")
    traces = {t.name: t for t in fig.data}

    assert traces["Nigeria - Exports"].line.color == COUNTRY_COLORS["Nigeria"]
    assert traces["Nigeria - Imports"].line.color == COUNTRY_COLORS["Nigeria"]
    assert traces["India - Exports"].line.dash == "solid"
    assert traces["India - Imports"].line.dash == "dash"
    assert len(traces["India - Exports"].x) == 24


def test_pair_figure_unmapped_country_uses_fallback(clean_df):
    view = filter_countries(clean_df, {"Japan"}).assign(country="Atlantis")
    fig = pair_figure(view, TRADE_PAIR, "% of GDP")
    assert {t.line.color for t in fig.data} == {FALLBACK_COLOR}


def test_download_needs_a_selection(clean_df):
    assert build_download(clean_df, []) is None
    assert build_download(clean_df, None) is None


def test_download_filtered_csv(clean_df):
    payload = build_download(clean_df, ["China", "United States"], day=date(2024, 5, 1))

    assert payload["filename"] == "macroeconomic_data_2024-05-01.csv"
    text = base64.b64decode(payload["content"]).decode("utf-8")
    lines = text.splitlines()
    assert len(lines) == 49
    assert {line.split(",")[0] for line in lines[1:]} == {"China", "United States"}


def test_download_response_success(clean_df):
    payload, status = download_response(clean_df, ["Japan"], day=date(2024, 5, 1))
    assert payload["filename"] == "macroeconomic_data_2024-05-01.csv"
    assert "macroeconomic_data_2024-05-01.csv" in status


def test_download_response_empty_selection(clean_df):
    payload, status = download_response(clean_df, [])
    assert payload is no_update
    assert "Select at least one country" in status


def test_download_response_export_failure(clean_df, monkeypatch, caplog):
    def broken(view):
        raise ExportFailure("Could not write CSV: disk full")

    monkeypatch.setattr(app_core, "to_csv", broken)
    payload, status = download_response(clean_df, ["Japan"])

    assert payload is no_update
    assert "Download failed" in status
    assert "disk full" in status
    assert "Download failed" in caplog.text


def test_create_app(clean_df):
    app = create_app(clean_df)
    assert isinstance(app, Dash)
    assert app.title == APP_TITLE
    layout_text = str(app.layout)
    for graph_id in ("gdp-plot", "growth-plot", "inflation-unemp-plot", "trade-plot", "download-csv"):
        assert graph_id in layout_text

# app_core.py
# Global Macroeconomic Dashboard: GDP, growth, inflation/unemployment and trade for 11 economies.

import logging
import sys
from datetime import date

import plotly.express as px
import plotly.graph_objects as go
from dash import Dash, dcc, html, Input, Output, State, no_update

from dashboard_settings import (
    APP_SUBTITLE,
    APP_TITLE,
    CACHE_PATH,
    CHART_HELP,
    DEBUG,
    HOST,
    INDICATOR_DASH,
    INFLATION_PAIR,
    PORT,
    TRADE_PAIR,
    configure_logging,
)
from macro_pipeline import (
    ExportFailure,
    country_colors,
    countries_in,
    export_filename,
    filter_countries,
    series_colors,
    to_csv,
    to_long,
)
from prepare_macro_dataset import FetchFailure, load_clean_table

logger = logging.getLogger(__name__)

EMPTY_SELECTION_MSG = "Select at least one country to see the charts."
CHART_HEIGHT = 350


# -----------------------------
# Helpers
# -----------------------------


def as_selection(value):
    """Dropdown value (None, a single name or a list) -> set of country names."""
    if not value:
        return set()
    if isinstance(value, str):
        return {value}
    return set(value)


def country_options(clean_df):
    countries = countries_in(clean_df)
    options = [{"label": c, "value": c} for c in countries]
    default = [countries[0]] if countries else []
    return options, default


def _empty_fig(msg: str):
    fig = go.Figure()
    fig.add_annotation(text=msg, showarrow=False, xref="paper", yref="paper", x=0.5, y=0.5)
    fig.update_layout(
        xaxis=dict(visible=False),
        yaxis=dict(visible=False),
        height=CHART_HEIGHT,
        margin=dict(l=40, r=20, t=40, b=40),
    )
    return fig


def _finish(fig, y_title, legend_title):
    fig.update_layout(
        template="plotly_white",
        height=CHART_HEIGHT,
        xaxis_title="Year",
        yaxis_title=y_title,
        legend_title_text=legend_title,
        legend=dict(orientation="h", yanchor="top", y=-0.2, xanchor="left", x=0),
        margin=dict(l=60, r=20, t=30, b=40),
        hovermode="x unified",
    )
    return fig


# -----------------------------
# Figures
# -----------------------------


def gdp_figure(view):
    d = view.assign(GDP_billions=view["GDP"] / 1e9)
    fig = px.line(
        d, x="year", y="GDP_billions", color="country",
        color_discrete_map=country_colors(d["country"].unique()),
    )
    fig.update_traces(line=dict(width=2.5), hovertemplate="%{y:$,.0f}B")
    fig.update_yaxes(tickprefix="$", ticksuffix="B", tickformat=",.0f")
    return _finish(fig, "GDP (Billions USD)", "Country")


def growth_figure(view):
    # First year per country has no growth; the line simply starts one year later
    fig = px.line(
        view, x="year", y="gdp_growth", color="country",
        color_discrete_map=country_colors(view["country"].unique()),
    )
    fig.update_traces(line=dict(width=2.5), hovertemplate="%{y:.4f}")
    return _finish(fig, "GDP Growth (log-diff)", "Country")


def pair_figure(view, indicator_pair, y_title):
    """One line per country/indicator: colour from the country, dash from the indicator."""
    long_df = to_long(view, indicator_pair)
    colors = series_colors(long_df)

    fig = go.Figure()
    for key, g in long_df.groupby("series_key", sort=False):
        indicator = g["indicator"].iloc[0]
        fig.add_trace(go.Scatter(
            x=g["year"],
            y=g["value"],
            mode="lines",
            name=key,
            legendgroup=g["country"].iloc[0],
            line=dict(color=colors[key], dash=INDICATOR_DASH.get(indicator, "solid"), width=2.5),
            hovertemplate="%{y:.2f}",
        ))
    return _finish(fig, y_title, "Country - Indicator")


def build_figures(clean_df, selected):
    """All four charts for one selection; empty selection -> empty-state figures."""
    selection = as_selection(selected)
    if not selection:
        return tuple(_empty_fig(EMPTY_SELECTION_MSG) for _ in range(4))

    view = filter_countries(clean_df, selection)
    if view.empty:
        msg = f"No data for {', '.join(sorted(selection))}"
        return tuple(_empty_fig(msg) for _ in range(4))

    return (
        gdp_figure(view),
        growth_figure(view),
        pair_figure(view, INFLATION_PAIR, "Rate (%)"),
        pair_figure(view, TRADE_PAIR, "% of GDP"),
    )


def build_download(clean_df, selected, day=None):
    """dcc.Download payload for the filtered view, or None when nothing is selected."""
    selection = as_selection(selected)
    if not selection:
        return None
    view = filter_countries(clean_df, selection)
    return dcc.send_bytes(to_csv(view), export_filename(day or date.today()))


def download_response(clean_df, selected, day=None):
    """(download data, status text) for the download button; failures never produce a file."""
    try:
        payload = build_download(clean_df, selected, day)
    except ExportFailure as e:
        logger.error("Download failed: %s", e)
        return no_update, f"❌ Download failed: {e}"
    if payload is None:
        return no_update, "Select at least one country to download data."
    return payload, f"Saved → {payload['filename']}"


# -----------------------------
# App layout
# -----------------------------


def _section(title, help_key, graph_id):
    return html.Div([
        html.Hr(),
        html.H3(title, style={"color": "#2c3e50"}),
        html.P([html.Strong("What it shows: "), CHART_HELP[help_key]]),
        dcc.Graph(id=graph_id, config={"displaylogo": False}),
    ])


def create_app(clean_df):
    """Dash app over an already-built clean table; callbacks only read from it."""
    options, default = country_options(clean_df)

    app = Dash(__name__, title=APP_TITLE)
    app.layout = html.Div(
        style={"fontFamily": "system-ui, -apple-system, Segoe UI, Roboto, Helvetica, Arial",
               "padding": "16px", "maxWidth": "1200px", "margin": "0 auto"},
        children=[
            html.Div(
                style={"background": "linear-gradient(135deg, #667eea 0%, #764ba2 100%)",
                       "color": "white", "padding": "20px", "borderRadius": "8px",
                       "marginBottom": "20px"},
                children=[
                    html.H2(f"🌍 {APP_TITLE}", style={"margin": 0}),
                    html.P(APP_SUBTITLE, style={"margin": "5px 0 0 0"}),
                ],
            ),

            html.Div(
                style={"display": "grid", "gridTemplateColumns": "1fr 3fr", "gap": "16px"},
                children=[
                    # Controls
                    html.Div([
                        html.Label("Select Country(s):"),
                        dcc.Dropdown(id="country", options=options, value=default, multi=True),
                        html.Div(id="selection-status", style={"fontSize": "12px", "color": "#555",
                                                               "marginTop": "6px"}),
                    ]),

                    # Charts
                    html.Div([
                        html.Div(
                            style={"background": "#f8f9fa", "padding": "10px 12px", "borderRadius": "8px"},
                            children=[
                                html.H4("📊 Dashboard Overview"),
                                html.P("Compare macroeconomic indicators across 11 major economies "
                                       "(2000-2023). Select one or more countries to analyze GDP trends, "
                                       "growth patterns, inflation dynamics, and trade relationships. "
                                       "Data sourced from World Bank Development Indicators."),
                            ],
                        ),
                        _section("💰 GDP Trends", "gdp", "gdp-plot"),
                        _section("📈 GDP Growth Rates", "growth", "growth-plot"),
                        _section("🔴 Inflation & Unemployment", "inflation", "inflation-unemp-plot"),
                        _section("🌐 Exports vs Imports (% of GDP)", "trade", "trade-plot"),
                        html.Hr(),
                        html.Div(
                            style={"background": "#e7f3ff", "padding": "10px 12px", "borderRadius": "8px"},
                            children=[
                                html.H4("📥 Export Your Analysis"),
                                html.P("Download the filtered data for your selected countries to perform "
                                       "further analysis in Excel, Python, or other tools."),
                                html.Button("Download CSV Data", id="btn-download", n_clicks=0),
                                html.Span(id="download-status", style={"marginLeft": "12px"}),
                                dcc.Download(id="download-csv"),
                            ],
                        ),
                    ]),
                ],
            ),
        ],
    )

    # -----------------------------
    # Callbacks
    # -----------------------------
    @app.callback(
        Output("gdp-plot", "figure"),
        Output("growth-plot", "figure"),
        Output("inflation-unemp-plot", "figure"),
        Output("trade-plot", "figure"),
        Output("selection-status", "children"),
        Input("country", "value"),
    )
    def update_charts(selected):
        figures = build_figures(clean_df, selected)
        n = len(as_selection(selected))
        status = f"{n} countr{'y' if n == 1 else 'ies'} selected" if n else EMPTY_SELECTION_MSG
        return (*figures, status)

    @app.callback(
        Output("download-csv", "data"),
        Output("download-status", "children"),
        Input("btn-download", "n_clicks"),
        State("country", "value"),
        prevent_initial_call=True,
    )
    def download_csv(_n_clicks, selected):
        return download_response(clean_df, selected)

    return app


# -----------------------------
# Run
# -----------------------------


def main():
    configure_logging()
    try:
        clean_df = load_clean_table(CACHE_PATH)
    except FetchFailure as e:
        logger.critical("Cannot start dashboard: %s", e)
        return 1

    logger.info("Rows: %d, countries: %s, years %d-%d",
                len(clean_df), ", ".join(countries_in(clean_df)),
                clean_df["year"].min(), clean_df["year"].max())
    app = create_app(clean_df)
    app.run(host=HOST, port=PORT, debug=DEBUG)
    return 0


if __name__ == "__main__":
    sys.exit(main())

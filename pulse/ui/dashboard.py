import os
import datetime as dt
from dash import Dash, dcc, html, Input, Output, ALL, ctx, no_update
import plotly.express as px
import plotly.graph_objects as go

from pulse import config
from pulse.cache import FeedCache
from pulse.errors import FetchError
from pulse.ingest_alpha import get_quote, ticker_sentiment_frame
from pulse.refresh import FeedRefresher
from pulse.sentiment import format_number, format_published, sentiment_color, ticker_overview
from pulse.store import JsonFileStore
from pulse.usage import QuotaTracker

STORE = JsonFileStore(config.STORE_PATH)
QUOTA = QuotaTracker(STORE)
REFRESHER = FeedRefresher(QUOTA, FeedCache(STORE))

HIDDEN = {"display": "none"}
OVERLAY = {
    "position": "fixed", "top": 0, "left": 0, "right": 0, "bottom": 0,
    "backgroundColor": "rgba(0, 0, 0, 0.7)", "display": "flex",
    "justifyContent": "center", "alignItems": "center", "zIndex": 1000,
}
BANNER = {
    "warning": {"backgroundColor": "#ff851b", "color": "white", "padding": "12px", "borderRadius": "8px"},
    "error": {"backgroundColor": "#ff4136", "color": "white", "padding": "12px", "borderRadius": "8px"},
}


def quota_text(left: int, limit: int) -> str:
    return f"API calls left today: {left}/{limit}"


def make_banner(message, kind="error"):
    if not message:
        return None
    return html.Div([html.Strong("Error" if kind == "error" else "Notice"), html.P(message)],
                    style=BANNER[kind])


def make_ticker_chip(t: dict) -> html.Button:
    sym = t.get("ticker", "")
    return html.Button(
        [
            html.Span(sym, style={"fontWeight": "bold", "marginRight": "5px"}),
            html.Span(f"Relevance: {format_number(t.get('relevance_score'))}"),
            html.Span(
                f"Sentiment: {format_number(t.get('ticker_sentiment_score'))}",
                style={"backgroundColor": sentiment_color(t.get("ticker_sentiment_score")),
                       "color": "white", "padding": "2px 5px", "borderRadius": "3px", "marginLeft": "5px"},
            ),
        ],
        id={"type": "ticker-btn", "symbol": sym},
        n_clicks=0,
        style={"backgroundColor": "#ecf0f1", "border": "none", "padding": "5px 10px",
               "borderRadius": "4px", "cursor": "pointer"},
    )


def make_news_card(item: dict) -> html.Div:
    score = item.get("overall_sentiment_score")
    tickers = item.get("ticker_sentiment") or []
    children = [
        html.H3(item.get("title", ""), style={"marginTop": 0, "color": "#3498db"}),
        html.Div(
            [html.Span(item.get("source", "")), html.Span(format_published(item.get("time_published")))],
            style={"display": "flex", "justifyContent": "space-between", "color": "#888", "fontSize": "0.9em"},
        ),
        html.Div(
            [html.Span(f"Sentiment: {format_number(score)}"), html.Span(item.get("overall_sentiment_label", ""))],
            style={"display": "flex", "justifyContent": "space-between", "padding": "10px",
                   "borderRadius": "4px", "color": "white", "fontWeight": "bold",
                   "backgroundColor": sentiment_color(score)},
        ),
    ]
    if tickers:
        children.append(html.Div([
            html.H4("Related Tickers:"),
            html.Div([make_ticker_chip(t) for t in tickers],
                     style={"display": "flex", "flexWrap": "wrap", "gap": "10px"}),
        ]))
    if item.get("url"):
        children.append(html.A("Read More", href=item["url"], target="_blank", rel="noopener noreferrer"))
    return html.Div(children, className="news-item",
                    style={"backgroundColor": "white", "borderRadius": "8px", "padding": "20px",
                           "boxShadow": "0 4px 6px rgba(0, 0, 0, 0.1)"})


def make_overview_fig(payload) -> go.Figure:
    if not payload:
        return go.Figure()
    ov = ticker_overview(ticker_sentiment_frame(payload)).head(20)
    if ov.empty:
        return go.Figure()
    fig = px.bar(ov, x="ticker", y="sentiment", hover_data=["mentions", "relevance"],
                 title="Mean ticker sentiment (top 20 by mentions)")
    fig.update_traces(marker_color=[sentiment_color(s) for s in ov["sentiment"]])
    fig.update_yaxes(title="sentiment", range=[-1, 1])
    fig.update_xaxes(title=None)
    return fig


def make_quote_panel(symbol: str, quote=None, error=None) -> list:
    body = [html.H2(f"{symbol} Details")]
    if error:
        body.append(html.P(error, style={"color": "red"}))
    elif quote is not None:
        body += [
            html.P(f"Price: ${format_number(quote.price)}"),
            html.P(f"Change: {format_number(quote.change)} ({quote.change_percent})"),
            html.P(f"Volume: {quote.volume if quote.volume is not None else 'N/A'}"),
            html.P(f"Last Updated: {quote.latest_trading_day}"),
        ]
    return body


def fetched_label(fetched_at) -> str:
    if not fetched_at:
        return ""
    when = dt.datetime.fromtimestamp(fetched_at / 1000)
    return f"Feed fetched {when:%Y-%m-%d %H:%M:%S}"


app = Dash(__name__, suppress_callback_exceptions=True)
app.title = "Tech Sentiment Pulse"

app.layout = html.Div(
    [
        html.Header(
            [
                html.H1("Tech Sentiment Pulse", style={"margin": 0}),
                html.Div(id="quota-text"),
            ],
            style={"backgroundColor": "#3498db", "color": "white", "padding": "20px",
                   "borderRadius": "8px", "marginBottom": "20px"},
        ),
        html.Div(
            [
                html.Button("Refresh", id="refresh-btn", n_clicks=0),
                html.Span(id="fetched-at", style={"marginLeft": "12px", "color": "#888"}),
            ],
            style={"marginBottom": "12px"},
        ),
        dcc.Loading(html.Div(id="status")),
        dcc.Store(id="feed-store"),
        dcc.Store(id="selected-ticker"),

        html.H2("Technology News Sentiment", style={"color": "#3498db"}),
        dcc.Graph(id="overview-fig"),
        html.Div(
            id="news-container",
            style={"display": "grid", "gridTemplateColumns": "repeat(auto-fit, minmax(300px, 1fr))", "gap": "20px"},
        ),

        html.Div(
            html.Div(
                [
                    dcc.Loading(html.Div(id="quote-body")),
                    html.Button("Close", id="modal-close", n_clicks=0, style={"marginTop": "10px"}),
                ],
                style={"backgroundColor": "white", "padding": "20px", "borderRadius": "8px",
                       "maxWidth": "500px", "width": "90%"},
            ),
            id="quote-modal",
            style=HIDDEN,
        ),
    ],
    style={"maxWidth": "1200px", "margin": "0 auto", "padding": "20px",
           "fontFamily": "'Segoe UI', Tahoma, Geneva, Verdana, sans-serif"},
)


@app.callback(
    Output("feed-store", "data"),
    Output("status", "children"),
    Output("quota-text", "children"),
    Output("fetched-at", "children"),
    Input("refresh-btn", "n_clicks"),
)
def load_feed(_):
    try:
        res = REFRESHER.refresh()
    except FetchError as e:
        return no_update, make_banner(str(e), "error"), quota_text(QUOTA.left_today(), QUOTA.limit), no_update
    banner = make_banner(res.warning, "warning")
    return res.payload, banner, quota_text(QUOTA.left_today(), QUOTA.limit), fetched_label(res.fetched_at)


@app.callback(
    Output("news-container", "children"),
    Output("overview-fig", "figure"),
    Input("feed-store", "data"),
)
def render_feed(payload):
    if not payload or not payload.get("feed"):
        return [], go.Figure()
    return [make_news_card(item) for item in payload["feed"]], make_overview_fig(payload)


@app.callback(
    Output("selected-ticker", "data"),
    Input({"type": "ticker-btn", "symbol": ALL}, "n_clicks"),
    Input("modal-close", "n_clicks"),
    prevent_initial_call=True,
)
def select_ticker(ticker_clicks, _):
    trig = ctx.triggered_id
    if trig == "modal-close":
        return None
    # freshly rendered chips fire with n_clicks=0
    if isinstance(trig, dict) and any(ticker_clicks) and ctx.triggered[0]["value"]:
        return trig["symbol"]
    return no_update


@app.callback(
    Output("quote-modal", "style"),
    Output("quote-body", "children"),
    Input("selected-ticker", "data"),
)
def show_quote(symbol):
    if not symbol:
        return HIDDEN, []
    try:
        quote = get_quote(symbol)
    except FetchError as e:
        return OVERLAY, make_quote_panel(symbol, error=str(e) or "Failed to fetch ticker data")
    return OVERLAY, make_quote_panel(symbol, quote=quote)


if __name__ == "__main__":
    port = int(os.getenv("PORT", "8050"))
    app.run(debug=False, host="0.0.0.0", port=port)

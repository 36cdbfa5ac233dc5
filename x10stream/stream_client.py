"""Client for the exchange's websocket stream endpoints."""

from __future__ import annotations

from urllib.parse import quote, urlencode

from .subscription import AccountSubscription, OrderbookSubscription
from .websocket_source import WebSocketStreamSource


class PerpetualStreamClient:
    """Builds stream URLs and hands out unconnected sources and subscriptions.

    Raw ``subscribe_to_*`` methods return a WebSocketStreamSource yielding
    decoded envelopes as sent by the server. ``orderbook_subscription`` and
    ``account_subscription`` wrap those in subscriptions that keep the full
    state mirrored locally.
    """

    def __init__(self, api_url: str) -> None:
        self._api_url = api_url.rstrip("/")

    @property
    def api_url(self) -> str:
        return self._api_url

    def _url(self, *segments: str, query: dict[str, str] | None = None) -> str:
        path = "".join(f"/{quote(segment, safe='')}" for segment in segments)
        url = f"{self._api_url}{path}"
        if query:
            url = f"{url}?{urlencode(query)}"
        return url

    def subscribe_to_orderbooks(
        self, market: str | None = None, depth: int | None = None
    ) -> WebSocketStreamSource:
        segments = ("orderbooks", market) if market else ("orderbooks",)
        query = {"depth": str(depth)} if depth else None
        return WebSocketStreamSource(self._url(*segments, query=query))

    def subscribe_to_public_trades(self, market: str | None = None) -> WebSocketStreamSource:
        segments = ("publicTrades", market) if market else ("publicTrades",)
        return WebSocketStreamSource(self._url(*segments))

    def subscribe_to_funding_rates(self, market: str | None = None) -> WebSocketStreamSource:
        segments = ("funding", market) if market else ("funding",)
        return WebSocketStreamSource(self._url(*segments))

    def subscribe_to_candles(
        self, market: str, candle_type: str, interval: str
    ) -> WebSocketStreamSource:
        return WebSocketStreamSource(
            self._url("candles", market, candle_type, query={"interval": interval})
        )

    def subscribe_to_account_updates(self, api_key: str) -> WebSocketStreamSource:
        return WebSocketStreamSource(self._url("account"), api_key=api_key)

    def orderbook_subscription(self, market: str, depth: int | None = None) -> OrderbookSubscription:
        return OrderbookSubscription(self.subscribe_to_orderbooks(market, depth), market)

    def account_subscription(self, api_key: str) -> AccountSubscription:
        return AccountSubscription(self.subscribe_to_account_updates(api_key))

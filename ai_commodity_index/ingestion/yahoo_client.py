"""
Yahoo Finance chart client.

Endpoint::

    GET {base_url}/{symbol}?range=7d&interval=1d

Response shape (only the parts that are read)::

    {"chart": {"result": [{
        "timestamp": [1717200000, ...],
        "indicators": {"quote": [{"close": [2350.1, null, ...],
                                  "volume": [1200, null, ...]}]}
    }]}}

Null or NaN closes are skipped. Timestamps are epoch seconds, converted to
UTC. Requests are spaced at least ``min_interval_s`` apart; the sleep and
clock functions are injectable so tests never wait.
"""

from __future__ import annotations

import logging
import math
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import httpx

from ai_commodity_index.config import MarketDataConfig
from ai_commodity_index.models.market import ActualPrice

logger = logging.getLogger(__name__)

SOURCE = "yahoo_finance"

_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    ),
    "Accept": "application/json",
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
}


class YahooFinanceClient:
    """Fetch daily closes from the Yahoo Finance chart API.

    Usage::

        with YahooFinanceClient(config.market_data) as client:
            payload = client.fetch_chart("GC=F")
            prices = client.parse_chart(payload, commodity_id=gold.id)

    Attributes:
        config: Endpoint, range/interval defaults, timeout and rate limit.
    """

    def __init__(
        self,
        config: Optional[MarketDataConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or MarketDataConfig()
        self._client = httpx.Client(
            headers=_HEADERS,
            timeout=self.config.request_timeout_s,
            transport=transport,
        )
        self._sleep = sleep
        self._clock = clock
        self._last_request: Optional[float] = None

    def __enter__(self) -> "YahooFinanceClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # ── HTTP ──────────────────────────────────────────────────────────────────

    def _wait_for_slot(self) -> None:
        if self._last_request is not None:
            elapsed = self._clock() - self._last_request
            remaining = self.config.min_request_interval_s - elapsed
            if remaining > 0:
                logger.debug("Rate limit: sleeping %.2fs", remaining)
                self._sleep(remaining)
        self._last_request = self._clock()

    def fetch_chart(
        self,
        symbol: str,
        range_: Optional[str] = None,
        interval: Optional[str] = None,
    ) -> dict:
        """Fetch the raw chart JSON for ``symbol``.

        Raises:
            httpx.HTTPStatusError: On a non-2xx response.
        """
        self._wait_for_slot()
        resp = self._client.get(
            f"{self.config.yahoo_base_url.rstrip('/')}/{symbol}",
            params={
                "range": range_ or self.config.history_range,
                "interval": interval or self.config.interval,
            },
        )
        resp.raise_for_status()
        logger.debug("Fetched chart for %s (%d bytes)", symbol, len(resp.content))
        return resp.json()

    # ── Parsing ───────────────────────────────────────────────────────────────

    @staticmethod
    def parse_chart(payload: dict, commodity_id: str) -> list[ActualPrice]:
        """Convert a chart payload to ``ActualPrice`` rows for ``commodity_id``.

        A payload with no result, no timestamps or no close series yields an
        empty list.
        """
        results = (payload.get("chart") or {}).get("result") or []
        if not results:
            return []
        result = results[0]
        timestamps = result.get("timestamp") or []
        quotes = ((result.get("indicators") or {}).get("quote") or [{}])[0] or {}
        closes = quotes.get("close") or []
        volumes = quotes.get("volume") or []

        prices: list[ActualPrice] = []
        for i, ts in enumerate(timestamps):
            close = closes[i] if i < len(closes) else None
            if close is None or not math.isfinite(float(close)):
                continue
            volume = volumes[i] if i < len(volumes) else None
            prices.append(ActualPrice(
                commodity_id=commodity_id,
                date=datetime.fromtimestamp(int(ts), tz=timezone.utc),
                price=str(close),
                volume=str(volume) if volume else None,
                source=SOURCE,
            ))
        return prices

    def fetch_prices(self, symbol: str, commodity_id: str) -> list[ActualPrice]:
        """``fetch_chart`` followed by ``parse_chart``."""
        return self.parse_chart(self.fetch_chart(symbol), commodity_id)

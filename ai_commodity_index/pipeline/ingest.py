"""
PriceIngestStage: pull recent daily closes from Yahoo Finance.

Commodities without a ``yahoo_symbol`` are skipped. Observations whose
calendar day (UTC) is already stored for that commodity are not inserted
again, so repeated runs over an overlapping range do not duplicate rows.

An HTTP failure for one symbol is logged and the remaining symbols are
still fetched; the stage fails only if every fetch failed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import httpx

from ai_commodity_index.models.meta import RunMetadata
from ai_commodity_index.pipeline.base import PipelineStage

if TYPE_CHECKING:
    from ai_commodity_index.ingestion.yahoo_client import YahooFinanceClient

logger = logging.getLogger(__name__)


class PriceIngestStage(PipelineStage):
    """Fetch and store new actual prices. Returns the number of rows inserted."""

    stage_name = "price_ingest"

    def _execute(
        self,
        run: RunMetadata,
        symbol: Optional[str] = None,
        client: Optional["YahooFinanceClient"] = None,
        **kwargs,
    ) -> int:
        """
        Args:
            run:    In-progress run record.
            symbol: Restrict to the commodity with this ``symbol``.
            client: Pre-built client (tests inject one with a mock transport).
        """
        from ai_commodity_index.db.repositories.market_repo import MarketRepository
        from ai_commodity_index.ingestion.yahoo_client import YahooFinanceClient

        owns_client = client is None
        client = client or YahooFinanceClient(self.config.market_data)
        inserted = 0
        attempted = 0
        failures: list[str] = []

        try:
            with self._connection() as conn:
                market = MarketRepository(conn)
                if symbol is not None:
                    commodity = market.get_commodity_by_symbol(symbol)
                    if commodity is None:
                        raise ValueError(f"Unknown commodity symbol '{symbol}'.")
                    commodities = [commodity]
                else:
                    commodities = market.get_commodities()

                for commodity in commodities:
                    if not commodity.yahoo_symbol:
                        continue
                    attempted += 1
                    logger.info("Fetching %s (%s)", commodity.name, commodity.yahoo_symbol)
                    try:
                        fetched = client.fetch_prices(commodity.yahoo_symbol, commodity.id)
                    except httpx.HTTPError as exc:
                        logger.error("Price fetch failed for %s: %s", commodity.yahoo_symbol, exc)
                        failures.append(commodity.yahoo_symbol)
                        continue

                    known_days = market.get_price_days(commodity.id)
                    new_prices = []
                    for price in fetched:
                        day = price.date.date().isoformat()
                        if day in known_days:
                            continue
                        known_days.add(day)
                        new_prices.append(price)
                    inserted += market.insert_actual_prices(new_prices)
                    logger.info(
                        "%s: fetched=%d new=%d", commodity.symbol, len(fetched), len(new_prices),
                    )
        finally:
            if owns_client:
                client.close()

        if attempted and len(failures) == attempted:
            raise RuntimeError(f"All price fetches failed: {', '.join(failures)}")
        return inserted

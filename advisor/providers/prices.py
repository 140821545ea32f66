"""CoinGecko simple-price adapter."""
import math
from typing import List, Sequence

from advisor.core.error_codes import UpstreamUnavailable
from advisor.providers.base import UpstreamAdapter
from advisor.schemas import PriceQuote

DEFAULT_ASSET_IDS = ("bitcoin", "ethereum", "solana", "dogecoin")

FALLBACK_PRICES = (
    ("bitcoin", 65000),
    ("ethereum", 3200),
    ("solana", 150),
    ("dogecoin", 0.12),
)


class PriceProvider(UpstreamAdapter[List[PriceQuote]]):
    """
    Fetch USD quotes for a fixed set of CoinGecko asset ids.
    All-or-nothing: one missing or malformed quote means the whole fallback list.
    """
    name = "prices"
    vs_currency = "usd"

    def __init__(
        self,
        url: str = "https://api.coingecko.com/api/v3/simple/price",
        asset_ids: Sequence[str] = DEFAULT_ASSET_IDS,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.url = url
        self.asset_ids = tuple(asset_ids)

    async def _fetch(self) -> List[PriceQuote]:
        data = await self.get_json(
            self.url,
            params={"ids": ",".join(self.asset_ids), "vs_currencies": self.vs_currency},
        )
        if not isinstance(data, dict) or not data:
            raise UpstreamUnavailable(self.name, "expected a non-empty object of quotes")

        quotes = []
        for asset_id in self.asset_ids:
            entry = data.get(asset_id)
            price = entry.get(self.vs_currency) if isinstance(entry, dict) else None
            # bool is an int subclass; json also decodes NaN and Infinity
            if isinstance(price, bool) or not isinstance(price, (int, float)) or not math.isfinite(price):
                raise UpstreamUnavailable(self.name, f"missing {self.vs_currency} quote for '{asset_id}'")
            quotes.append(PriceQuote(symbol=asset_id, usd=price))
        return quotes

    def fallback(self) -> List[PriceQuote]:
        return [PriceQuote(symbol=symbol, usd=usd) for symbol, usd in FALLBACK_PRICES]

"""CryptoCompare news adapter."""
from typing import Any, Dict, List, Optional

from advisor.core.error_codes import UpstreamUnavailable
from advisor.core.logging import get_logger
from advisor.providers.base import UpstreamAdapter
from advisor.schemas import NewsItem, UserPreferences
from advisor.services.news_filter import select_relevant_news

logger = get_logger(__name__)

FALLBACK_NEWS = (
    {
        "title": "Bitcoin holds steady as investors await Fed comments",
        "source": "MockNews",
        "url": "https://example.com/bitcoin-steady",
    },
    {
        "title": "Ethereum ecosystem sees renewed DeFi activity",
        "source": "MockNews",
        "url": "https://example.com/eth-defi",
    },
)


class NewsProvider(UpstreamAdapter[List[NewsItem]]):
    """
    Fetch the latest English crypto headlines.
    The API key is optional; without it the request goes out unauthenticated.
    """
    name = "news"

    def __init__(
        self,
        url: str = "https://min-api.cryptocompare.com/data/v2/news/",
        api_key: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.url = url
        self.api_key = api_key

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            return {}
        return {"authorization": f"Apikey {self.api_key}"}

    async def _fetch(self) -> List[NewsItem]:
        data = await self.get_json(self.url, params={"lang": "EN"}, headers=self._headers())
        articles = data.get("Data") if isinstance(data, dict) else None
        if not isinstance(articles, list):
            raise UpstreamUnavailable(self.name, "response has no 'Data' article list")

        items = []
        for article in articles:
            normalized = self._normalize_article(article)
            if normalized:
                items.append(normalized)
        if not items:
            raise UpstreamUnavailable(self.name, "no usable articles in response")
        return items

    def _normalize_article(self, article: Any) -> Optional[NewsItem]:
        if not isinstance(article, dict):
            return None
        title = str(article.get("title") or "").strip()
        url = str(article.get("url") or "").strip()
        if not title or not url:
            logger.debug("Skipping news article without title/url")
            return None
        source = article.get("source")
        if not isinstance(source, str):
            # some payloads only carry the nested source_info block
            source_info = article.get("source_info")
            source = source_info.get("name", "") if isinstance(source_info, dict) else ""
        return NewsItem(title=title, source=source, url=url)

    def fallback(self) -> List[NewsItem]:
        return [NewsItem(**item) for item in FALLBACK_NEWS]

    async def fetch_for(self, preferences: UserPreferences) -> List[NewsItem]:
        """At most five headlines relevant to the user's assets."""
        batch = await self.fetch()
        return select_relevant_news(batch, preferences.crypto_assets)

"""Dashboard assembly: one fan-out to the four adapters, one merged payload."""
import asyncio
import time
from typing import Optional

from advisor.core.config import DashboardConfig
from advisor.core.error_codes import AssemblyFailure
from advisor.core.logging import get_logger
from advisor.core.utils import truncate
from advisor.providers.insight import InsightProvider, build_insight_fallback
from advisor.providers.memes import MemeProvider
from advisor.providers.news import FALLBACK_NEWS, NewsProvider
from advisor.providers.prices import FALLBACK_PRICES, PriceProvider
from advisor.schemas import (
    DashboardOutcome,
    DashboardPayload,
    DashboardUser,
    NewsItem,
    PriceQuote,
    UserRecord,
)

logger = get_logger(__name__)


def _dashboard_user(user: UserRecord) -> DashboardUser:
    return DashboardUser(
        id=user.id,
        name=user.name,
        email=user.email,
        preferences=user.preferences,
    )


def build_fallback_payload(user: UserRecord) -> DashboardPayload:
    """Minimal complete bundle served when assembly itself fails."""
    return DashboardPayload(
        user=_dashboard_user(user),
        prices=[PriceQuote(symbol=symbol, usd=usd) for symbol, usd in FALLBACK_PRICES[:2]],
        news=[NewsItem(**FALLBACK_NEWS[0])],
        ai_insight=build_insight_fallback(),
        meme=MemeProvider().fallback(),
    )


class DashboardAssembler:
    """
    Builds the per-user dashboard.

    Adapters are created from the config unless injected. They share no state
    and are awaited together; the merge is positional, so completion order
    never affects the result.
    """

    def __init__(
        self,
        config: Optional[DashboardConfig] = None,
        price_provider: Optional[PriceProvider] = None,
        news_provider: Optional[NewsProvider] = None,
        insight_provider: Optional[InsightProvider] = None,
        meme_provider: Optional[MemeProvider] = None,
    ):
        self.config = config or DashboardConfig()
        timeout = self.config.timeout_seconds

        self.price_provider = price_provider or PriceProvider(
            url=self.config.price_api_url,
            asset_ids=self.config.price_asset_ids,
            timeout_seconds=timeout,
        )
        self.news_provider = news_provider or NewsProvider(
            url=self.config.news_api_url,
            api_key=self.config.news_api_key,
            timeout_seconds=timeout,
        )
        self.insight_provider = insight_provider or InsightProvider(
            url=self.config.insight_api_url,
            model=self.config.insight_model,
            api_key=self.config.insight_api_key,
            api_style=self.config.insight_api_style,
            timeout_seconds=timeout,
        )
        self.meme_provider = meme_provider or MemeProvider(
            url=self.config.meme_api_url,
            timeout_seconds=timeout,
        )

    async def build(self, user: UserRecord) -> DashboardOutcome:
        preferences = user.preferences
        t0 = time.monotonic()

        try:
            results = await asyncio.gather(
                self.price_provider.fetch(),
                self.news_provider.fetch_for(preferences),
                self.insight_provider.fetch_for(preferences),
                self.meme_provider.fetch(),
                return_exceptions=True,
            )
            # collect every task, then fail on the first broken adapter
            for result in results:
                if isinstance(result, BaseException):
                    raise result
            prices, news, insight, meme = results
            payload = DashboardPayload(
                user=_dashboard_user(user),
                prices=prices,
                news=news,
                ai_insight=insight,
                meme=meme,
            )
        except Exception as e:
            failure = AssemblyFailure(details={"cause": type(e).__name__})
            logger.error(
                "Dashboard build failed for user %s: %s", user.id, truncate(e),
                extra={"user_id": user.id, "error_class": type(e).__name__},
            )
            return DashboardOutcome(
                ok=False,
                payload=build_fallback_payload(user),
                error=failure.message,
                details=failure.to_dict(),
            )

        logger.info(
            "Dashboard built: %d prices, %d news, insight from_model=%s",
            len(prices), len(news), insight.from_model,
            extra={"user_id": user.id, "elapsed_ms": int((time.monotonic() - t0) * 1000)},
        )
        return DashboardOutcome(ok=True, payload=payload)

from typing import Dict, Iterable, List, Sequence, Tuple

from advisor.schemas import NewsItem

NEWS_LIMIT = 5

# Keywords matched (case-insensitive substring) against headlines.
# Symbols outside this map never match.
ASSET_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "BTC": ("btc", "bitcoin"),
    "ETH": ("eth", "ethereum"),
    "SOL": ("sol", "solana"),
    "DOGE": ("doge", "dogecoin"),
}


def keywords_for(assets: Iterable[str]) -> List[str]:
    """Flatten the keywords of every known symbol in `assets`."""
    keywords = []
    for asset in assets:
        keywords.extend(ASSET_KEYWORDS.get(str(asset).strip().upper(), ()))
    return keywords


def is_relevant(item: NewsItem, assets: Sequence[str]) -> bool:
    """An empty asset list means "show all"."""
    if not assets:
        return True
    title = item.title.lower()
    return any(keyword in title for keyword in keywords_for(assets))


def select_relevant_news(
    batch: Sequence[NewsItem],
    assets: Sequence[str],
    limit: int = NEWS_LIMIT,
) -> List[NewsItem]:
    """
    Narrow a batch of headlines to the user's assets, preserving source order.
    Falls back to the head of the unfiltered batch when nothing matches, so a
    non-empty batch never yields an empty news section.
    """
    matching = [item for item in batch if is_relevant(item, assets)]
    if matching:
        return matching[:limit]
    return list(batch[:limit])

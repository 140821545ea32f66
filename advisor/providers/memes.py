"""Meme-of-the-day adapter (meme-api.com)."""
from advisor.core.error_codes import UpstreamUnavailable
from advisor.providers.base import UpstreamAdapter
from advisor.schemas import MemeItem

FALLBACK_MEME = {
    "title": "Fallback meme 😅",
    "url": "https://i.imgflip.com/30b1gx.jpg",
    "post_link": "https://imgflip.com/i/30b1gx",
    "subreddit": "memes",
}


class MemeProvider(UpstreamAdapter[MemeItem]):
    name = "meme"

    def __init__(self, url: str = "https://meme-api.com/gimme", **kwargs):
        super().__init__(**kwargs)
        self.url = url

    async def _fetch(self) -> MemeItem:
        data = await self.get_json(self.url)
        if not isinstance(data, dict):
            raise UpstreamUnavailable(self.name, "expected a JSON object")

        fields = {}
        for key, attr in (("title", "title"), ("url", "url"), ("postLink", "post_link"), ("subreddit", "subreddit")):
            value = data.get(key)
            if not isinstance(value, str) or not value:
                raise UpstreamUnavailable(self.name, f"missing field '{key}'")
            fields[attr] = value
        return MemeItem(**fields)

    def fallback(self) -> MemeItem:
        return MemeItem(**FALLBACK_MEME)

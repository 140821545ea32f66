"""Text-generation adapter producing the personalized daily insight.

Two request styles:
- "hf-inference": POST {url}/{model} with {"inputs": ...} (Hugging Face router)
- "openai": chat completions through AsyncOpenAI against any compatible base URL
"""
from typing import Any, Optional

from advisor.core.error_codes import UpstreamUnavailable
from advisor.core.logging import get_logger
from advisor.core.utils import truncate
from advisor.providers.base import UpstreamAdapter
from advisor.schemas import InsightResult, UserPreferences
from advisor.services.insight_prompt import (
    InsightPrompt,
    build_insight_prompt,
    parse_insight_payload,
)

logger = get_logger(__name__)

FALLBACK_INSIGHT_TEXT = (
    "Short-term momentum is cooling, but long-term accumulation remains healthy. "
    "Avoid emotional trades — stick to your plan."
)
FALLBACK_INSIGHT_SENTIMENT = "cautious-bullish"

MAX_NEW_TOKENS = 200


def build_insight_fallback() -> InsightResult:
    return InsightResult(
        text=FALLBACK_INSIGHT_TEXT,
        sentiment=FALLBACK_INSIGHT_SENTIMENT,
        from_model=False,
    )


class InsightProvider(UpstreamAdapter[InsightResult]):
    """
    Every failure (no key, non-2xx, unparseable or incomplete reply) returns
    the same static fallback; callers can only tell via `from_model`.
    """
    name = "insight"

    def __init__(
        self,
        url: str = "https://router.huggingface.co/hf-inference/models",
        model: str = "tiiuae/falcon-7b-instruct",
        api_key: Optional[str] = None,
        api_style: str = "hf-inference",
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.url = url.rstrip("/")
        self.model = model
        self.api_key = api_key
        self.api_style = api_style

    async def fetch_for(self, preferences: UserPreferences) -> InsightResult:
        if not self.api_key:
            logger.warning(
                "No insight API key configured, using fallback insight",
                extra={"upstream": self.name},
            )
            return self.fallback()
        return await self.fetch(preferences)

    async def _fetch(self, preferences: UserPreferences) -> InsightResult:
        prompt = build_insight_prompt(preferences)
        logger.info("Calling text-generation model %s (%s)", self.model, self.api_style,
                    extra={"upstream": self.name})

        if self.api_style == "openai":
            payload = await self._call_chat_completions(prompt)
        else:
            payload = await self._call_hf_inference(prompt)

        return parse_insight_payload(payload)

    async def _call_hf_inference(self, prompt: InsightPrompt) -> Any:
        return await self.post_json(
            f"{self.url}/{self.model}",
            headers={"Authorization": f"Bearer {self.api_key}"},
            json_body={
                "inputs": prompt.as_single_text(),
                # Without this the prompt (and its JSON template) is echoed back
                "parameters": {"return_full_text": False, "max_new_tokens": MAX_NEW_TOKENS},
            },
        )

    async def _call_chat_completions(self, prompt: InsightPrompt) -> Any:
        from openai import AsyncOpenAI, OpenAIError

        client = AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.url,
            timeout=self.timeout,
            max_retries=0,
        )
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": prompt.system},
                    {"role": "user", "content": prompt.user},
                ],
                temperature=0.3,
                max_tokens=MAX_NEW_TOKENS,
            )
        except OpenAIError as e:
            raise UpstreamUnavailable(self.name, f"chat completion failed: {truncate(e)}") from e
        finally:
            await client.close()
        return response.model_dump()

    def fallback(self) -> InsightResult:
        return build_insight_fallback()

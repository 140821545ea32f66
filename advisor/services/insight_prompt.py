"""Prompt construction and reply parsing for the daily AI insight.

The text-generation reply varies by provider (a list of objects, a single
object, a chat-completions body, or plain text). Extraction is an ordered
list of strategies; the first one that yields text wins, otherwise the whole
payload is stringified. The text is then stripped of code fences and the
outermost {...} block is parsed and validated.
"""
import json
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from advisor.core.error_codes import ModelOutputInvalid
from advisor.core.logging import get_logger
from advisor.core.utils import truncate
from advisor.schemas import InsightResult, UserPreferences

logger = get_logger(__name__)

UPSTREAM_NAME = "insight"

SYSTEM_INSTRUCTION = "You are a crypto investment assistant."
SENTIMENT_TAGS = ("bullish", "bearish", "neutral")
MAX_WORDS = 80

# Field names holding generated text, in priority order
TEXT_FIELDS = ("generated_text", "text")

_FENCE_OPEN = re.compile(r"^```[a-zA-Z0-9_-]*[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\n?[ \t]*```$")
# Greedy: first "{" to last "}"
_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")


@dataclass(frozen=True)
class InsightPrompt:
    system: str
    user: str

    def as_single_text(self) -> str:
        """For completion-style endpoints that take one input string."""
        return f"{self.system}\n\n{self.user}"


def build_insight_prompt(preferences: UserPreferences) -> InsightPrompt:
    assets = ", ".join(a.strip() for a in preferences.crypto_assets if a and a.strip())
    assets = assets or "crypto assets"
    risk_profile = preferences.investor_type.strip() or "general retail investor"
    tags = " / ".join(SENTIMENT_TAGS)

    user = (
        f"User is mainly interested in: {assets}.\n"
        f"User profile: {risk_profile}.\n"
        "\n"
        "Give one actionable crypto market insight for TODAY ONLY.\n"
        "Only discuss the assets listed above.\n"
        f"Keep it under {MAX_WORDS} words.\n"
        f"Then provide exactly one sentiment tag: {tags}.\n"
        "\n"
        "Return STRICT valid JSON only, with no prose before or after it and no code fences:\n"
        '{"text": "...", "sentiment": "..."}'
    )
    return InsightPrompt(system=SYSTEM_INSTRUCTION, user=user)


# === Extraction strategies ===

def _first_record(payload: Any) -> Optional[dict]:
    if isinstance(payload, list):
        return payload[0] if payload and isinstance(payload[0], dict) else None
    if isinstance(payload, dict):
        return payload
    return None


def _from_chat_choices(payload: Any) -> Optional[str]:
    """OpenAI-compatible chat completions: choices[0].message.content."""
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message")
    content = message.get("content") if isinstance(message, dict) else None
    return content if isinstance(content, str) and content else None


def _field_strategy(field: str) -> Callable[[Any], Optional[str]]:
    def extract(payload: Any) -> Optional[str]:
        record = _first_record(payload)
        value = record.get(field) if record is not None else None
        return value if isinstance(value, str) and value else None
    extract.__name__ = f"_from_{field}"
    return extract


def _from_plain_string(payload: Any) -> Optional[str]:
    return payload if isinstance(payload, str) and payload else None


EXTRACTION_STRATEGIES: List[Tuple[str, Callable[[Any], Optional[str]]]] = [
    ("chat_choices", _from_chat_choices),
    *[(field, _field_strategy(field)) for field in TEXT_FIELDS],
    ("plain_string", _from_plain_string),
]


def extract_generated_text(payload: Any) -> Tuple[str, str]:
    """Return (strategy_tag, raw_text) for a provider reply."""
    for tag, strategy in EXTRACTION_STRATEGIES:
        text = strategy(payload)
        if text is not None:
            return tag, text
    record = _first_record(payload)
    target = record if record is not None else payload
    try:
        return "stringified", json.dumps(target)
    except (TypeError, ValueError):
        return "stringified", str(target)


def strip_code_fences(text: str) -> str:
    """Drop a leading ```lang marker and a trailing ``` marker if present."""
    text = text.strip()
    text = _FENCE_OPEN.sub("", text, count=1)
    text = _FENCE_CLOSE.sub("", text, count=1)
    return text.strip()


def parse_insight_reply(raw_text: str) -> InsightResult:
    """Parse generated text into an InsightResult. Raises ModelOutputInvalid."""
    text = strip_code_fences(raw_text or "")
    match = _JSON_BLOCK.search(text)
    if not match:
        raise ModelOutputInvalid(
            UPSTREAM_NAME, "no JSON block found", details={"raw_start": text[:200]}
        )

    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ModelOutputInvalid(UPSTREAM_NAME, f"JSON parse error: {e.msg}") from e

    if not isinstance(parsed, dict):
        raise ModelOutputInvalid(UPSTREAM_NAME, "JSON block is not an object")

    insight_text = parsed.get("text")
    sentiment = parsed.get("sentiment")
    if not isinstance(insight_text, str) or not insight_text.strip():
        raise ModelOutputInvalid(UPSTREAM_NAME, "missing 'text' field")
    if not isinstance(sentiment, str) or not sentiment.strip():
        raise ModelOutputInvalid(UPSTREAM_NAME, "missing 'sentiment' field")

    return InsightResult(
        text=insight_text.strip(),
        sentiment=sentiment.strip().lower(),
        from_model=True,
    )


def parse_insight_payload(payload: Any) -> InsightResult:
    """Extract the generated text from a provider reply and parse it."""
    tag, raw_text = extract_generated_text(payload)
    logger.debug("Insight reply extracted via %s: %s", tag, truncate(raw_text, 500),
                 extra={"upstream": UPSTREAM_NAME})
    return parse_insight_reply(raw_text)

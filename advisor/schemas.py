"""Pydantic schemas for the dashboard data model.

Python attributes are snake_case; the wire format is camelCase
(cryptoAssets, fromModel, postLink, aiInsight, ...).
"""
from typing import List, Optional, Any
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        """Serialize with camelCase keys, as the frontend expects."""
        return self.model_dump(by_alias=True, mode="json")


class UserPreferences(CamelModel):
    crypto_assets: List[str] = Field(default_factory=list)
    investor_type: str = ""
    content_types: List[str] = Field(default_factory=list)


class PriceQuote(CamelModel):
    symbol: str
    usd: float


class NewsItem(CamelModel):
    title: str
    source: str
    url: str


class InsightResult(CamelModel):
    text: str
    sentiment: str
    from_model: bool


class MemeItem(CamelModel):
    title: str
    url: str
    post_link: str
    subreddit: str


class UserRecord(BaseModel):
    """A resolved user as handed to the dashboard (no credentials)."""
    id: str
    name: str
    email: str
    preferences: UserPreferences = Field(default_factory=UserPreferences)


class DashboardUser(CamelModel):
    id: str
    name: str
    email: str
    preferences: UserPreferences


class DashboardPayload(CamelModel):
    user: DashboardUser
    prices: List[PriceQuote]
    news: List[NewsItem]
    ai_insight: InsightResult
    meme: MemeItem


class DashboardOutcome(BaseModel):
    """Result of one dashboard build.

    ok=False means an adapter broke its contract; payload then holds the
    minimal fallback bundle so the caller still gets a complete shape.
    """
    ok: bool
    payload: DashboardPayload
    error: Optional[str] = None
    details: dict = Field(default_factory=dict)


class PublicUser(CamelModel):
    """User as returned by the auth/user/onboarding endpoints."""
    id: str = Field(serialization_alias="_id")
    name: str
    email: str
    preferences: UserPreferences
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "PublicUser":
        prefs: Any = row.get("preferences") or {}
        return cls(
            id=row["user_id"],
            name=row["name"],
            email=row["email"],
            preferences=UserPreferences.model_validate(prefs),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

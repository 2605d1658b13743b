"""Keyword research against the vidIQ hot-search API.

Turns a subject name into a main query plus up to five high-volume derived
queries. The provider is optional: any failure, including a missing token,
yields a deterministic fallback keyword set so the subject flow never stalls.
"""

import logging
import math
from typing import Optional

import httpx

from models.analysis import KeywordEntry, KeywordSet
from services.errors import KeywordResearchError

logger = logging.getLogger(__name__)

DEFAULT_VIDIQ_BASE_URL = "https://api.vidiq.com"
MAX_DERIVED_KEYWORDS = 5

# A derived keyword is kept only if it contains one of these
CHEAT_TERMS = (
    "cheat",
    "hack",
    "aimbot",
    "esp",
    "wallhack",
    "exploit",
    "mod",
    "trainer",
    "injector",
    "bypass",
    "undetected",
    "free",
    "download",
    "script",
    "macro",
    "bot",
    "auto",
)


def main_keyword_for(subject: str) -> str:
    return f"{subject} cheat"


def fallback_keywords(subject: str) -> KeywordSet:
    """Synthetic keyword set used when the provider is unavailable."""
    return KeywordSet(
        main_keyword=main_keyword_for(subject),
        top_keywords=[
            KeywordEntry(keyword=f"{subject} hack"),
            KeywordEntry(keyword=f"{subject} aimbot"),
            KeywordEntry(keyword=f"{subject} esp"),
            KeywordEntry(keyword=f"{subject} wallhack"),
            KeywordEntry(keyword=f"free {subject} cheat"),
        ],
    )


def _to_number(value) -> Optional[float]:
    """Finite float or None; NaN and Infinity count as missing."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def select_top_keywords(raw_keywords: list, limit: int = MAX_DERIVED_KEYWORDS) -> list[KeywordEntry]:
    """Keep cheat-related keywords with search volume, highest volume first."""
    entries = []
    for item in raw_keywords:
        if not isinstance(item, dict):
            continue
        keyword = str(item.get("keyword") or "").strip()
        if not keyword:
            continue
        lowered = keyword.lower()
        if not any(term in lowered for term in CHEAT_TERMS):
            continue
        volume = int(_to_number(item.get("estimated_monthly_search")) or 0)
        entries.append(
            KeywordEntry(
                keyword=keyword,
                monthly_searches=max(volume, 0),
                competition=_to_number(item.get("competition")),
                related_score=_to_number(item.get("related_score")),
            )
        )

    entries.sort(key=lambda entry: entry.monthly_searches, reverse=True)
    return [entry for entry in entries if entry.monthly_searches > 0][:limit]


class KeywordResearchService:
    """Client for the hot-search keyword provider."""

    def __init__(
        self,
        api_token: str = "",
        base_url: str = DEFAULT_VIDIQ_BASE_URL,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the keyword research client.

        Args:
            api_token: Bearer token for the provider (empty disables lookups)
            base_url: Provider API root
            timeout: Request timeout in seconds
            http_client: Shared AsyncClient (one is created lazily otherwise)
        """
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    def is_configured(self) -> bool:
        return bool(self.api_token)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _fetch_keywords(self, query: str) -> list:
        """Raw keyword list from the provider.

        Raises:
            KeywordResearchError: no token, transport failure or unexpected payload
        """
        if not self.is_configured():
            raise KeywordResearchError("VIDIQ_API_TOKEN is not set")

        try:
            response = await self._get_client().get(
                f"{self.base_url}/xwords/hottersearch",
                params={"q": query, "min_related_score": 0, "group": "v5"},
                headers={"Authorization": f"Bearer {self.api_token}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise KeywordResearchError(f"Keyword request failed: {e}") from e

        if not isinstance(data, dict):
            raise KeywordResearchError(f"Unexpected keyword payload: {type(data).__name__}")
        keywords = data.get("keywords") or []
        if not isinstance(keywords, list):
            raise KeywordResearchError("Keyword payload 'keywords' is not a list")
        return keywords

    async def get_keywords(self, subject: str) -> KeywordSet:
        """Main query and top derived queries for a subject. Never raises."""
        main_keyword = main_keyword_for(subject)
        logger.info(f"[KeywordResearch] Getting keywords for: '{main_keyword}'")

        try:
            raw_keywords = await self._fetch_keywords(main_keyword)
        except KeywordResearchError as e:
            logger.warning(f"[KeywordResearch] {e}, using fallback keywords")
            return fallback_keywords(subject)

        top_keywords = select_top_keywords(raw_keywords)
        logger.info(
            f"[KeywordResearch] Found {len(raw_keywords)} keywords, selected top {len(top_keywords)}"
        )
        return KeywordSet(main_keyword=main_keyword, top_keywords=top_keywords)

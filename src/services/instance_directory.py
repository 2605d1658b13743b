"""Directory of upstream proxy instances for the proxy-backed source.

The static list is always available. Dynamic discovery is opt-in: it reads the
public instance registry, health-checks every candidate in parallel and keeps
the live ones. The refreshed list replaces the previous snapshot whole.
"""

import asyncio
import logging
import re
import time
from typing import Callable, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_PIPED_INSTANCES = [
    # CDN-backed first
    "https://pipedapi.kavin.rocks",
    "https://pipedapi.tokhmi.xyz",
    "https://pipedapi.moomoo.me",
    "https://pipedapi.syncpundit.io",
    # Other stable instances
    "https://api-piped.mha.fi",
    "https://piped-api.garudalinux.org",
    "https://pipedapi.adminforge.de",
    "https://pipedapi.privacy.com.de",
    "https://pipedapi.qdi.fi",
    "https://pipedapi.rivo.lol",
    "https://piped-api.linwood.dev",
    "https://pipedapi.palveluntarjoaja.eu",
    "https://api.piped.yt",
]

INSTANCE_REGISTRY_URL = "https://piped-instances.kavin.rocks/"
MAX_DISCOVERED_INSTANCES = 8

_URL_RE = re.compile(r"https://[^\s\"'<>|,)]+")


class InstanceDirectory:
    """Maintains the candidate proxy endpoints, refreshed on a timer."""

    def __init__(
        self,
        static_instances: Optional[list[str]] = None,
        dynamic_discovery: bool = False,
        refresh_interval: float = 600.0,
        registry_url: str = INSTANCE_REGISTRY_URL,
        registry_timeout: float = 10.0,
        health_timeout: float = 5.0,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the instance directory.

        Args:
            static_instances: Hardcoded fallback list (defaults to the known proxy APIs)
            dynamic_discovery: Fetch and health-check the public registry when True
            refresh_interval: Seconds between dynamic refreshes (default: 10 minutes)
            registry_url: URL of the instance registry page
            registry_timeout: Timeout for the registry request
            health_timeout: Timeout for each health check
            http_client: Shared AsyncClient (one is created lazily otherwise)
            clock: Time source, injectable for tests
        """
        self.static_instances = list(static_instances or DEFAULT_PIPED_INSTANCES)
        self.dynamic_discovery = dynamic_discovery
        self.refresh_interval = refresh_interval
        self.registry_url = registry_url
        self.registry_timeout = registry_timeout
        self.health_timeout = health_timeout
        self._client = http_client
        self._owns_client = http_client is None
        self._clock = clock

        self._working_instances: list[str] = []
        self._last_refresh: Optional[float] = None
        self._preferred_instance: Optional[str] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(follow_redirects=True)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this directory created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _refresh_due(self) -> bool:
        if not self._working_instances or self._last_refresh is None:
            return True
        return self._clock() - self._last_refresh > self.refresh_interval

    async def get_instances(self) -> list[str]:
        """Return the current instance list (never empty).

        Uses the dynamically discovered list when discovery is enabled and it
        produced live instances, otherwise the static list.
        """
        if not self.dynamic_discovery:
            return list(self.static_instances)

        if self._refresh_due():
            logger.info("[InstanceDirectory] Refreshing proxy instance list...")
            try:
                self._working_instances = await self.discover_instances()
            except Exception as e:
                logger.warning(f"[InstanceDirectory] Dynamic instance fetch failed: {e}")
                self._working_instances = []
            self._last_refresh = self._clock()

        if self._working_instances:
            return list(self._working_instances)
        return list(self.static_instances)

    async def discover_instances(self) -> list[str]:
        """Fetch the registry and keep only instances passing a health check."""
        client = self._get_client()
        response = await client.get(self.registry_url, timeout=self.registry_timeout)
        response.raise_for_status()

        candidates = self.parse_registry(response.text)
        if not candidates:
            return []

        checks = await asyncio.gather(*(self.check_instance(url) for url in candidates))
        working = [url for url, ok in zip(candidates, checks) if ok]
        logger.info(
            f"[InstanceDirectory] {len(working)}/{len(candidates)} instances passed health check"
        )
        return working

    @staticmethod
    def parse_registry(text: str) -> list[str]:
        """Extract API instance URLs from the registry page text."""
        instances: list[str] = []
        for line in text.splitlines():
            if "https://" not in line or "api" not in line:
                continue
            for match in _URL_RE.findall(line):
                url = match.rstrip("/")
                if "api" in url and url not in instances:
                    instances.append(url)
        return instances[:MAX_DISCOVERED_INSTANCES]

    async def check_instance(self, url: str) -> bool:
        """Health check: True when the instance answers its health endpoint."""
        try:
            response = await self._get_client().get(
                f"{url}/healthcheck", timeout=self.health_timeout
            )
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.debug(f"[InstanceDirectory] Health check failed for {url}: {e}")
            return False

    def preferred_index(self, instances: list[str]) -> int:
        """Start position for a new request: the last instance that answered."""
        if self._preferred_instance in instances:
            return instances.index(self._preferred_instance)
        return 0

    def mark_success(self, url: str) -> None:
        """Remember the instance that answered so later requests start there."""
        self._preferred_instance = url

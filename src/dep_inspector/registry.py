"""crates.io REST client: latest published versions of registry packages."""

import asyncio
import logging
from typing import Optional

import httpx

from dep_inspector.analysis.graph import parse_version
from dep_inspector.config import Settings
from dep_inspector.models import VersionInfo

logger = logging.getLogger(__name__)


def is_stable(version: str) -> bool:
    """True for a parseable version without a pre-release part."""
    parsed = parse_version(version)
    return parsed is not None and parsed.prerelease is None


class CratesIoClient:
    """Looks up crate versions on the crates.io API, one request at a time."""

    def __init__(self, settings: Optional[Settings] = None, allow_prerelease: bool = False) -> None:
        self.settings = settings or Settings()
        self.base_url = self.settings.crates_io_api_url.rstrip("/")
        self.allow_prerelease = allow_prerelease
        self._client: Optional[httpx.AsyncClient] = None
        self._cache: dict[str, VersionInfo] = {}
        self._limiter = asyncio.Semaphore(1)

    # ── HTTP plumbing ─────────────────────────────────────────────────────

    async def _client_instance(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "Accept": "application/json",
                    "User-Agent": self.settings.user_agent,
                },
                timeout=self.settings.http_timeout,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # ── Queries ───────────────────────────────────────────────────────────

    async def fetch_version_info(self, name: str) -> VersionInfo:
        """Fetch the newest versions of one crate; unknown crates have none."""
        client = await self._client_instance()
        async with self._limiter:
            resp = await client.get(f"/api/v1/crates/{name}")
            await asyncio.sleep(self.settings.crates_io_request_interval)
        if resp.status_code == 404:
            logger.warning("crate %s not found on the registry", name)
            return VersionInfo(name=name)
        resp.raise_for_status()
        krate = resp.json().get("crate") or {}
        return self._select(name, krate.get("max_version"), krate.get("max_stable_version"))

    async def fetch_latest_versions(self, names: list[str]) -> dict[str, VersionInfo]:
        """Version info per name, served from the cache where possible."""
        results: dict[str, VersionInfo] = {}
        for name in names:
            if name not in self._cache:
                self._cache[name] = await self.fetch_version_info(name)
            results[name] = self._cache[name]
        return results

    # ── Parsing ───────────────────────────────────────────────────────────

    def _select(self, name: str, max_version: Optional[str], max_stable: Optional[str]) -> VersionInfo:
        if self.allow_prerelease:
            return VersionInfo(name=name, latest=max_version or max_stable, latest_stable=max_stable)

        if max_version is not None and not is_stable(max_version):
            max_version = None
        stable = max_stable or max_version
        return VersionInfo(name=name, latest=stable, latest_stable=stable)

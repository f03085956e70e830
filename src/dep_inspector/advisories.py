"""Vulnerability data: OSV.dev REST client and advisory files."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Coroutine, Optional, TypeVar, Union

import httpx
from pydantic import TypeAdapter, ValidationError

from dep_inspector.config import Settings
from dep_inspector.errors import MetadataError
from dep_inspector.models import Advisory, PackageKey

logger = logging.getLogger(__name__)

_ADVISORY_LIST = TypeAdapter(list[Advisory])

REGISTRY_PREFIX = "registry+"

T = TypeVar("T")


def load_advisories(path: Union[str, Path]) -> list[Advisory]:
    """Read a JSON list of advisory records."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return _ADVISORY_LIST.validate_python(data)
    except OSError as e:
        raise MetadataError(f"failed to read advisories from {path}") from e
    except (json.JSONDecodeError, ValidationError) as e:
        raise MetadataError(f"invalid advisories file {path}") from e


class OsvFetcher:
    """Queries the OSV vulnerability database for resolved packages."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()
        self.base_url = self.settings.osv_api_url.rstrip("/")
        self._client: Optional[httpx.AsyncClient] = None

    # ── HTTP plumbing ─────────────────────────────────────────────────────

    async def _client_instance(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Accept": "application/json"},
                timeout=self.settings.http_timeout,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # ── Queries ───────────────────────────────────────────────────────────

    async def query_package(self, key: PackageKey) -> list[Advisory]:
        """Fetch every vulnerability affecting one (name, version)."""
        client = await self._client_instance()
        body: dict = {
            "version": key.version,
            "package": {"name": key.name, "ecosystem": self.settings.osv_ecosystem},
        }
        vulns: list[dict] = []
        while True:
            resp = await client.post("/v1/query", json=body)
            resp.raise_for_status()
            data = resp.json()
            vulns.extend(data.get("vulns") or [])
            token = data.get("next_page_token")
            if not token:
                break
            body["page_token"] = token
        return [self._to_advisory(key, vuln) for vuln in vulns]

    async def fetch_advisories(self, packages: list[PackageKey]) -> list[Advisory]:
        """Query all registry packages with bounded concurrency."""
        targets = [
            key for key in packages
            if key.source and key.source.startswith(REGISTRY_PREFIX)
        ]
        semaphore = asyncio.Semaphore(self.settings.max_concurrent_requests)

        async def _one(key: PackageKey) -> list[Advisory]:
            async with semaphore:
                return await self.query_package(key)

        logger.info("querying OSV for %d registry packages", len(targets))
        results = await gather_or_cancel([_one(key) for key in targets])
        return [advisory for batch in results for advisory in batch]

    # ── Parsing ───────────────────────────────────────────────────────────

    @staticmethod
    def _to_advisory(key: PackageKey, vuln: dict) -> Advisory:
        severity = (vuln.get("database_specific") or {}).get("severity")
        fix_available = False
        for affected in vuln.get("affected") or []:
            if (affected.get("package") or {}).get("name", key.name) != key.name:
                continue
            for rng in affected.get("ranges") or []:
                if any("fixed" in event for event in rng.get("events") or []):
                    fix_available = True
        return Advisory(
            package=key.name,
            version=key.version,
            advisory_id=vuln.get("id", ""),
            severity=severity,
            title=vuln.get("summary") or (vuln.get("details") or "")[:120],
            source=key.source,
            fix_available=fix_available,
        )


async def gather_or_cancel(coros: list[Coroutine[Any, Any, T]]) -> list[T]:
    """Run ``coros`` concurrently; on the first failure cancel the rest."""
    tasks = [asyncio.ensure_future(coro) for coro in coros]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

"""Tests for the OSV client and advisory files."""

import asyncio
import json

import httpx
import pytest
import respx

from dep_inspector.advisories import OsvFetcher, gather_or_cancel, load_advisories
from dep_inspector.config import Settings
from dep_inspector.errors import MetadataError
from dep_inspector.models import PackageKey

from conftest import REGISTRY

OSV_QUERY = "https://api.osv.dev/v1/query"

SAMPLE_VULN = {
    "id": "RUSTSEC-2024-0001",
    "summary": "Use after free in parser",
    "database_specific": {"severity": "medium"},
    "affected": [
        {
            "package": {"name": "leaf", "ecosystem": "crates.io"},
            "ranges": [{"type": "SEMVER", "events": [{"introduced": "0"}, {"fixed": "0.2.0"}]}],
        }
    ],
}


@pytest.fixture
def fetcher():
    return OsvFetcher(Settings(osv_api_url="https://api.osv.dev"))


@pytest.fixture
def leaf_key():
    return PackageKey(name="leaf", version="0.1.0", source=REGISTRY)


class TestOsvFetcher:
    def test_base_url_trailing_slash(self):
        assert OsvFetcher(Settings(osv_api_url="https://osv.test/")).base_url == "https://osv.test"

    @pytest.mark.asyncio
    @respx.mock
    async def test_query_package(self, fetcher, leaf_key):
        route = respx.post(OSV_QUERY).mock(return_value=httpx.Response(200, json={"vulns": [SAMPLE_VULN]}))
        advisories = await fetcher.query_package(leaf_key)
        await fetcher.close()

        body = json.loads(route.calls[0].request.content)
        assert body == {"version": "0.1.0", "package": {"name": "leaf", "ecosystem": "crates.io"}}
        [advisory] = advisories
        assert advisory.advisory_id == "RUSTSEC-2024-0001"
        assert advisory.severity == "medium"
        assert advisory.title == "Use after free in parser"
        assert advisory.source == REGISTRY
        assert advisory.fix_available

    @pytest.mark.asyncio
    @respx.mock
    async def test_query_follows_page_token(self, fetcher, leaf_key):
        route = respx.post(OSV_QUERY).mock(
            side_effect=[
                httpx.Response(200, json={"vulns": [SAMPLE_VULN], "next_page_token": "t1"}),
                httpx.Response(200, json={"vulns": [dict(SAMPLE_VULN, id="GHSA-2")]}),
            ]
        )
        advisories = await fetcher.query_package(leaf_key)
        await fetcher.close()

        assert [a.advisory_id for a in advisories] == ["RUSTSEC-2024-0001", "GHSA-2"]
        assert json.loads(route.calls[1].request.content)["page_token"] == "t1"

    @pytest.mark.asyncio
    @respx.mock
    async def test_no_vulns(self, fetcher, leaf_key):
        respx.post(OSV_QUERY).mock(return_value=httpx.Response(200, json={}))
        assert await fetcher.query_package(leaf_key) == []
        await fetcher.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_http_error_propagates(self, fetcher, leaf_key):
        respx.post(OSV_QUERY).mock(return_value=httpx.Response(503))
        with pytest.raises(httpx.HTTPStatusError):
            await fetcher.query_package(leaf_key)
        await fetcher.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_skips_non_registry_packages(self, fetcher, leaf_key):
        route = respx.post(OSV_QUERY).mock(return_value=httpx.Response(200, json={"vulns": []}))
        packages = [
            PackageKey(name="app", version="0.1.0"),
            PackageKey(name="vendored", version="1.0.0", source="git+https://example.com/x"),
            leaf_key,
        ]
        await fetcher.fetch_advisories(packages)
        await fetcher.close()

        assert route.call_count == 1
        assert json.loads(route.calls[0].request.content)["package"]["name"] == "leaf"


class TestToAdvisory:
    def test_without_fix(self, leaf_key):
        vuln = {
            "id": "X-1",
            "details": "d" * 200,
            "affected": [{"package": {"name": "leaf"}, "ranges": [{"events": [{"introduced": "0"}]}]}],
        }
        advisory = OsvFetcher._to_advisory(leaf_key, vuln)
        assert not advisory.fix_available
        assert advisory.severity is None
        assert len(advisory.title) == 120

    def test_fix_for_other_package_ignored(self, leaf_key):
        vuln = {
            "id": "X-2",
            "affected": [{"package": {"name": "other"}, "ranges": [{"events": [{"fixed": "1.0.0"}]}]}],
        }
        assert not OsvFetcher._to_advisory(leaf_key, vuln).fix_available


class TestLoadAdvisories:
    def test_valid_file(self, tmp_path):
        path = tmp_path / "advisories.json"
        path.write_text(json.dumps([
            {"package": "leaf", "version": "0.1.0", "advisory_id": "A-1", "severity": "low"},
        ]))
        [advisory] = load_advisories(path)
        assert advisory.package == "leaf"
        assert advisory.severity == "low"
        assert not advisory.fix_available

    def test_missing_file(self, tmp_path):
        with pytest.raises(MetadataError, match="failed to read"):
            load_advisories(tmp_path / "missing.json")

    def test_invalid_records(self, tmp_path):
        path = tmp_path / "advisories.json"
        path.write_text(json.dumps([{"package": "leaf"}]))
        with pytest.raises(MetadataError, match="invalid advisories"):
            load_advisories(path)


class TestGatherOrCancel:
    @pytest.mark.asyncio
    async def test_results_in_order(self):
        async def value(n):
            await asyncio.sleep(0)
            return n

        assert await gather_or_cancel([value(1), value(2), value(3)]) == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_failure_cancels_siblings(self):
        cancelled: list[str] = []

        async def fails():
            await asyncio.sleep(0)
            raise RuntimeError("boom")

        async def slow(name):
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append(name)
                raise

        with pytest.raises(RuntimeError, match="boom"):
            await gather_or_cancel([slow("a"), fails(), slow("b")])
        assert sorted(cancelled) == ["a", "b"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_propagates_first_http_error(self, fetcher):
        respx.post(OSV_QUERY).mock(return_value=httpx.Response(500))
        packages = [PackageKey(name=f"p{i}", version="1.0.0", source=REGISTRY) for i in range(4)]
        with pytest.raises(httpx.HTTPStatusError):
            await fetcher.fetch_advisories(packages)
        await fetcher.close()

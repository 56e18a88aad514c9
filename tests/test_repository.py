"""Tests for CatalogRepository: read-through paging and two-tier search."""

from __future__ import annotations

from pathlib import Path

import pytest

from pokecatalog.cache import PageStore
from pokecatalog.client import Transport
from pokecatalog.exceptions import DecodingError, NetworkError, ServerError
from pokecatalog.models import Pokemon
from pokecatalog.repository import CatalogRepository

from conftest import BASE_URL, NAMES, FakeCatalogAPI

LIST_PATH = "/api/v2/pokemon"


@pytest.fixture(autouse=True)
def _quiet(quiet_output) -> None:
    """Keep debug lines out of captured output."""


@pytest.fixture
def store(tmp_path: Path) -> PageStore:
    return PageStore(tmp_path / "pokecache.json", persist=False)


@pytest.fixture
def make_repo(store: PageStore):
    """Factory wiring a repository onto a :class:`FakeCatalogAPI`."""

    def _make(api: FakeCatalogAPI, seed_page_size: int = 100) -> CatalogRepository:
        transport = Transport(BASE_URL, client=api.client())
        return CatalogRepository(transport, store, seed_page_size=seed_page_size)

    return _make


def _record(name: str, number: int) -> Pokemon:
    return Pokemon(id=name, display_name=name.capitalize(), number=number)


def _large_catalog() -> FakeCatalogAPI:
    names = [f"mon{i}" for i in range(1, 31)]
    names[24] = "pikachu"
    return FakeCatalogAPI(names)


# ---------------------------------------------------------------------------
# fetch_page
# ---------------------------------------------------------------------------


class TestFetchPage:
    async def test_miss_fetches_maps_and_stores(self, make_repo, store, fake_api) -> None:
        repo = make_repo(fake_api)

        records = await repo.fetch_page(3, 0)

        assert [r.id for r in records] == NAMES[:3]
        assert [r.display_name for r in records] == ["Bulbasaur", "Ivysaur", "Venusaur"]
        assert [r.number for r in records] == [1, 2, 3]
        assert await store.get_page(0) == records
        assert await store.total_count() == len(NAMES)

        request = fake_api.list_requests[0]
        assert request.url.params["limit"] == "3"
        assert request.url.params["offset"] == "0"

    async def test_hit_makes_no_request_whatever_the_limit(
        self, make_repo, store, fake_api
    ) -> None:
        cached = [_record("bulbasaur", 1), _record("ivysaur", 2)]
        await store.put_page(0, cached, total_count=1302)
        repo = make_repo(fake_api)

        assert await repo.fetch_page(50, 0) == cached
        assert await repo.fetch_page(1, 0) == cached
        assert fake_api.requests == []

    async def test_second_call_served_from_store(self, make_repo, fake_api) -> None:
        repo = make_repo(fake_api)
        first = await repo.fetch_page(5, 5)
        second = await repo.fetch_page(5, 5)
        assert first == second
        assert len(fake_api.requests) == 1

    @pytest.mark.parametrize("status", [404, 500])
    async def test_server_error_propagates_and_stores_nothing(
        self, make_repo, store, fake_api, status: int
    ) -> None:
        fake_api.status_overrides[LIST_PATH] = status
        repo = make_repo(fake_api)

        with pytest.raises(ServerError) as exc_info:
            await repo.fetch_page(20, 0)

        assert exc_info.value.status_code == status
        assert await store.get_page(0) is None
        assert await store.total_count() is None

    async def test_network_error_propagates(self, store) -> None:
        import httpx

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("offline", request=request)

        transport = Transport(
            BASE_URL, client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
        )
        repo = CatalogRepository(transport, store)
        with pytest.raises(NetworkError):
            await repo.fetch_page(20, 0)
        assert await store.all_items() == []

    async def test_body_without_results_stores_nothing(self, store) -> None:
        import httpx

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"count": 1302})

        transport = Transport(
            BASE_URL, client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
        )
        repo = CatalogRepository(transport, store)
        with pytest.raises(DecodingError):
            await repo.fetch_page(20, 0)
        assert await store.get_page(0) is None
        assert await store.total_count() is None


# ---------------------------------------------------------------------------
# Exact lookup
# ---------------------------------------------------------------------------


class TestSearchServer:
    async def test_blank_query_makes_no_request(self, make_repo, fake_api) -> None:
        repo = make_repo(fake_api)
        assert await repo.search_server("   ") == []
        assert fake_api.requests == []

    async def test_name_is_lowercased(self, make_repo, fake_api) -> None:
        fake_api.types["charizard"] = ["fire", "flying"]
        repo = make_repo(fake_api)

        results = await repo.search_server("  Charizard ")

        assert fake_api.detail_requests[0].url.path == f"{LIST_PATH}/charizard"
        assert len(results) == 1
        assert results[0].id == "charizard"
        assert results[0].categories == ("fire", "flying")

    async def test_integer_query_is_normalized(self, make_repo, fake_api) -> None:
        repo = make_repo(fake_api)
        results = await repo.search_server("007")
        assert fake_api.detail_requests[0].url.path == f"{LIST_PATH}/7"
        assert results[0].id == "squirtle"
        assert results[0].number == 7

    @pytest.mark.parametrize("query", ["1_0", "١٢"])
    async def test_only_plain_digits_are_numbers(
        self, make_repo, fake_api, query: str
    ) -> None:
        repo = make_repo(fake_api)
        await repo.search_server(query)
        assert fake_api.detail_requests[0].url.path == f"{LIST_PATH}/{query}"

    async def test_404_is_empty(self, make_repo, fake_api) -> None:
        repo = make_repo(fake_api)
        assert await repo.search_server("missingno") == []


# ---------------------------------------------------------------------------
# Two-tier search
# ---------------------------------------------------------------------------


class TestSearch:
    async def test_exact_hit_skips_local_scan(self, make_repo, store) -> None:
        api = _large_catalog()
        await store.put_page(100, [_record("mon125", 125)])
        repo = make_repo(api)

        results = await repo.search("25")

        assert [r.id for r in results] == ["pikachu"]
        assert results[0].number == 25
        assert api.list_requests == []

    async def test_fallback_seeds_empty_store(self, make_repo, store, fake_api) -> None:
        repo = make_repo(fake_api)

        results = await repo.search("char")

        assert [r.id for r in results] == ["charmander", "charmeleon", "charizard"]
        offsets = [r.url.params["offset"] for r in fake_api.list_requests]
        assert offsets == ["0", "100"]
        assert all(r.url.params["limit"] == "100" for r in fake_api.list_requests)
        assert (await store.stats())["offsets"] == [0, 100]

    async def test_seed_size_is_configurable(self, make_repo, fake_api) -> None:
        repo = make_repo(fake_api, seed_page_size=4)
        await repo.search("saur")
        offsets = [r.url.params["offset"] for r in fake_api.list_requests]
        assert offsets == ["0", "4"]

    async def test_fallback_scans_cached_pages_without_fetching(
        self, make_repo, store, fake_api
    ) -> None:
        await store.put_page(0, [_record("charmander", 4), _record("squirtle", 7)])
        await store.put_page(40, [_record("charmeleon", 5)])
        repo = make_repo(fake_api)

        results = await repo.search("CHAR")

        assert [r.id for r in results] == ["charmander", "charmeleon"]
        assert fake_api.list_requests == []

    async def test_number_matches_as_substring(self, make_repo, store, fake_api) -> None:
        await store.put_page(
            0, [_record("alpha", 5), _record("beta", 112), _record("gamma", 212)]
        )
        repo = make_repo(fake_api)

        results = await repo.search("12")

        assert [r.id for r in results] == ["beta", "gamma"]

    async def test_record_without_number_matches_by_name_only(
        self, make_repo, store, fake_api
    ) -> None:
        await store.put_page(0, [Pokemon(id="x12", display_name="Unknown")])
        repo = make_repo(fake_api)
        assert await repo.search("12") == []

    async def test_no_match_anywhere(self, make_repo, fake_api) -> None:
        repo = make_repo(fake_api)
        assert await repo.search("zzz") == []

    async def test_blank_query(self, make_repo, fake_api) -> None:
        repo = make_repo(fake_api)
        assert await repo.search("") == []
        assert fake_api.requests == []

    async def test_non_404_error_propagates(self, make_repo, fake_api) -> None:
        fake_api.status_overrides[f"{LIST_PATH}/pikachu"] = 500
        repo = make_repo(fake_api)

        with pytest.raises(ServerError) as exc_info:
            await repo.search("pikachu")

        assert exc_info.value.status_code == 500
        assert fake_api.list_requests == []

    async def test_seed_failure_propagates(self, make_repo, fake_api) -> None:
        fake_api.status_overrides[LIST_PATH] = 503
        repo = make_repo(fake_api)
        with pytest.raises(ServerError):
            await repo.search("char")


# ---------------------------------------------------------------------------
# fetch_detail
# ---------------------------------------------------------------------------


class TestFetchDetail:
    async def test_never_cached(self, make_repo, store, fake_api) -> None:
        repo = make_repo(fake_api)

        first = await repo.fetch_detail("charmander")
        second = await repo.fetch_detail(" 4 ")

        assert first.name == second.name == "charmander"
        assert len(fake_api.detail_requests) == 2
        assert await store.all_items() == []

    async def test_404_propagates(self, make_repo, fake_api) -> None:
        repo = make_repo(fake_api)
        with pytest.raises(ServerError) as exc_info:
            await repo.fetch_detail("missingno")
        assert exc_info.value.is_not_found

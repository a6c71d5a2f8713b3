"""Tests for the query cache and the admin session."""

import httpx

from salesdesk.client.cache import QueryCache
from salesdesk.client.session import FileTokenStore, MemoryTokenStore, Session


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class TestQueryCache:
    async def test_fresh_value_is_reused(self):
        clock = FakeClock()
        cache = QueryCache(clock=clock)
        calls = []

        async def fetch():
            calls.append(1)
            return len(calls)

        assert await cache.get_or_fetch("products", fetch, 10.0) == 1
        clock.now += 9.9
        assert await cache.get_or_fetch("products", fetch, 10.0) == 1
        assert len(calls) == 1

    async def test_stale_value_is_refetched(self):
        clock = FakeClock()
        cache = QueryCache(clock=clock)
        values = iter(["old", "new"])

        async def fetch():
            return next(values)

        await cache.get_or_fetch("chats", fetch, 5.0)
        clock.now += 5.0
        assert await cache.get_or_fetch("chats", fetch, 5.0) == "new"

    async def test_invalidate_forces_fetch(self):
        cache = QueryCache(clock=FakeClock())

        async def fetch():
            return "value"

        await cache.get_or_fetch("k", fetch, 30.0)
        assert cache.peek("k") == "value"
        cache.invalidate("k")
        assert cache.peek("k") is None
        assert not cache.is_fresh("k", 30.0)
        cache.invalidate("missing")

    async def test_failed_fetch_is_not_cached(self):
        cache = QueryCache(clock=FakeClock())

        async def fetch():
            raise RuntimeError("boom")

        try:
            await cache.get_or_fetch("k", fetch, 10.0)
        except RuntimeError:
            pass
        assert cache.peek("k") is None


class TestTokenStores:
    def test_file_store_round_trip(self, tmp_path):
        store = FileTokenStore(tmp_path / "nested" / "session")
        assert store.load() is None
        store.save("abc")
        assert store.load() == "abc"
        store.clear()
        assert store.load() is None
        store.clear()

    def test_session_restores_token(self):
        session = Session(MemoryTokenStore("saved"))
        assert session.is_authenticated
        assert session.auth_headers() == {"Authorization": "Bearer saved"}


class TestSession:
    def _client(self, handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url="http://app.test", transport=httpx.MockTransport(handler))

    async def test_login_success_saves_token(self):
        store = MemoryTokenStore()

        def handler(request):
            return httpx.Response(200, json={"token": "t1", "username": "admin"})

        session = Session(store)
        async with self._client(handler) as http:
            assert await session.login(http, "admin", "pw")
        assert store.load() == "t1"
        assert session.is_authenticated

    async def test_login_rejected(self):
        session = Session(MemoryTokenStore())
        async with self._client(lambda r: httpx.Response(401, json={"error": "no"})) as http:
            assert not await session.login(http, "admin", "bad")
        assert not session.is_authenticated

    async def test_validate_drops_rejected_token(self):
        store = MemoryTokenStore("expired")
        session = Session(store)
        async with self._client(lambda r: httpx.Response(401)) as http:
            assert not await session.validate(http)
        assert store.load() is None
        assert session.auth_headers() == {}

    async def test_validate_without_token_makes_no_request(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200)

        async with self._client(handler) as http:
            assert not await Session(MemoryTokenStore()).validate(http)
        assert seen == []

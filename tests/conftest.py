import asyncio
from datetime import UTC, datetime, timedelta

import jwt
import pytest

from creator_hub.auth.session import StaticSessionProvider
from creator_hub.errors import CreatorHubError, StoreError
from creator_hub.models.domain.flyer_domain import FlyerImage, FlyerRequest, FlyerResult


def make_access_token(sub: str = "user-123", expires_in: int = 3600) -> str:
    exp = datetime.now(UTC) + timedelta(seconds=expires_in)
    return jwt.encode(
        {"sub": sub, "exp": int(exp.timestamp()), "aud": "authenticated"},
        "test-secret",
        algorithm="HS256",
    )


@pytest.fixture
def make_token():
    return make_access_token


@pytest.fixture
def access_token():
    return make_access_token()


@pytest.fixture
def session(access_token):
    return StaticSessionProvider(access_token)


@pytest.fixture
def signed_out_session():
    return StaticSessionProvider(None)


@pytest.fixture
def flyer_request():
    return FlyerRequest(
        title="Friday Night Battle",
        creator_name="avelezsanti",
        opponent_name="rival",
        battle_date="2025-01-31",
        image=FlyerImage(uri="file:///tmp/face.jpg", content=b"\xff\xd8fake-jpeg"),
    )


@pytest.fixture
def flyer_result():
    return FlyerResult.model_validate(
        {
            "url": "https://cdn.example.com/flyers/abc.png",
            "path": "flyers/abc.png",
            "width": 1080,
            "height": 1350,
            "duration_ms": 4200,
        }
    )


class FakeFlyerClient:
    """Records generate calls; optionally blocks until ``release`` is set."""

    def __init__(self, result: FlyerResult | None = None, error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls = []
        self.release = asyncio.Event()
        self.release.set()

    def hold(self):
        self.release.clear()

    async def generate(self, request):
        self.calls.append(request)
        await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def make_flyer_client():
    return FakeFlyerClient


@pytest.fixture
def fake_flyer_client(flyer_result):
    return FakeFlyerClient(result=flyer_result)


class FakeStore:
    """In-memory stand-in for SupabaseRestClient with eq.* filters."""

    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self.upserts: list[tuple[str, dict, str]] = []
        self.selects: list[tuple[str, dict]] = []
        self.fail_selects: CreatorHubError | None = None
        self.fail_upserts: CreatorHubError | None = None

    @staticmethod
    def _matches(row: dict, filters: dict) -> bool:
        for column, expression in filters.items():
            expected = expression.removeprefix("eq.")
            value = row.get(column)
            if isinstance(value, bool):
                value = "true" if value else "false"
            if str(value) != expected:
                return False
        return True

    async def select(self, table, filters=None, columns="*"):
        self.selects.append((table, filters or {}))
        if self.fail_selects is not None:
            raise self.fail_selects
        return [dict(r) for r in self.tables.get(table, []) if self._matches(r, filters or {})]

    async def select_one(self, table, filters=None, columns="*"):
        rows = await self.select(table, filters, columns)
        return rows[0] if rows else None

    async def upsert(self, table, row, on_conflict):
        self.upserts.append((table, row, on_conflict))
        if self.fail_upserts is not None:
            raise self.fail_upserts
        keys = on_conflict.split(",")
        rows = self.tables.setdefault(table, [])
        for existing in rows:
            if all(existing.get(k) == row.get(k) for k in keys):
                existing.update(row)
                return
        rows.append(dict(row))


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def store_error():
    return StoreError("connection reset", operation="select")

import re

import httpx
import pytest

from creator_hub.config import settings
from creator_hub.db.rest import SupabaseRestClient, eq
from creator_hub.errors import AuthError, StoreError
from creator_hub.services.video_progress_service import VideoProgressTracker

PROGRESS_URL = re.compile(re.escape(f"{settings.rest_url()}/user_video_progress") + r"(\?.*)?$")


def test_eq_filter_values():
    assert eq("avelezsanti") == "eq.avelezsanti"
    assert eq(True) == "eq.true"
    assert eq(False) == "eq.false"


@pytest.mark.asyncio
async def test_select_sends_filters_and_token(httpx_mock, session, access_token):
    client = SupabaseRestClient(session)
    httpx_mock.add_response(
        method="GET",
        url=PROGRESS_URL,
        json=[{"video_id": "v1", "completed": True, "watched_seconds": 12}],
    )

    rows = await client.select("user_video_progress", {"creator_handle": eq("avelezsanti")})
    await client.close()

    assert rows == [{"video_id": "v1", "completed": True, "watched_seconds": 12}]
    request = httpx_mock.get_request()
    assert request.url.params["creator_handle"] == "eq.avelezsanti"
    assert request.url.params["select"] == "*"
    assert request.headers["Authorization"] == f"Bearer {access_token}"


@pytest.mark.asyncio
async def test_upsert_uses_merge_duplicates(httpx_mock, session):
    client = SupabaseRestClient(session)
    httpx_mock.add_response(method="POST", url=PROGRESS_URL, status_code=201)

    await client.upsert(
        "user_video_progress",
        {"creator_handle": "avelezsanti", "video_id": "v1", "completed": True},
        on_conflict="creator_handle,video_id",
    )
    await client.close()

    request = httpx_mock.get_request()
    assert request.url.params["on_conflict"] == "creator_handle,video_id"
    assert "resolution=merge-duplicates" in request.headers["Prefer"]


@pytest.mark.asyncio
async def test_http_error_becomes_store_error(httpx_mock, session):
    client = SupabaseRestClient(session)
    httpx_mock.add_response(
        method="GET",
        url=PROGRESS_URL,
        status_code=400,
        json={"code": "42703", "message": "column does not exist"},
    )

    with pytest.raises(StoreError) as exc:
        await client.select("user_video_progress")
    await client.close()

    assert exc.value.message == "column does not exist"
    assert exc.value.operation == "select"
    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_transport_error_becomes_store_error(httpx_mock, session):
    client = SupabaseRestClient(session)
    httpx_mock.add_exception(httpx.ConnectError("refused"), url=PROGRESS_URL)

    with pytest.raises(StoreError):
        await client.select("user_video_progress")
    await client.close()


@pytest.mark.asyncio
async def test_missing_session_is_auth_error(signed_out_session):
    client = SupabaseRestClient(signed_out_session)

    with pytest.raises(AuthError):
        await client.select("user_video_progress")
    await client.close()


@pytest.mark.asyncio
async def test_tracker_over_http_records_store_error(httpx_mock, session):
    client = SupabaseRestClient(session)
    tracker = VideoProgressTracker(client)
    httpx_mock.add_response(method="GET", url=PROGRESS_URL, status_code=503, text="unavailable")

    progress = await tracker.load("avelezsanti")
    await client.close()

    assert progress == []
    assert tracker.error == "Store error (HTTP 503)"


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [["bad gateway"], "bad gateway", 502])
async def test_non_object_error_body_becomes_store_error(httpx_mock, session, body):
    client = SupabaseRestClient(session)
    httpx_mock.add_response(method="GET", url=PROGRESS_URL, status_code=502, json=body)

    with pytest.raises(StoreError) as exc:
        await client.select("user_video_progress")
    await client.close()

    assert exc.value.message == "Store error (HTTP 502)"
    assert exc.value.response_data == {}


@pytest.mark.asyncio
async def test_non_list_select_payload_becomes_store_error(httpx_mock, session):
    client = SupabaseRestClient(session)
    httpx_mock.add_response(method="GET", url=PROGRESS_URL, json={"video_id": "v1"})

    with pytest.raises(StoreError) as exc:
        await client.select("user_video_progress")
    await client.close()

    assert "expected a list of rows" in exc.value.message


@pytest.mark.asyncio
async def test_tracker_over_http_records_malformed_row(httpx_mock, session):
    client = SupabaseRestClient(session)
    tracker = VideoProgressTracker(client)
    httpx_mock.add_response(
        method="GET",
        url=PROGRESS_URL,
        json=[{"creator_handle": "avelezsanti", "video_id": "v1", "watched_seconds": "12.5"}],
    )

    progress = await tracker.load("avelezsanti")
    await client.close()

    assert progress == []
    assert tracker.error.startswith("Invalid user_video_progress row")

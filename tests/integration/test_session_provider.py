from datetime import UTC, datetime, timedelta

import pytest

from creator_hub.auth.session import SupabaseSessionProvider
from creator_hub.config import settings
from creator_hub.errors import AuthError
from creator_hub.models.domain.session_domain import Session

PASSWORD_URL = f"{settings.auth_url()}/token?grant_type=password"
REFRESH_URL = f"{settings.auth_url()}/token?grant_type=refresh_token"


def _token_body(access_token: str, refresh_token: str = "refresh-1") -> dict:
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
        "expires_in": 3600,
        "user": {"id": "user-123", "email": "creator@example.com"},
    }


@pytest.mark.asyncio
async def test_sign_in_stores_session_and_notifies(httpx_mock, access_token):
    provider = SupabaseSessionProvider()
    events = []
    provider.subscribe(lambda event, session: events.append(event))
    httpx_mock.add_response(method="POST", url=PASSWORD_URL, json=_token_body(access_token))

    session = await provider.sign_in("creator@example.com", "secret")
    token = await provider.get_token()
    await provider.close()

    assert session.user_id == "user-123"
    assert token == access_token
    assert events == ["SIGNED_IN"]
    assert httpx_mock.get_request().headers["apikey"] == settings.SUPABASE_ANON_KEY


@pytest.mark.asyncio
async def test_sign_in_rejected(httpx_mock):
    provider = SupabaseSessionProvider()
    httpx_mock.add_response(
        method="POST",
        url=PASSWORD_URL,
        status_code=400,
        json={"error": "invalid_grant", "error_description": "Invalid login credentials"},
    )

    with pytest.raises(AuthError) as exc:
        await provider.sign_in("creator@example.com", "wrong")
    await provider.close()

    assert exc.value.message == "Invalid login credentials"
    assert await provider.get_token() is None


@pytest.mark.asyncio
async def test_token_near_expiry_is_refreshed(httpx_mock, make_token):
    provider = SupabaseSessionProvider()
    events = []
    provider.subscribe(lambda event, session: events.append(event))
    provider.restore(
        Session(
            access_token="old-token",
            refresh_token="refresh-1",
            expires_at=datetime.now(UTC) + timedelta(seconds=60),
        )
    )
    fresh = make_token()
    httpx_mock.add_response(method="POST", url=REFRESH_URL, json=_token_body(fresh, "refresh-2"))

    token = await provider.get_token()
    await provider.close()

    assert token == fresh
    assert events == ["SIGNED_IN", "TOKEN_REFRESHED"]


@pytest.mark.asyncio
async def test_valid_token_is_not_refreshed(access_token):
    provider = SupabaseSessionProvider()
    provider.restore(
        Session(access_token=access_token, expires_at=datetime.now(UTC) + timedelta(hours=1))
    )

    assert await provider.get_token() == access_token
    await provider.close()


@pytest.mark.asyncio
async def test_failed_refresh_signs_out(httpx_mock):
    provider = SupabaseSessionProvider()
    events = []
    provider.restore(
        Session(
            access_token="old-token",
            refresh_token="refresh-1",
            expires_at=datetime.now(UTC) - timedelta(seconds=5),
        )
    )
    provider.subscribe(lambda event, session: events.append(event))
    httpx_mock.add_response(
        method="POST",
        url=REFRESH_URL,
        status_code=400,
        json={"error_description": "Invalid Refresh Token"},
    )

    token = await provider.get_token()
    await provider.close()

    assert token is None
    assert events == ["SIGNED_OUT"]


@pytest.mark.asyncio
async def test_sign_out_clears_session_even_when_remote_fails(httpx_mock, access_token):
    provider = SupabaseSessionProvider()
    provider.restore(Session(access_token=access_token))
    httpx_mock.add_response(method="POST", url=f"{settings.auth_url()}/logout", status_code=500)

    await provider.sign_out()
    await provider.close()

    assert await provider.get_token() is None


@pytest.mark.asyncio
async def test_get_user(httpx_mock, access_token):
    provider = SupabaseSessionProvider()
    provider.restore(Session(access_token=access_token))
    httpx_mock.add_response(
        method="GET", url=f"{settings.auth_url()}/user", json={"id": "user-123"}
    )

    user = await provider.get_user()
    await provider.close()

    assert user == {"id": "user-123"}
    assert httpx_mock.get_request().headers["Authorization"] == f"Bearer {access_token}"


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [["rate limited"], "rate limited", {"msg": {"code": 429}}])
async def test_sign_in_with_unstructured_error_body(httpx_mock, body):
    provider = SupabaseSessionProvider()
    httpx_mock.add_response(method="POST", url=PASSWORD_URL, status_code=429, json=body)

    with pytest.raises(AuthError) as exc:
        await provider.sign_in("creator@example.com", "secret")
    await provider.close()

    assert exc.value.message == "Authentication failed"
    assert exc.value.status_code == 429


@pytest.mark.asyncio
async def test_malformed_refresh_response_signs_out(httpx_mock):
    provider = SupabaseSessionProvider()
    provider.restore(
        Session(
            access_token="old-token",
            refresh_token="refresh-1",
            expires_at=datetime.now(UTC) - timedelta(seconds=5),
        )
    )
    httpx_mock.add_response(method="POST", url=REFRESH_URL, json={"token_type": "bearer"})

    token = await provider.get_token()
    await provider.close()

    assert token is None

"""
session.py
----------
Purpose:
    Session capability injected into the flyer client and the store client.

Notes:
    - Consumers only read tokens; sign-in, sign-out and refresh happen here.
    - Tokens are resolved per call so rotated or expired sessions are seen.
    - Auth state changes are published to subscribed listeners.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Protocol

import httpx

from creator_hub.auth.tokens import token_expires_at
from creator_hub.config import settings
from creator_hub.errors import AuthError
from creator_hub.infrastructure.observability.logging import get_logger
from creator_hub.models.domain.session_domain import AuthEvent, Session

logger = get_logger(__name__)

AuthListener = Callable[[AuthEvent, Session | None], None]


class SessionProvider(Protocol):
    async def get_token(self) -> str | None: ...

    def subscribe(self, listener: AuthListener) -> Callable[[], None]: ...


class _AuthStateNotifier:
    """Listener registry shared by session providers."""

    def __init__(self):
        self._listeners: list[AuthListener] = []

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: AuthEvent, session: Session | None) -> None:
        logger.info("Auth state changed", auth_event=event, user_id=session.user_id if session else None)
        for listener in list(self._listeners):
            try:
                listener(event, session)
            except Exception as e:
                logger.warning("Auth listener failed", auth_event=event, error=str(e))


class StaticSessionProvider(_AuthStateNotifier):
    """Fixed token provider for scripts and tests. ``None`` means signed out."""

    def __init__(self, token: str | None = None):
        super().__init__()
        self._token = token

    async def get_token(self) -> str | None:
        return self._token

    def set_token(self, token: str | None) -> None:
        self._token = token
        if token:
            self._notify("SIGNED_IN", Session(access_token=token))
        else:
            self._notify("SIGNED_OUT", None)


class SupabaseSessionProvider(_AuthStateNotifier):
    """
    Session provider backed by the Supabase GoTrue REST API.

    Keeps the current session in memory and refreshes it when the access
    token is about to expire.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        refresh_margin_seconds: int | None = None,
    ):
        super().__init__()
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(settings.REQUEST_TIMEOUT))
        self._owns_client = client is None
        self._session: Session | None = None
        self.refresh_margin_seconds = (
            settings.TOKEN_REFRESH_MARGIN_SECONDS
            if refresh_margin_seconds is None
            else refresh_margin_seconds
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _headers(self, access_token: str | None = None) -> dict:
        headers = {
            "apikey": settings.SUPABASE_ANON_KEY,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    @staticmethod
    def _error_message(response: httpx.Response, default: str) -> str:
        try:
            data = response.json() if response.text else {}
        except ValueError:
            return default
        if not isinstance(data, dict):
            return default
        for key in ("error_description", "msg", "message"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
        return default

    async def _token_request(self, grant_type: str, payload: dict) -> Session:
        url = f"{settings.auth_url()}/token"
        try:
            response = await self._client.post(
                url, params={"grant_type": grant_type}, json=payload, headers=self._headers()
            )
        except httpx.HTTPError as e:
            logger.error("Auth token request failed", grant_type=grant_type, error=str(e))
            raise AuthError(f"Authentication error: {e}") from e

        if not response.is_success:
            message = self._error_message(response, "Authentication failed")
            logger.error(
                "Auth token request rejected",
                grant_type=grant_type,
                status_code=response.status_code,
                error_message=message,
            )
            raise AuthError(message, status_code=response.status_code)

        try:
            session = Session.from_token_response(response.json())
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logger.error("Malformed auth token response", grant_type=grant_type, error=str(e))
            raise AuthError("Authentication failed: malformed token response") from e
        if session.expires_at is None:
            session = session.model_copy(update={"expires_at": token_expires_at(session.access_token)})
        return session

    def restore(self, session: Session) -> None:
        """Adopt a session persisted by the host app."""
        self._session = session
        self._notify("SIGNED_IN", session)

    async def sign_in(self, email: str, password: str) -> Session:
        logger.info("Signing in user", email=email)
        self._session = await self._token_request(
            "password", {"email": email, "password": password}
        )
        logger.info("Sign in successful", user_id=self._session.user_id)
        self._notify("SIGNED_IN", self._session)
        return self._session

    async def sign_out(self) -> None:
        """Revoke the session remotely and always clear it locally."""
        session = self._session
        if session is not None:
            try:
                response = await self._client.post(
                    f"{settings.auth_url()}/logout", headers=self._headers(session.access_token)
                )
                if not response.is_success:
                    logger.warning("Remote sign out rejected", status_code=response.status_code)
            except httpx.HTTPError as e:
                logger.warning("Remote sign out failed", error=str(e))

        self._session = None
        self._notify("SIGNED_OUT", None)

    async def refresh(self) -> Session:
        session = self._session
        if session is None or not session.refresh_token:
            raise AuthError("Not authenticated. Please log in again.")

        try:
            self._session = await self._token_request(
                "refresh_token", {"refresh_token": session.refresh_token}
            )
        except AuthError as e:
            logger.warning("Token refresh failed, clearing session", error=e.message)
            self._session = None
            self._notify("SIGNED_OUT", None)
            raise AuthError(
                "Session expired. Please log out and log back in.", status_code=e.status_code
            ) from e

        logger.info("Token refreshed", user_id=self._session.user_id)
        self._notify("TOKEN_REFRESHED", self._session)
        return self._session

    async def get_session(self) -> Session | None:
        """Current session, refreshed first when it expires within the margin."""
        session = self._session
        if session is None:
            return None

        remaining = session.seconds_until_expiry(datetime.now(UTC))
        if remaining is not None and remaining < self.refresh_margin_seconds:
            logger.info("Access token about to expire, refreshing", seconds_left=int(remaining))
            try:
                return await self.refresh()
            except AuthError:
                return None

        return session

    async def get_token(self) -> str | None:
        session = await self.get_session()
        return session.access_token if session else None

    async def get_user(self) -> dict | None:
        """Fetch the signed-in user from the auth server."""
        token = await self.get_token()
        if not token:
            return None

        try:
            response = await self._client.get(
                f"{settings.auth_url()}/user", headers=self._headers(token)
            )
        except httpx.HTTPError as e:
            raise AuthError(f"Authentication error: {e}") from e

        if not response.is_success:
            raise AuthError(
                self._error_message(response, "Authentication error"),
                status_code=response.status_code,
            )
        return response.json()

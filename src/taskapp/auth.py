from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, MutableMapping, Optional, Tuple

import httpx
from fastapi import Depends, Request

from .settings import get_settings

logger = logging.getLogger(__name__)

SESSION_TOKEN_KEY = "access_token"
SESSION_USER_KEY = "user"


class AuthError(Exception):
    """Credentials or token were rejected by the auth provider."""


class AuthUnavailableError(AuthError):
    """The auth provider could not be reached; the check is still pending."""


class LoginRequired(Exception):
    """Raised by route dependencies when the page needs a signed-in user."""


class AuthState(str, Enum):
    LOADING = "loading"
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: Optional[str] = None


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class AuthContext:
    """
    Authentication context handed to views and components explicitly.

    Exactly one of three variants:
    - loading: a stored token has not been verified yet
    - anonymous: no session
    - authenticated: ``user`` and ``access_token`` are set
    """

    state: AuthState
    user: Optional[AuthUser] = None
    access_token: Optional[str] = None

    @classmethod
    def loading(cls) -> "AuthContext":
        return cls(state=AuthState.LOADING)

    @classmethod
    def anonymous(cls) -> "AuthContext":
        return cls(state=AuthState.ANONYMOUS)

    @classmethod
    def authenticated(cls, user: AuthUser, access_token: str) -> "AuthContext":
        return cls(state=AuthState.AUTHENTICATED, user=user, access_token=access_token)

    @property
    def is_loading(self) -> bool:
        return self.state is AuthState.LOADING

    @property
    def is_authenticated(self) -> bool:
        return self.state is AuthState.AUTHENTICATED

    @property
    def user_id(self) -> Optional[str]:
        return self.user.id if self.user else None


# PUBLIC_INTERFACE
class AuthProvider(ABC):
    """Contract for the hosted authentication service."""

    # Whether tokens minted outside this app (magic links, OAuth redirects) may be
    # handed to /auth/callback.
    accepts_external_tokens = False

    @abstractmethod
    def sign_in(self, email: str, password: str) -> Tuple[AuthUser, str]:
        """Exchange credentials for (user, access_token). Raises AuthError."""

    @abstractmethod
    def get_user(self, access_token: str) -> AuthUser:
        """Return the user owning a token. Raises AuthError / AuthUnavailableError."""


class LocalAuthProvider(AuthProvider):
    """
    Development provider used with the memory backend: any well-formed email
    with a password of at least 6 characters signs in. The user id is derived
    from the email so the same person always sees the same tasks.
    Tokens are just the email, so this provider must never be exposed outside
    development and never accepts tokens through the callback.
    """

    TOKEN_PREFIX = "local."

    def sign_in(self, email: str, password: str) -> Tuple[AuthUser, str]:
        email = (email or "").strip().lower()
        if "@" not in email:
            raise AuthError("Please enter a valid email address")
        if len(password or "") < 6:
            raise AuthError("Password must be at least 6 characters")
        user = AuthUser(id=str(uuid.uuid5(uuid.NAMESPACE_URL, f"mailto:{email}")), email=email)
        return user, f"{self.TOKEN_PREFIX}{email}"

    def get_user(self, access_token: str) -> AuthUser:
        if not access_token.startswith(self.TOKEN_PREFIX):
            raise AuthError("Invalid access token")
        email = access_token[len(self.TOKEN_PREFIX):]
        return AuthUser(id=str(uuid.uuid5(uuid.NAMESPACE_URL, f"mailto:{email}")), email=email)


class RemoteAuthProvider(AuthProvider):
    """Provider backed by a GoTrue-style auth API on the hosted backend."""

    accepts_external_tokens = True

    def __init__(self, client: httpx.Client, *, base_url: str, api_key: Optional[str]) -> None:
        self._client = client
        self._base = f"{base_url.rstrip('/')}/auth/v1"
        self._headers: Dict[str, str] = {"apikey": api_key} if api_key else {}

    @staticmethod
    def _user_from(body: Dict[str, Any]) -> AuthUser:
        return AuthUser(id=str(body["id"]), email=body.get("email"))

    @staticmethod
    def _message(response: httpx.Response, fallback: str) -> str:
        try:
            body = response.json()
        except ValueError:
            return fallback
        if isinstance(body, dict):
            for key in ("error_description", "msg", "message"):
                if body.get(key):
                    return str(body[key])
        return fallback

    def sign_in(self, email: str, password: str) -> Tuple[AuthUser, str]:
        try:
            response = self._client.post(
                f"{self._base}/token",
                params={"grant_type": "password"},
                json={"email": email, "password": password},
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            raise AuthUnavailableError("Authentication service is unavailable") from e
        if not response.is_success:
            raise AuthError(self._message(response, "Invalid login credentials"))
        body = response.json()
        return self._user_from(body["user"]), body["access_token"]

    def get_user(self, access_token: str) -> AuthUser:
        headers = dict(self._headers)
        headers["Authorization"] = f"Bearer {access_token}"
        try:
            response = self._client.get(f"{self._base}/user", headers=headers)
        except httpx.HTTPError as e:
            raise AuthUnavailableError("Authentication service is unavailable") from e
        if response.status_code >= 500:
            raise AuthUnavailableError("Authentication service is unavailable")
        if not response.is_success:
            raise AuthError(self._message(response, "Invalid access token"))
        return self._user_from(response.json())


# PUBLIC_INTERFACE
def resolve_auth_context(session: MutableMapping[str, Any], provider: AuthProvider) -> AuthContext:
    """
    Work out the AuthContext for a session.

    A token with a cached user is trusted (the session cookie is signed). A
    token without one is verified against the provider: rejected tokens are
    dropped from the session, and an unreachable provider leaves the check
    pending (loading).
    """
    token = session.get(SESSION_TOKEN_KEY)
    if not token:
        return AuthContext.anonymous()

    cached = session.get(SESSION_USER_KEY)
    if cached:
        return AuthContext.authenticated(AuthUser(**cached), token)

    try:
        user = provider.get_user(token)
    except AuthUnavailableError:
        logger.warning("Auth provider unreachable; session check pending")
        return AuthContext.loading()
    except AuthError as e:
        logger.info("Discarding rejected session token: %s", e)
        clear_session(session)
        return AuthContext.anonymous()

    session[SESSION_USER_KEY] = {"id": user.id, "email": user.email}
    return AuthContext.authenticated(user, token)


def store_session(session: MutableMapping[str, Any], user: Optional[AuthUser], access_token: str) -> None:
    session[SESSION_TOKEN_KEY] = access_token
    if user is None:
        session.pop(SESSION_USER_KEY, None)
    else:
        session[SESSION_USER_KEY] = {"id": user.id, "email": user.email}


def clear_session(session: MutableMapping[str, Any]) -> None:
    session.pop(SESSION_TOKEN_KEY, None)
    session.pop(SESSION_USER_KEY, None)


# PUBLIC_INTERFACE
def get_auth_provider() -> Iterator[AuthProvider]:
    """
    FastAPI dependency yielding the auth provider matching the task store
    backend. The remote provider's HTTP client is closed after the request.
    """
    settings = get_settings()
    if settings.taskstore_backend == "remote" and settings.taskstore_url:
        with httpx.Client() as client:
            yield RemoteAuthProvider(
                client, base_url=settings.taskstore_url, api_key=settings.taskstore_api_key
            )
        return
    yield LocalAuthProvider()


# PUBLIC_INTERFACE
def get_auth_context(request: Request, provider: AuthProvider = Depends(get_auth_provider)) -> AuthContext:
    """FastAPI dependency resolving the current request's AuthContext."""
    return resolve_auth_context(request.session, provider)


# PUBLIC_INTERFACE
def require_auth(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
    """Like get_auth_context, but raises LoginRequired unless authenticated."""
    if not auth.is_authenticated:
        raise LoginRequired()
    return auth

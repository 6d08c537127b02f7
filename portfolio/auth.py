"""
Session auth against the hosted auth service, plus an in-memory double.
"""

from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

import requests

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30  # seconds
DEFAULT_SESSION_TTL = 3600


class AuthError(RuntimeError):
    """Sign-in or token exchange was rejected."""


@dataclass
class AuthUser:
    id: str
    email: Optional[str] = None


@dataclass
class AuthSession:
    access_token: str
    refresh_token: str
    expires_at: float
    user: AuthUser

    @property
    def expires_in(self) -> int:
        return max(0, int(self.expires_at - time.time()))


class AuthClient(Protocol):
    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        ...

    def get_user(self, access_token: str) -> Optional[AuthUser]:
        ...

    def refresh_session(self, refresh_token: str) -> Optional[AuthSession]:
        ...

    def sign_out(self, access_token: str) -> None:
        ...


@dataclass
class _StoredUser:
    user: AuthUser
    password: str


@dataclass
class InMemoryAuthClient:
    """Test double issuing opaque random tokens."""

    session_ttl: int = DEFAULT_SESSION_TTL
    users: Dict[str, _StoredUser] = field(default_factory=dict)
    access_tokens: Dict[str, tuple[str, float]] = field(default_factory=dict)
    refresh_tokens: Dict[str, str] = field(default_factory=dict)

    def add_user(self, email: str, password: str, user_id: Optional[str] = None) -> AuthUser:
        user = AuthUser(id=user_id or secrets.token_hex(16), email=email)
        self.users[email.lower()] = _StoredUser(user=user, password=password)
        return user

    def _issue(self, user: AuthUser) -> AuthSession:
        access = secrets.token_urlsafe(24)
        refresh = secrets.token_urlsafe(24)
        expires_at = time.time() + self.session_ttl
        self.access_tokens[access] = (user.id, expires_at)
        self.refresh_tokens[refresh] = user.id
        return AuthSession(
            access_token=access, refresh_token=refresh, expires_at=expires_at, user=user
        )

    def _user_by_id(self, user_id: str) -> Optional[AuthUser]:
        for stored in self.users.values():
            if stored.user.id == user_id:
                return stored.user
        return None

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        stored = self.users.get(email.lower())
        if not stored or stored.password != password:
            raise AuthError("Invalid login credentials")
        return self._issue(stored.user)

    def get_user(self, access_token: str) -> Optional[AuthUser]:
        entry = self.access_tokens.get(access_token)
        if not entry:
            return None
        user_id, expires_at = entry
        if expires_at <= time.time():
            return None
        return self._user_by_id(user_id)

    def refresh_session(self, refresh_token: str) -> Optional[AuthSession]:
        user_id = self.refresh_tokens.pop(refresh_token, None)
        user = self._user_by_id(user_id) if user_id else None
        if not user:
            return None
        return self._issue(user)

    def sign_out(self, access_token: str) -> None:
        entry = self.access_tokens.pop(access_token, None)
        if entry:
            user_id = entry[0]
            for token, owner in list(self.refresh_tokens.items()):
                if owner == user_id:
                    del self.refresh_tokens[token]


class SupabaseAuthClient:
    """
    Thin client for the hosted auth REST API (``/auth/v1``).
    """

    def __init__(self, base_url: str, anon_key: str):
        if not base_url or not anon_key:
            raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY are required")
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key

    def _headers(self, access_token: Optional[str] = None) -> dict:
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {access_token or self.anon_key}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        return (
            payload.get("error_description")
            or payload.get("msg")
            or payload.get("message")
            or payload.get("error")
            or f"HTTP {response.status_code}"
        )

    @staticmethod
    def _parse_user(payload: dict) -> AuthUser:
        return AuthUser(id=payload["id"], email=payload.get("email"))

    def _parse_session(self, payload: dict) -> AuthSession:
        expires_at = payload.get("expires_at")
        if not expires_at:
            expires_at = time.time() + int(payload.get("expires_in") or DEFAULT_SESSION_TTL)
        return AuthSession(
            access_token=payload["access_token"],
            refresh_token=payload["refresh_token"],
            expires_at=float(expires_at),
            user=self._parse_user(payload["user"]),
        )

    def _token(self, grant_type: str, body: dict) -> requests.Response:
        return requests.post(
            f"{self.base_url}/auth/v1/token",
            params={"grant_type": grant_type},
            json=body,
            headers=self._headers(),
            timeout=REQUEST_TIMEOUT,
        )

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        try:
            response = self._token("password", {"email": email, "password": password})
        except requests.RequestException as exc:
            logger.error("[auth] sign-in request failed: %s", exc)
            raise AuthError("Auth service unavailable") from exc
        if response.status_code != 200:
            raise AuthError(self._error_message(response))
        return self._parse_session(response.json())

    def get_user(self, access_token: str) -> Optional[AuthUser]:
        if not access_token:
            return None
        try:
            response = requests.get(
                f"{self.base_url}/auth/v1/user",
                headers=self._headers(access_token),
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            logger.error("[auth] get_user request failed: %s", exc)
            return None
        if response.status_code in (401, 403):
            return None
        if response.status_code != 200:
            logger.error(
                "[auth] get_user unexpected status %s: %s",
                response.status_code,
                self._error_message(response),
            )
            return None
        return self._parse_user(response.json())

    def refresh_session(self, refresh_token: str) -> Optional[AuthSession]:
        if not refresh_token:
            return None
        try:
            response = self._token("refresh_token", {"refresh_token": refresh_token})
        except requests.RequestException as exc:
            logger.error("[auth] refresh request failed: %s", exc)
            return None
        if response.status_code != 200:
            return None
        return self._parse_session(response.json())

    def sign_out(self, access_token: str) -> None:
        if not access_token:
            return
        try:
            response = requests.post(
                f"{self.base_url}/auth/v1/logout",
                headers=self._headers(access_token),
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            logger.warning("[auth] sign-out request failed: %s", exc)
            return
        if response.status_code >= 400 and response.status_code not in (401, 403):
            logger.warning("[auth] sign-out returned %s", response.status_code)

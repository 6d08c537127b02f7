"""
Cookie session helpers and the middleware that keeps /admin behind the allowlist.
"""

from __future__ import annotations

import logging
from typing import Callable, Mapping, Optional
from urllib.parse import urlencode

from fastapi import Request, status
from fastapi.responses import RedirectResponse
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from portfolio.auth import AuthClient, AuthSession, AuthUser
from portfolio.config import get_settings
from portfolio.db import BackendError
from portfolio.dependencies import get_auth_client, get_db_client

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "sb-access-token"
REFRESH_COOKIE = "sb-refresh-token"
REFRESH_COOKIE_MAX_AGE = 60 * 60 * 24 * 30


def is_admin_path(path: str) -> bool:
    return path == "/admin" or path.startswith("/admin/")


def set_session_cookies(response: Response, session: AuthSession, secure: bool = False) -> None:
    response.set_cookie(
        ACCESS_COOKIE,
        session.access_token,
        max_age=session.expires_in or None,
        path="/",
        httponly=True,
        samesite="lax",
        secure=secure,
    )
    response.set_cookie(
        REFRESH_COOKIE,
        session.refresh_token,
        max_age=REFRESH_COOKIE_MAX_AGE,
        path="/",
        httponly=True,
        samesite="lax",
        secure=secure,
    )


def clear_session_cookies(response: Response) -> None:
    response.delete_cookie(ACCESS_COOKIE, path="/")
    response.delete_cookie(REFRESH_COOKIE, path="/")


def resolve_user(
    auth: AuthClient, cookies: Mapping[str, str]
) -> tuple[Optional[AuthUser], Optional[AuthSession]]:
    """
    Return the signed-in user and, when the access token had to be refreshed,
    the new session whose cookies must be written back.
    """
    access_token = cookies.get(ACCESS_COOKIE)
    if access_token:
        user = auth.get_user(access_token)
        if user:
            return user, None
    refresh_token = cookies.get(REFRESH_COOKIE)
    if refresh_token:
        session = auth.refresh_session(refresh_token)
        if session:
            return session.user, session
    return None, None


def login_redirect(path: str) -> RedirectResponse:
    return RedirectResponse(
        f"/login?{urlencode({'next': path})}", status_code=status.HTTP_303_SEE_OTHER
    )


class AdminGateMiddleware(BaseHTTPMiddleware):
    """Redirects anyone who is not a signed-in admin away from /admin."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if not is_admin_path(path):
            return await call_next(request)

        settings = get_settings()
        if not settings.backend_configured:
            logger.warning("[admin] backend not configured, blocking %s", path)
            return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)

        user, refreshed = await run_in_threadpool(
            resolve_user, get_auth_client(), request.cookies
        )
        if user is None:
            response = login_redirect(path)
            if ACCESS_COOKIE in request.cookies or REFRESH_COOKIE in request.cookies:
                clear_session_cookies(response)
            return response

        try:
            allowed = await run_in_threadpool(get_db_client().is_admin, user.id)
        except BackendError as exc:
            logger.error("[admin] allowlist lookup failed for %s: %s", user.id, exc)
            allowed = False
        if not allowed:
            logger.info("[admin] user %s is not an admin", user.id)
            response = RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
            if refreshed:
                set_session_cookies(response, refreshed, settings.session_cookie_secure)
            return response

        request.state.user = user
        response = await call_next(request)
        if refreshed:
            set_session_cookies(response, refreshed, settings.session_cookie_secure)
        return response

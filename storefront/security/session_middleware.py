"""
Browser Session Middleware

Attaches the caller's UserSession to every request, identified by a
cookie. New browsers get a fresh session and the cookie is set on the way
out.
"""

import logging
from typing import Callable

from fastapi import Request, HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from ..core.session import SessionManager, UserSession

logger = logging.getLogger(__name__)


class SessionMiddleware(BaseHTTPMiddleware):
    """
    Middleware that resolves the browser session for each request.

    Static files and the health check do not get a session.
    """

    SKIP_PREFIXES = ("/static", "/health")

    def __init__(
        self,
        app,
        sessions: SessionManager,
        cookie_name: str,
        max_age_hours: int = 24 * 30,
        secure: bool = False,
    ):
        super().__init__(app)
        self.sessions = sessions
        self.cookie_name = cookie_name
        self.max_age = max_age_hours * 3600
        self.secure = secure

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path.startswith(self.SKIP_PREFIXES):
            return await call_next(request)

        cookie_value = request.cookies.get(self.cookie_name)
        session = self.sessions.get_or_create_session(cookie_value)
        request.state.session = session

        if cookie_value != session.session_id:
            logger.debug(f"Started browser session {session.session_id[:8]}")

        response = await call_next(request)

        if cookie_value != session.session_id:
            response.set_cookie(
                self.cookie_name,
                session.session_id,
                max_age=self.max_age,
                httponly=True,
                samesite="lax",
                secure=self.secure,
            )
        return response


def get_user_session(request: Request) -> UserSession:
    """FastAPI dependency returning the session attached by the middleware"""
    session = getattr(request.state, "session", None)
    if session is None:
        raise HTTPException(status_code=500, detail="Session middleware not installed")
    return session

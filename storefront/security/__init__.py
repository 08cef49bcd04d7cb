# Security modules

from .session_middleware import SessionMiddleware, get_user_session

__all__ = ["SessionMiddleware", "get_user_session"]

"""Shared route dependencies"""

from typing import Optional

from fastapi import HTTPException, Query, Request

from ..core.i18n import is_supported_locale, normalize_locale
from ..services.api_client import StorefrontApiClient


def get_api_client(request: Request) -> StorefrontApiClient:
    """The backend client created at startup"""
    return request.app.state.api_client


def get_locale(locale: str) -> str:
    """Validate the locale path segment"""
    if not is_supported_locale(locale):
        raise HTTPException(status_code=404, detail="Page not found")
    return normalize_locale(locale)


def get_api_locale(lang: Optional[str] = Query(None)) -> str:
    """Locale for JSON endpoints, taken from ?lang="""
    return normalize_locale(lang)

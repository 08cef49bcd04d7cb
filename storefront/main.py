"""
Storefront Application

Bilingual (Dutch/English) web shop for handmade flowers. Renders the
catalog, cart, checkout and confirmation pages and talks to the shop
backend for products and orders.
"""

import os
import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv

# Load environment variables before settings are read
load_dotenv(os.path.join(os.getcwd(), "config", ".env"))

from fastapi import FastAPI
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles

from .core.config import settings
from .core.i18n import get_default_locale
from .core.session import SessionManager, file_storage_factory, memory_storage_factory
from .routes import cart_router, checkout_router, pages_router
from .security.session_middleware import SessionMiddleware
from .services.api_client import StorefrontApiClient

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Storefront starting up...")
    logger.info(f"Backend API: {settings.api_base_url}")
    logger.info(f"Cart storage: {settings.cart_storage_dir or 'in-memory'}")

    yield

    logger.info("Storefront shutting down...")
    await app.state.api_client.close()


def create_app(
    api_client: Optional[StorefrontApiClient] = None,
    sessions: Optional[SessionManager] = None,
) -> FastAPI:
    """Build the application with its shared client and session store"""
    app = FastAPI(
        title=settings.app_name,
        description="Handmade flower shop storefront",
        version="1.0.0",
        lifespan=lifespan,
    )

    if api_client is None:
        api_client = StorefrontApiClient(
            api_base_url=settings.api_base_url,
            timeout=settings.api_timeout,
            max_retries=settings.api_max_retries,
            retry_base_delay=settings.api_retry_base_delay,
        )

    if sessions is None:
        storage_dir = settings.get_cart_storage_dir()
        sessions = SessionManager(
            file_storage_factory(storage_dir) if storage_dir else memory_storage_factory(),
            max_age_hours=settings.session_max_age_hours,
            max_sessions=settings.session_max_count,
            cleanup_interval_seconds=settings.session_cleanup_interval_seconds,
        )

    app.state.api_client = api_client
    app.state.sessions = sessions

    app.add_middleware(
        SessionMiddleware,
        sessions=sessions,
        cookie_name=settings.session_cookie_name,
        max_age_hours=settings.session_max_age_hours,
        secure=settings.base_url.startswith("https://"),
    )

    # Static files
    static_dir = os.path.join(os.path.dirname(__file__), "static")
    if os.path.exists(static_dir):
        app.mount("/static", StaticFiles(directory=static_dir), name="static")

    # API routers go first so /api/... never matches a locale page
    app.include_router(cart_router)
    app.include_router(checkout_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "storefront",
            "backend_configured": settings.backend_configured,
            "sessions": len(sessions.sessions),
        }

    @app.get("/")
    async def home():
        """Send visitors to the default language"""
        return RedirectResponse(url=f"/{get_default_locale()}", status_code=307)

    app.include_router(pages_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )

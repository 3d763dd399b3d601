"""Root API router and middleware registration."""

from fastapi import APIRouter, FastAPI

from worktrack_api.api.middleware import RateLimitMiddleware, SecurityHeadersMiddleware, setup_cors
from worktrack_api.core.config import Settings


def create_router(settings: Settings) -> APIRouter:
    """Create the root API router with all sub-routers included.

    Args:
        settings: Application settings.

    Returns:
        Configured API router mounted at ``settings.api_prefix``.
    """
    from worktrack_api.api.v1.admin import admin_router
    from worktrack_api.api.v1.auth import router as auth_router
    from worktrack_api.api.v1.invitations import invitations_router

    root_router = APIRouter(prefix=settings.api_prefix)
    root_router.include_router(auth_router)
    root_router.include_router(invitations_router)
    root_router.include_router(admin_router)

    return root_router


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware on the FastAPI app.

    Args:
        app: The FastAPI application.
        settings: Application settings.
    """
    setup_cors(app, settings)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_minute=settings.rate_limit_per_minute,
        credential_requests_per_minute=settings.login_rate_limit_per_minute,
        trusted_proxy_headers=settings.trusted_proxy_header_list,
    )

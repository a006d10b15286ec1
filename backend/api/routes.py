"""HTTP route declarations for service status endpoints."""

from typing import Union

from fastapi import APIRouter

from core.config import AppSettings


def build_router(settings: AppSettings) -> APIRouter:
    """Build and return status routes with injected settings."""
    router = APIRouter()

    @router.get("/", summary="Root endpoint")
    def read_root() -> dict[str, str]:
        """Return a basic message confirming service availability."""
        return {"message": "{0} is running".format(settings.app_name)}

    @router.get("/health", summary="Health check")
    def health_check() -> dict[str, str]:
        """Return service health status for probes and monitors."""
        return {"status": "ok", "storage": "firestore" if settings.firebase_enabled else "memory"}

    @router.get("/settings", summary="Settings snapshot")
    def get_settings_snapshot() -> dict[str, Union[str, bool, int, float]]:
        """Expose non-sensitive settings useful for local verification."""
        return {
            "app_name": settings.app_name,
            "debug": settings.debug,
            "firebase_enabled": settings.firebase_enabled,
            "default_model": settings.credit_default_model,
            "min_rate": settings.credit_min_rate,
            "max_rate": settings.credit_max_rate,
            "score_cache_ttl_sec": settings.credit_score_cache_ttl_sec,
        }

    return router

"""Liveness and configuration probes."""

from fastapi import APIRouter, Depends

from nearswap import __version__
from nearswap.config import get_settings
from nearswap.web.services.route_service import RouteService, get_route_service

router = APIRouter()

SERVICE_NAME = "nearswap"


@router.get("/health")
async def health_check():
    """Process is up; does not touch the router."""
    return {"status": "healthy", "service": SERVICE_NAME}


@router.get("/health/detailed")
async def detailed_health(service: RouteService = Depends(get_route_service)):
    """Active resolver, execution mode and non-secret settings."""
    settings = get_settings()
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": __version__,
        "resolver": service.resolver.name,
        "mode": "dry_run" if settings.dry_run else "live",
        "config": settings.get_safe_dict(),
    }

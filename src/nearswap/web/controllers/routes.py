"""Swap route API endpoint."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from nearswap.routing.base import ResolutionError
from nearswap.web.contracts.routes import RouteErrorResponse, RouteRequest
from nearswap.web.services.route_service import RouteService, get_route_service

router = APIRouter(prefix="/api", tags=["routes"])

_error_responses = {
    status: {"model": RouteErrorResponse}
    for status in (400, 404, 408, 429, 500, 503)
}


@router.post("/swap-route", responses=_error_responses)
async def get_swap_route(
    request: RouteRequest,
    service: RouteService = Depends(get_route_service),
) -> JSONResponse:
    """Get the best route for a swap.

    Returns the normalized route, including the transactions (or intents
    quote) the wallet has to sign. Nothing is executed here.
    """
    result = await service.get_route(request)

    if isinstance(result, ResolutionError):
        return JSONResponse(status_code=result.http_status, content=result.to_dict())
    return JSONResponse(content=result.to_dict())

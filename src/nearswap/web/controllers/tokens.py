"""Token list API endpoint."""

import logging
from typing import Union

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from nearswap.errors import SwapError
from nearswap.web.contracts.tokens import TokenErrorResponse, TokenResponse
from nearswap.web.services.token_service import TokenService, get_token_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["tokens"])


@router.get(
    "/tokens",
    response_model=list[TokenResponse],
    responses={500: {"model": TokenErrorResponse}},
)
async def get_tokens(
    service: TokenService = Depends(get_token_service),
) -> Union[list[TokenResponse], JSONResponse]:
    """Get the reputable-token list for the token picker."""
    try:
        return await service.get_tokens()
    except SwapError as e:
        logger.error(f"Token list unavailable: {e.message}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to fetch tokens", "details": e.message},
        )

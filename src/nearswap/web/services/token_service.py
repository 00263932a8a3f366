"""Token list service for the token picker."""

import logging
from functools import lru_cache
from typing import Optional

from nearswap.routing.tokens import TokenListService
from nearswap.web.contracts.tokens import TokenResponse

logger = logging.getLogger(__name__)


class TokenService:
    """Serves the reputable-token list."""

    def __init__(self, token_list: Optional[TokenListService] = None):
        self.token_list = token_list or TokenListService()

    async def get_tokens(self) -> list[TokenResponse]:
        """Fetch tokens.

        Raises:
            SwapError: Upstream failure (timeout, bad response, empty list)
        """
        tokens = await self.token_list.get_tokens()
        return [TokenResponse.from_info(token) for token in tokens]


@lru_cache
def get_token_service() -> TokenService:
    """Get the shared token service."""
    return TokenService()

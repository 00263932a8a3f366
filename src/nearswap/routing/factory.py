"""Factory for route resolvers.

Returns the Intear resolver, or the simulated resolver when dry-run mode is
enabled.
"""

import logging
from typing import Optional

from nearswap.config import Settings, get_settings
from nearswap.routing.base import RouteResolver

logger = logging.getLogger(__name__)


def create_resolver(settings: Optional[Settings] = None) -> RouteResolver:
    """Create the route resolver for the current settings."""
    settings = settings or get_settings()

    if settings.dry_run:
        from nearswap.routing.dry_run import DryRunRouteResolver
        logger.warning("DRY_RUN enabled - serving simulated routes")
        return DryRunRouteResolver()

    from nearswap.routing.intear import IntearRouteResolver
    return IntearRouteResolver(settings=settings)

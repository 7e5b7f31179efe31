"""
Shared API Dependencies
"""

import logging

from fastapi import Request

from src.services.container import ServiceContainer, build_container

logger = logging.getLogger(__name__)


def get_container(request: Request) -> ServiceContainer:
    """
    Service container attached to the app.

    Built on first use when the app was created without one (the startup
    hook normally builds it first).
    """
    container = getattr(request.app.state, "container", None)
    if container is None:
        logger.info("Building service container on first request")
        container = build_container()
        request.app.state.container = container
    return container

"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - No global mutable state
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from coach_ai.config import settings
from coach_ai.handlers import CoachHandler
from coach_ai.repositories import GeminiTextProvider, InMemoryKnowledgeStore
from coach_ai.services import CoachService, default_store


def get_coach_service(request: Request) -> CoachService:
    """Dependency injection for CoachService from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The CoachService instance from app.state

    Raises:
        RuntimeError: If service is not initialized
    """
    service = getattr(request.app.state, "coach_service", None)
    if service is None:
        raise RuntimeError("CoachService not initialized. Check lifespan setup.")
    return service


def get_handler(request: Request) -> CoachHandler:
    """Dependency injection for CoachHandler from app.state.

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "coach_handler", None)
    if handler is None:
        raise RuntimeError("CoachHandler not initialized. Check lifespan setup.")
    return handler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores them in app.state:
    1. Storage, provider and knowledge (data access) - created explicitly
    2. Service (business logic) - stored in app.state.coach_service
    3. Handler (HTTP endpoints) - stored in app.state.coach_handler

    Cleanup:
        Closes the provider's HTTP client and removes everything from app.state
    """
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    provider = GeminiTextProvider.create()
    coach_service = CoachService.create(
        store=default_store(),
        provider=provider,
        knowledge=InMemoryKnowledgeStore.create(),
    )
    coach_service.initialize()
    coach_handler = CoachHandler(coach_service=coach_service)

    app.state.coach_service = coach_service
    app.state.coach_handler = coach_handler
    app.state.provider = provider

    print("✓ Coach service initialized")
    print(f"✓ Storage backend: {settings.storage_backend}")
    print(f"✓ Remote model: {'configured' if provider.is_configured else 'not configured (local only)'}")
    print(f"✓ Offline mode: {settings.offline_mode}")

    yield

    await provider.close()
    del app.state.coach_handler
    del app.state.coach_service
    del app.state.provider
    print("✓ Coach service shut down")


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[CoachHandler, Depends(get_handler)]
ServiceDep = Annotated[CoachService, Depends(get_coach_service)]

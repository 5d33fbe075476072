"""FastAPI dependencies for dependency injection.

Provides the authenticated owner id and the store / pipeline instances
built during application startup.
"""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from audiostory.api.exceptions import UnauthorizedError
from audiostory.core.config import Settings
from audiostory.core.security import decode_access_token
from audiostory.services.pipeline import StoryPipeline
from audiostory.services.store import StatusStore
from audiostory.tools.storage import ArtifactPublisher

# Security scheme
security = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_store(request: Request) -> StatusStore:
    """Story store created at startup."""
    return request.app.state.store


def get_pipeline(request: Request) -> StoryPipeline:
    """Generation pipeline created at startup."""
    return request.app.state.pipeline


def get_publisher(request: Request) -> ArtifactPublisher:
    """Artifact publisher created at startup."""
    return request.app.state.publisher


AppSettings = Annotated[Settings, Depends(get_app_settings)]
Store = Annotated[StatusStore, Depends(get_store)]
Pipeline = Annotated[StoryPipeline, Depends(get_pipeline)]
Publisher = Annotated[ArtifactPublisher, Depends(get_publisher)]


async def get_current_owner(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    settings: AppSettings,
) -> str:
    """Get the authenticated owner id from the bearer token.

    Raises:
        UnauthorizedError: If the token is missing or invalid
    """
    if credentials is None:
        raise UnauthorizedError("Missing authentication token")

    payload = decode_access_token(credentials.credentials, settings)
    if payload is None:
        raise UnauthorizedError("Token validation failed")

    owner_id = payload.get("sub")
    if not owner_id:
        raise UnauthorizedError("Invalid token payload")

    if payload.get("type", "access") != "access":
        raise UnauthorizedError("Invalid token type")

    return str(owner_id)


CurrentOwner = Annotated[str, Depends(get_current_owner)]

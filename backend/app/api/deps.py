"""FastAPI dependencies: per-request session, auth, provider and view cache.

Each is a plain function so tests can swap any of them through
``app.dependency_overrides``.
"""

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from backend.app.core.errors import AuthenticationError
from backend.app.db.session import get_db
from backend.app.services.auth import AuthClient, AuthUser, bearer_token
from backend.app.services.auth import get_auth_client as _build_auth_client
from backend.app.services.llm_client import LLMProvider, get_provider
from backend.app.services.post_actions import ActionContext
from backend.app.services.view_cache import LoggingViewCache, ViewCache

AI_LOGIN_MESSAGE = "Please log in to use AI features"


def get_auth_client() -> AuthClient:
    return _build_auth_client()


def get_access_token(authorization: str | None = Header(default=None)) -> str | None:
    return bearer_token(authorization)


def get_view_cache() -> ViewCache:
    return LoggingViewCache()


def get_llm_provider() -> LLMProvider:
    return get_provider()


def get_action_context(
    db: Session = Depends(get_db),
    auth: AuthClient = Depends(get_auth_client),
    access_token: str | None = Depends(get_access_token),
    view_cache: ViewCache = Depends(get_view_cache),
) -> ActionContext:
    return ActionContext(db=db, auth=auth, access_token=access_token, view_cache=view_cache)


def require_user(
    auth: AuthClient = Depends(get_auth_client),
    access_token: str | None = Depends(get_access_token),
) -> AuthUser:
    """Resolve the caller for the AI endpoints or raise 401."""
    user = auth.get_user(access_token)
    if user is None:
        raise AuthenticationError(AI_LOGIN_MESSAGE)
    return user

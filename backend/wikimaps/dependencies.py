"""
WikiMaps Backend: Request Dependencies
======================================

What:  FastAPI dependencies shared by the routers, chiefly the auth gate.

Auth gate:
    `require_user` reads the session identity. When present it is stored on
    `request.state.user_id` and returned to the handler; when absent it raises
    AuthenticationRequiredError, which the global handler turns into a 401
    user_error page before the route body (and any gateway call) runs.
    It never writes to the session.

Protected routes list `user_id: str = Depends(require_user)` as their first
dependency so the gate is resolved before the database session.
"""

import logging
from typing import Optional

from fastapi import Request

from wikimaps.exceptions import AuthenticationRequiredError
from wikimaps.middleware.session import session_store

logger = logging.getLogger(__name__)


async def current_user(request: Request) -> Optional[str]:
    """Identity for public routes: the session user id, or None."""
    user_id = session_store.get(request)
    request.state.user_id = user_id
    return user_id


async def require_user(request: Request) -> str:
    """Auth gate for protected routes."""
    user_id = session_store.get(request)
    if user_id is None:
        logger.info("Unauthenticated %s %s rejected", request.method, request.url.path)
        raise AuthenticationRequiredError(
            context={"method": request.method, "path": request.url.path}
        )
    request.state.user_id = user_id
    return user_id

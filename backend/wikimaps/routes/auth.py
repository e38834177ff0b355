"""
WikiMaps Backend: Login / Logout Routes
=======================================

GET  /login/{user_id}   Sets the session identity (development convenience,
                        no credential check) and redirects to /.
POST /logout            Clears the whole session and redirects to /.
                        Idempotent: logging out without a session still
                        expires the cookie.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse

from wikimaps.middleware.session import session_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.get("/login/{user_id}", summary="Development login")
async def login(user_id: str, request: Request) -> RedirectResponse:
    session_store.set(request, user_id)
    request.state.user_id = user_id
    logger.info("Session started for user %s", user_id)
    return RedirectResponse(url="/", status_code=302)


@router.post("/logout", summary="Clear the session")
async def logout(request: Request) -> RedirectResponse:
    previous = session_store.get(request)
    session_store.clear(request)
    if previous:
        logger.info("Session cleared for user %s", previous)
    return RedirectResponse(url="/", status_code=303)

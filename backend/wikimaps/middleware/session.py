"""
WikiMaps Backend: Signed Cookie Session Middleware
==================================================

What:  Loads the client's `session` cookie, verifies it, exposes it on
       `request.state.session`, and writes it back when a handler changed it.
How:   The cookie value is a JSON dict signed with itsdangerous'
       URLSafeTimedSerializer. A cookie with a bad signature, or older than
       `max_age` seconds, is treated as an empty session.
Who:   Installed by the app factory; read through `session_store`.
When:  Every request, inside the request-id and logging middleware.

There is no server-side session table. Logging out cannot revoke a cookie
that was copied elsewhere; it only expires the browser's copy.

Cookie contents:
    {"user_id": "<opaque identifier>"}

Response side effects:
    session.set(...)   → Set-Cookie: session=<signed value>; Max-Age=86400
    session.clear()    → Set-Cookie: session=""; Max-Age=0 (expired)
    untouched          → no Set-Cookie header
"""

import logging
from typing import Any, Dict, Iterator, Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

SESSION_SALT = "wikimaps.session"
USER_ID_KEY = "user_id"


class SessionData:
    """
    Mutable session dict that remembers whether it needs to be re-sent.

    `modified` is set by any write; `cleared` is set by clear() and reset by
    a later write, so "logout then login" in one request still sends a cookie.
    """

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = dict(initial or {})
        self.modified = False
        self.cleared = False

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self.modified = True
        self.cleared = False

    def clear(self) -> None:
        self._data.clear()
        self.modified = True
        self.cleared = True

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)


class SessionMiddleware(BaseHTTPMiddleware):
    """
    Signed client-side session cookie.

    Args:
        secret_key:   Signing key (settings.session_secret_key)
        cookie_name:  Cookie name, "session" by default
        max_age:      Validity window in seconds, enforced both as the
                      cookie's Max-Age and when verifying the signature timestamp
        https_only:   Adds the Secure attribute
        same_site:    SameSite attribute
    """

    def __init__(
        self,
        app: ASGIApp,
        secret_key: str,
        cookie_name: str = "session",
        max_age: int = 86_400,
        https_only: bool = False,
        same_site: str = "lax",
    ) -> None:
        super().__init__(app)
        if not secret_key:
            raise ValueError("SessionMiddleware requires a non-empty secret_key")
        self.serializer = URLSafeTimedSerializer(secret_key, salt=SESSION_SALT)
        self.cookie_name = cookie_name
        self.max_age = max_age
        self.https_only = https_only
        self.same_site = same_site

    def load(self, raw_cookie: Optional[str]) -> Dict[str, Any]:
        """Verify and decode a cookie value; anything invalid yields {}."""
        if not raw_cookie:
            return {}
        try:
            data = self.serializer.loads(raw_cookie, max_age=self.max_age)
        except SignatureExpired:
            logger.info("Expired session cookie ignored")
            return {}
        except BadSignature:
            logger.warning("Session cookie failed signature verification")
            return {}
        if not isinstance(data, dict):
            return {}
        return data

    def dump(self, data: Dict[str, Any]) -> str:
        return self.serializer.dumps(data)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        session = SessionData(self.load(request.cookies.get(self.cookie_name)))
        request.state.session = session

        response = await call_next(request)

        if session.cleared and len(session) == 0:
            response.delete_cookie(
                self.cookie_name,
                path="/",
                secure=self.https_only,
                httponly=True,
                samesite=self.same_site,
            )
        elif session.modified:
            response.set_cookie(
                self.cookie_name,
                self.dump(session.to_dict()),
                max_age=self.max_age,
                path="/",
                secure=self.https_only,
                httponly=True,
                samesite=self.same_site,
            )
        return response


class SessionStore:
    """
    get / set / clear of the authenticated user id on the current request.

    Requires SessionMiddleware; calling it on a request that never passed
    through the middleware raises RuntimeError.
    """

    @staticmethod
    def _session(request: Request) -> SessionData:
        session = getattr(request.state, "session", None)
        if session is None:
            raise RuntimeError(
                "No session on this request. Ensure SessionMiddleware is installed."
            )
        return session

    def get(self, request: Request) -> Optional[str]:
        user_id = self._session(request).get(USER_ID_KEY)
        if user_id is None:
            return None
        return str(user_id)

    def set(self, request: Request, user_id: str) -> None:
        self._session(request).set(USER_ID_KEY, str(user_id))

    def clear(self, request: Request) -> None:
        self._session(request).clear()


session_store = SessionStore()

import os
from typing import Iterable, Optional, Set

import jwt
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response


def _admin_emails() -> Set[str]:
    raw = os.getenv("ADMIN_EMAILS", "")
    return {email.strip().lower() for email in raw.split(",") if email.strip()}


def _deny(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code)


class SupabaseAuthMiddleware(BaseHTTPMiddleware):
    """Require a Supabase-issued bearer token on the admin surface.

    Only paths under ``protected_prefixes`` are checked; the public funnel
    endpoints pass straight through.
    """

    def __init__(self, app, protected_prefixes: Optional[Iterable[str]] = None):
        super().__init__(app)
        self.protected_prefixes: Set[str] = set(protected_prefixes or [])

    def _is_protected(self, path: str) -> bool:
        return any(path == prefix or path.startswith(f"{prefix}/") for prefix in self.protected_prefixes)

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS" or not self._is_protected(request.url.path):
            return await call_next(request)

        jwt_secret = os.getenv("SUPABASE_JWT_SECRET")
        if not jwt_secret:
            return _deny(500, "Auth secret not configured")

        auth_header = request.headers.get("Authorization") or ""
        if not auth_header.lower().startswith("bearer "):
            return _deny(401, "Missing bearer token")

        token = auth_header.split(" ", 1)[1].strip()
        if not token:
            return _deny(401, "Missing bearer token")

        try:
            payload = jwt.decode(
                token,
                jwt_secret,
                algorithms=["HS256"],
                options={"verify_aud": False},
            )
        except jwt.PyJWTError:
            return _deny(401, "Invalid token")

        user_id = payload.get("sub") or payload.get("user_id")
        email = payload.get("email")
        if not user_id:
            return _deny(401, "Token missing user identifier")

        allowed = _admin_emails()
        if allowed and (email or "").lower() not in allowed:
            return _deny(403, "Not an administrator")

        request.state.user_id = user_id
        request.state.email = email
        request.state.jwt_payload = payload
        return await call_next(request)

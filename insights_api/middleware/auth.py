import hmac
import os

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

OPEN_PATHS = {"/__health", "/docs", "/openapi.json"}


def _configured_keys() -> list:
    return [key.strip() for key in os.getenv("API_KEYS", "").split(",") if key.strip()]


class APIKeyMiddleware(BaseHTTPMiddleware):
    """Bearer-key gate in front of every pipeline route when AUTH_ENABLED=true."""

    async def dispatch(self, request: Request, call_next):
        if request.url.path in OPEN_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        if os.getenv("AUTH_ENABLED", "false").lower() != "true":
            return await call_next(request)

        auth = request.headers.get("Authorization", "")
        if not auth.startswith("Bearer "):
            return JSONResponse(
                {"error": "unauthorized", "message": "Missing API key"}, status_code=401
            )
        token = auth[len("Bearer "):].strip()
        if not any(hmac.compare_digest(token, key) for key in _configured_keys()):
            return JSONResponse(
                {"error": "forbidden", "message": "Invalid API key"}, status_code=403
            )

        request.state.authenticated = True
        return await call_next(request)

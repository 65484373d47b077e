import logging
import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .errors import (
    CriticalDependencyError,
    InputValidationError,
    InsightsError,
    MissingCredentialError,
)
from .middleware.auth import APIKeyMiddleware
from .middleware.logging import LoggingMiddleware
from .routers import advisor as advisor_router
from .routers import insights as insights_router
from .routers import onboarding as onboarding_router
from .routers import profile as profile_router

logger = logging.getLogger(__name__)

app = FastAPI(title="insights-api", version=__version__)

# Configure CORS - localhost for development, explicit origins otherwise
app_env = os.getenv("APP_ENV")
is_dev = app_env is None or app_env.lower() in {"dev", "development"}

if is_dev:
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=86400,
    )
else:
    allowed = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "").split(",") if origin.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=86400,
    )

app.add_middleware(APIKeyMiddleware)
app.add_middleware(LoggingMiddleware)

app.include_router(profile_router.router)
app.include_router(insights_router.router)
app.include_router(advisor_router.router)
app.include_router(onboarding_router.router)


_STATUS_BY_ERROR = (
    (InputValidationError, 422),
    (MissingCredentialError, 503),
    (CriticalDependencyError, 502),
)


@app.exception_handler(InsightsError)
async def _insights_error_handler(request: Request, exc: InsightsError) -> JSONResponse:
    status = next((code for cls, code in _STATUS_BY_ERROR if isinstance(exc, cls)), 500)
    if status >= 500:
        logger.error(
            "request_failed", extra={"path": request.url.path, "error_code": exc.code, "status": status}
        )
    return JSONResponse({"error": exc.code, "message": str(exc)}, status_code=status)


@app.get("/__health")
def health():
    return {"ok": True}


@app.get("/")
def root():
    return {"message": "insights-api is running. See /__health and /docs."}

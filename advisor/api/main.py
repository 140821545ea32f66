"""FastAPI application entry point."""
import contextvars
import logging
import uuid
from fastapi import FastAPI, Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from advisor.core.config import get_settings
from advisor.core.logging import setup_logging, get_logger
from advisor.db.connect import init_db, get_schema_status
from advisor.api.auth import router as auth_router
from advisor.api.routes import dashboard, feedback, onboarding, users

# Thread/async-safe request ID propagation via contextvars
_request_id_ctx: contextvars.ContextVar[str] = contextvars.ContextVar('request_id', default='')


class RequestIDFilter(logging.Filter):
    """Logging filter that injects request_id from contextvars into log records."""
    def filter(self, record):
        record.request_id = _request_id_ctx.get('')
        return True


settings = get_settings()
setup_logging(settings.log_level)
for _handler in logging.getLogger().handlers:
    _handler.addFilter(RequestIDFilter())
logger = get_logger(__name__)

settings.validate_insight_api_style()

# Initialize database - FATAL on failure (server cannot serve without schema)
init_db()
logger.info("Database initialized")


def error_envelope(status_code: int, code: str, message: str, request_id: str, headers: dict = None) -> JSONResponse:
    """Uniform JSON error body for every non-2xx response."""
    return JSONResponse(
        status_code=status_code,
        content={
            "ok": False,
            "status": "ERROR",
            "error": {"code": code, "message": message, "request_id": request_id},
            "request_id": request_id,
        },
        headers={"X-Request-ID": request_id, **(headers or {})},
    )


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assign a request_id to every request and echo it in X-Request-ID."""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        token = _request_id_ctx.set(request_id)

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        except Exception as exc:
            # Last-resort catch so nothing escapes as a bare 500/HTML page
            logger.error(
                "Unhandled in RequestIDMiddleware: %s | %s %s",
                str(exc)[:200], request.method, str(request.url.path),
                extra={"error_class": type(exc).__name__},
            )
            return error_envelope(500, "INTERNAL_ERROR", "An internal error occurred", request_id)
        finally:
            _request_id_ctx.reset(token)


app = FastAPI(
    title="Crypto Advisor API",
    version="1.0.0"
)


def _request_id(request: Request) -> str:
    return getattr(request.state, 'request_id', None) or str(uuid.uuid4())


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Render HTTPException (including api_error details) as the error envelope."""
    detail = exc.detail
    if isinstance(detail, dict) and "code" in detail:
        code, message = detail["code"], str(detail.get("message", ""))
    else:
        code, message = f"HTTP_{exc.status_code}", str(detail)
    return error_envelope(exc.status_code, code, message, _request_id(request), exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are a 400, like the rest of the API's validation errors."""
    return error_envelope(400, "VALIDATION_ERROR", "Invalid request payload", _request_id(request))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions and return JSON error response."""
    logger.error(
        "Unhandled exception: %s | %s %s",
        str(exc)[:200], request.method, str(request.url.path),
        exc_info=exc,
        extra={"error_class": type(exc).__name__},
    )
    return error_envelope(500, "INTERNAL_ERROR", "An internal error occurred", _request_id(request))


app.add_middleware(RequestIDMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(users.router, prefix="/user", tags=["user"])
app.include_router(onboarding.router, prefix="/onboarding", tags=["onboarding"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
app.include_router(feedback.router, prefix="/feedback", tags=["feedback"])


@app.get("/")
async def root():
    return {"status": "ok", "msg": "crypto advisor backend running"}


@app.get("/health")
async def health():
    """DB readiness plus which optional upstream credentials are configured."""
    schema_status = get_schema_status()
    current = get_settings()
    ok = schema_status["db_ready"] and not schema_status["pending_migrations"]
    return {
        "status": "ok" if ok else "degraded",
        "ok": ok,
        "db_ready": schema_status["db_ready"],
        "pending_migrations": schema_status["pending_migrations"],
        "upstreams": {
            "news_api_key_configured": bool(current.news_api_key),
            "insight_api_key_configured": bool(current.insight_api_key),
            "insight_model": current.insight_model,
            "insight_api_style": current.insight_api_style,
        },
    }

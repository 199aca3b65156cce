# logbook/main.py
from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from logbook.api.routes.attachments import router as attachments_router
from logbook.api.routes.logs import router as logs_router
from logbook.api.routes.tags import router as tags_router
from logbook.core.config import settings
from logbook.core.errors import LogbookError, ValidationFailure, error_body
from logbook.core.logging import configure_logging
from logbook.db.session import engine, init_db
from logbook.services.validation import field_errors

logger = logging.getLogger("logbook")


# -------------------------
# Lifespan
# -------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)

    await init_db()
    logger.info("Logbook API started (env=%s)", settings.ENV)
    yield
    await engine.dispose()


# -------------------------
# App
# -------------------------
app = FastAPI(
    title="Logbook API",
    version="0.1.0",
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)


# -------------------------
# Middleware
# -------------------------
app.add_middleware(GZipMiddleware, minimum_size=1024)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request-id + timing + upload-size guard
@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    start = time.perf_counter()

    content_length = request.headers.get("content-length")
    if content_length is not None:
        try:
            too_large = int(content_length) > settings.MAX_UPLOAD_BYTES
        except ValueError:
            too_large = False
        if too_large:
            return ORJSONResponse(
                status_code=413,
                content=error_body(
                    [{"status": "413", "title": f"Upload too large. Max is {settings.MAX_UPLOAD_MB} MB."}]
                ),
                headers={"x-request-id": request_id},
            )

    response = await call_next(request)

    response.headers["x-request-id"] = request_id
    response.headers["x-response-ms"] = f"{(time.perf_counter() - start) * 1000:.2f}"
    return response


# -------------------------
# Routes
# -------------------------
@app.get("/health")
async def health():
    return {"data": {"status": "ok", "env": settings.ENV}}


app.include_router(logs_router, prefix=settings.API_PREFIX, tags=["logs"])
app.include_router(attachments_router, prefix=settings.API_PREFIX, tags=["attachments"])
app.include_router(tags_router, prefix=settings.API_PREFIX, tags=["tags"])


# -------------------------
# Error handling
# -------------------------
@app.exception_handler(LogbookError)
async def logbook_error_handler(request: Request, exc: LogbookError):
    if isinstance(exc, ValidationFailure):
        logger.info(
            "Rejected %s %s: %d invalid field(s)", request.method, request.url.path, len(exc.errors)
        )
    else:
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc)
    return ORJSONResponse(status_code=exc.status_code, content=error_body(exc.to_errors()))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # FastAPI-level problems (e.g. a body that is not valid JSON) use the same envelope.
    failure = ValidationFailure(field_errors(exc.errors()))
    return await logbook_error_handler(request, failure)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return ORJSONResponse(
        status_code=exc.status_code,
        content=error_body([{"status": str(exc.status_code), "title": str(exc.detail)}]),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)

    error = {"status": "500", "title": "An unexpected error occurred."}
    if settings.ENV == "dev":
        error["detail"] = f"{exc.__class__.__name__}: {exc}"

    return ORJSONResponse(status_code=500, content=error_body([error]))

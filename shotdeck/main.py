import os
import logging
from datetime import datetime, timezone
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from shotdeck.db import ensure_schema
from shotdeck.api import movie, annotation, upload
from shotdeck.errors import PersistenceError, ShotdeckError, StorageError

ensure_schema()

SERVER_HOST = os.getenv("SHOTDECK_HOST", "0.0.0.0")
SERVER_PORT = int(os.getenv("PORT", "4000"))
LOG_LEVEL = os.getenv("SHOTDECK_LOG_LEVEL", "INFO").strip().upper()
QUIET_ACCESS_LOG = os.getenv("SHOTDECK_QUIET_ACCESS_LOG", "1").strip().lower() in {"1", "true", "yes", "on"}

GENERIC_MESSAGES = {
    StorageError: "Storage request failed",
    PersistenceError: "Database request failed",
}

logger = logging.getLogger("shotdeck")

if QUIET_ACCESS_LOG:
    # Keep warning/error lines, suppress normal access noise (200/201 etc).
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

app = FastAPI(title="ShotDeck API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def root():
    return {
        "ok": True,
        "service": "shotdeck-api",
        "time_utc": datetime.now(timezone.utc).isoformat(),
        "docs": "/docs",
    }


@app.get("/health")
def health():
    return {"ok": True}


@app.exception_handler(ShotdeckError)
async def shotdeck_error_handler(request: Request, exc: ShotdeckError):
    if exc.status_code < 500:
        logger.debug("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)
    # Provider details stay in the log.
    logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
    message = GENERIC_MESSAGES.get(type(exc), "Internal server error")
    return JSONResponse({"error": message}, status_code=exc.status_code)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    error = PersistenceError(f"{type(exc).__name__}: {exc}")
    error.__cause__ = exc
    return await shotdeck_error_handler(request, error)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    detail = errors[0].get("msg", "invalid request") if errors else "invalid request"
    return JSONResponse({"error": f"Invalid request: {detail}"}, status_code=400)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("%s %s unhandled error", request.method, request.url.path, exc_info=exc)
    return JSONResponse({"error": "Internal server error"}, status_code=500)


app.include_router(movie.router)
app.include_router(annotation.router)
app.include_router(upload.router)


def run() -> None:
    logging.basicConfig(level=LOG_LEVEL)
    uvicorn.run(app, host=SERVER_HOST, port=SERVER_PORT)


if __name__ == "__main__":
    run()

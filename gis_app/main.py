import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config
from .database import SessionLocal
from .errors import ApiError
from .migration import create_default_admin, create_tables
from .responses import error, success
from .routers import auth as auth_router
from .routers import facilities as facilities_router

# --- Logging dasar ---
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
log = logging.getLogger("gis-app")

app = FastAPI(title=config.APP_NAME, version=config.APP_VERSION)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

HTTP_MESSAGES = {
    404: "Invalid endpoint",
    405: "Method not allowed",
}


def add_cors_headers(request: Request, response: Response) -> Response:
    # CORS bebas hanya untuk /api/
    if request.url.path.startswith("/api/"):
        response.headers.update(CORS_HEADERS)
    return response


@app.middleware("http")
async def api_cors(request: Request, call_next):
    # preflight OPTIONS langsung 200
    if request.url.path.startswith("/api/") and request.method == "OPTIONS":
        return add_cors_headers(request, Response(status_code=200))
    return add_cors_headers(request, await call_next(request))


# --- Exception Handlers ---

@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        log.error("API error on %s: %s", request.url.path, exc.message)
    else:
        log.info("API error %s on %s: %s", exc.status_code, request.url.path, exc.message)
    return error(exc.message, exc.status_code, exc.details)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # 404/405/dst dari routing
    message = HTTP_MESSAGES.get(exc.status_code, str(exc.detail))
    return error(message, exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # 422 karena query/path parameter salah
    log.warning("Validation error: %s", exc.errors())
    messages = [
        "Field '%s' %s" % (".".join(str(p) for p in e["loc"] if p not in ("query", "path", "body")), e["msg"].lower())
        for e in exc.errors()
    ]
    return error("Validation failed: " + ", ".join(messages), 422, messages)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    # Catch-all supaya tidak bocor stack trace ke user
    log.exception("Unhandled error: %s", exc)
    # dirender di luar middleware, jadi header CORS dipasang di sini
    return add_cors_headers(request, error("Internal server error", 500, str(exc)))


# --- Startup: create tables & seed admin ---
@app.on_event("startup")
def on_startup():
    os.makedirs(config.UPLOAD_PATH, exist_ok=True)
    create_tables()
    db = SessionLocal()
    try:
        create_default_admin(db)
    finally:
        db.close()
    log.info("%s %s siap", config.APP_NAME, config.APP_VERSION)


@app.get("/health")
def health():
    return success({"app": config.APP_NAME, "version": config.APP_VERSION})


# --- Routers ---
app.include_router(auth_router.router)
app.include_router(facilities_router.router)

# Foto fasilitas: /uploads/<nama_file>
app.mount("/uploads", StaticFiles(directory=config.UPLOAD_PATH, check_dir=False), name="uploads")

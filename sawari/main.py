import importlib
import logging
import uuid
from pathlib import Path

import sentry_sdk
from fastapi import FastAPI, Request, Response
from fastapi.staticfiles import StaticFiles
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sentry_sdk.integrations.asgi import SentryAsgiMiddleware

from sawari.config import settings
from sawari.exception_handlers import register_exception_handlers
from sawari.logging_setup import TRACE_ID_CTX, setup_logging
from sawari.redis_client import redis_client

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME)

# initialize logging and Sentry
setup_logging(logging.DEBUG if settings.DEBUG else logging.INFO)
if settings.SENTRY_DSN:
    sentry_sdk.init(dsn=settings.SENTRY_DSN)
    app.add_middleware(SentryAsgiMiddleware)

register_exception_handlers(app)


@app.middleware("http")
async def add_trace_id(request: Request, call_next):
    trace_id = request.headers.get("x-trace-id") or str(uuid.uuid4())
    TRACE_ID_CTX.set(trace_id)
    response = await call_next(request)
    response.headers["X-Trace-Id"] = trace_id
    return response


# module name -> mount prefix
MODULES = {
    "auth": "/auth",
    "users": "/users",
    "rides": "/rides",
    "reservations": "",
    "bookings": "/bookings",
    "site": "/site",
    "admin": "/admin",
}

for mod, prefix in MODULES.items():
    pkg = importlib.import_module(f"sawari.modules.{mod}.router")
    app.include_router(pkg.router, prefix=prefix)

Path(settings.MEDIA_ROOT).mkdir(parents=True, exist_ok=True)
app.mount(settings.MEDIA_URL, StaticFiles(directory=settings.MEDIA_ROOT), name="media")


@app.get("/")
async def root():
    return {"app": settings.APP_NAME, "status": "ok"}


@app.get("/metrics")
async def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/ready")
async def ready():
    try:
        await redis_client.ping()
    except Exception:
        logger.exception("readiness check failed")
        return Response(status_code=503, content="redis unavailable")
    return {"status": "ready"}

"""BribeBank Server - FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bribebank.config import settings
from bribebank.database import init_db
from bribebank.errors import BribeBankError
from bribebank.realtime.event_bus import event_bus
from bribebank.services.push_service import push_notifier

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup, stop push delivery on shutdown."""
    init_db()
    logger.info(
        "%s started (db=%s, push=%s)",
        settings.server_name,
        settings.db_path,
        "on" if push_notifier.enabled else "off",
    )

    yield

    push_notifier.shutdown()


app = FastAPI(
    title="BribeBank",
    description="Household task and reward tracker",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS - the web client may be served from another origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Error rendering ---

@app.exception_handler(BribeBankError)
async def bribebank_error_handler(request: Request, exc: BribeBankError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.code})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    detail = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "MISSING_FIELDS", "detail": detail})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "INTERNAL_SERVER_ERROR"})


# --- Register API routers ---
from bribebank.api.auth import router as auth_router  # noqa: E402
from bribebank.api.users import router as users_router  # noqa: E402
from bribebank.api.bounties import router as bounties_router  # noqa: E402
from bribebank.api.rewards import router as rewards_router  # noqa: E402
from bribebank.api.store import router as store_router  # noqa: E402
from bribebank.api.wheel import router as wheel_router  # noqa: E402
from bribebank.api.activity import router as activity_router  # noqa: E402
from bribebank.api.push import router as push_router  # noqa: E402
from bribebank.api.events import router as events_router  # noqa: E402

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(bounties_router)
app.include_router(rewards_router)
app.include_router(store_router)
app.include_router(wheel_router)
app.include_router(activity_router)
app.include_router(push_router)
app.include_router(events_router)


@app.get("/")
def root():
    """Health check / server info."""
    return {
        "name": settings.server_name,
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/health")
def health():
    return {"status": "ok", "realtimeClients": event_bus.connection_count}

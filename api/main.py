"""FlowBoard API — FastAPI entry point.

Registers middleware, routers, error handlers, and lifecycle hooks. Each
vertical adds its own router under /api/{vertical}/.
"""

import logging
import os
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.errors import BoardError

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS", "http://localhost:3000,http://localhost:5173"
).split(",")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown hooks."""
    from core.database import close_db
    from core.observability.otel_setup import setup_otel
    from verticals.board.config import config
    from verticals.board.dependencies import get_gateway

    setup_otel()
    if not config.gateway.is_configured:
        logger.warning("GATEWAY_API_KEY is not configured; chat requests will fail")
    logger.info("FlowBoard API started")
    yield
    await get_gateway().aclose()
    await close_db()
    logger.info("FlowBoard API shutting down")


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

app = FastAPI(
    title="FlowBoard",
    description="Task board API with a streaming AI assistant that can create tasks",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BoardError)
async def board_error_handler(request: Request, exc: BoardError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# ---------------------------------------------------------------------------
# Routers — verticals register here
# ---------------------------------------------------------------------------

from verticals.board.router import router as board_router  # noqa: E402

app.include_router(board_router, prefix="/api/board", tags=["Board"])


# ---------------------------------------------------------------------------
# Health & root
# ---------------------------------------------------------------------------

@app.get("/health")
async def health():
    return {"status": "healthy", "version": "0.1.0"}


@app.get("/")
async def root():
    return {
        "name": "FlowBoard",
        "version": "0.1.0",
        "docs": "/docs",
        "verticals": ["board"],
        "description": "Task board with streaming AI assistant",
    }

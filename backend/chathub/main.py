from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Iterable, List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles

from .config import DEFAULT_ALLOWED_ORIGIN, settings
from .deps import hub, http_limiter, registry, runtime_logs
from .middleware import RateLimitMiddleware
from .routes.chat import router as chat_router
from .routes.system import router as system_router
from .runtime_logs import RuntimeLogHandler

logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("chathub.backend")
root_logger = logging.getLogger()
if not any(isinstance(handler, RuntimeLogHandler) for handler in root_logger.handlers):
    root_logger.addHandler(RuntimeLogHandler(runtime_logs))


def _cors_origins(configured: Iterable[str]) -> List[str]:
    origins = [origin for origin in configured if origin]
    return origins or [DEFAULT_ALLOWED_ORIGIN]


@asynccontextmanager
async def _lifespan(_app: FastAPI):
    logger.info(
        "Chat hub starting: %d permits per %ss window, max %d connections",
        settings.rate_limit_permits,
        settings.rate_limit_window_s,
        settings.ws_max_connections,
    )
    try:
        yield
    finally:
        closed = await hub.disconnect_all(code=1001)
        if closed:
            logger.info("Closed %d connections on shutdown", closed)
        registry.clear()


app = FastAPI(title="Chat Hub", version="0.1.0", lifespan=_lifespan)

app.add_middleware(RateLimitMiddleware, limiter=http_limiter)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(settings.allowed_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

WEB_DIR = Path(__file__).resolve().parent / "web"
app.mount("/static", StaticFiles(directory=WEB_DIR, html=True), name="static")

app.include_router(chat_router)
app.include_router(system_router)


@app.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return settings.root_greeting

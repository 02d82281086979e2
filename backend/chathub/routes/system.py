"""Health, stats, and runtime-log routes."""

from typing import Optional

from fastapi import APIRouter

from ..deps import http_limiter, message_limiter, registry, runtime_logs

router = APIRouter()


@router.get("/api/health")
async def health() -> dict:
    return {"status": "ok"}


@router.get("/api/stats")
async def stats() -> dict:
    """Live connection count and rate-limit configuration."""
    return {
        "connections": registry.connection_count,
        "rate_limit": {
            "permits": message_limiter.permit_limit,
            "window_s": message_limiter.window_seconds,
            "tracked_sources": message_limiter.tracked_sources,
            "tracked_http_sources": http_limiter.tracked_sources,
        },
    }


@router.get("/api/runtime-logs")
async def list_runtime_logs(
    limit: int = 200,
    level: Optional[str] = None,
    contains: Optional[str] = None,
) -> dict:
    entries = runtime_logs.list_entries(limit=limit, level=level, contains=contains)
    return {"logs": entries, "count": len(entries)}


@router.post("/api/runtime-logs/reset")
async def reset_runtime_logs() -> dict:
    return {"cleared": runtime_logs.clear()}

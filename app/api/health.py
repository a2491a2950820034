"""
Health check and API metadata endpoints
"""
import time

from fastapi import APIRouter, Request

from app.utils import utc_now_iso


router = APIRouter(tags=["health"])

API_VERSION = "1.0.0"


@router.get("/")
async def api_info():
    """API metadata"""
    return {
        "message": "Frontend Arena 2025 Backend API",
        "version": API_VERSION,
        "endpoints": {
            "register": "POST /api/register",
            "registrations": "GET /api/registrations",
            "registration": "GET /api/registrations/{id}",
            "status": "PATCH /api/registrations/{id}/status",
            "payment": "GET /api/registrations/{id}/payment",
            "health": "GET /api/health"
        }
    }


@router.get("/api/health")
async def health_check(request: Request):
    """Health check, including which storage backend is active"""
    store = request.app.state.store
    return {
        "status": "OK",
        "timestamp": utc_now_iso(),
        "uptime": round(time.monotonic() - request.app.state.started_at, 3),
        "storage": {
            "backend": store.backend,
            "durable": store.durable
        }
    }

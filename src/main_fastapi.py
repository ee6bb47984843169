"""
Dashboard Relay Service - FastAPI Main Application

Server-side boundary of the QA dashboard: aggregates ClickUp tasks and relays
stored test-run recordings to the browser.
"""

import os
from datetime import datetime, UTC

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import CollectorRegistry, Gauge, generate_latest

from api.routes.health import router as health_router
from api.routes.media import router as media_router
from api.routes.tasks import router as tasks_router
from app_logging import get_logger, init_logging

init_logging()
logger = get_logger(__name__)

VERSION = "1.0.0"

app = FastAPI(
    title="Dashboard Relay Service",
    description="Task aggregation and media relay for the QA dashboard",
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
    expose_headers=["X-Tasks-Truncated", "Content-Range", "Accept-Ranges"],
)

SERVICE_INFO = {
    "name": "dashboard_relay",
    "version": VERSION,
    "description": "Task aggregation and media relay",
    "started_at": datetime.now(UTC).isoformat(),
    "framework": "FastAPI"
}

app.include_router(health_router)
app.include_router(tasks_router)
app.include_router(media_router)


@app.get("/", response_class=JSONResponse)
async def root():
    return {
        "service": "dashboard_relay",
        "message": "Dashboard Relay Service is running",
        "version": VERSION,
        "health_check": "/health",
        "api_docs": "/docs"
    }


@app.get("/info", response_class=JSONResponse)
async def info():
    """Service information endpoint"""
    return {
        **SERVICE_INFO,
        "uptime": str(datetime.now(UTC) - datetime.fromisoformat(SERVICE_INFO["started_at"])),
        "endpoints": {
            "health": "/health",
            "tasks": "/api/tasks",
            "audit": "/api/tasks/audit",
            "video": "/api/automation/video",
            "docs": "/docs"
        }
    }

# -----------------------------------------------------------------------------
# Prometheus metrics - minimal exporter
# -----------------------------------------------------------------------------
registry = CollectorRegistry()
build_info = Gauge(
    "dashboard_relay_build_info",
    "Build information",
    ["service", "version"],
    registry=registry,
)
build_info.labels(service="dashboard_relay", version=VERSION).set(1)


@app.get("/metrics", response_class=PlainTextResponse)
async def metrics():
    return PlainTextResponse(generate_latest(registry).decode("utf-8"))


if __name__ == "__main__":
    import uvicorn
    host = os.getenv("RELAY_HOST", "0.0.0.0")
    port = int(os.getenv("RELAY_PORT", "8003"))
    logger.info(f"Starting Dashboard Relay Service on {host}:{port}")
    uvicorn.run(app, host=host, port=port)

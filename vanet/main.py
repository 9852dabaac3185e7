"""
main.py — FastAPI application entry point.
===========================================
Assembles routers, configures CORS, adds exception handlers,
and sets up the OpenAPI docs.

Run with:
    uvicorn vanet.main:app --reload --port 8000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vanet.api.router_simulation import router as simulation_router
from vanet.api.router_network import router as network_router
from vanet.api.router_routing import router as routing_router
from vanet.api.router_metrics import router as metrics_router
from vanet.services.simulation_service import get_service

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan: startup / shutdown
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Eagerly initialise the simulation service on startup."""
    logger.info("🚀 Starting VANET Routing API")
    svc = get_service()  # creates the singleton + default scenario
    logger.info(
        "Scenario ready: %d vehicles, %d RSUs",
        len(svc.sim.vehicles),
        len(svc.sim.infrastructure),
    )
    yield
    logger.info("👋 Shutting down")


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

app = FastAPI(
    title="VANET Routing Simulator API",
    description=(
        "REST API for a vehicular ad-hoc network simulator. "
        "Models a stochastic radio channel, rebuilds the link graph every tick, "
        "and compares learned link-quality routing against a reliability baseline."
    ),
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",          # Swagger UI
    redoc_url="/redoc",        # ReDoc
)


# ---------------------------------------------------------------------------
# CORS: dashboard frontend dev servers
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",       # Vite dev server
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Global exception handlers
# ---------------------------------------------------------------------------

@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(
        status_code=400,
        content={"error": "Bad Request", "detail": str(exc)},
    )


@app.exception_handler(Exception)
async def general_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal Server Error", "detail": "An unexpected error occurred."},
    )


# ---------------------------------------------------------------------------
# Mount routers
# ---------------------------------------------------------------------------

app.include_router(simulation_router)
app.include_router(network_router)
app.include_router(routing_router)
app.include_router(metrics_router)


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get("/", tags=["Health"])
def health_check():
    """Root health check endpoint."""
    svc = get_service()
    stats = svc.get_stats()
    return {
        "status": "healthy",
        "service": "VANET Routing Simulator API",
        "version": "1.0.0",
        "simulation": {
            "policy": stats["policy"],
            "vehicles": stats["vehicle_count"],
            "rsus": stats["infrastructure_count"],
            "sim_time": stats["sim_time"],
        },
    }

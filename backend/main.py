"""
FastAPI backend - route impact API for FlightImpact.

Serves:
- REST API for airports, conflict zones, heatmap, statistics and route comparison
- Prometheus metrics endpoint
"""

import os
import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from backend.metrics import get_metrics, HTTP_REQUESTS
from contracts.constants import ERROR_KEY
from contracts.validation import RouteComparisonRequest
from processing.errors import ImpactError
from processing.service import ImpactService
from processing.store import get_store

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Configuration
BACKEND_HOST = os.getenv("BACKEND_HOST", "0.0.0.0")
BACKEND_PORT = int(os.getenv("BACKEND_PORT", "8000"))


# Global state
service: ImpactService = None


def get_service() -> ImpactService:
    """Shared ImpactService, created on first use if lifespan has not run."""
    global service
    if service is None:
        service = ImpactService(get_store())
    return service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("=" * 50)
    logger.info("FlightImpact Backend - Starting")
    logger.info("=" * 50)

    impact_service = get_service()
    logger.info(f"ImpactService initialized with {type(impact_service.store).__name__}")

    yield

    logger.info("Shutting down...")
    close = getattr(impact_service.store, "close", None)
    if close:
        close()
    logger.info("Shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="FlightImpact Backend API",
    description="Conflict-zone impact on air-traffic routing",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify allowed origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    """Middleware to track HTTP requests."""
    response = await call_next(request)
    HTTP_REQUESTS.labels(
        method=request.method,
        path=request.url.path,
        status=response.status_code
    ).inc()
    return response


@app.exception_handler(ImpactError)
async def impact_error_handler(request: Request, exc: ImpactError):
    """Map core errors to their HTTP status with an error body."""
    if exc.status_code >= 500:
        logger.error(f"{request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={ERROR_KEY: exc.message}
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "FlightImpact Backend",
        "version": "1.0.0",
        "endpoints": {
            "airports": "/airports",
            "conflicts": "/conflicts?period=baseline|during",
            "heatmap": "/heatmap?period=baseline|during",
            "stats": "/stats?period=baseline|during",
            "od_routes": "/od-routes?origin=XXX&destination=YYY",
            "health": "/health",
            "metrics": "/metrics"
        }
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "store": type(service.store).__name__ if service else None
    }


@app.get("/airports")
def get_airports(impact: ImpactService = Depends(get_service)):
    """Airport list for the route picker, sorted by IATA code."""
    return impact.list_airports()


@app.get("/conflicts")
def get_conflicts(period: Optional[str] = None, impact: ImpactService = Depends(get_service)):
    """GeoJSON polygons of the conflict zones active in the period."""
    return impact.get_conflict_zones(period)


@app.get("/heatmap")
def get_heatmap(period: Optional[str] = None, impact: ImpactService = Depends(get_service)):
    """GeoJSON flight-density points for the period."""
    return impact.get_heatmap(period)


@app.get("/stats")
def get_stats(period: Optional[str] = None, impact: ImpactService = Depends(get_service)):
    """Fleet-level statistics for the period."""
    return impact.get_stats(period)


@app.get("/od-routes")
def compare_route(
    origin: Optional[str] = None,
    destination: Optional[str] = None,
    impact: ImpactService = Depends(get_service)
):
    """
    Baseline vs during-conflict comparison for one route.
    
    May persist newly computed route statistics.
    """
    return impact.compare_route(origin, destination)


@app.post("/od-routes")
def compare_route_post(body: RouteComparisonRequest, impact: ImpactService = Depends(get_service)):
    """Same as GET /od-routes with origin/destination in a JSON body."""
    return impact.compare_route(body.origin, body.destination)


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return await get_metrics()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "backend.main:app",
        host=BACKEND_HOST,
        port=BACKEND_PORT,
        log_level="info"
    )

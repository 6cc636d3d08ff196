"""Main FastAPI application for rahat-case-service."""

import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rahat_service import __version__
from rahat_service.api.dependencies import close_auth_client
from rahat_service.api.responses import register_exception_handlers
from rahat_service.api.routes.analytics import router as analytics_router
from rahat_service.api.routes.cases import router as cases_router
from rahat_service.config import settings
from rahat_service.infrastructure.database import db_client
from rahat_service.models import HealthResponse

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Rahat Case Service",
    description="Compensation claim workflow for the district disaster relief office",
    version=__version__,
)

logger.info(f"Identity provider: {settings.identity_provider}")

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(cases_router)
app.include_router(analytics_router)


@app.on_event("startup")
async def startup():
    """Initialize database on startup."""
    logger.info(f"Starting {settings.service_name} on port {settings.port}")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Case storage: {settings.case_storage_type}")

    if settings.case_storage_type.lower() != "postgres":
        return

    logger.info(f"Database: {settings.database_url}")
    try:
        await db_client.verify_connection()

        # Note: Alembic migrations are the primary schema path;
        # create_tables() covers setups that skip them
        await db_client.create_tables()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


@app.on_event("shutdown")
async def shutdown():
    """Clean up resources on shutdown."""
    logger.info("Shutting down service")
    await close_auth_client()
    await db_client.close()


@app.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="""
Returns the health status of the Case Service.

**Response Example**:
```json
{
  "status": "healthy",
  "service": "rahat-case-service",
  "version": "1.0.0",
  "database": "inmemory"
}
```

**Storage**: No database query (reports storage type only)
**Authorization**: None required (public endpoint)
    """,
    responses={
        200: {"description": "Service is healthy and operational"},
    },
)
async def health_check():
    """Health check endpoint."""
    if settings.case_storage_type.lower() == "postgres":
        database = settings.database_url.split("://")[0]
    else:
        database = "inmemory"
    return HealthResponse(
        status="healthy",
        service=settings.service_name,
        version=__version__,
        database=database,
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "rahat_service.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.environment == "development",
    )

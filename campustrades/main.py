"""Main FastAPI application for the CampusTrades messaging core."""
from fastapi import FastAPI
import logging

from campustrades import __version__
from campustrades.db.init import init_db
from campustrades.middleware.cors import add_cors_middleware
from campustrades.middleware.errors import add_exception_handlers
from campustrades.routers import conversations_router, favorites_router, ratings_router
from campustrades.utils.logger import configure_logging
from campustrades.utils.metrics import metrics_collector

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="CampusTrades Messaging API",
    description="Conversations, messages, unread badges and purchase ratings for the CampusTrades marketplace",
    version=__version__,
)

add_cors_middleware(app)
add_exception_handlers(app)


@app.on_event("startup")
async def startup_event():
    """Create tables on startup."""
    try:
        init_db()
    except Exception as e:
        logger.warning(f"Database initialization failed: {str(e)}")
        logger.warning("Server will continue but database operations may fail. Check DATABASE_URL.")
    logger.info("Application startup complete.")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


@app.get("/metrics")
async def metrics():
    """In-process messaging counters."""
    return metrics_collector.get_metrics()


app.include_router(conversations_router, prefix="/api")
app.include_router(ratings_router, prefix="/api")
app.include_router(favorites_router, prefix="/api")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "campustrades.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )

"""
Hub Download Tracker - Main FastAPI Application
"""

import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from backend.api import downloads
from backend.core.counters import CounterStore
from backend.core.event_log import EventLog
from backend.core.settings import get_settings
from backend.core.storage import StorageUnavailable, create_client, ping, storage_errors
from backend.core.tracking import initialize_counters


settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect to MongoDB and make sure the global counter exists."""
    client = None
    try:
        with storage_errors("connect"):
            client = create_client(settings)
        database = client[settings.mongo_db_name]
        ping(database)
        logger.info("Connected to MongoDB database %s", settings.mongo_db_name)

        app.state.database = database
        app.state.event_log = EventLog(database[settings.download_info_collection])
        app.state.counters = CounterStore(database[settings.total_download_collection])

        total = initialize_counters(app.state.event_log, app.state.counters)
        logger.info("Serving with %d total downloads", total)
    except StorageUnavailable:
        logger.exception("Error connecting to MongoDB")
        if client is not None:
            client.close()
        raise

    try:
        yield
    finally:
        client.close()


app = FastAPI(
    title="Hub Download Tracker",
    description="Records app downloads and serves download counters",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(downloads.router, prefix="/totaldownloads", tags=["downloads"])


@app.exception_handler(RequestValidationError)
async def invalid_request(request: Request, exc: RequestValidationError):
    """Unparseable bodies get the same flat error shape as every other failure."""
    logger.warning("Rejected request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.get("/")
async def root():
    """Liveness message."""
    return {"message": "Hello hub app server"}


@app.get("/health")
def health_check():
    """Health check endpoint for Docker. Pings the database."""
    try:
        ping(app.state.database)
    except StorageUnavailable:
        logger.exception("Health check failed")
        return JSONResponse(status_code=500, content={"error": "Database unavailable"})
    return {"status": "healthy"}


def run():
    """Run the application with uvicorn."""
    import uvicorn
    uvicorn.run(
        "backend.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.dev,
    )


if __name__ == "__main__":
    run()

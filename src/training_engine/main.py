"""FastAPI application for the training decision engine."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api.deps import get_training_db
from .api.exception_handlers import register_exception_handlers
from .api.routes import decisions, thresholds, training_load
from .config import get_settings
from .services.load_scheduler import get_scheduler, shutdown_scheduler
from .utils.log_sanitizer import install_log_sanitizer


logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)

# Must be installed before any request is logged
install_log_sanitizer(extra_secrets=[get_settings().cron_secret])

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    logger.info(f"Starting training decision engine v{__version__}")
    logger.info(f"Database: {settings.database_path}")

    if not settings.cron_secret:
        logger.warning(
            "CRON_SECRET is not configured. The training load trigger is unauthenticated."
        )

    if settings.load_monitor_enabled:
        try:
            get_scheduler(get_training_db()).start()
        except Exception as e:
            logger.warning(f"Failed to start load monitor scheduler: {e}")
    else:
        logger.info("Nightly load monitor is disabled")

    yield

    logger.info("Shutting down training decision engine")
    shutdown_scheduler()


app = FastAPI(
    title="Training Decision Engine API",
    description="Training load monitoring, threshold estimation and weighted decisions",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(training_load.router, prefix="/api", tags=["training-load"])
app.include_router(thresholds.router, prefix="/api", tags=["thresholds"])
app.include_router(decisions.router, prefix="/api", tags=["decisions"])


@app.get("/health")
def health_check():
    """Liveness probe."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)

"""Dependency injection for API routes."""

import hmac
import logging
from functools import lru_cache

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import get_settings
from ..db.database import TrainingDatabase
from ..exceptions import AuthenticationError
from ..services.base import TrainingLoadRepository
from ..services.load_monitor import LoadMonitorService

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@lru_cache
def get_training_db() -> TrainingDatabase:
    """Get the training database instance."""
    settings = get_settings()
    return TrainingDatabase(str(settings.database_path))


def get_repository() -> TrainingLoadRepository:
    """Persistence port used by the services."""
    return get_training_db()


def get_load_monitor(
    repository: TrainingLoadRepository = Depends(get_repository),
) -> LoadMonitorService:
    """Get a load monitor bound to the repository."""
    return LoadMonitorService(repository)


def verify_cron_secret(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> None:
    """Check the bearer token against the configured cron secret.

    When no secret is configured the check is skipped.

    Raises:
        AuthenticationError: Missing or mismatching token.
    """
    secret = get_settings().cron_secret
    if not secret:
        logger.warning("CRON_SECRET is not configured; skipping cron authentication")
        return

    if credentials is None:
        raise AuthenticationError("Missing cron token")

    if not hmac.compare_digest(credentials.credentials.encode(), secret.encode()):
        raise AuthenticationError("Invalid cron token")

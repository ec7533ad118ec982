"""
Data layer entry points for a boundary layer (route handlers, CLIs).

The boundary owns the ``DataStore`` instance: build it once at startup with
``initialize_data_layer`` and pass it to whatever needs it.
"""

import logging
from typing import Optional

from reallifegit.config import Settings
from reallifegit.config import settings as default_settings
from reallifegit.core.logging import setup_logging
from reallifegit.dtos.store import DataLayerHealth
from reallifegit.services.data_store import DataStore
from reallifegit.utils.datetime import utc_now

logger = logging.getLogger(__name__)


def initialize_data_layer(settings: Optional[Settings] = None) -> DataStore:
    """Configure logging, then build and seed a store."""
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

    store = DataStore(settings=settings).init()
    logger.info(
        "%s %s data layer ready: %s",
        settings.APP_NAME,
        settings.APP_VERSION,
        store.get_store_stats().model_dump(),
    )
    return store


def check_data_layer_health(store: DataStore) -> DataLayerHealth:
    """Healthy when the store answers and holds at least one entity."""
    now = utc_now()
    try:
        stats = store.get_store_stats()
    except Exception as exc:
        logger.exception("Data layer health check failed: %s", exc)
        return DataLayerHealth(status="unhealthy", timestamp=now, details={"error": str(exc)})

    return DataLayerHealth(
        status="unhealthy" if stats.is_empty else "healthy",
        timestamp=now,
        details=stats.model_dump(by_alias=True),
    )

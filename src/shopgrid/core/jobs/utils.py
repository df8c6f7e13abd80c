"""Shared utilities for job infrastructure."""

from arq.connections import RedisSettings

from shopgrid.config import settings


def get_redis_settings() -> RedisSettings:
    """Get Redis settings for ARQ from app configuration.

    Returns:
        ARQ RedisSettings parsed from ``settings.redis_url``, including
        credentials and database number when present
    """
    return RedisSettings.from_dsn(str(settings.redis_url))

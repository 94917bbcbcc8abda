"""
Health probe functions for dependency checks.

This module provides reusable probe functions for:
- Database connectivity (SQLite/PostgreSQL)
- Vendor configuration (speech, LLM, mapping)

Probes never raise; they report health as plain values so the readiness
endpoint can aggregate them.
"""

import asyncio
import logging
from typing import Dict

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from travel_planner.core.config import settings
from travel_planner.core.database import async_session_maker

logger = logging.getLogger(__name__)


async def check_database(timeout_seconds: float = 2.0) -> bool:
    """
    Check database connectivity.

    Executes a simple SELECT 1 query to verify the database is reachable
    and responding. Includes timeout to prevent hanging on unreachable DB.

    Returns:
        True if database is reachable and healthy, False otherwise
    """
    try:
        async with asyncio.timeout(timeout_seconds):
            async with async_session_maker() as session:
                result = await session.execute(text("SELECT 1"))
                result.scalar()
                return True
    except TimeoutError:
        logger.warning("Database probe timed out", extra={"timeout_seconds": timeout_seconds})
        return False
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Database probe failed", extra={"error": str(e)})
        return False


def check_vendor_configuration() -> Dict[str, bool]:
    """
    Report which vendor integrations have credentials configured.

    Credentials are optional at start-up; a missing vendor degrades only the
    routes that depend on it.
    """
    if settings.llm_provider == "openai":
        llm_configured = bool(settings.llm_api_key)
    else:
        llm_configured = bool(
            settings.aliyun_bailian_access_key_id and settings.aliyun_bailian_access_key_secret
        )
    return {
        "llm": llm_configured,
        "voice": bool(
            settings.iflytek_app_id and settings.iflytek_api_key and settings.iflytek_api_secret
        ),
        "map": bool(settings.amap_api_key),
    }

# bi_portal/db.py
"""
Database Connection Management

Version: 2.1.0
Features:
- One pooled engine per database alias (sales / silverman / quality)
- Thread-safe double-checked locking
- Connection pooling with auto-reconnect
- Health check utilities
- Engine disposal on shutdown (reset_db_engine)

CHANGELOG:
- v2.1.0: PostgreSQL (psycopg2) engines keyed by alias
          Fixed-size pool (no overflow) bounded by DB_POOL_SIZE
          Dedicated single-connection engine for bulk import scripts
"""

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool
from sqlalchemy.exc import OperationalError
from urllib.parse import quote_plus
import logging
import threading
from typing import Tuple, Optional, Dict, Any

from .config import config, DEFAULT_DB_ALIAS

logger = logging.getLogger(__name__)

# ==================== ENGINE REGISTRY ====================

_engines: Dict[str, Engine] = {}
_engine_lock = threading.Lock()


def get_db_engine(alias: str = DEFAULT_DB_ALIAS) -> Engine:
    """
    Get SQLAlchemy engine for a database alias (singleton per alias)

    Thread-safe implementation using double-checked locking.
    Reuses the same engine across all calls so the pool size
    bounds concurrent queries against each database.

    Args:
        alias: 'sales', 'silverman' or 'quality'

    Returns:
        SQLAlchemy Engine instance
    """
    engine = _engines.get(alias)

    if engine is None:
        with _engine_lock:
            engine = _engines.get(alias)
            if engine is None:
                engine = _create_engine(alias)
                _engines[alias] = engine

    return engine


def build_db_url(alias: str = DEFAULT_DB_ALIAS, mask_password: bool = False) -> str:
    """Build a postgresql+psycopg2 URL for an alias."""
    db_config = config.get_db_config(alias)

    user = db_config["user"]
    password = "***" if mask_password else quote_plus(str(db_config["password"]))
    host = db_config["host"]
    port = db_config["port"]
    database = db_config["database"]

    return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{database}"


def _create_engine(alias: str, pool_size: Optional[int] = None) -> Engine:
    """Create new database engine with configured settings"""
    url = build_db_url(alias)

    logger.info(f"🔌 Creating database engine [{alias}]: {build_db_url(alias, mask_password=True)}")

    pool_size = pool_size or config.get_app_setting("DB_POOL_SIZE", 30)
    pool_recycle = config.get_app_setting("DB_POOL_RECYCLE", 3600)
    connect_timeout = config.get_app_setting("DB_CONNECT_TIMEOUT", 30)

    engine = create_engine(
        url,
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=0,
        pool_timeout=connect_timeout,
        pool_recycle=pool_recycle,
        pool_pre_ping=True,  # Auto-reconnect on stale connections
        connect_args={"connect_timeout": connect_timeout},
        echo=config.get_app_setting("DEBUG_SQL", False),
    )

    logger.info(f"✅ Database engine [{alias}] created (pool_size={pool_size}, recycle={pool_recycle}s)")

    return engine


def create_single_connection_engine(alias: str = DEFAULT_DB_ALIAS) -> Engine:
    """
    Create a private engine holding at most one connection.

    Used by maintenance scripts that must run every statement
    serially. The caller owns the engine and must dispose it.
    """
    return _create_engine(alias, pool_size=1)


# ==================== CONNECTION MANAGEMENT ====================

def check_db_connection(alias: str = DEFAULT_DB_ALIAS) -> Tuple[bool, Optional[str]]:
    """
    Check if database connection is healthy

    Returns:
        Tuple of (is_connected: bool, error_message: str or None)
    """
    try:
        engine = get_db_engine(alias)
        with engine.connect() as conn:
            now = conn.execute(text("SELECT NOW()")).scalar()
        logger.info(f"✅ Database [{alias}] connected: {now}")
        return True, None
    except OperationalError as e:
        error_msg = "Cannot connect to database. Please check your network/VPN connection."
        logger.error(f"❌ Database [{alias}] connection failed: {e}")
        return False, error_msg
    except Exception as e:
        error_msg = f"Database error: {str(e)}"
        logger.error(f"❌ Database [{alias}] error: {e}")
        return False, error_msg


def reset_db_engine(alias: Optional[str] = None):
    """
    Dispose one engine (or all of them when alias is None).

    The next query reconnects with a fresh pool.
    """
    with _engine_lock:
        aliases = [alias] if alias else list(_engines.keys())
        for name in aliases:
            engine = _engines.pop(name, None)
            if engine is None:
                continue
            try:
                engine.dispose()
                logger.info(f"🔄 Database engine [{name}] disposed")
            except Exception as e:
                logger.error(f"Error disposing engine [{name}]: {e}")


def get_connection_pool_status(alias: str = DEFAULT_DB_ALIAS) -> Dict[str, Any]:
    """
    Get connection pool statistics for monitoring

    Returns:
        Dictionary with pool statistics
    """
    engine = _engines.get(alias)
    if engine is None:
        return {"status": "not_initialized"}

    try:
        pool = engine.pool
        return {
            "status": "active",
            "pool_size": pool.size(),
            "checked_in": pool.checkedin(),
            "checked_out": pool.checkedout(),
            "overflow": pool.overflow(),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}


# ==================== EXPORTS ====================

__all__ = [
    'get_db_engine',
    'build_db_url',
    'create_single_connection_engine',
    'check_db_connection',
    'reset_db_engine',
    'get_connection_pool_status',
]

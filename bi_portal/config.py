# bi_portal/config.py
"""
Centralized Configuration Management

Version: 2.1.0
Features:
- Support both local (.env) and Streamlit Cloud (secrets.toml)
- Singleton pattern for efficiency
- One shared PostgreSQL server, several databases addressed by alias
- Type-safe getters with defaults

CHANGELOG:
- v2.1.0: Multi-database aliases (sales / silverman / quality)
          Connect timeout, SQL echo flag and API/CSV/menu settings
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv
from typing import Dict, Any, List
from dataclasses import dataclass

# Initialize logger
logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Alias -> (env var holding the database name, default database name)
DATABASE_ALIASES = {
    "sales": ("DB_NAME_SALES", "RPT2025"),
    "silverman": ("DB_NAME_SILVERMAN", "postgres"),
    "quality": ("DB_NAME_QUALITY", "dbquality"),
}

DEFAULT_DB_ALIAS = "sales"


def is_running_on_streamlit_cloud() -> bool:
    """Detect if running on Streamlit Cloud"""
    try:
        import streamlit as st
        return hasattr(st, 'secrets') and len(st.secrets) > 0
    except Exception:
        return False


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class DatabaseConfig:
    """Database server configuration container"""
    host: str
    port: int
    user: str
    password: str
    databases: Dict[str, str]

    def to_dict(self, alias: str = DEFAULT_DB_ALIAS) -> Dict[str, Any]:
        if alias not in self.databases:
            raise KeyError(f"Unknown database alias: {alias}")
        return {
            'host': self.host,
            'port': self.port,
            'user': self.user,
            'password': self.password,
            'database': self.databases[alias],
        }


class Config:
    """
    Centralized configuration management

    Usage:
        from bi_portal.config import config

        # Connection settings for the silverman (common fee) database
        db_config = config.get_db_config("silverman")

        # App settings
        pool_size = config.get_app_setting("DB_POOL_SIZE", 30)
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self.is_cloud = is_running_on_streamlit_cloud()
        self._load_config()
        self._initialized = True

    def _load_config(self):
        """Load configuration based on environment"""
        if self.is_cloud:
            self._load_cloud_config()
        else:
            self._load_local_config()

        self._load_app_config()
        self._log_config_status()

    def _load_cloud_config(self):
        """Load configuration from Streamlit Cloud secrets"""
        import streamlit as st

        db_secrets = st.secrets.get("DB_CONFIG", {})
        self._db_config = DatabaseConfig(
            host=db_secrets.get("host", "localhost"),
            port=int(db_secrets.get("port", 5432)),
            user=db_secrets.get("user", "postgres"),
            password=db_secrets.get("password", ""),
            databases={
                alias: db_secrets.get(env_name.lower(), default)
                for alias, (env_name, default) in DATABASE_ALIASES.items()
            },
        )

        logger.info("☁️ Running in STREAMLIT CLOUD")

    def _load_local_config(self):
        """Load configuration from local .env file"""
        env_paths = [
            Path.cwd() / ".env",
            PROJECT_ROOT / ".env",
        ]

        for env_path in env_paths:
            if env_path.exists():
                load_dotenv(env_path)
                logger.info(f"Loaded .env from: {env_path}")
                break

        self._db_config = DatabaseConfig(
            host=os.getenv("DB_HOST", "localhost"),
            port=int(os.getenv("DB_PORT", "5432")),
            user=os.getenv("DB_USER", "postgres"),
            password=os.getenv("DB_PASSWORD", ""),
            databases={
                alias: os.getenv(env_name, default)
                for alias, (env_name, default) in DATABASE_ALIASES.items()
            },
        )

        # Password may legitimately be empty (trust / peer auth)
        if not all([self._db_config.host, self._db_config.user]):
            logger.error("Missing required database configuration")
            raise ValueError("Missing required database configuration. Please check .env file.")

        logger.info("💻 Running in LOCAL environment")

    def _load_app_config(self):
        """Load application-specific settings"""
        self._app_config = {
            # Database pool
            "DB_POOL_SIZE": int(os.getenv("DB_POOL_SIZE", "30")),
            "DB_POOL_RECYCLE": int(os.getenv("DB_POOL_RECYCLE", "3600")),
            "DB_CONNECT_TIMEOUT": int(os.getenv("DB_CONNECT_TIMEOUT", "30")),
            "DEBUG_SQL": _env_bool("DEBUG_SQL"),

            # Cache (Streamlit pages only)
            "CACHE_TTL_SECONDS": int(os.getenv("CACHE_TTL_SECONDS", "300")),

            # API server
            "API_HOST": os.getenv("API_HOST", "0.0.0.0"),
            "API_PORT": int(os.getenv("API_PORT", os.getenv("PORT", "4001"))),
            "CORS_ORIGINS": [
                origin.strip()
                for origin in os.getenv(
                    "CORS_ORIGINS", "http://localhost:5173,http://localhost:8501"
                ).split(",")
                if origin.strip()
            ],

            # Files
            "CSV_DIR": os.getenv("CSV_DIR", str(PROJECT_ROOT / "csv")),
            "MENU_SETTINGS_PATH": os.getenv(
                "MENU_SETTINGS_PATH", str(PROJECT_ROOT / ".menu_settings.json")
            ),

            # Localization
            "TIMEZONE": os.getenv("TIMEZONE", "Asia/Bangkok"),
        }

    def _log_config_status(self):
        """Log configuration status"""
        for alias, database in self._db_config.databases.items():
            logger.info(f"✅ Database [{alias}]: {self._db_config.host}/{database}")
        logger.info(f"✅ DB pool size: {self._app_config['DB_POOL_SIZE']}")

    # ==================== PUBLIC GETTERS ====================

    def get_db_config(self, alias: str = DEFAULT_DB_ALIAS) -> Dict[str, Any]:
        """Get connection settings for a database alias"""
        return self._db_config.to_dict(alias)

    def get_db_aliases(self) -> List[str]:
        return list(self._db_config.databases.keys())

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        """Get application setting with default"""
        return self._app_config.get(key, default)

    # ==================== PROPERTIES ====================

    @property
    def app_config(self) -> Dict[str, Any]:
        return self._app_config.copy()


# ==================== SINGLETON INSTANCE ====================

config = Config()

__all__ = [
    'config',
    'Config',
    'DatabaseConfig',
    'DATABASE_ALIASES',
    'DEFAULT_DB_ALIAS',
    'PROJECT_ROOT',
    'is_running_on_streamlit_cloud',
]

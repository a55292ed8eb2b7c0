"""Database manager for Weathervane with configuration and wrapper initialization."""

import logging
from typing import Any, Dict

from .wrapper import DatabaseWrapper

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = "weathervane.db"


class DatabaseManager:
    """Manages database initialization and configuration.

    Builds DatabaseWrapper from [database] config section.
    """

    __slots__ = ("config", "db")

    def __init__(self, config: Dict[str, Any]):
        """Initialize DatabaseManager with configuration.

        Args:
            config: Database configuration dict (path, timeout)
        """
        self.config = config
        self.db = DatabaseWrapper(
            dbPath=str(config.get("path", DEFAULT_DB_PATH)),
            timeout=float(config.get("timeout", 30.0)),
        )
        logger.info(f"Database initialized: {self.config}")

    def getDatabase(self) -> DatabaseWrapper:
        """Get the database wrapper instance."""
        return self.db

    def close(self) -> None:
        self.db.close()

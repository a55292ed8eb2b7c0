"""
Weathervane - current weather for the stored city or device location,
with TOML configuration and SQLite persistence.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from internal.config.manager import ConfigManager
from internal.database.manager import DatabaseManager
from internal.location import (
    DatabaseLocationStore,
    DictLocationStore,
    GeolocationProviderInterface,
    IpGeolocationProvider,
    LocationResolver,
    LocationStoreInterface,
    NullGeolocationProvider,
    StaticGeolocationProvider,
    StaticPermissionGate,
)
from internal.location.resolver import DEFAULT_FIX_TIMEOUT
from internal.services.refresh import ConsolePresentationSink, RefreshController
from lib import utils
from lib.logging_utils import initLogging
from lib.openweathermap import OpenWeatherMapClient

# Configure basic logging first
logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging.INFO)
# set higher logging level for httpx to avoid all GET requests being logged
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def createGeolocationProvider(config: dict) -> GeolocationProviderInterface:
    """Build geolocation provider from [geolocation] section"""
    providerType = config.get("type", "none")
    match providerType:
        case "static":
            if "latitude" not in config or "longitude" not in config:
                raise ValueError("Static geolocation needs latitude and longitude")
            return StaticGeolocationProvider(config["latitude"], config["longitude"])
        case "ip":
            return IpGeolocationProvider(requestTimeout=config.get("request-timeout", 10))
        case "none":
            return NullGeolocationProvider()
        case _:
            raise ValueError(f"Unknown geolocation type: {providerType}")


class WeathervaneApp:
    """Main application orchestrator that wires all components together."""

    def __init__(
        self,
        configPath: str = "config.toml",
        configDirs: Optional[List[str]] = None,
        ephemeral: bool = False,
    ):
        # Initialize configuration
        self.configManager = ConfigManager(configPath, configDirs)

        # Initialize logging with config
        initLogging(self.configManager.getLoggingConfig())

        # Initialize location store
        self.databaseManager: Optional[DatabaseManager] = None
        self.store: LocationStoreInterface
        if ephemeral:
            logger.info("Using in-memory location store")
            self.store = DictLocationStore()
        else:
            self.databaseManager = DatabaseManager(self.configManager.getDatabaseConfig())
            self.store = DatabaseLocationStore(self.databaseManager.getDatabase())

        owmConfig = self.configManager.getOpenWeatherMapConfig()
        self.units = owmConfig.get("units", "imperial")
        self.client = OpenWeatherMapClient(
            apiKey=owmConfig["api-key"],
            units=self.units,
            requestTimeout=owmConfig.get("request-timeout", 10),
            language=owmConfig.get("language", None),
        )

        geoConfig = self.configManager.getGeolocationConfig()
        self.permissionGate = StaticPermissionGate(granted=bool(geoConfig.get("permission-granted", False)))
        self.resolver = LocationResolver(
            store=self.store,
            geolocation=createGeolocationProvider(geoConfig),
            permissionGate=self.permissionGate,
            fixTimeout=geoConfig.get("fix-timeout", DEFAULT_FIX_TIMEOUT),
        )

        self.sink = ConsolePresentationSink(units=self.units)
        self.refreshInterval = float(self.configManager.getRefreshConfig().get("interval", 0))

    def _startRefresh(self, city: Optional[str], locate: bool) -> RefreshController:
        """Create controller and fire initial trigger: explicit city, explicit device location or stored location"""
        controller = RefreshController(self.client, self.resolver, self.store, self.sink)
        if city is not None:
            controller.submitCity(city)
        elif locate:
            controller.locateMe()
        else:
            controller.onResume()
        return controller

    async def runOnce(self, city: Optional[str] = None, locate: bool = False) -> None:
        controller = self._startRefresh(city, locate)
        await controller.waitIdle()

    async def watch(self, city: Optional[str] = None, locate: bool = False) -> None:
        """Refresh, then keep refreshing every [refresh] interval until interrupted"""
        if self.refreshInterval <= 0:
            logger.error("Set [refresh] interval to positive number of seconds to use --watch")
            return

        controller = self._startRefresh(city, locate)
        controller.startAutoRefresh(self.refreshInterval)
        try:
            # Runs until cancelled
            await asyncio.Event().wait()
        finally:
            await controller.stop()

    def run(self, city: Optional[str] = None, locate: bool = False, watch: bool = False) -> None:
        try:
            if watch:
                asyncio.run(self.watch(city=city, locate=locate))
            else:
                asyncio.run(self.runOnce(city=city, locate=locate))
        finally:
            if self.databaseManager is not None:
                self.databaseManager.close()


def parse_arguments():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Weathervane - current weather for your city or location, dood!"
    )
    parser.add_argument(
        "-c",
        "--config",
        default="config.toml",
        help="Path to configuration file (default: config.toml)",
    )
    parser.add_argument(
        "--config-dir",
        action="append",
        help="Directory to search for .toml config files recursively (can be specified multiple times), dood!",
    )
    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Pretty-print loaded configuration and exit, dood!",
    )
    location = parser.add_mutually_exclusive_group()
    location.add_argument(
        "--city",
        help="Show weather for this city and remember it on success",
    )
    location.add_argument(
        "--locate",
        action="store_true",
        help="Show weather for device location and remember that choice on success",
    )
    parser.add_argument(
        "--watch",
        action="store_true",
        help="Keep running and refresh every [refresh] interval seconds",
    )
    parser.add_argument(
        "--ephemeral",
        action="store_true",
        help="Don't persist chosen location, keep it in memory only",
    )
    args = parser.parse_args()
    args.config = os.path.abspath(args.config)

    # Convert config directories to absolute paths
    if args.config_dir:
        args.config_dir = [os.path.abspath(dir_path) for dir_path in args.config_dir]

    return args


def prettyPrintConfig(configManager: ConfigManager):
    """Pretty-print the loaded configuration and exit, dood!"""
    print("=== Weathervane Configuration ===")
    print()

    print(utils.dumpConfig(configManager.config))

    print()
    print("=== Configuration loaded successfully, dood! ===")


def main():
    """Main entry point."""
    args = parse_arguments()

    try:
        # Handle --print-config argument first
        if args.print_config:
            configManager = ConfigManager(configPath=args.config, configDirs=args.config_dir)
            prettyPrintConfig(configManager)
            sys.exit(0)

        app = WeathervaneApp(configPath=args.config, configDirs=args.config_dir, ephemeral=args.ephemeral)
        app.run(city=args.city, locate=args.locate, watch=args.watch)
    except KeyboardInterrupt:
        logger.info("Stopped by user")
    except Exception as e:
        logger.error(f"Weathervane crashed: {e}")
        logger.exception(e)
        sys.exit(1)


if __name__ == "__main__":
    main()

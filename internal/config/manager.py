"""
Configuration management for Weathervane.
"""

import logging
import os
import re
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import tomli

import lib.utils as utils

logger = logging.getLogger(__name__)

API_KEY_PLACEHOLDERS = ("", "YOUR_API_KEY_HERE")


def replaceMatchToEnv(match: re.Match[str]) -> str:
    """Replace ${VAR} placeholder with environment variable value.

    Unknown variables are left as is.
    """
    key = match.group(1)
    return os.getenv(key, match.group(0))


def substituteEnvVars(value: Any) -> Any:
    """Recursively substitute ${VAR_NAME} placeholders in configuration values.

    Strings are substituted, dicts and lists are processed recursively,
    other values are returned unchanged.
    """
    if isinstance(value, str):
        return re.sub(r"\$\{([A-Za-z_][A-Za-z0-9_-]*)\}", replaceMatchToEnv, value)
    elif isinstance(value, dict):
        return {k: substituteEnvVars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [substituteEnvVars(item) for item in value]
    return value


class ConfigManager:
    """Manages configuration loading and validation for Weathervane."""

    def __init__(
        self, configPath: str = "config.toml", configDirs: Optional[List[str]] = None, dotEnvFile: str = ".env"
    ):
        """Initialize ConfigManager with config file path and optional config directories."""
        self.configPath = configPath
        self.configDirs = configDirs or []
        utils.load_dotenv(path=dotEnvFile)
        self.config = substituteEnvVars(self._loadConfig())
        self._validateConfig()

        rootDir = self.config.get("application", {}).get("root-dir", None)
        if rootDir is not None:
            os.chdir(rootDir)
            logger.info(f"Changed root directory to {rootDir}")

    def _findTomlFilesRecursive(self, directory: str) -> List[Path]:
        """Recursively find all .toml files in a directory, dood!"""
        dirPath = Path(directory)

        if not dirPath.is_dir():
            logger.warning(f"Config directory {directory} does not exist or is not a directory, skipping")
            return []

        tomlFiles = [path for path in dirPath.rglob("*.toml") if path.is_file()]
        for tomlFile in tomlFiles:
            logger.debug(f"Found config file: {tomlFile}")
        return sorted(tomlFiles)  # Sort for consistent ordering

    def _mergeConfigs(self, baseConfig: Dict[str, Any], newConfig: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge two configuration dictionaries, new values win."""
        merged = baseConfig.copy()

        for key, value in newConfig.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self._mergeConfigs(merged[key], value)
            else:
                merged[key] = value

        return merged

    def _loadConfig(self) -> Dict[str, Any]:
        """Load configuration from TOML file and optional config directories.

        Exits process if there is neither config file nor config directories,
        or if main config file can't be parsed. Broken files in config
        directories are logged and skipped.
        """
        configFile = Path(self.configPath)
        hasConfigFile = configFile.exists()
        if not hasConfigFile and not self.configDirs:
            logger.error(f"Configuration file {self.configPath} not found!")
            sys.exit(1)

        config: Dict[str, Any] = {}
        if hasConfigFile:
            try:
                with open(configFile, "rb") as f:
                    config = tomli.load(f)
                logger.info(f"Loaded main config from {self.configPath}")
            except (OSError, tomli.TOMLDecodeError) as e:
                logger.error(f"Failed to load configuration: {e}")
                sys.exit(1)

        for configDir in self.configDirs:
            tomlFiles = self._findTomlFilesRecursive(configDir)
            logger.info(f"Found {len(tomlFiles)} .toml files in {configDir}")

            for tomlFile in tomlFiles:
                try:
                    with open(tomlFile, "rb") as f:
                        dirConfig = tomli.load(f)
                except (OSError, tomli.TOMLDecodeError) as e:
                    logger.error(f"Failed to load config file {tomlFile}: {e}")
                    continue

                config = self._mergeConfigs(config, dirConfig)
                logger.info(f"Merged config from {tomlFile}")

        return config

    def _validateConfig(self) -> None:
        """Check required settings, exit if anything is missing."""
        apiKey = self.getOpenWeatherMapConfig().get("api-key", "")
        if not isinstance(apiKey, str) or apiKey.strip() in API_KEY_PLACEHOLDERS or apiKey.startswith("${"):
            logger.error("OpenWeatherMap API key not found in configuration! Set [openweathermap] api-key")
            sys.exit(1)

        units = self.getOpenWeatherMapConfig().get("units", "imperial")
        if units not in ("standard", "metric", "imperial"):
            logger.error(f"Unknown units '{units}', expected one of standard, metric, imperial")
            sys.exit(1)

        logger.info("Configuration loaded and validated successfully, dood!")

    def get(self, key: str, default=None) -> Any:
        """Get configuration value by key."""
        return self.config.get(key, default)

    def getApplicationConfig(self) -> Dict[str, Any]:
        """Get application-wide configuration."""
        return self.get("application", {})

    def getDatabaseConfig(self) -> Dict[str, Any]:
        """
        Get database configuration

        Returns:
            Dict with keys: path (sqlite file, default weathervane.db), timeout
        """
        return self.get("database", {})

    def getLoggingConfig(self) -> Dict[str, Any]:
        """Get logging-specific configuration."""
        return self.get("logging", {})

    def getOpenWeatherMapConfig(self) -> Dict[str, Any]:
        """
        Get OpenWeatherMap configuration

        Returns:
            Dict with OpenWeatherMap settings (api-key, units, request-timeout, language)
        """
        return self.get("openweathermap", {})

    def getGeolocationConfig(self) -> Dict[str, Any]:
        """
        Get geolocation configuration

        Returns:
            Dict with keys:
            - type: "static", "ip" or "none" (default "none")
            - latitude, longitude: coordinates for static provider
            - permission-granted: whether location access is allowed (default False)
            - fix-timeout: seconds to wait for coordinate fix (default 15)
            - request-timeout: HTTP timeout for ip provider (default 10)
        """
        return self.get("geolocation", {})

    def getRefreshConfig(self) -> Dict[str, Any]:
        """
        Get refresh configuration

        Returns:
            Dict with keys: interval (auto refresh period in seconds, 0 disables)
        """
        return self.get("refresh", {})

"""
Common utilities for Weathervane.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable

logger = logging.getLogger(__name__)


SECRET_KEYS = ("api-key",)
SECRET_MASK = "***"


def maskSecrets(data: Any, secretKeys: Iterable[str] = SECRET_KEYS) -> Any:
    """
    Copy nested config replacing values of secret keys with SECRET_MASK

    Dicts and lists are walked recursively, other values are returned as is.
    """
    secretKeys = frozenset(secretKeys)
    if isinstance(data, dict):
        return {
            key: SECRET_MASK if key in secretKeys else maskSecrets(value, secretKeys) for key, value in data.items()
        }
    if isinstance(data, list):
        return [maskSecrets(item, secretKeys) for item in data]
    return data


def dumpConfig(config: Dict[str, Any], secretKeys: Iterable[str] = SECRET_KEYS) -> str:
    """Render config as indented JSON with secrets masked, dood!"""
    # TOML dates and times are not JSON types, print them as strings
    return json.dumps(maskSecrets(config, secretKeys), ensure_ascii=False, indent=2, sort_keys=True, default=str)


def load_dotenv(path: str = ".env", populateEnv: bool = True) -> Dict[str, str]:
    """
    Simple dotenv file loader.
    Read file line by line and put KEY=VALUE pairs into dictionary.
    Missing file is not an error, empty dict is returned.

    Args:
        path: Path to .env file (default ".env")
        populateEnv: Whether to populate environment variables (default True)

    Returns:
        Dictionary of key-value pairs from .env file
    """
    ret: Dict[str, str] = {}
    envPath = Path(path)
    if not envPath.is_file():
        logger.debug(f"No dotenv file at {path}")
        return ret

    with open(envPath, "rt", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            ret[key.strip()] = value.strip().strip('"')

    if populateEnv:
        for k, v in ret.items():
            os.environ[k] = v
    return ret

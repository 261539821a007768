"""
Common utilities for yuko.
"""

import datetime
import json
import logging
import os
from typing import Any, Dict, Optional

from ..constants import DISCORD_EPOCH

logger = logging.getLogger(__name__)


def jsonDumps(data: Any, compact: Optional[bool] = None, **kwargs) -> str:
    dumpKwargs = {
        "ensure_ascii": False,
        "default": str,
        "sort_keys": True,
    }

    if compact is None:
        # If indent is passed, then user want pretty-printed JSON,
        #  no need to use compact separators
        compact = "indent" not in kwargs

    if compact:
        dumpKwargs["separators"] = (",", ":")
    dumpKwargs.update(kwargs)
    return json.dumps(data, **dumpKwargs)


def load_dotenv(path: str = ".env", populateEnv: bool = True) -> Dict[str, str]:
    """
    Simple dotenv file loader.
    Just read file line by line and put key-value pairs into dictionary.
    Missing file is not an error, empty dict is returned.

    Args:
        path: Path to .env file (default ".env")
        populateEnv: Whether to populate environment variables (default True)

    Returns:
        Dictionary of key-value pairs from .env file
    """
    ret: Dict[str, str] = {}
    if not os.path.isfile(path):
        logger.debug(f"No dotenv file at {path}, skipping")
        return ret

    with open(path, "rt") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            key, sep, value = line.partition("=")
            if sep:
                ret[key.strip()] = value.strip().strip('"')

    if populateEnv:
        for k, v in ret.items():
            os.environ.setdefault(k, v)
    return ret


def snowflakeToTimestamp(snowflake: str | int) -> int:
    """
    Get creation time of a snowflake id.

    Args:
        snowflake: Snowflake id as string or integer

    Returns:
        Unix time in milliseconds
    """
    return (int(snowflake) >> 22) + DISCORD_EPOCH


def parseIsoTimestamp(value: Optional[str]) -> Optional[datetime.datetime]:
    """
    Parse an ISO 8601 timestamp (``2023-11-14T12:34:56.789000+00:00``)
    to a timezone-aware datetime, None if it can't be parsed.
    """
    if not value:
        return None
    try:
        dt = datetime.datetime.fromisoformat(value)
    except ValueError:
        logger.warning(f"Could not parse timestamp '{value}'")
        return None
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=datetime.timezone.utc)

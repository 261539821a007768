"""
yuko - async REST client with per-route rate limiting and entity caches.
Command line entry point.
"""

import argparse
import asyncio
import copy
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from yuko.client import Client
from yuko.config.manager import ConfigManager
from yuko.exceptions import YukoError
from yuko.logging_utils import initLogging
from yuko.utils.common import jsonDumps

# Configure basic logging first
logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging.INFO)
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="yuko - rate-limited chat platform REST client, dood!")
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
        help="Pretty-print loaded configuration (token masked) and exit, dood!",
    )
    parser.add_argument(
        "--get",
        metavar="ENDPOINT",
        help="Perform one GET request (e.g. /users/@me) and print the JSON response",
    )
    args = parser.parse_args(argv)
    args.config = os.path.abspath(args.config)
    if args.config_dir:
        args.config_dir = [os.path.abspath(dirPath) for dirPath in args.config_dir]

    return args


def maskedConfig(config: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of the configuration safe to print."""
    ret = copy.deepcopy(config)
    token = ret.get("bot", {}).get("token")
    if token:
        ret["bot"]["token"] = token[:4] + "..." if len(token) > 8 else "***"
    return ret


def prettyPrintConfig(configManager: ConfigManager) -> None:
    """Pretty-print the loaded configuration, dood!"""
    print("=== yuko configuration ===")
    print()
    print(jsonDumps(maskedConfig(configManager.config), indent=2))
    print()
    print("=== Configuration loaded successfully, dood! ===")


async def fetchEndpoint(configManager: ConfigManager, endpoint: str) -> Any:
    """Perform a single GET request through the rate-limited dispatcher."""
    async with Client(
        configManager.getBotToken(),
        restConfig=configManager.getRestConfig(),
        cacheConfig=configManager.getCacheConfig(),
    ) as client:
        return await client.rest.request("GET", endpoint)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)

    try:
        configManager = ConfigManager(configPath=args.config, configDirs=args.config_dir)

        if args.print_config:
            prettyPrintConfig(configManager)
            return 0

        initLogging(configManager.getLoggingConfig())

        if args.get:
            result = asyncio.run(fetchEndpoint(configManager, args.get))
            if isinstance(result, (dict, list)):
                print(jsonDumps(result, indent=2))
            elif result is not None:
                print(result)
            return 0

        logger.info("Nothing to do, use --get ENDPOINT or --print-config")
        return 0
    except KeyboardInterrupt:
        logger.info("Stopped by user")
        return 130
    except YukoError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""
Configuration management for yuko.

Configuration is TOML. The main file is merged with every ``*.toml`` file
found (recursively, in sorted order) in the optional config directories,
later files overriding earlier ones key by key. ``${VAR}`` placeholders in
string values are replaced from the environment, which is first populated
from an optional ``.env`` file.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import tomli

from ..exceptions import ConfigurationError
from ..rest.types import CacheConfig, RESTConfig
from ..utils.common import load_dotenv

logger = logging.getLogger(__name__)

PLACEHOLDER_TOKENS = ("", "YOUR_BOT_TOKEN_HERE")
_ENV_VAR_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_-]*)\}")


def replaceMatchToEnv(match: re.Match[str]) -> str:
    """Replace an environment variable placeholder with its value.

    Unset variables leave the placeholder as is.
    """
    key = match.group(1)
    return os.getenv(key, match.group(0))


def substituteEnvVars(value: Any) -> Any:
    """Recursively substitute ``${VAR_NAME}`` placeholders in configuration values.

    Args:
        value: Configuration value: string, dict, list or anything else

    Returns:
        Processed value; non-string scalars are returned unchanged
    """
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(replaceMatchToEnv, value)
    elif isinstance(value, dict):
        return {k: substituteEnvVars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [substituteEnvVars(item) for item in value]
    return value


class ConfigManager:
    """Loads and validates the yuko configuration."""

    def __init__(
        self, configPath: str = "config.toml", configDirs: Optional[List[str]] = None, dotEnvFile: str = ".env"
    ):
        """Load configuration.

        Args:
            configPath: Main TOML file, may be absent when config directories are given
            configDirs: Directories scanned recursively for additional ``*.toml`` files
            dotEnvFile: Optional dotenv file loaded into the environment first

        Raises:
            ConfigurationError: If no configuration is found, it can't be parsed,
                or ``[bot] token`` is missing
        """
        self.configPath = configPath
        self.configDirs = configDirs or []
        load_dotenv(path=dotEnvFile)
        self.config: Dict[str, Any] = substituteEnvVars(self._loadConfig())

    def _findTomlFilesRecursive(self, directory: str) -> List[Path]:
        """Recursively find all .toml files in a directory, dood!"""
        dirPath = Path(directory)

        if not dirPath.exists():
            logger.warning(f"Config directory {directory} does not exist, skipping, dood!")
            return []

        if not dirPath.is_dir():
            logger.warning(f"Config path {directory} is not a directory, skipping, dood!")
            return []

        tomlFiles = [path for path in dirPath.rglob("*.toml") if path.is_file()]
        for tomlFile in tomlFiles:
            logger.debug(f"Found config file: {tomlFile}")
        return sorted(tomlFiles)

    def _mergeConfigs(self, baseConfig: Dict[str, Any], newConfig: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge two configuration dictionaries, dood!"""
        merged = baseConfig.copy()

        for key, value in newConfig.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self._mergeConfigs(merged[key], value)
            else:
                merged[key] = value

        return merged

    def _loadConfig(self) -> Dict[str, Any]:
        """Load configuration from TOML file and optional config directories."""
        configFile = Path(self.configPath)
        hasConfigFile = configFile.is_file()
        if not hasConfigFile and not self.configDirs:
            raise ConfigurationError(f"Configuration file {self.configPath} not found")

        config: Dict[str, Any] = {}
        if hasConfigFile:
            try:
                with open(configFile, "rb") as f:
                    config = tomli.load(f)
            except tomli.TOMLDecodeError as e:
                raise ConfigurationError(f"Failed to parse {self.configPath}: {e}") from e
            logger.info(f"Loaded main config from {self.configPath}")

        if self.configDirs:
            logger.info(f"Scanning {len(self.configDirs)} config directories for .toml files, dood!")

        for configDir in self.configDirs:
            tomlFiles = self._findTomlFilesRecursive(configDir)
            logger.info(f"Found {len(tomlFiles)} .toml files in {configDir}")

            for tomlFile in tomlFiles:
                try:
                    with open(tomlFile, "rb") as f:
                        dirConfig = tomli.load(f)
                except (OSError, tomli.TOMLDecodeError) as e:
                    # One broken drop-in file doesn't invalidate the others
                    logger.error(f"Failed to load config file {tomlFile}: {e}")
                    continue

                config = self._mergeConfigs(config, dirConfig)
                logger.info(f"Merged config from {tomlFile}")

        if not config.get("bot", {}).get("token"):
            raise ConfigurationError("Bot token not found in configuration")

        logger.info("Configuration loaded and merged successfully, dood!")
        return config

    def get(self, key: str, default=None) -> Any:
        """Get configuration value by key."""
        return self.config.get(key, default)

    def getBotConfig(self) -> Dict[str, Any]:
        """Get bot-specific configuration."""
        return self.get("bot", {})

    def getBotToken(self) -> str:
        """Get bot token from configuration.

        Raises:
            ConfigurationError: If the token is still the sample placeholder
        """
        token = self.getBotConfig().get("token", "")
        if token in PLACEHOLDER_TOKENS or _ENV_VAR_RE.fullmatch(token):
            raise ConfigurationError("Please set your bot token in config.toml")
        return token

    def getRestConfig(self) -> RESTConfig:
        """Get REST dispatcher configuration (``[rest]``)."""
        return self.get("rest", {})

    def getCacheConfig(self) -> CacheConfig:
        """Get collection limits (``[cache]``)."""
        return self.get("cache", {})

    def getLoggingConfig(self) -> Dict[str, Any]:
        """Get logging-specific configuration."""
        return self.get("logging", {})

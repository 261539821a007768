"""
Yuko Constants

This module contains all constants for the chat platform REST API client:
API configuration, rate-limit header names, defaults and gateway event names.
"""

from enum import IntEnum, IntFlag, StrEnum
from typing import Final, FrozenSet

VERSION: Final[str] = "0.1.0"
PROJECT_URL: Final[str] = "https://github.com/yuko-lib/yuko"

# API Configuration
API_VERSION: Final[int] = 10
API_BASE_URL: Final[str] = f"https://discord.com/api/v{API_VERSION}"
DEFAULT_TIMEOUT: Final[int] = 30
MAX_RETRIES: Final[int] = 3
RETRY_BACKOFF_FACTOR: Final[float] = 1.0
DEFAULT_USER_AGENT: Final[str] = f"DiscordBot ({PROJECT_URL}, {VERSION})"

# HTTP Methods
HTTP_GET: Final[str] = "GET"
HTTP_POST: Final[str] = "POST"
HTTP_PUT: Final[str] = "PUT"
HTTP_DELETE: Final[str] = "DELETE"
HTTP_PATCH: Final[str] = "PATCH"

HTTP_METHODS: Final[FrozenSet[str]] = frozenset({HTTP_GET, HTTP_POST, HTTP_PUT, HTTP_DELETE, HTTP_PATCH})

# Rate Limiting
GLOBAL_RATE_LIMIT: Final[int] = 50  # requests per window
GLOBAL_RATE_LIMIT_WINDOW: Final[float] = 1.0  # seconds
DEFAULT_RETRY_AFTER: Final[float] = 1.0

# Rate-limit headers, matched case-insensitively by httpx
HEADER_RATELIMIT_LIMIT: Final[str] = "X-RateLimit-Limit"
HEADER_RATELIMIT_REMAINING: Final[str] = "X-RateLimit-Remaining"
HEADER_RATELIMIT_RESET: Final[str] = "X-RateLimit-Reset"
HEADER_RATELIMIT_RESET_AFTER: Final[str] = "X-RateLimit-Reset-After"
HEADER_RATELIMIT_BUCKET: Final[str] = "X-RateLimit-Bucket"
HEADER_RATELIMIT_GLOBAL: Final[str] = "X-RateLimit-Global"
HEADER_RATELIMIT_SCOPE: Final[str] = "X-RateLimit-Scope"
HEADER_RETRY_AFTER: Final[str] = "Retry-After"

# Authentication
AUTH_HEADER: Final[str] = "Authorization"
AUTH_PREFIX_BOT: Final[str] = "Bot "
AUTH_PREFIX_BEARER: Final[str] = "Bearer "
AUDIT_LOG_REASON_HEADER: Final[str] = "X-Audit-Log-Reason"

# Content Types
CONTENT_TYPE_JSON: Final[str] = "application/json"
CONTENT_TYPE_FORM_DATA: Final[str] = "multipart/form-data"
CONTENT_TYPE_FORM_URLENCODED: Final[str] = "application/x-www-form-urlencoded"

# Route bucketing
MAJOR_PARAMETER_RESOURCES: Final[FrozenSet[str]] = frozenset({"channels", "guilds", "webhooks"})
BUCKET_ID_PLACEHOLDER: Final[str] = ":id"
BUCKET_REACTION_PLACEHOLDER: Final[str] = ":reaction"
BUCKET_TOKEN_PLACEHOLDER: Final[str] = ":token"

# Snowflakes
DISCORD_EPOCH: Final[int] = 1420070400000  # milliseconds

# Cache defaults
DEFAULT_MESSAGE_CACHE_LIMIT: Final[int] = 100


class ChannelType(IntEnum):
    """Channel type codes"""

    GUILD_TEXT = 0
    DM = 1
    GUILD_VOICE = 2
    GROUP_DM = 3
    GUILD_CATEGORY = 4
    GUILD_NEWS = 5


class Permissions(IntFlag):
    """Guild permission bits, as sent in role ``permissions``"""

    CREATE_INSTANT_INVITE = 1 << 0
    KICK_MEMBERS = 1 << 1
    BAN_MEMBERS = 1 << 2
    ADMINISTRATOR = 1 << 3
    MANAGE_CHANNELS = 1 << 4
    MANAGE_GUILD = 1 << 5
    ADD_REACTIONS = 1 << 6
    VIEW_AUDIT_LOG = 1 << 7
    PRIORITY_SPEAKER = 1 << 8
    STREAM = 1 << 9
    VIEW_CHANNEL = 1 << 10
    SEND_MESSAGES = 1 << 11
    SEND_TTS_MESSAGES = 1 << 12
    MANAGE_MESSAGES = 1 << 13
    EMBED_LINKS = 1 << 14
    ATTACH_FILES = 1 << 15
    READ_MESSAGE_HISTORY = 1 << 16
    MENTION_EVERYONE = 1 << 17
    USE_EXTERNAL_EMOJIS = 1 << 18
    VIEW_GUILD_INSIGHTS = 1 << 19
    CONNECT = 1 << 20
    SPEAK = 1 << 21
    MUTE_MEMBERS = 1 << 22
    DEAFEN_MEMBERS = 1 << 23
    MOVE_MEMBERS = 1 << 24
    USE_VAD = 1 << 25
    CHANGE_NICKNAME = 1 << 26
    MANAGE_NICKNAMES = 1 << 27
    MANAGE_ROLES = 1 << 28
    MANAGE_WEBHOOKS = 1 << 29
    MANAGE_GUILD_EXPRESSIONS = 1 << 30
    USE_APPLICATION_COMMANDS = 1 << 31
    REQUEST_TO_SPEAK = 1 << 32
    MANAGE_EVENTS = 1 << 33
    MANAGE_THREADS = 1 << 34
    CREATE_PUBLIC_THREADS = 1 << 35
    CREATE_PRIVATE_THREADS = 1 << 36
    USE_EXTERNAL_STICKERS = 1 << 37
    SEND_MESSAGES_IN_THREADS = 1 << 38
    USE_EMBEDDED_ACTIVITIES = 1 << 39
    MODERATE_MEMBERS = 1 << 40

    @classmethod
    def all(cls) -> "Permissions":
        """Every known permission"""
        value = cls(0)
        for flag in cls:
            value |= flag
        return value


class GatewayEvent(StrEnum):
    """Gateway dispatch events handled by Client.processEvent()"""

    GUILD_CREATE = "GUILD_CREATE"
    GUILD_UPDATE = "GUILD_UPDATE"
    GUILD_DELETE = "GUILD_DELETE"
    GUILD_MEMBER_ADD = "GUILD_MEMBER_ADD"
    GUILD_MEMBER_UPDATE = "GUILD_MEMBER_UPDATE"
    GUILD_MEMBER_REMOVE = "GUILD_MEMBER_REMOVE"
    GUILD_ROLE_CREATE = "GUILD_ROLE_CREATE"
    GUILD_ROLE_UPDATE = "GUILD_ROLE_UPDATE"
    GUILD_ROLE_DELETE = "GUILD_ROLE_DELETE"
    CHANNEL_CREATE = "CHANNEL_CREATE"
    CHANNEL_UPDATE = "CHANNEL_UPDATE"
    CHANNEL_DELETE = "CHANNEL_DELETE"
    MESSAGE_CREATE = "MESSAGE_CREATE"
    MESSAGE_UPDATE = "MESSAGE_UPDATE"
    MESSAGE_DELETE = "MESSAGE_DELETE"
    USER_UPDATE = "USER_UPDATE"


# Error codes used for locally raised errors
ERROR_CODE_INVALID_ARGUMENT = "invalid.argument"
ERROR_CODE_RATE_LIMIT_EXCEEDED = "rate.limit.exceeded"
ERROR_CODE_SERVER_ERROR = "server.error"
ERROR_CODE_NETWORK_ERROR = "network.error"
ERROR_CODE_CONFIGURATION = "configuration.error"

"""
Utilities: the entity Collection and small helpers.
"""

from .collection import Collection, CollectionItem
from .common import jsonDumps, load_dotenv, parseIsoTimestamp, snowflakeToTimestamp

__all__ = [
    "Collection",
    "CollectionItem",
    "jsonDumps",
    "load_dotenv",
    "parseIsoTimestamp",
    "snowflakeToTimestamp",
]

"""Database management for Pressroom."""

from .articles import PUBLISH_MESSAGE, ArticleStorage
from .connection import close_connection_pool, get_connection, get_connection_pool
from .gateway import PersistenceGateway
from .init import create_schema, init_database, validate_connection
from .media import MediaRecords

__all__ = [
    "PUBLISH_MESSAGE",
    "ArticleStorage",
    "MediaRecords",
    "PersistenceGateway",
    "close_connection_pool",
    "create_schema",
    "get_connection",
    "get_connection_pool",
    "init_database",
    "validate_connection",
]

"""Expose storage backends and cookie transports."""

from .base import CookieTransport, TripletStore
from .cookies import CookieWrite, MemoryCookieTransport, ResponseCookieTransport
from .dynamodb import DynamoDBTripletStore
from .hashed_store import HashedTripletStore
from .memory_store import InMemoryTripletStore
from .sqlite_store import SQLiteTripletStore

__all__ = [
    "CookieTransport",
    "CookieWrite",
    "DynamoDBTripletStore",
    "HashedTripletStore",
    "InMemoryTripletStore",
    "MemoryCookieTransport",
    "ResponseCookieTransport",
    "SQLiteTripletStore",
    "TripletStore",
]

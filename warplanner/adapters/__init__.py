"""Adapter implementations for external services."""

from .database import DatabaseAdapter
from .game_api import GameApiAdapter, GameApiError
from .memory_store import InMemoryStore

__all__ = ["DatabaseAdapter", "GameApiAdapter", "GameApiError", "InMemoryStore"]

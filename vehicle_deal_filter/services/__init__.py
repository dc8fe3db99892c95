"""
Service layer for the Vehicle Deal Filter system.

This module contains the services that orchestrate the engine: configuration
loading, persistence backends, and the listing processing pipeline.
"""

from .config_manager import ConfigurationManager
from .listing_processor import ListingProcessor
from .storage import InMemoryStore, SQLiteStore, create_store

__all__ = [
    "ConfigurationManager",
    "ListingProcessor",
    "InMemoryStore",
    "SQLiteStore",
    "create_store",
]

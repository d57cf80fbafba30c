"""Persistence layer - database adapters and operations."""

from blobhooks.persistence.adapter import PersistenceAdapter
from blobhooks.persistence.config import DatabaseConfig, create_adapter

__all__ = ["PersistenceAdapter", "DatabaseConfig", "create_adapter"]

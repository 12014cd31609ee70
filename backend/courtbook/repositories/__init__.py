# backend/courtbook/repositories/__init__.py
"""Repository layer: data access only, never commits."""

from .base_repository import BaseRepository, IRepository
from .factory import RepositoryFactory

__all__ = ["BaseRepository", "IRepository", "RepositoryFactory"]

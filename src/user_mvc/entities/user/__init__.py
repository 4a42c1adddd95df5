"""User entity module.

This module contains all User-related classes organized by responsibility:
- User: Domain entity with lifecycle rules
- UserTable: Database persistence model
- UserRepository: Create and ListAll over the persistence gateway
"""

from .entity import MAX_AGE, User
from .repository import UserRepository
from .table import UserTable

__all__ = ["MAX_AGE", "User", "UserTable", "UserRepository"]

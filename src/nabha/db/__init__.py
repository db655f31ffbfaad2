"""Database module for the remote API's SQLite persistence.

Provides:
- Database connection management
- Schema initialization
- Repository functions for progress and assignment submissions
"""

from nabha.db.database import get_db, init_db

__all__ = ["get_db", "init_db"]

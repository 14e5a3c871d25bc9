"""Database module for SQLite persistence.

Provides:
- Database connection management
- Schema initialization
- Repository functions for semesters, trackers and the syllabus tree
- Repository functions for tests and coverage
"""

from studytrack.db.database import get_db, init_db

__all__ = ["get_db", "init_db"]

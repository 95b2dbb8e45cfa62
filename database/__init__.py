"""
Database module for the quotes API.
Provides async SQLAlchemy data access for quotes, comments and saved quotes.
"""

from .connection import DatabaseManager
from .operations import QuoteStore

__all__ = ['models', 'connection', 'operations', 'DatabaseManager', 'QuoteStore']

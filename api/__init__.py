"""
API module for the quotes API.
Provides the FastAPI REST surface over QuoteManager.
"""

__all__ = ['app', 'routes', 'models', 'dependencies', 'middleware']

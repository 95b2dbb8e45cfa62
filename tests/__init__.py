"""
Quotes API Test Suite
=====================

This package contains tests for the Quotes API including:
- Unit tests for individual components
- Integration tests for the HTTP API over a real database
"""

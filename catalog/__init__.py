"""
Catalog core for the Book Catalog API.

This package contains:
- The Book model
- The in-memory repository and its readers-writer lock
- The catalog service (validation, filtering, pagination, partial updates)
- Token gate and token issuer
"""

__version__ = "1.0.0"

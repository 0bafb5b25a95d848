"""
FastAPI RESTful API for the Book Catalog.

This module provides:
- Book CRUD with author filtering and pagination
- Bearer token issuance and validation
- Ping, echo and health endpoints
"""

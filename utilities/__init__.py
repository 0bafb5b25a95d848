"""Shared utilities: structured logging."""

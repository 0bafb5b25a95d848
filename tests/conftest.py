"""
Pytest configuration and shared fixtures.
"""

import random

import pytest
from fastapi.testclient import TestClient

from api.config import APIConfig
from api.main import create_app
from catalog.auth import PseudoRandomTokenGenerator, StaticCredentialChecker, TokenGate, TokenIssuer
from catalog.models import Book
from catalog.repository import InMemoryRepository
from catalog.service import CatalogService


@pytest.fixture
def repository():
    """Create an empty repository."""
    return InMemoryRepository()


@pytest.fixture
def service(repository):
    """Create a catalog service over the test repository."""
    return CatalogService(repository)


@pytest.fixture
def token_issuer(repository):
    """Create a token issuer with a seeded generator."""
    return TokenIssuer(
        repository,
        StaticCredentialChecker("admin", "password"),
        PseudoRandomTokenGenerator(random.Random(42))
    )


@pytest.fixture
def token_gate(repository):
    """Create a token gate over the test repository."""
    return TokenGate(repository)


@pytest.fixture
def sample_book():
    """Create an unsaved sample book."""
    return Book(title="Dune", author="Frank Herbert", year=1965)


@pytest.fixture
def api_config():
    """Create API configuration for testing."""
    return APIConfig(auth_username="admin", auth_password="password", token_generator="secure")


@pytest.fixture
def app(api_config, repository):
    """Create an application bound to the test repository."""
    return create_app(api_config, repository)


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def auth_headers(client):
    """Authorization headers carrying a freshly issued token."""
    response = client.post("/auth/token", json={"username": "admin", "password": "password"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}

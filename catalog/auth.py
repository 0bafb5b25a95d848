"""
Bearer token issuance and validation.

Credential checking and token generation sit behind small interfaces so a
different credential store or random source can be swapped in without
touching the issuer or the API.
"""

import random
import secrets
from typing import Optional

import structlog

from catalog.errors import Unauthorized
from catalog.repository import InMemoryRepository

logger = structlog.get_logger(__name__)

BEARER_PREFIX = "Bearer "


class CredentialChecker:
    """Decides whether a username/password pair may obtain a token."""

    def check(self, username: str, password: str) -> bool:
        raise NotImplementedError


class StaticCredentialChecker(CredentialChecker):
    """Accepts exactly one configured username/password pair."""

    def __init__(self, username: str, password: str):
        self._username = username
        self._password = password

    def check(self, username: str, password: str) -> bool:
        username_ok = secrets.compare_digest(username.encode(), self._username.encode())
        password_ok = secrets.compare_digest(password.encode(), self._password.encode())
        return username_ok and password_ok


class TokenGenerator:
    """Produces new opaque token strings."""

    def generate(self) -> str:
        raise NotImplementedError


class PseudoRandomTokenGenerator(TokenGenerator):
    """64-bit value from the ``random`` module, as 16 hex characters. Not for real secrets."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def generate(self) -> str:
        return f"{self._rng.getrandbits(64):016x}"


class SecureTokenGenerator(TokenGenerator):
    """64-bit value from the OS CSPRNG, as 16 hex characters."""

    def generate(self) -> str:
        return secrets.token_hex(8)


TOKEN_GENERATORS = {
    "pseudo": PseudoRandomTokenGenerator,
    "secure": SecureTokenGenerator,
}


class TokenIssuer:
    """Exchanges valid credentials for a newly registered token."""

    def __init__(
        self,
        repository: InMemoryRepository,
        credential_checker: CredentialChecker,
        token_generator: Optional[TokenGenerator] = None
    ):
        self.repository = repository
        self.credential_checker = credential_checker
        self.token_generator = token_generator or SecureTokenGenerator()

    def issue(self, username: str, password: str) -> str:
        """
        Issue a token for the given credentials.

        Args:
            username: Presented username
            password: Presented password

        Returns:
            The new token, already registered with the repository

        Raises:
            Unauthorized: If the credentials are rejected
        """
        if not self.credential_checker.check(username, password):
            logger.warning("Token request rejected", username=username)
            raise Unauthorized("invalid credentials")

        token = self.token_generator.generate()
        self.repository.add_token(token)
        logger.info("Token issued", username=username)
        return token


class TokenGate:
    """Validates ``Authorization: Bearer <token>`` header values."""

    def __init__(self, repository: InMemoryRepository):
        self.repository = repository

    def authorize(self, authorization: Optional[str]) -> str:
        """
        Check an Authorization header value.

        Returns:
            The presented token

        Raises:
            Unauthorized: If the header is missing, lacks the Bearer prefix,
                or carries an unknown token
        """
        if not authorization or not authorization.startswith(BEARER_PREFIX):
            raise Unauthorized("unauthorized")

        token = authorization[len(BEARER_PREFIX):]
        if not self.repository.validate_token(token):
            logger.warning("Invalid token attempted", token=token[:4] + "...")
            raise Unauthorized("invalid token")

        return token

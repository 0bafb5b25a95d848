"""
Authentication dependencies for the FastAPI API.
"""

from typing import Optional

from fastapi import Request, Security
from fastapi.security import APIKeyHeader

from catalog.auth import TokenGate

# Security scheme; the header is parsed by TokenGate, which requires the
# exact "Bearer " prefix.
security = APIKeyHeader(
    name="Authorization",
    scheme_name="BearerToken",
    description="Bearer token from POST /auth/token, sent as 'Bearer <token>'",
    auto_error=False
)


def get_token_gate(request: Request) -> TokenGate:
    """Token gate bound to the application's repository."""
    return request.app.state.token_gate


def verify_bearer_token(
    request: Request,
    authorization: Optional[str] = Security(security)
) -> str:
    """
    Verify the bearer token on a protected request.

    Args:
        request: Incoming request
        authorization: Raw Authorization header, None if absent

    Returns:
        The token if valid

    Raises:
        Unauthorized: If the header is missing, malformed, or the token is unknown
    """
    return get_token_gate(request).authorize(authorization)

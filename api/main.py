"""
FastAPI main application for the Book Catalog API.
"""

import json
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog
from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.auth import verify_bearer_token
from api.config import APIConfig, config
from api.models import (
    BookPayload, ErrorResponse, HealthResponse,
    PingResponse, TokenRequest, TokenResponse
)
from catalog.auth import TOKEN_GENERATORS, StaticCredentialChecker, TokenGate, TokenIssuer
from catalog.errors import (
    CatalogError, InternalSerialization, MalformedInput,
    NotFound, Unauthorized, ValidationFailed
)
from catalog.repository import InMemoryRepository
from catalog.service import CatalogService

# Setup logging
logger = structlog.get_logger(__name__)

ERROR_STATUS_CODES = {
    MalformedInput: status.HTTP_400_BAD_REQUEST,
    ValidationFailed: status.HTTP_400_BAD_REQUEST,
    NotFound: status.HTTP_404_NOT_FOUND,
    Unauthorized: status.HTTP_401_UNAUTHORIZED,
    InternalSerialization: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_code_for(exc: CatalogError) -> int:
    """HTTP status for a catalog error kind."""
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(status_code: int, message: str, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    """Build an ``{"error": ...}`` response."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
        headers=headers
    )


def json_response(content: Any, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    """
    Encode a JSON response.

    Raises:
        InternalSerialization: If the content cannot be encoded
    """
    try:
        return JSONResponse(content=content, status_code=status_code)
    except (TypeError, ValueError) as e:
        raise InternalSerialization() from e


def _reject_constant(name: str):
    raise ValueError(f"invalid JSON constant: {name}")


def decode_json(body: bytes) -> Any:
    """
    Decode an arbitrary JSON document.

    Numbers beyond float range decode to infinity; only the literal
    NaN and Infinity tokens are refused.

    Raises:
        MalformedInput: If the body is empty or not valid JSON
    """
    try:
        return json.loads(body, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as e:
        raise MalformedInput("invalid JSON") from e


async def read_body(request: Request) -> bytes:
    """Raw request body, read before the endpoint runs in the threadpool."""
    return await request.body()


def get_catalog_service(request: Request) -> CatalogService:
    return request.app.state.catalog_service


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


router = APIRouter()


# Utility endpoints (no authentication required)
@router.get("/ping", tags=["Health"])
def ping():
    """Liveness probe."""
    return json_response(PingResponse().model_dump())


@router.post("/echo", tags=["Utility"])
def echo(body: bytes = Depends(read_body)):
    """Return the posted JSON document unchanged."""
    decode_json(body)
    return Response(content=body, media_type="application/json")


@router.get("/health", response_model=HealthResponse, tags=["Health"])
def health_check(request: Request, service: CatalogService = Depends(get_catalog_service)):
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=request.app.state.config.api_version,
        books=len(service.list_books())
    )


# Auth endpoints
@router.post("/auth/token", response_model=TokenResponse, tags=["Auth"])
def issue_token(
    body: bytes = Depends(read_body),
    issuer: TokenIssuer = Depends(get_token_issuer)
):
    """Exchange the configured username and password for a bearer token."""
    credentials = TokenRequest.from_json(body)
    token = issuer.issue(credentials.username or "", credentials.password or "")
    return json_response(TokenResponse(token=token).model_dump())


# Books endpoints
@router.get("/books", tags=["Books"])
def list_books(
    author: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    token: str = Depends(verify_bearer_token),
    service: CatalogService = Depends(get_catalog_service)
):
    """
    List books ordered by id.

    - **author**: Case-insensitive exact author match
    - **page**: Page number (starts from 1); needs **limit**
    - **limit**: Items per page; needs **page**

    Pagination parameters that are not positive integers are ignored.
    """
    books = service.list_books(author=author, page=page, limit=limit)
    return json_response([book.to_wire() for book in books])


@router.post("/books", status_code=status.HTTP_201_CREATED, tags=["Books"])
def create_book(
    body: bytes = Depends(read_body),
    service: CatalogService = Depends(get_catalog_service)
):
    """Create a book. Title and author are required."""
    payload = BookPayload.from_json(body)
    book = service.create_book(payload.title, payload.author, payload.year)
    return json_response(book.to_wire(), status_code=status.HTTP_201_CREATED)


@router.get("/books/{book_id}", tags=["Books"])
def get_book(book_id: str, service: CatalogService = Depends(get_catalog_service)):
    """Get a single book by id. A malformed id is reported as not found."""
    return json_response(service.get_book(book_id).to_wire())


@router.put("/books/{book_id}", tags=["Books"])
def update_book(
    book_id: str,
    body: bytes = Depends(read_body),
    service: CatalogService = Depends(get_catalog_service)
):
    """
    Partially update a book.

    Blank strings and a zero year leave the stored value unchanged.
    """
    # Unknown ids are reported before the body is decoded.
    service.get_book(book_id)
    payload = BookPayload.from_json(body)
    book = service.update_book(book_id, payload.title, payload.author, payload.year)
    return json_response(book.to_wire())


@router.delete("/books/{book_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Books"])
def delete_book(book_id: str, service: CatalogService = Depends(get_catalog_service)):
    """Delete a book permanently."""
    service.delete_book(book_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Exception handlers
async def catalog_exception_handler(request: Request, exc: CatalogError):
    """Map catalog error kinds to status codes."""
    status_code = status_code_for(exc)
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        cause = exc.__cause__
        logger.error(
            "Request failed",
            error=exc.message,
            cause=repr(cause) if cause else None,
            path=request.url.path
        )
    else:
        logger.info("Request rejected", error=exc.message, status_code=status_code, path=request.url.path)

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return error_response(status_code, exc.message, headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle routing errors such as unknown paths and wrong methods."""
    return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request parameters FastAPI could not validate."""
    return error_response(status.HTTP_400_BAD_REQUEST, "invalid request")


async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal error")


async def log_requests(request: Request, call_next):
    """Log method, path, status and duration of every request."""
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(
            "Request crashed",
            method=request.method,
            path=request.url.path,
            error=repr(e),
            duration_ms=round((time.perf_counter() - started) * 1000, 2)
        )
        raise
    logger.info(
        "Request handled",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round((time.perf_counter() - started) * 1000, 2)
    )
    return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Book Catalog API", version=app.state.config.api_version)
    yield
    logger.info("Shutting down Book Catalog API")


def create_app(
    api_config: Optional[APIConfig] = None,
    repository: Optional[InMemoryRepository] = None
) -> FastAPI:
    """
    Build the application around a single repository.

    Args:
        api_config: Settings; defaults to the environment-derived config
        repository: Store to serve; a fresh empty one by default

    Returns:
        Configured FastAPI application
    """
    api_config = api_config or config
    repository = repository if repository is not None else InMemoryRepository()

    app = FastAPI(
        title=api_config.api_title,
        description=api_config.api_description,
        version=api_config.api_version,
        debug=api_config.debug,
        lifespan=lifespan
    )

    app.state.config = api_config
    app.state.repository = repository
    app.state.catalog_service = CatalogService(repository)
    app.state.token_gate = TokenGate(repository)
    app.state.token_issuer = TokenIssuer(
        repository,
        StaticCredentialChecker(api_config.auth_username, api_config.auth_password),
        TOKEN_GENERATORS[api_config.token_generator]()
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=api_config.cors_origins,
        allow_credentials=api_config.cors_allow_credentials,
        allow_methods=api_config.cors_allow_methods,
        allow_headers=api_config.cors_allow_headers,
    )
    app.middleware("http")(log_requests)

    app.add_exception_handler(CatalogError, catalog_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower()
    )

"""Entry point for the Fragments service."""

import time
import uuid
from typing import Optional, Union

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from common.constants import SERVICE_NAME, SERVICE_VERSION
from common.logging_config import setup_logging
from fragments import config
from fragments.auth import CognitoAuthenticator, HtpasswdAuthenticator, create_authenticator
from fragments.exceptions import (
    FragmentNotFoundError,
    FragmentsError,
    PayloadTooLargeError,
    UnauthorizedError,
    UnsupportedMediaTypeError,
    ValidationError,
)
from fragments.repositories.fragment_store import FragmentStore, create_fragment_store
from fragments.routes.fragment_routes import router as fragment_router
from fragments.schemas.common import create_error_response, create_success_response

logger = setup_logging(SERVICE_NAME)


def _error(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=create_error_response(status_code, message),
        headers=headers,
    )


def _request_id(request: Request) -> str:
    return getattr(request.state, 'request_id', 'unknown')


async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(
        f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
    )

    try:
        response = await call_next(request)
    except Exception as exc:
        response = await unhandled_exception_handler(request, exc)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


async def unauthorized_handler(request: Request, exc: UnauthorizedError):
    logger.warning(
        f"Unauthorized: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return _error(
        status.HTTP_401_UNAUTHORIZED,
        "unauthorized",
        headers={"WWW-Authenticate": f'{request.app.state.authenticator.scheme} realm="{config.AUTH_REALM}"'},
    )


async def unsupported_media_type_handler(request: Request, exc: UnsupportedMediaTypeError):
    logger.warning(
        f"Unsupported media type: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return _error(status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, "Unsupported Content-Type")


async def validation_error_handler(request: Request, exc: ValidationError):
    logger.warning(
        f"Validation error: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return _error(status.HTTP_400_BAD_REQUEST, str(exc))


async def payload_too_large_handler(request: Request, exc: PayloadTooLargeError):
    logger.warning(
        f"Payload too large: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return _error(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, str(exc))


async def fragment_not_found_handler(request: Request, exc: FragmentNotFoundError):
    logger.warning(
        f"Fragment not found: {exc} [request_id={_request_id(request)}] path={request.url.path}"
    )
    return _error(status.HTTP_404_NOT_FOUND, "not found")


async def fragments_error_handler(request: Request, exc: FragmentsError):
    logger.error(
        f"Fragments error: {exc} [request_id={_request_id(request)}] path={request.url.path}",
        exc_info=True
    )
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal server error")


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.warning(
        f"HTTP {exc.status_code}: {exc.detail} [request_id={_request_id(request)}] path={request.url.path}"
    )
    message = "not found" if exc.status_code == status.HTTP_404_NOT_FOUND else str(exc.detail)
    return _error(exc.status_code, message, headers=getattr(exc, "headers", None))


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled error: {exc} [request_id={_request_id(request)}] path={request.url.path}",
        exc_info=True
    )
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal server error")


async def root():
    """
    Root endpoint for health check.
    """
    return JSONResponse(
        content=create_success_response(service=SERVICE_NAME, version=SERVICE_VERSION),
        headers={"Cache-Control": "no-cache"},
    )


async def health_check():
    """
    Health check endpoint for container healthchecks.
    Returns 200 if service is alive.
    """
    return {"status": "healthy", "service": SERVICE_NAME}


def create_app(
    store: Optional[FragmentStore] = None,
    authenticator: Optional[Union[HtpasswdAuthenticator, CognitoAuthenticator]] = None,
    api_url: Optional[str] = None,
    max_fragment_bytes: Optional[int] = None,
) -> FastAPI:
    """
    Build the FastAPI application with its storage and authentication injected.

    Args:
        store: Fragment store, defaults to the configured backend
        authenticator: Credential verifier, defaults to the strategy configured in the environment
        api_url: Base URL for Location headers, defaults to API_URL
        max_fragment_bytes: Body size limit, defaults to FRAGMENTS_MAX_BODY_BYTES

    Raises:
        ConfigurationError: If authentication or the storage backend is misconfigured
    """
    app = FastAPI(
        title="Fragments",
        description="Storage service for user-owned text fragments",
        version=SERVICE_VERSION,
    )

    app.state.fragment_store = store if store is not None else create_fragment_store()
    app.state.authenticator = authenticator if authenticator is not None else create_authenticator()
    app.state.api_url = api_url if api_url is not None else config.API_URL
    app.state.max_fragment_bytes = (
        max_fragment_bytes if max_fragment_bytes is not None else config.MAX_FRAGMENT_BYTES
    )

    app.middleware("http")(log_requests)

    app.add_exception_handler(UnauthorizedError, unauthorized_handler)
    app.add_exception_handler(UnsupportedMediaTypeError, unsupported_media_type_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(PayloadTooLargeError, payload_too_large_handler)
    app.add_exception_handler(FragmentNotFoundError, fragment_not_found_handler)
    app.add_exception_handler(FragmentsError, fragments_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.add_api_route("/", root, methods=["GET"])
    app.add_api_route("/health", health_check, methods=["GET"])
    app.include_router(fragment_router)

    logger.info("Fragments service configured")
    return app


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "fragments.main:create_app",
        factory=True,
        host=config.FRAGMENTS_HOST,
        port=config.FRAGMENTS_PORT,
    )


if __name__ == "__main__":
    main()

"""
Exception handlers translating domain errors to HTTP responses.

Error bodies are {"error": <message>} with an optional "details" member
carrying the provider's own error body.
"""

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from onchain_budget.utils.errors import (
    AssistantBusyError,
    BudgetAssistantError,
    LLMError,
    NormalizationError,
    SessionStoreError,
    TransportError,
    UpstreamError,
    ValidationError,
)
from onchain_budget.utils.logging import get_logger

logger = get_logger(__name__)


async def budget_exception_handler(request: Request, exc: BudgetAssistantError) -> JSONResponse:
    """Map the exception taxonomy onto status codes."""
    if isinstance(exc, ValidationError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})

    if isinstance(exc, UpstreamError):
        status_code = exc.status_code if 400 <= exc.status_code < 600 else status.HTTP_502_BAD_GATEWAY
        return JSONResponse(
            status_code=status_code,
            content=jsonable_encoder({"error": f"Failed to fetch from {exc.provider}", "details": exc.body}),
        )

    if isinstance(exc, AssistantBusyError):
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"error": str(exc)})

    if isinstance(exc, NormalizationError):
        logger.error("Malformed provider record", path=request.url.path, missing=exc.missing)
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"error": "Malformed provider response", "details": exc.missing},
        )

    if isinstance(exc, LLMError):
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"error": "AI provider unavailable"})

    if isinstance(exc, SessionStoreError):
        logger.error("Session store unavailable", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": "Session store unavailable"},
        )

    if isinstance(exc, TransportError):
        logger.error("Provider unreachable", path=request.url.path, provider=exc.provider, error=str(exc))
    else:
        logger.error("Unhandled application error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed query/body parameters are client errors (400)."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({"error": "Invalid request", "details": exc.errors()}),
    )

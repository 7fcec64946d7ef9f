from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse


class StorageFailure(Exception):
    """User store read or write failed; the request cannot complete."""


class ConfigurationError(RuntimeError):
    """Verification provider configuration is missing or inconsistent."""


def create_error_response(error_message: str, data: dict = None) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "data": data,
        "error": error_message
    }


def create_success_response(data: dict) -> dict:
    """Create a standardized success response"""
    return {
        "success": True,
        "data": data,
        "error": None
    }


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail)
    )


async def storage_failure_handler(request: Request, exc: StorageFailure) -> JSONResponse:
    return JSONResponse(
        status_code=503,
        content=create_error_response("Storage unavailable")
    )

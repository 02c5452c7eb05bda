"""
app/errors.py
Enveloppe d'erreur commune aux routes publiques : {error, errorType, details?}
"""
import enum
from typing import Optional, Dict

from fastapi.responses import JSONResponse


class ErrorType(str, enum.Enum):
    DUPLICATE_CLIENT = "DUPLICATE_CLIENT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    SERVER_ERROR = "SERVER_ERROR"


ERROR_MESSAGES = {
    ErrorType.DUPLICATE_CLIENT: (
        "This email is already registered. "
        "Please sign in to your account or use a different email."
    ),
    ErrorType.VALIDATION_ERROR: "Please enter a valid email address.",
    ErrorType.SERVER_ERROR: "Unable to process your request. Please try again.",
}

STATUS_CODES = {
    ErrorType.DUPLICATE_CLIENT: 409,
    ErrorType.VALIDATION_ERROR: 400,
    ErrorType.SERVER_ERROR: 500,
}


def create_error(error_type: ErrorType, message: Optional[str] = None, details: Optional[Dict] = None) -> dict:
    body = {
        "error": message or ERROR_MESSAGES[error_type],
        "errorType": error_type.value,
    }
    if details:
        body["details"] = details
    return body


def create_validation_error(field: Optional[str] = None, message: Optional[str] = None) -> dict:
    details = None
    if field:
        details = {"field": field, "suggestion": "Please check the format and try again."}
    return create_error(ErrorType.VALIDATION_ERROR, message, details)


def create_duplicate_client_error(details: Optional[Dict] = None) -> dict:
    return create_error(ErrorType.DUPLICATE_CLIENT, details=details or {
        "field": "email",
        "suggestion": "Sign in to your existing account or register with a different email.",
    })


def create_server_error(message: Optional[str] = None) -> dict:
    return create_error(ErrorType.SERVER_ERROR, message, {"suggestion": "Please try again in a few minutes."})


def error_response(body: dict) -> JSONResponse:
    """Le code HTTP découle de errorType, 400 par défaut."""
    try:
        status_code = STATUS_CODES[ErrorType(body["errorType"])]
    except (KeyError, ValueError):
        status_code = 400
    return JSONResponse(status_code=status_code, content=body)

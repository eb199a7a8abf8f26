"""
Utility functions for logging gateway failures and turning them into HTTP errors.
"""

import logging

from fastapi import HTTPException

from cgi_gateway.interface.errors import (
    GatewayError,
    ScriptExecutionError,
    ScriptNotFoundError,
)


def _safe_str(obj) -> str:
    """
    Safely convert an object to string, handling cases where __str__ or __repr__ might fail.

    Args:
        obj: The object to convert to string

    Returns:
        A string representation of the object, falling back to safe alternatives
    """
    try:
        return str(obj)
    except Exception:
        try:
            return repr(obj)
        except Exception:
            return f"<{type(obj).__name__} object (string conversion failed)>"


def _gateway_details(exception: Exception) -> str:
    details = []
    for attribute in ("script", "option"):
        value = getattr(exception, attribute, None)
        if value:
            details.append(f"{attribute}={_safe_str(value)}")
    return f" ({', '.join(details)})" if details else ""


def log_exception_with_details(
    logger: logging.Logger,
    prefix: str,
    exception: Exception,
    level: int = logging.ERROR,
) -> None:
    """
    Log an exception together with the script or option it concerns.

    Args:
        logger: The logger instance to use
        prefix: Prefix for the log message (e.g., "[Gateway]", "[Executor]")
        exception: The exception to log
        level: The logging level to use (default: ERROR)
    """
    safe_prefix = _safe_str(prefix) if prefix is not None else ""
    if exception is None:
        logger.log(level, f"{safe_prefix} Exception: None")
        return

    exc_type = type(exception).__name__
    message = (
        f"{safe_prefix} {exc_type}: {_safe_str(exception)}{_gateway_details(exception)}"
    )
    # tracebacks only for unexpected errors
    exc_info = None if isinstance(exception, GatewayError) else exception
    logger.log(level, message, exc_info=exc_info)


def to_http_exception(exception: GatewayError) -> HTTPException:
    """
    Convert a gateway failure into a FastAPI HTTPException.

    A CGI script that is missing or cannot be started means the upstream
    cannot be reached (502), every other gateway error is a server side
    misconfiguration (500).
    """
    if isinstance(exception, (ScriptNotFoundError, ScriptExecutionError)):
        return HTTPException(status_code=502, detail=_safe_str(exception))
    return HTTPException(status_code=500, detail=_safe_str(exception))

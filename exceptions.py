#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Custom exception classes and error handling utilities for Playlistindex.

Every failure at the YouTube API boundary is an ``UpstreamError``. The
enrichment orchestrator catches that base class once and collapses it into a
single user-facing message; the HTTP layer converts the rest via
``handle_exception``.
"""

from typing import Optional

from fastapi import HTTPException, status


# --- Base Exception Classes ---

class AppBaseError(Exception):
    """Base class for all application-specific exceptions.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code
        http_status_code: HTTP status code to use in API responses
        retry_after: Optional seconds to wait before retrying
    """

    def __init__(self, message: str, error_code: Optional[str] = None,
                http_status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
                retry_after: Optional[int] = None):
        self.message = message
        self.error_code = error_code or self.__class__.__name__.upper()
        self.http_status_code = http_status_code
        self.retry_after = retry_after
        super().__init__(message)

    def to_http_exception(self) -> HTTPException:
        """Convert this exception to a FastAPI HTTPException.

        Returns:
            HTTPException: FastAPI exception with appropriate status and headers
        """
        headers = {"X-Error-Code": self.error_code}
        if self.retry_after:
            headers["Retry-After"] = str(self.retry_after)

        return HTTPException(
            status_code=self.http_status_code,
            detail=self.message,
            headers=headers
        )


# --- Upstream (YouTube API boundary) Exceptions ---

class UpstreamError(AppBaseError):
    """Base class for any failure talking to the YouTube Data API.

    Attributes:
        upstream_message: The message reported by the API or transport, if any
        status: HTTP status of the failed call, if known
    """

    def __init__(self, message: str, error_code: Optional[str] = None,
                 http_status_code: int = status.HTTP_502_BAD_GATEWAY,
                 retry_after: Optional[int] = None,
                 upstream_message: Optional[str] = None,
                 status_code: Optional[int] = None):
        super().__init__(message, error_code=error_code,
                         http_status_code=http_status_code, retry_after=retry_after)
        self.upstream_message = upstream_message if upstream_message is not None else message
        self.status = status_code


class UpstreamTransportError(UpstreamError):
    """Raised on network/connectivity failures or request timeouts."""

    def __init__(self, message: str = "Could not reach the YouTube API",
                 upstream_message: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="UPSTREAM_TRANSPORT",
            http_status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            retry_after=60,
            upstream_message=upstream_message,
        )


class UpstreamQuotaError(UpstreamError):
    """Raised when the API answers with an error payload (typically quota exhaustion)."""

    def __init__(self, message: str = "YouTube API quota exceeded",
                 upstream_message: Optional[str] = None,
                 status_code: Optional[int] = None,
                 reason: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="QUOTA_EXCEEDED",
            http_status_code=status.HTTP_403_FORBIDDEN,
            retry_after=3600,
            upstream_message=upstream_message,
            status_code=status_code,
        )
        self.reason = reason


class MalformedDataError(UpstreamError):
    """Raised when a successful API response does not have the expected shape."""

    def __init__(self, message: str = "Unexpected response from the YouTube API"):
        super().__init__(
            message=message,
            error_code="MALFORMED_UPSTREAM_DATA",
            http_status_code=status.HTTP_502_BAD_GATEWAY,
        )


# --- Application Exceptions ---

class APIConfigurationError(AppBaseError):
    """Raised when there's an issue with the API configuration."""

    def __init__(self, message: str = "API configuration error"):
        super().__init__(
            message=message,
            error_code="API_CONFIG_ERROR",
            http_status_code=status.HTTP_503_SERVICE_UNAVAILABLE
        )


class InvalidInputError(AppBaseError):
    """Raised when the user input is invalid."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(
            message=message,
            error_code="INVALID_INPUT",
            http_status_code=status.HTTP_400_BAD_REQUEST
        )


# --- Error Handling Utilities ---

def handle_exception(exception: Exception) -> HTTPException:
    """Convert any exception to an appropriate HTTPException.

    Args:
        exception: The exception to handle

    Returns:
        HTTPException: FastAPI exception with appropriate status and headers
    """
    if isinstance(exception, AppBaseError):
        return exception.to_http_exception()

    elif isinstance(exception, ValueError):
        return InvalidInputError(str(exception)).to_http_exception()

    elif isinstance(exception, HTTPException):
        return exception

    else:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Internal server error: {type(exception).__name__}",
            headers={"X-Error-Code": "INTERNAL_SERVER_ERROR"}
        )

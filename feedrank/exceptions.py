"""Shared HTTP exception classes reused across all feedrank domains."""

from fastapi import HTTPException, status


class UnprocessableError(HTTPException):
    def __init__(self, detail: str = "Unprocessable request.") -> None:
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
        )


class ServiceUnavailableError(HTTPException):
    """A primary dependency is down; distinct from an empty result."""

    def __init__(self, detail: str = "Service temporarily unavailable.") -> None:
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)

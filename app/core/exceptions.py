"""
Domain exceptions.

Services raise these; the AppError handler registered in app/main.py turns
them into JSON error responses with the class's status code.
"""

from fastapi import status


class AppError(Exception):
    """Base class for all domain errors."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class AlreadyAppliedError(AppError):
    def __init__(self, message: str = "You have already applied for this position"):
        super().__init__(message)


class ProfileIncompleteError(AppError):
    def __init__(self, message: str = "Complete your profile (name, bio and skills) before applying"):
        super().__init__(message)


class PositionNotAvailableError(AppError):
    def __init__(self, message: str = "Position is not accepting applications"):
        super().__init__(message)


class FetchTimeoutError(AppError):
    status_code = status.HTTP_504_GATEWAY_TIMEOUT

from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotFoundError(ServiceError):
    """Referenced entity is absent or soft-deleted."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class InvalidReferenceError(ServiceError):
    """Input points at an entity that cannot be used (e.g. a deleted class)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class ConflictError(ServiceError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class UpstreamUnavailableError(ServiceError):
    """A peer service timed out, refused the call or answered success=false."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_502_BAD_GATEWAY)

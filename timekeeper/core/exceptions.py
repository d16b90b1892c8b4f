from typing import Optional

from fastapi import HTTPException, status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    category = "server_error"

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code

    def to_http(self) -> HTTPException:
        detail = {"message": self.message, "category": self.category}
        if self.code:
            detail["code"] = self.code
        return HTTPException(status_code=self.status_code, detail=detail)


class ValidationError(ServiceError):
    """Malformed or missing input, rejected before anything is written."""

    category = "validation"

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST, code)


class ConflictError(ServiceError):
    """Schedule overlap or duplicate unique field."""

    category = "conflict"

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT, code)


class NotFoundError(ServiceError):
    category = "not_found"

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND, code)


class StateError(ServiceError):
    """Operation not valid for the entity's current state."""

    category = "state"

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT, code)


class AuthError(ServiceError):
    """Bad credentials, deactivated account, or caller not allowed."""

    category = "auth"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: int = status.HTTP_401_UNAUTHORIZED,
    ) -> None:
        super().__init__(message, status_code, code)

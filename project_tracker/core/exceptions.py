"""Custom exception classes and error handling."""

from typing import Any

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(
            status_code=status_code,
            detail={
                "success": False,
                "error": {
                    "code": code,
                    "message": message,
                    "details": details or {},
                },
            },
        )


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            code="AUTH_FAILED",
            message=message,
        )


class PermissionDeniedError(AppException):
    """Permission denied for the requested action."""

    def __init__(
        self,
        message: str = "Permission denied",
        required_role: str | None = None,
    ):
        details = {}
        if required_role:
            details["required_role"] = required_role
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            code="PERMISSION_DENIED",
            message=message,
            details=details,
        )


class ValidationError(AppException):
    """Malformed or missing input."""

    def __init__(
        self,
        message: str = "Validation error",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            code="VALIDATION_ERROR",
            message=message,
            details=details,
        )


class NotFoundError(AppException):
    """Resource not found."""

    def __init__(
        self,
        resource: str = "Resource",
        identifier: str | None = None,
        message: str | None = None,
    ):
        details = {}
        if identifier:
            details["identifier"] = identifier
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            code="NOT_FOUND",
            message=message or f"{resource} not found",
            details=details,
        )


class DuplicateRequestError(AppException):
    """A pending request already exists between the same two parties."""

    def __init__(self, message: str = "A pending request already exists"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            code="DUPLICATE_REQUEST",
            message=message,
        )


class AlreadyResolvedError(AppException):
    """The request was already accepted or rejected."""

    def __init__(self, request_id: int | None = None, current_status: str | None = None):
        details: dict[str, Any] = {}
        if request_id is not None:
            details["request_id"] = request_id
        if current_status:
            details["status"] = current_status
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            code="ALREADY_RESOLVED",
            message="Request already processed",
            details=details,
        )


class CapacityExceededError(AppException):
    """Partner limit reached on one side of a partner request."""

    def __init__(self, message: str, student_id: int | None = None, limit: int | None = None):
        details: dict[str, Any] = {}
        if student_id is not None:
            details["student_id"] = student_id
        if limit is not None:
            details["limit"] = limit
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            code="CAPACITY_EXCEEDED",
            message=message,
            details=details,
        )


class AlreadyAssignedError(AppException):
    """A student being attached already belongs to a different project."""

    def __init__(self, student_id: int, current_project_id: int | None, roll_no: str | None = None):
        details: dict[str, Any] = {
            "student_id": student_id,
            "current_project_id": current_project_id,
        }
        who = roll_no or str(student_id)
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            code="ALREADY_ASSIGNED",
            message=f"Student {who} already has a project assigned",
            details=details,
        )


class PartialWriteError(AppException):
    """The second write of a paired write failed after the first succeeded."""

    def __init__(self, committed: str, pending: str, reason: str | None = None):
        details = {"committed": committed, "pending": pending}
        if reason:
            details["reason"] = reason
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            code="PARTIAL_WRITE",
            message="Request was applied for one party only; it will be reconciled on next read",
            details=details,
        )


class InternalError(AppException):
    """Internal server error."""

    def __init__(
        self,
        message: str = "Internal server error",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            code="INTERNAL_ERROR",
            message=message,
            details=details,
        )

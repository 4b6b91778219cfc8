from typing import Any, Dict, Optional


class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)


class AuthenticationError(AppException):
    def __init__(self, message: str = "Could not resolve the calling user"):
        super().__init__(
            message=message,
            status_code=401,
            error_code="AUTH_FAILED"
        )


class Unauthorized(AppException):
    """Caller is authenticated but its role may not perform the operation."""
    def __init__(self, message: str = "Insufficient permissions", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=403,
            error_code="UNAUTHORIZED",
            details=details
        )


class NotFound(AppException):
    def __init__(self, entity: str, entity_id: Any = None):
        message = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(
            message=message,
            status_code=404,
            error_code="NOT_FOUND",
            details={"entity": entity, "id": entity_id}
        )


class PrerequisiteNotMet(AppException):
    """An earlier stage of the review chain (or term setup) is missing."""
    def __init__(self, message: str, missing_stage: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=400,
            error_code="PREREQUISITE_NOT_MET",
            details={"missing_stage": missing_stage, **(details or {})}
        )
        self.missing_stage = missing_stage


class AlreadyFinalized(AppException):
    """The Dean has already finalized this teacher's term; callers treat it as 'already done'."""
    def __init__(self, message: str = "Final review already submitted for this term", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=409,
            error_code="ALREADY_FINALIZED",
            details=details
        )


class TermNotTransitionable(AppException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=409,
            error_code="TERM_NOT_TRANSITIONABLE",
            details=details
        )


class ValidationFailed(AppException):
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message=message,
            status_code=422,
            error_code="VALIDATION_FAILED",
            details={"field": field} if field else None
        )

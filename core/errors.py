"""
Domain errors raised by the services.

Every error is an HTTPException so routers can let it propagate untouched.
`main.py` renders them as `{"code", "detail", **context}` so clients can
tell failure kinds apart without parsing `detail`.
"""
from fastapi import HTTPException


class PortalError(HTTPException):
    status_code = 400
    code = "error"
    default_detail = "request failed"

    def __init__(self, detail: str | None = None, **context):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)
        self.context = context


class NotFound(PortalError):
    status_code = 404
    code = "not_found"
    default_detail = "not found"


class InvalidRecipient(PortalError):
    status_code = 400
    code = "invalid_recipient"
    default_detail = "cannot send thanks to yourself"


class AlreadyFinalized(PortalError):
    status_code = 409
    code = "already_finalized"
    default_detail = "thanks already finalized"


class MissingReason(PortalError):
    status_code = 422
    code = "missing_reason"
    default_detail = "reject reason is required"


class Unauthorized(PortalError):
    status_code = 403
    code = "unauthorized"
    default_detail = "not allowed to act on this thanks"


class Forbidden(PortalError):
    status_code = 403
    code = "forbidden"
    default_detail = "manager or admin role required"


class SelfManagement(PortalError):
    status_code = 422
    code = "self_management"
    default_detail = "a user cannot manage themselves"


class CycleDetected(PortalError):
    status_code = 409
    code = "cycle_detected"
    default_detail = "manager assignment would create a cycle"


class AdminImmutable(PortalError):
    status_code = 403
    code = "admin_immutable"
    default_detail = "admin accounts cannot be modified this way"


class NoEligibleTargets(PortalError):
    status_code = 422
    code = "no_eligible_targets"
    default_detail = "no eligible users selected"


class ValidationFailed(PortalError):
    status_code = 422
    code = "validation_failed"
    default_detail = "validation failed"


class DuplicateKey(PortalError):
    status_code = 409
    code = "duplicate_key"
    default_detail = "username or email already exists"

"""Domain exceptions.

Services raise these; the HTTP layer turns each into a one-shot JSON message
using the exception's ``status_code`` and ``code``.
"""
import enum


class GrubioError(Exception):
    """Base exception for every failure surfaced to the user."""

    status_code = 500
    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthErrorCode(str, enum.Enum):
    email_in_use = "email_in_use"
    not_found = "not_found"
    wrong_password = "wrong_password"


_AUTH_STATUS = {
    AuthErrorCode.email_in_use: 409,
    AuthErrorCode.not_found: 404,
    AuthErrorCode.wrong_password: 401,
}


class AuthError(GrubioError):
    """Sign-up / sign-in rejected by the identity provider."""

    def __init__(self, reason: AuthErrorCode, message: str):
        super().__init__(message)
        self.reason = reason
        self.code = reason.value
        self.status_code = _AUTH_STATUS[reason]


class NotFoundError(GrubioError):
    """Bad join code or a missing event, post or notification."""

    status_code = 404
    code = "not_found"


class PermissionDeniedError(GrubioError):
    """The caller may not do this, or the session was invalidated mid-request."""

    status_code = 403
    code = "permission_denied"


class SessionExpiredError(PermissionDeniedError):
    """The bearer token is missing, unknown or revoked."""

    status_code = 401
    code = "session_expired"


class ValidationError(GrubioError):
    """Missing or malformed required form fields."""

    status_code = 400
    code = "validation_error"


class ClaimConflictError(GrubioError):
    """Another user holds the claim on this post."""

    status_code = 409
    code = "claim_conflict"


class PostCompletedError(GrubioError):
    """The post is completed; no further claim transitions are allowed."""

    status_code = 409
    code = "post_completed"


class StoreError(GrubioError):
    """Generic failure reported by the document store."""

    status_code = 500
    code = "store_error"


class JoinCodeExhaustedError(StoreError):
    """No unused join code was found within the attempt limit."""

    status_code = 503
    code = "join_code_exhausted"

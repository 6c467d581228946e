"""
Custom Exceptions for AlumNet
=============================

Raise these from endpoints and services instead of bare HTTPException where the
error belongs to the domain. The handlers registered in main.py render every
AlumNetError into the standard error envelope:

    {"status": "error", "message": "...", "code": "...", "details": {...}}

Usage:
    from alumnet.core.exceptions import ResourceNotFoundError

    if not enrollment:
        raise ResourceNotFoundError("Enrollment", enrollment_id)
"""

from typing import Optional, Any, Dict


class AlumNetError(Exception):
    """Base exception for all AlumNet errors"""

    status_code = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(AlumNetError):
    """User authentication failed"""

    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


class AuthorizationError(AlumNetError):
    """User not authorized for this action"""

    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="NOT_AUTHORIZED")


class AccountNotVerifiedError(AuthorizationError):
    """Login attempted before the OTP step was completed"""

    def __init__(self):
        super().__init__("Account not verified. Please verify the OTP sent to your email.")
        self.code = "ACCOUNT_NOT_VERIFIED"


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(AlumNetError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: Optional[str] = None):
        message = (
            f"{resource_type} with ID '{resource_id}' not found"
            if resource_id else f"{resource_type} not found"
        )
        super().__init__(
            message,
            code=f"{resource_type.upper().replace(' ', '_')}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class UserNotFoundError(ResourceNotFoundError):
    """User not found"""

    def __init__(self, user_id: Optional[str] = None):
        super().__init__("User", user_id)


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(AlumNetError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class InvalidOTPError(ValidationError):
    """OTP does not match the stored one"""

    def __init__(self):
        super().__init__("Invalid OTP", field="otp")
        self.code = "INVALID_OTP"


class OTPExpiredError(ValidationError):
    """OTP is past its expiry"""

    def __init__(self):
        super().__init__("OTP expired. Please request a new one.", field="otp")
        self.code = "OTP_EXPIRED"


class InvalidFileTypeError(ValidationError):
    """Uploaded file has a disallowed content type"""

    def __init__(self, content_type: str, allowed: str = "image/*"):
        super().__init__(
            f"Invalid file type '{content_type}'. Allowed: {allowed}",
            field="file"
        )
        self.code = "INVALID_FILE_TYPE"


class FileTooLargeError(ValidationError):
    """Uploaded file exceeds the size limit"""

    def __init__(self, max_bytes: int):
        super().__init__(
            f"File too large. Maximum size is {max_bytes // 1024 // 1024}MB",
            field="file"
        )
        self.code = "FILE_TOO_LARGE"


# ============================================
# Conflict Errors (409-type)
# ============================================

class ConflictError(AlumNetError):
    """Resource already exists or is in a conflicting state"""

    status_code = 409

    def __init__(self, message: str, code: str = "CONFLICT"):
        super().__init__(message, code=code)


# ============================================
# Helper function for API responses
# ============================================

def error_response(message: str, code: Optional[str] = None,
                   details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Build the error envelope returned by every failing endpoint"""
    body: Dict[str, Any] = {"status": "error", "message": message, "data": None}
    if code:
        body["code"] = code
    if details:
        body["details"] = details
    return body

"""
Custom Exceptions for Arpu Foundation
=====================================

Services raise these instead of HTTPException so the same rules can run
from API handlers, Celery tasks and scripts. The API layer renders them
through a single exception handler (see arpu.main).

Usage:
    from arpu.core.exceptions import TargetNotFoundError, TargetExceededError

    if not target:
        raise TargetNotFoundError(target_id)
"""

from typing import Optional, Any, Dict


class ArpuError(Exception):
    """Base exception for all Arpu errors"""

    status_code: int = 500

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

class AuthenticationError(ArpuError):
    """User authentication failed"""

    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


class AuthorizationError(ArpuError):
    """User not authorized for this action"""

    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="NOT_AUTHORIZED")


class HierarchyViolationError(AuthorizationError):
    """Actor does not rank above the user they are acting on"""

    def __init__(self, message: str = "You can only manage users lower in the hierarchy",
                 actor_role: Optional[str] = None, target_role: Optional[str] = None):
        super().__init__(message)
        self.code = "HIERARCHY_VIOLATION"
        if actor_role:
            self.details["actor_role"] = actor_role
        if target_role:
            self.details["target_role"] = target_role


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(ArpuError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            code=f"{resource_type.upper().replace(' ', '_')}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class UserNotFoundError(ResourceNotFoundError):

    def __init__(self, user_id: str):
        super().__init__("User", user_id)


class DonationNotFoundError(ResourceNotFoundError):

    def __init__(self, donation_id: str):
        super().__init__("Donation", donation_id)


class TargetNotFoundError(ResourceNotFoundError):
    """No target with this id, or the user has no active target"""

    def __init__(self, target_id: str = "", message: Optional[str] = None):
        super().__init__("Target", target_id)
        if message:
            self.message = message
            self.args = (message,)


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(ArpuError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class TargetExceededError(ValidationError):
    """Divisions add up to more than the parent target"""

    def __init__(self, parent_amount: int, total_divided: int):
        super().__init__(
            f"Total division amount ({total_divided / 100:.2f}) exceeds "
            f"parent target ({parent_amount / 100:.2f})"
        )
        self.code = "TARGET_EXCEEDED"
        self.details = {"parent_amount": parent_amount, "total_divided": total_divided}


class ConflictError(ArpuError):
    """Resource already exists or is in a conflicting state"""

    status_code = 409

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONFLICT", details=details)


# ============================================
# Payment Errors
# ============================================

class PaymentError(ArpuError):
    """Payment gateway operation failed"""

    status_code = 402

    def __init__(self, message: str):
        super().__init__(message, code="PAYMENT_ERROR")


class PaymentVerificationError(PaymentError):
    """Razorpay signature did not match"""

    status_code = 400

    def __init__(self, order_id: str):
        super().__init__("Payment verification failed. Invalid signature.")
        self.code = "PAYMENT_VERIFICATION_FAILED"
        self.details["order_id"] = order_id


class GatewayNotConfiguredError(PaymentError):
    """Razorpay keys are missing"""

    status_code = 503

    def __init__(self):
        super().__init__("Payment gateway not configured")
        self.code = "GATEWAY_NOT_CONFIGURED"


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: ArpuError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "error": error.to_dict(),
        "detail": error.message,
    }

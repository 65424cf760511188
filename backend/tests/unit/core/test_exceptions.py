"""
Unit Tests for custom exceptions and their API rendering
"""
from arpu.core.exceptions import (
    ArpuError,
    AuthenticationError,
    ConflictError,
    GatewayNotConfiguredError,
    HierarchyViolationError,
    PaymentVerificationError,
    TargetExceededError,
    TargetNotFoundError,
    UserNotFoundError,
    ValidationError,
    error_response,
)


class TestStatusCodes:

    def test_codes(self):
        assert ArpuError("boom").status_code == 500
        assert AuthenticationError().status_code == 401
        assert HierarchyViolationError().status_code == 403
        assert UserNotFoundError("u1").status_code == 404
        assert ValidationError("bad").status_code == 400
        assert ConflictError("dup").status_code == 409
        assert PaymentVerificationError("order_1").status_code == 400
        assert GatewayNotConfiguredError().status_code == 503


class TestDetails:

    def test_not_found_message(self):
        error = UserNotFoundError("u1")
        assert error.message == "User with ID 'u1' not found"
        assert error.code == "USER_NOT_FOUND"

    def test_target_not_found_custom_message(self):
        error = TargetNotFoundError(message="No active target found")
        assert error.message == "No active target found"
        assert str(error) == "No active target found"

    def test_target_exceeded_amounts_in_rupees(self):
        error = TargetExceededError(100000, 150000)
        assert "1500.00" in error.message
        assert "1000.00" in error.message
        assert error.code == "TARGET_EXCEEDED"
        assert error.details == {"parent_amount": 100000, "total_divided": 150000}

    def test_hierarchy_violation_roles(self):
        error = HierarchyViolationError(actor_role="PRERAK", target_role="STATE_PRESIDENT")
        assert error.details == {"actor_role": "PRERAK", "target_role": "STATE_PRESIDENT"}

    def test_validation_field(self):
        assert ValidationError("bad", field="amount").details == {"field": "amount"}


class TestErrorResponse:

    def test_shape(self):
        body = error_response(ConflictError("Email already registered"))
        assert body["success"] is False
        assert body["detail"] == "Email already registered"
        assert body["error"]["code"] == "CONFLICT"

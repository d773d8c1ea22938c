"""
Tests for the application error hierarchy, ServiceResult and the
DRF exception handler.
"""

from rest_framework.exceptions import NotAuthenticated

from core.exception_handler import api_exception_handler, service_failure_response
from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from core.services import BaseService, ServiceResult


class TestApplicationErrors:
    def test_defaults(self):
        exc = NotFoundError("Payout not found")

        assert exc.error_code == "NOT_FOUND"
        assert exc.http_status == 404
        assert exc.details == {}
        assert str(exc) == "[NOT_FOUND] Payout not found"

    def test_to_dict_includes_details_when_present(self):
        exc = ValidationError("Bad amount", error_code="INVALID_AMOUNT", details={"amount": "-1"})

        assert exc.to_dict() == {
            "error": "Bad amount",
            "error_code": "INVALID_AMOUNT",
            "details": {"amount": "-1"},
        }
        assert ConflictError("Replay").to_dict() == {"error": "Replay", "error_code": "CONFLICT"}

    def test_http_status_per_class(self):
        assert BaseApplicationError("x").http_status == 500
        assert ValidationError("x").http_status == 400
        assert PermissionDeniedError("x").http_status == 403
        assert ConflictError("x").http_status == 409


class TestServiceResult:
    def test_success(self):
        result = ServiceResult.success({"id": 1})

        assert result
        assert result.to_response() == {"success": True, "data": {"id": 1}}

    def test_failure_keeps_data_out_of_response(self):
        result = ServiceResult.failure("Payout already claimed", "PAYOUT_ALREADY_CLAIMED", data=object())

        assert not result
        assert result.data is not None
        assert result.to_response() == {
            "success": False,
            "error": "Payout already claimed",
            "error_code": "PAYOUT_ALREADY_CLAIMED",
        }

    def test_from_application_error(self):
        result = ServiceResult.from_exception(ConflictError("Replay", error_code="RESERVATION_CONFLICT"))

        assert result.error == "Replay"
        assert result.error_code == "RESERVATION_CONFLICT"

    def test_from_other_exception(self):
        result = ServiceResult.from_exception(KeyError("amount"))

        assert result.error_code == "KEYERROR"

    def test_handle_exception(self, caplog):
        class SampleService(BaseService):
            pass

        result = SampleService.handle_exception(ValidationError("Bad input"), context="Item 3")

        assert result.error_code == "VALIDATION_ERROR"
        assert "Item 3: [VALIDATION_ERROR] Bad input" in caplog.text


class TestApiExceptionHandler:
    def test_application_error(self):
        response = api_exception_handler(
            ConflictError("Already settled", error_code="RESERVATION_ALREADY_SETTLED"), {}
        )

        assert response.status_code == 409
        assert response.data == {
            "error": "Already settled",
            "error_code": "RESERVATION_ALREADY_SETTLED",
        }

    def test_defers_to_drf(self):
        response = api_exception_handler(NotAuthenticated(), {})

        assert response.status_code == 401

    def test_unhandled_exception(self):
        assert api_exception_handler(RuntimeError("boom"), {}) is None


class TestServiceFailureResponse:
    def test_known_codes(self):
        assert service_failure_response(
            ServiceResult.failure("Insufficient balance", "INSUFFICIENT_BALANCE")
        ).status_code == 402
        assert service_failure_response(
            ServiceResult.failure("Payout has expired", "PAYOUT_EXPIRED")
        ).status_code == 410

    def test_unknown_code_is_bad_request(self):
        response = service_failure_response(ServiceResult.failure("Nope", "SOMETHING_ELSE"))

        assert response.status_code == 400
        assert response.data["error_code"] == "SOMETHING_ELSE"

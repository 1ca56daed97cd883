from sqlalchemy.exc import IntegrityError, NoResultFound

from src.core.errors import classify_error, to_http_exception
from src.orders.exceptions import OrderVersionConflictException
from src.shipments.exceptions import InsufficientAvailableQuantityException, ShipmentImmutableException


class _DriverError(Exception):
    pass


def test_domain_exceptions_keep_their_status_and_message():
    error = classify_error(InsufficientAvailableQuantityException(7, 7, 5, 10, 5))
    assert error.status_code == 400
    assert error.code == "VALIDATION_ERROR"
    assert "Only 5 available" in error.message
    assert error.details["available"] == 5

    conflict = classify_error(OrderVersionConflictException(3, 1, 2))
    assert conflict.status_code == 409
    assert conflict.details == {"expected_version": 1, "current_version": 2}

    immutable = classify_error(ShipmentImmutableException(4, "SHIPPED"))
    assert immutable.code == "IMMUTABLE_STATE"
    assert immutable.message == "Cannot edit shipment 4: it is SHIPPED"


def test_unique_violation_maps_to_conflict():
    error = IntegrityError("INSERT ...", {}, _DriverError("UNIQUE constraint failed: orders.order_number"))
    api_error = classify_error(error)
    assert api_error.status_code == 409
    assert api_error.code == "CONFLICT"


def test_foreign_key_violation_maps_to_bad_request():
    error = IntegrityError("INSERT ...", {}, _DriverError("FOREIGN KEY constraint failed"))
    api_error = classify_error(error)
    assert api_error.status_code == 400
    assert api_error.message == "Invalid reference"


def test_missing_row_maps_to_not_found():
    assert classify_error(NoResultFound()).status_code == 404


def test_unexpected_error_is_internal():
    api_error = classify_error(RuntimeError("boom"))
    assert api_error.status_code == 500
    assert api_error.message == "Internal server error"


def test_http_exception_body_shape():
    http_exc = to_http_exception(ShipmentImmutableException(4, "DELIVERED", action="delete"), "test")
    assert http_exc.status_code == 400
    assert http_exc.detail == {
        "code": "IMMUTABLE_STATE",
        "message": "Cannot delete shipment 4: it is DELIVERED",
        "details": {"shipment_id": 4, "status": "DELIVERED"},
    }

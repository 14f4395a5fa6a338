from sqlalchemy.exc import DataError, IntegrityError, OperationalError, ProgrammingError

from schoolfees.core.exceptions import (
    ConflictError,
    DatabaseError,
    ErrorCode,
    IntegrityFailureError,
    InvalidInputError,
    handle_database_exception,
)


def _driver_error(cls, message):
    return cls("INSERT INTO waiver_requests ...", {}, Exception(message))


def test_numeric_overflow_maps_to_invalid_input():
    error = handle_database_exception(_driver_error(DataError, "numeric field overflow"))

    assert isinstance(error, InvalidInputError)
    assert error.error_code is ErrorCode.INVALID_INPUT
    assert error.status_code == 422
    assert "overflow" not in error.message


def test_unique_violation_maps_to_conflict():
    error = handle_database_exception(
        _driver_error(IntegrityError, "duplicate key value violates unique constraint")
    )

    assert isinstance(error, ConflictError)
    assert error.status_code == 409


def test_foreign_key_violation_maps_to_integrity_failure():
    error = handle_database_exception(
        _driver_error(IntegrityError, "FOREIGN KEY constraint failed")
    )

    assert isinstance(error, IntegrityFailureError)


def test_other_database_errors_map_to_database_error():
    unavailable = handle_database_exception(_driver_error(OperationalError, "connection refused"))
    other = handle_database_exception(_driver_error(ProgrammingError, "syntax error"))

    assert isinstance(unavailable, DatabaseError)
    assert isinstance(other, DatabaseError)
    assert other.status_code == 500

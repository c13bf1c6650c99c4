"""Tests for the error-to-response table."""

import pytest

from tasktracker.errors import (
    AuditFailure,
    AuthenticationError,
    DuplicateError,
    ForbiddenError,
    NotFoundError,
    PersistenceFailure,
    ValidationError,
    category_for_status,
    classify,
    error_response,
)


@pytest.mark.parametrize(
    "exc, category, status",
    [
        (ValidationError("Invalid status. Accepted values: [IN_PROGRESS, DONE]"), "Validation Error", 400),
        (DuplicateError("Username already in use"), "Bad Request", 400),
        (NotFoundError("Task not found"), "Not Found", 404),
        (AuthenticationError("Invalid credentials"), "Unauthorized", 401),
        (ForbiddenError("Forbidden"), "Forbidden", 403),
        (PersistenceFailure("Failed to create task"), "Internal Server Error", 500),
        (RuntimeError("boom"), "Internal Server Error", 500),
    ],
)
def test_classify(exc, category, status):
    assert classify(exc) == (category, status)


def test_client_errors_keep_their_message():
    status, body = error_response(NotFoundError("Task not found"))
    assert status == 404
    assert body.model_dump() == {"error": "Not Found", "message": "Task not found", "status": 404}


def test_server_errors_hide_details():
    status, body = error_response(PersistenceFailure("ORA-00942: table or view does not exist"))
    assert status == 500
    assert "ORA" not in body.message


def test_audit_failure_is_not_a_client_error():
    # Never expected at the boundary; if it leaks it is a server fault.
    assert classify(AuditFailure("history down", task_id=1, action="CREATED"))[1] == 500


def test_validation_error_names_accepted_values():
    err = ValidationError.not_in("priority", ["LOW", "HIGH"])
    assert err.message == "Invalid priority. Accepted values: [LOW, HIGH]"


@pytest.mark.parametrize(
    "status, category",
    [
        (400, "Bad Request"),
        (401, "Unauthorized"),
        (403, "Forbidden"),
        (404, "Not Found"),
        (405, "Bad Request"),
        (415, "Bad Request"),
        (500, "Internal Server Error"),
        (503, "Internal Server Error"),
    ],
)
def test_framework_statuses_use_listed_categories(status, category):
    assert category_for_status(status) == category

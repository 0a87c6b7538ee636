"""Error taxonomy and how errors reach clients."""

from sqlalchemy.exc import OperationalError

from jobboard.core.errors import (
    ERROR_MESSAGES,
    ERROR_STATUS,
    GENERIC_RETRY_MESSAGE,
    NOT_FOUND_MESSAGE,
    AppError,
    required_field_error,
)
from jobboard.db.session import get_db
from jobboard.main import app


def test_every_code_has_a_status():
    assert set(ERROR_MESSAGES) == set(ERROR_STATUS)


def test_known_code_uses_table_message_and_status():
    error = AppError("auth/email-already-in-use")

    assert error.status_code == 409
    assert error.message == ERROR_MESSAGES["auth/email-already-in-use"]
    assert error.to_dict() == {"detail": error.message, "code": "auth/email-already-in-use"}


def test_unknown_code_falls_back_to_generic_message():
    error = AppError("something/odd")

    assert error.message == GENERIC_RETRY_MESSAGE
    assert error.status_code == 400


def test_required_field_error_leads_with_first_field():
    error = required_field_error({"title": "Job title is required", "location": "Location is required"})

    assert error.code == "validation/required-field"
    assert error.message == "Job title is required"
    assert error.to_dict()["fields"] == {
        "title": "Job title is required",
        "location": "Location is required",
    }


def test_not_found_is_rendered_with_code(client):
    response = client.get("/api/v1/jobs/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {"detail": NOT_FOUND_MESSAGE, "code": "not-found"}


def test_database_outage_is_reported_as_retryable(client):
    def broken_db():
        raise OperationalError("SELECT 1", {}, Exception("unable to open database file"))

    app.dependency_overrides[get_db] = broken_db

    response = client.get("/api/v1/jobs")

    assert response.status_code == 503
    assert response.json() == {"detail": GENERIC_RETRY_MESSAGE, "code": "unavailable"}

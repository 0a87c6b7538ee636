"""
Application error taxonomy.

Every failure the API reports maps to one code from a fixed table so clients
always get a readable message instead of a raw backend error.
"""

from typing import Optional

from fastapi import status

GENERIC_RETRY_MESSAGE = "Network error. Please check your connection and try again."
NOT_FOUND_MESSAGE = "The item you are looking for was not found or you are not authorized to see it."

ERROR_MESSAGES: dict[str, str] = {
    # Validation
    "validation/required-field": "Please fill in all required fields.",
    "validation/invalid-value": "One or more fields have an invalid value.",
    # Authentication
    "auth/email-already-in-use": "This email address is already in use. Use another address or sign in.",
    "auth/weak-password": "The password is too weak. Use at least 8 characters.",
    "auth/invalid-email": "Invalid email format. Please enter a valid email address.",
    "auth/invalid-name": "The name must contain at least 2 characters.",
    "auth/company-name-required": "The company name is required.",
    "auth/invalid-credential": "Invalid email or password. Please try again.",
    "auth/user-not-found": "No account found with this email address.",
    "auth/invalid-token": "Your session has expired. Please sign in again.",
    "auth/oauth-failed": "Sign-in with the provider failed. Please try again.",
    "auth/oauth-handoff-expired": "Provider data is missing or expired. Please sign in with the provider again.",
    "auth/unsupported-provider": "This sign-in provider is not supported.",
    # Access
    "permission-denied": "You do not have permission to perform this action.",
    "not-found": NOT_FOUND_MESSAGE,
    # Jobs
    "jobs/not-accepting": "This job is no longer accepting applications.",
    # Transient
    "unavailable": GENERIC_RETRY_MESSAGE,
}

ERROR_STATUS: dict[str, int] = {
    "validation/required-field": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "validation/invalid-value": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "auth/email-already-in-use": status.HTTP_409_CONFLICT,
    "auth/weak-password": status.HTTP_400_BAD_REQUEST,
    "auth/invalid-email": status.HTTP_400_BAD_REQUEST,
    "auth/invalid-name": status.HTTP_400_BAD_REQUEST,
    "auth/company-name-required": status.HTTP_400_BAD_REQUEST,
    "auth/invalid-credential": status.HTTP_401_UNAUTHORIZED,
    "auth/user-not-found": status.HTTP_404_NOT_FOUND,
    "auth/invalid-token": status.HTTP_401_UNAUTHORIZED,
    "auth/oauth-failed": status.HTTP_401_UNAUTHORIZED,
    "auth/oauth-handoff-expired": status.HTTP_400_BAD_REQUEST,
    "auth/unsupported-provider": status.HTTP_400_BAD_REQUEST,
    "permission-denied": status.HTTP_403_FORBIDDEN,
    "not-found": status.HTTP_404_NOT_FOUND,
    "jobs/not-accepting": status.HTTP_409_CONFLICT,
    "unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
}


class AppError(Exception):
    """An error with a code from ERROR_MESSAGES and a user-readable message."""

    def __init__(
        self,
        code: str,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        fields: Optional[dict[str, str]] = None,
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, GENERIC_RETRY_MESSAGE)
        self.status_code = status_code or ERROR_STATUS.get(code, status.HTTP_400_BAD_REQUEST)
        self.fields = fields or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"detail": self.message, "code": self.code}
        if self.fields:
            body["fields"] = self.fields
        return body


def required_field_error(fields: dict[str, str]) -> AppError:
    """Validation error listing every missing field; the first one leads the message."""
    first = next(iter(fields.values()), None)
    return AppError("validation/required-field", message=first, fields=fields)

"""
Error kinds raised by the services and converted to
``{"success": false, "message": ...}`` responses in ``ketpa.main``.
"""
from typing import Optional
from fastapi import status


class ClinicError(Exception):
    """Base class for all workflow-level failures."""

    code: str = "clinic_error"
    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "Request failed"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_response(self) -> dict:
        return {"success": False, "message": self.message, "error": self.code}


# Request validation
class MissingField(ClinicError):
    code = "missing_field"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    message = "Missing Details"

class InvalidEmail(ClinicError):
    code = "invalid_email"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    message = "Enter a valid email."

class InvalidPhone(ClinicError):
    code = "invalid_phone"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    message = "Enter valid phone number."

class WeakPassword(ClinicError):
    code = "weak_password"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    message = (
        "Password must be at least 8 characters long, "
        "include uppercase, lowercase, and a number."
    )

class PasswordMismatch(ClinicError):
    code = "password_mismatch"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    message = "The passwords do not match."


# Accounts
class DuplicateEmail(ClinicError):
    code = "duplicate_email"
    status_code = status.HTTP_409_CONFLICT
    message = "Email already registered"

class InvalidCredentials(ClinicError):
    code = "invalid_credentials"
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid credentials"

class AuthenticationFailed(ClinicError):
    code = "authentication_failed"
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Not Authorized Login Again"

class TooManyRequests(ClinicError):
    code = "rate_limited"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    message = "Too many requests. Please try again later."


# Booking workflow
class DoctorUnavailable(ClinicError):
    code = "doctor_unavailable"
    status_code = status.HTTP_409_CONFLICT
    message = "Doctor not available"

class MissingContact(ClinicError):
    code = "missing_contact"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "To book an appointment add contact number to profile"

class SlotUnavailable(ClinicError):
    code = "slot_unavailable"
    status_code = status.HTTP_409_CONFLICT
    message = "Slot not available"

class NotFound(ClinicError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Resource not found"

class Unauthorized(ClinicError):
    code = "unauthorized"
    status_code = status.HTTP_403_FORBIDDEN
    message = "Unauthorized action"

class StorageFailure(ClinicError):
    code = "storage_failure"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = "Could not save changes, please try again"

class NotificationFailure(ClinicError):
    code = "notification_failure"
    status_code = status.HTTP_502_BAD_GATEWAY
    message = "Could not send notification"


# Lookup used to translate pydantic validation error types
ERRORS_BY_CODE = {
    cls.code: cls
    for cls in (
        MissingField, InvalidEmail, InvalidPhone, WeakPassword,
        PasswordMismatch,
    )
}

"""
Error taxonomy for the registration API

Every error carries the HTTP status it maps to and the message shown in the
`{success: false, message, error?}` envelope.
"""
from typing import Optional


class RegistrationAPIError(Exception):
    """Base class for all expected API errors"""
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, error: Optional[str] = None):
        self.message = message or self.default_message
        self.error = error
        super().__init__(self.message)


# ==================== VALIDATION (400) ====================

class RegistrationValidationError(RegistrationAPIError):
    status_code = 400
    default_message = "Invalid registration data"


class MissingFieldError(RegistrationValidationError):
    default_message = "Missing required fields"


class InvalidTeamSizeError(RegistrationValidationError):
    default_message = "Team size must be between 1 and 3"


class MalformedParticipantsError(RegistrationValidationError):
    default_message = "Invalid participants data format"


class ParticipantCountMismatchError(RegistrationValidationError):
    default_message = "Invalid participants data"


class IncompleteParticipantError(RegistrationValidationError):
    default_message = "First participant information is incomplete"


class MissingAttachmentError(RegistrationValidationError):
    default_message = "Payment screenshot is required"


class InvalidStatusError(RegistrationValidationError):
    default_message = "Invalid status"


# ==================== ATTACHMENT (400) ====================

class AttachmentError(RegistrationAPIError):
    status_code = 400
    default_message = "Invalid attachment"


class UnsupportedMediaTypeError(AttachmentError):
    default_message = "Only images and PDFs are allowed!"


class FileTooLargeError(AttachmentError):
    default_message = "File too large. Maximum size is 5MB."


# ==================== NOT FOUND (404) ====================

class NotFoundError(RegistrationAPIError):
    status_code = 404
    default_message = "Not found"


class RegistrationNotFoundError(NotFoundError):
    default_message = "Registration not found"


class AttachmentNotFoundError(NotFoundError):
    default_message = "Payment attachment not found"


# ==================== STORAGE (500) ====================

class StorageError(RegistrationAPIError):
    status_code = 500
    default_message = "Storage error"


class DuplicateRegistrationError(StorageError):
    default_message = "Registration id already exists"

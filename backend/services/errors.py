"""Custom exceptions for the application.

Every error carries the HTTP status it maps to and a message that is safe to
show to the user; the Flask error handlers in ``app.py`` turn them into the
JSON envelope.
"""


class ApplicationError(Exception):
    """Base application error."""

    status_code = 400
    error_code = None
    user_message = "Er is een fout opgetreden"

    def __init__(self, message=None, user_message=None):
        super().__init__(message or self.user_message)
        if user_message is not None:
            self.user_message = user_message


# ---------------------------------------------------------------------------
# Photo pipeline
# ---------------------------------------------------------------------------

class PhotoPipelineError(ApplicationError):
    """Base exception for cropping/normalisation errors."""
    pass


class DecodeError(PhotoPipelineError):
    """The uploaded bytes are not a decodable image."""

    user_message = "Dit bestand is geen geldige afbeelding. Kies een andere foto."


class NoCropSelectedError(PhotoPipelineError):
    """Commit attempted without a finalised crop region."""

    user_message = "Selecteer eerst een uitsnede van de foto."


class EmptyCropError(NoCropSelectedError):
    """Committed crop region has no area."""
    pass


class EncodingError(PhotoPipelineError):
    """No encoder is available for the photo's format."""

    status_code = 415
    user_message = "Deze foto kan niet worden opgeslagen. Probeer een andere foto."


class CommitInProgressError(PhotoPipelineError):
    """A commit is already pending on this crop session."""

    status_code = 409
    user_message = "De foto wordt al verwerkt."


class InvalidStateError(PhotoPipelineError):
    """Operation not allowed in the crop session's current state."""

    status_code = 409


# ---------------------------------------------------------------------------
# Sharing & access
# ---------------------------------------------------------------------------

class SharingError(ApplicationError):
    """Base exception for cohort sharing errors."""
    pass


class UserNotFoundError(SharingError):
    status_code = 404
    user_message = "User not found"


class AlreadySharedError(SharingError):
    status_code = 409
    user_message = "Cohort is already shared with this user"


class CannotShareWithOwnerError(SharingError):
    user_message = "You cannot share a cohort with its owner"


class PermissionDeniedError(ApplicationError):
    status_code = 403
    error_code = "permission_denied"
    user_message = "Forbidden"

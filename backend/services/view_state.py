"""Which overlay the roster screen is showing.

One enumerated value replaces a set of independent "show X" flags, so two
modals can never be open at once.

Domain model for a client of this API; no route holds a ViewState.
"""

from enum import Enum

from services.errors import InvalidStateError


class ActiveOverlay(str, Enum):
    NONE = "none"
    CROPPER_OPEN = "cropper_open"
    FORM_OPEN = "form_open"
    SHARE_OPEN = "share_open"
    EXPORT_OPEN = "export_open"


class ViewState:

    def __init__(self):
        self.overlay = ActiveOverlay.NONE
        self.editing_student_id = None

    def open_form(self, student_id=None):
        self.overlay = ActiveOverlay.FORM_OPEN
        self.editing_student_id = student_id

    def open_cropper(self):
        # The cropper is launched from the student form's file picker
        if self.overlay is not ActiveOverlay.FORM_OPEN:
            raise InvalidStateError(f"Cannot open cropper from {self.overlay.value}")
        self.overlay = ActiveOverlay.CROPPER_OPEN

    def close_cropper(self):
        if self.overlay is ActiveOverlay.CROPPER_OPEN:
            self.overlay = ActiveOverlay.FORM_OPEN

    def open_share(self):
        self.overlay = ActiveOverlay.SHARE_OPEN
        self.editing_student_id = None

    def open_export(self):
        self.overlay = ActiveOverlay.EXPORT_OPEN
        self.editing_student_id = None

    def close(self):
        self.overlay = ActiveOverlay.NONE
        self.editing_student_id = None

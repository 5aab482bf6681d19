"""Per-upload crop session: tracks the pipeline state and guards commits.

The HTTP route commits synchronously; ``commit_async`` serves in-process
callers that keep a session open while the user edits.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from typing import Optional

from services import photo_cropper
from services.errors import CommitInProgressError, DecodeError, InvalidStateError
from services.photo_cropper import CropRegion, DisplaySize, OutputImage, SourceImage

logger = logging.getLogger(__name__)

# Shared by all sessions for commit_async
_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="photo-commit")


class CropState(str, Enum):
    IDLE = "idle"
    LOADED = "loaded"
    EDITING = "editing"
    COMMITTED = "committed"


class CropSession:
    """
    Idle → Loaded → Editing (⟲ update) → Committed.

    A failed commit leaves the session in Editing with the region intact.
    A failed load or a cancel ends the session in Idle.
    """

    def __init__(self, display: DisplaySize, output_size: int = photo_cropper.OUTPUT_SIZE):
        self.display = display
        self.output_size = output_size
        self.state = CropState.IDLE
        self.source: Optional[SourceImage] = None
        self.region: Optional[CropRegion] = None
        self.result: Optional[OutputImage] = None
        self._lock = threading.Lock()
        self._pending = False
        self._used = False

    @property
    def pending(self) -> bool:
        return self._pending

    def _require(self, *states):
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise InvalidStateError(f"Session is {self.state.value}; expected {allowed}")

    def _require_not_pending(self):
        if self._pending:
            raise CommitInProgressError("A commit is already running for this session")

    def load(self, data: bytes, mime_type: Optional[str] = None, filename: str = "") -> SourceImage:
        if self._used:
            raise InvalidStateError("Session already used; start a new one")
        self._used = True
        try:
            self.source = photo_cropper.load(data, mime_type, filename)
        except DecodeError:
            self.state = CropState.IDLE
            raise
        self.state = CropState.LOADED
        return self.source

    def initialize(self) -> CropRegion:
        self._require(CropState.LOADED)
        self.region = photo_cropper.initialize_crop(self.display)
        self.state = CropState.EDITING
        return self.region

    def update(self, candidate: CropRegion) -> CropRegion:
        self._require(CropState.EDITING)
        self._require_not_pending()
        self.region = photo_cropper.update_crop(self.region, candidate, self.display)
        return self.region

    def commit(self, timestamp_ms: Optional[int] = None) -> OutputImage:
        with self._lock:
            self._require(CropState.EDITING)
            self._require_not_pending()
            self._pending = True
        try:
            return self._run_commit(timestamp_ms)
        finally:
            self._pending = False

    def commit_async(self, timestamp_ms: Optional[int] = None) -> Future:
        """Run commit on a worker thread; the Future yields the OutputImage."""
        with self._lock:
            self._require(CropState.EDITING)
            self._require_not_pending()
            self._pending = True

        def _background():
            try:
                return self._run_commit(timestamp_ms)
            finally:
                self._pending = False

        return _executor.submit(_background)

    def _run_commit(self, timestamp_ms):
        # Failures propagate and leave the session editing with its region
        output = photo_cropper.commit(
            self.source,
            self.region,
            self.display,
            output_size=self.output_size,
            timestamp_ms=timestamp_ms,
        )
        self.result = output
        self.state = CropState.COMMITTED
        return output

    def cancel(self) -> None:
        """Close the cropper without saving; nothing has been persisted yet."""
        self._require_not_pending()
        logger.debug(f"Crop session cancelled in state {self.state.value}")
        self.source = None
        self.region = None
        self.state = CropState.IDLE

"""Local blob storage for student photos.

Objects live flat in ``UPLOAD_FOLDER`` and are exposed at
``<PUBLIC_BASE_URL>/api/photos/<name>``. Callers get the public URL back from
:meth:`StorageService.upload` and store it on the student record.
"""

import os
import logging
from urllib.parse import urlparse, unquote

from flask import current_app, has_request_context, request
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/api/photos/"


class StorageService:
    """Filesystem-backed upload/delete/read keyed by object name."""

    def __init__(self, root=None, base_url=None):
        self.root = root or current_app.config["UPLOAD_FOLDER"]
        self.base_url = base_url if base_url is not None else current_app.config.get("PUBLIC_BASE_URL")
        os.makedirs(self.root, exist_ok=True)

    # ------------------------------------------------------------------
    # Naming
    # ------------------------------------------------------------------

    def _path(self, name: str) -> str:
        safe = secure_filename(name or "")
        if not safe:
            raise ValueError(f"Invalid object name: {name!r}")
        return os.path.join(self.root, safe)

    def public_url(self, name: str) -> str:
        base = self.base_url
        if not base and has_request_context():
            base = request.host_url
        return f"{(base or '').rstrip('/')}{PUBLIC_PREFIX}{secure_filename(name)}"

    @staticmethod
    def name_from_url(url: str):
        """Object name for URLs this service issued, else None."""
        if not url:
            return None
        path = unquote(urlparse(url).path)
        if not path.startswith(PUBLIC_PREFIX):
            return None
        name = path[len(PUBLIC_PREFIX):]
        if not name or "/" in name or secure_filename(name) != name:
            return None
        return name

    # ------------------------------------------------------------------
    # Object operations
    # ------------------------------------------------------------------

    def unique_name(self, name: str) -> str:
        """*name*, or *name* with a -n suffix when it is already taken."""
        safe = secure_filename(name or "")
        stem, dot, ext = safe.partition(".")
        candidate, n = safe, 0
        while os.path.exists(os.path.join(self.root, candidate)):
            n += 1
            candidate = f"{stem}-{n}{dot}{ext}"
        return candidate

    def upload(self, name: str, data: bytes, content_type: str = None) -> str:
        name = self.unique_name(name)
        path = self._path(name)

        max_size = current_app.config.get("MAX_CONTENT_LENGTH")
        if max_size and len(data) > max_size:
            raise ValueError(f"Object exceeds {max_size // (1024 * 1024)}MB size limit.")

        with open(path, "wb") as f:
            f.write(data)

        logger.info(f"Stored {name} ({len(data)} bytes, {content_type or 'unknown type'})")
        return self.public_url(name)

    def read(self, name: str) -> bytes:
        path = self._path(name)
        if not os.path.exists(path):
            raise FileNotFoundError(f"Object not found: {name}")
        with open(path, "rb") as f:
            return f.read()

    def exists(self, name: str) -> bool:
        try:
            return os.path.exists(self._path(name))
        except ValueError:
            return False

    def path_for(self, name: str) -> str:
        return self._path(name)

    def delete(self, name: str) -> bool:
        path = self._path(name)
        if not os.path.exists(path):
            logger.debug(f"Delete skipped, {name} not in storage")
            return False
        os.remove(path)
        logger.info(f"Deleted {name} from storage")
        return True

    def delete_url(self, url: str) -> bool:
        """Delete the object behind one of our public URLs; foreign URLs are ignored."""
        name = self.name_from_url(url)
        if name is None:
            return False
        return self.delete(name)

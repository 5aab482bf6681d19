"""
Photo Normalisation Pipeline
============================
Load → initialise crop → adjust crop → commit.

The crop region lives in *display* coordinates (the size the preview was
rendered at); commit maps it onto the natural pixel grid of the source image
and resamples it into a fixed square that is encoded back into the source's
own format.
"""

import io
import time
import logging
import mimetypes
from dataclasses import dataclass, replace
from typing import Optional

from PIL import Image, UnidentifiedImageError

from services.errors import DecodeError, EmptyCropError, EncodingError, NoCropSelectedError

logger = logging.getLogger(__name__)

OUTPUT_SIZE = 300
DEFAULT_COVERAGE = 0.8

# Declared content types that browsers send but Pillow does not list
_MIME_ALIASES = {
    "image/jpg":   "image/jpeg",
    "image/pjpeg": "image/jpeg",
    "image/x-png": "image/png",
}

# Encoders that cannot write an alpha channel
_NO_ALPHA_FORMATS = {"JPEG"}


# ---------------------------------------------------------------------------
# Geometry types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DisplaySize:
    """Size the preview was rendered at, supplied by the presentation layer."""
    width: float
    height: float


@dataclass(frozen=True)
class CropRegion:
    """Crop rectangle in display coordinates."""
    x: float
    y: float
    width: float
    height: float
    aspect: float = 1.0
    circular: bool = True  # preview-only hint, the output stays rectangular

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def to_dict(self):
        return {
            "x":        self.x,
            "y":        self.y,
            "width":    self.width,
            "height":   self.height,
            "aspect":   self.aspect,
            "circular": self.circular,
        }

    @classmethod
    def from_dict(cls, data) -> "CropRegion":
        return cls(
            x=float(data["x"]),
            y=float(data["y"]),
            width=float(data["width"]),
            height=float(data["height"]),
            aspect=float(data.get("aspect", 1.0)),
            circular=bool(data.get("circular", True)),
        )


# The value the user confirmed; same shape as the in-progress region
CommittedCrop = CropRegion


@dataclass(frozen=True)
class ScaleFactors:
    x: float
    y: float


@dataclass(frozen=True)
class PixelRect:
    """Crop rectangle in the source image's natural pixel space."""
    x: float
    y: float
    width: float
    height: float

    @property
    def box(self):
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    def to_dict(self):
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class SourceImage:
    image: Image.Image
    filename: str
    mime_type: str
    format: str

    @property
    def natural_width(self) -> int:
        return self.image.width

    @property
    def natural_height(self) -> int:
        return self.image.height


@dataclass(frozen=True)
class OutputImage:
    data: bytes
    filename: str
    mime_type: str
    width: int
    height: int
    source_rect: PixelRect

    @property
    def size(self) -> int:
        return len(self.data)


# ---------------------------------------------------------------------------
# Format helpers
# ---------------------------------------------------------------------------

def _normalise_mime(mime_type: Optional[str]) -> str:
    mime = (mime_type or "").split(";", 1)[0].strip().lower()
    return _MIME_ALIASES.get(mime, mime)


def format_for_mime(mime_type: str, preferred: Optional[str] = None) -> Optional[str]:
    """Return the Pillow format name whose encoder writes *mime_type*, or None."""
    Image.init()
    mime = _normalise_mime(mime_type)
    if preferred and Image.MIME.get(preferred) == mime and preferred in Image.SAVE:
        return preferred
    for fmt, fmt_mime in Image.MIME.items():
        if fmt_mime == mime and fmt in Image.SAVE:
            return fmt
    return None


def _extension_for(filename: str, mime_type: str) -> str:
    if filename and "." in filename:
        ext = filename.rsplit(".", 1)[1].strip().lower()
        if ext:
            return ext
    guessed = mimetypes.guess_extension(_normalise_mime(mime_type) or "")
    return guessed.lstrip(".") if guessed else "img"


def output_filename(filename: str, mime_type: str, timestamp_ms: Optional[int] = None) -> str:
    """Timestamp-based storage name that keeps the original extension."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{timestamp_ms}.{_extension_for(filename, mime_type)}"


# ---------------------------------------------------------------------------
# Stage 1: Load
# ---------------------------------------------------------------------------

def load(data: bytes, mime_type: Optional[str] = None, filename: str = "") -> SourceImage:
    """Decode *data* into a SourceImage or raise DecodeError."""
    if not data:
        raise DecodeError("Empty upload")

    try:
        with Image.open(io.BytesIO(data)) as opened:
            opened.load()
            detected_format = opened.format
            # copy() detaches the raster from the (closed) file handle
            image = opened.copy()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as exc:
        logger.info(f"Could not decode '{filename or 'upload'}': {exc}")
        raise DecodeError(f"Could not decode image: {exc}") from exc

    if image.width <= 0 or image.height <= 0:
        raise DecodeError("Image has no pixels")

    declared = (mime_type or "").strip()
    if not declared.lower().startswith("image/"):
        # Generic upload types (e.g. application/octet-stream) fall back to what was decoded
        Image.init()
        declared = Image.MIME.get(detected_format or "", "")

    logger.debug(
        f"Loaded {filename or 'upload'} ({detected_format}, {image.width}x{image.height}, {declared})"
    )
    return SourceImage(image=image, filename=filename or "", mime_type=declared, format=detected_format or "")


# ---------------------------------------------------------------------------
# Stage 2: Crop region handling (display coordinates)
# ---------------------------------------------------------------------------

def initialize_crop(display: DisplaySize, coverage: float = DEFAULT_COVERAGE) -> CropRegion:
    """Default square region covering 80% of the rendering, centred."""
    side = coverage * min(display.width, display.height)
    return CropRegion(
        x=(display.width - side) / 2,
        y=(display.height - side) / 2,
        width=side,
        height=side,
    )


def update_crop(current: CropRegion, candidate: CropRegion, display: DisplaySize) -> CropRegion:
    """Clamp *candidate* into the display and force it square.

    Runs on every drag frame, so it only does constant-time arithmetic.
    """
    width = max(0.0, candidate.width)
    height = max(0.0, candidate.height)

    # 1:1 lock: the longer side follows the shorter one
    side = min(width, height, max(0.0, display.width), max(0.0, display.height))

    x = min(max(0.0, candidate.x), display.width - side)
    y = min(max(0.0, candidate.y), display.height - side)

    return replace(current, x=x, y=y, width=side, height=side)


# ---------------------------------------------------------------------------
# Stage 3: Commit
# ---------------------------------------------------------------------------

def scale_factors(source: SourceImage, display: DisplaySize) -> ScaleFactors:
    return ScaleFactors(
        x=source.natural_width / display.width,
        y=source.natural_height / display.height,
    )


def to_pixel_rect(crop: CropRegion, scale: ScaleFactors) -> PixelRect:
    return PixelRect(
        x=crop.x * scale.x,
        y=crop.y * scale.y,
        width=crop.width * scale.x,
        height=crop.height * scale.y,
    )


def _clamp_box(rect: PixelRect, source: SourceImage):
    left = min(max(0.0, rect.x), float(source.natural_width))
    top = min(max(0.0, rect.y), float(source.natural_height))
    right = min(max(left, rect.x + rect.width), float(source.natural_width))
    bottom = min(max(top, rect.y + rect.height), float(source.natural_height))
    return left, top, right, bottom


def _prepare_mode(image: Image.Image) -> Image.Image:
    if image.mode in ("RGB", "RGBA", "L"):
        return image
    has_alpha = image.mode.endswith("A") or "transparency" in image.info
    return image.convert("RGBA" if has_alpha else "RGB")


def commit(
    source: SourceImage,
    crop: Optional[CommittedCrop],
    display: DisplaySize,
    output_size: int = OUTPUT_SIZE,
    timestamp_ms: Optional[int] = None,
) -> OutputImage:
    """Resample the committed crop into an *output_size* square and encode it."""
    if crop is None:
        raise NoCropSelectedError("No crop region committed")
    if crop.is_empty:
        raise EmptyCropError(f"Crop region has no area ({crop.width}x{crop.height})")
    if display.width <= 0 or display.height <= 0:
        raise EmptyCropError(f"Display size must be positive ({display.width}x{display.height})")

    fmt = format_for_mime(source.mime_type, preferred=source.format)
    if fmt is None:
        raise EncodingError(f"No encoder available for '{source.mime_type}'")

    rect = to_pixel_rect(crop, scale_factors(source, display))
    box = _clamp_box(rect, source)
    if box[2] <= box[0] or box[3] <= box[1]:
        raise EmptyCropError(f"Crop region lies outside the image: {rect}")

    t0 = time.time()
    canvas = _prepare_mode(source.image).resize(
        (output_size, output_size),
        Image.Resampling.BILINEAR,
        box=box,
    )
    if fmt in _NO_ALPHA_FORMATS and canvas.mode not in ("RGB", "L"):
        canvas = canvas.convert("RGB")

    buffer = io.BytesIO()
    try:
        canvas.save(buffer, format=fmt)
    except (OSError, KeyError, ValueError) as exc:
        raise EncodingError(f"Encoding to {fmt} failed: {exc}") from exc

    logger.info(
        f"Cropped {source.filename or 'upload'} {rect.width:.0f}x{rect.height:.0f}@"
        f"({rect.x:.0f},{rect.y:.0f}) → {output_size}x{output_size} {fmt} "
        f"in {time.time() - t0:.3f}s"
    )
    return OutputImage(
        data=buffer.getvalue(),
        filename=output_filename(source.filename, source.mime_type, timestamp_ms),
        mime_type=source.mime_type,
        width=output_size,
        height=output_size,
        source_rect=rect,
    )

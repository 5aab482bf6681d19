"""
ExportService
=============
Builds the Word (.docx) roster for a cohort:

    <cohort>[ - Leergroep n]        centred heading
    per student:
        name                        bold
        Leergroep n
        150x150 photo               or a grey placeholder

A photo that cannot be fetched or decoded becomes a placeholder; it never
aborts the export.
"""

import io
import time
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional
from urllib.parse import urlparse

import httpx
from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.image.exceptions import (
    InvalidImageStreamError,
    UnexpectedEndOfFileError,
    UnrecognizedImageError,
)
from docx.image.image import Image as DocxImage
from docx.shared import Emu, Pt, RGBColor

from services.roster import filter_by_group
from services.storage import StorageService

logger = logging.getLogger(__name__)

NO_PHOTO = "[Geen foto]"
PHOTO_UNAVAILABLE = "[Foto niet beschikbaar]"
PLACEHOLDER_COLOR = RGBColor(0x99, 0x99, 0x99)
EMU_PER_PIXEL = 9525  # at 96 dpi

_PHOTO_ERRORS = (
    httpx.HTTPError,
    OSError,
    ValueError,
    InvalidImageStreamError,
    UnexpectedEndOfFileError,
    UnrecognizedImageError,
)


@dataclass(frozen=True)
class ExportEntry:
    name: str
    leergroep: int
    photo_url: Optional[str] = None


@dataclass(frozen=True)
class ExportResult:
    data: bytes
    filename: str
    student_count: int
    missing_photos: int

    mime_type = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def export_title(cohort_name: str, group="all") -> str:
    return cohort_name if group == "all" else f"{cohort_name} - Leergroep {group}"


def export_filename(cohort_name: str, group="all") -> str:
    suffix = "" if group == "all" else f"_leergroep_{group}"
    return f"{cohort_name}{suffix}.docx"


def make_photo_fetcher(
    storage: StorageService,
    timeout: float = 10.0,
    allowed_hosts: Iterable[str] = (),
    transport: Optional[httpx.BaseTransport] = None,
) -> Callable[[str], bytes]:
    """Read our own photos straight from storage; other URLs only from *allowed_hosts*."""
    allowed = {host.lower() for host in allowed_hosts}

    def fetch(url: str) -> bytes:
        name = storage.name_from_url(url)
        if name is not None:
            return storage.read(name)

        parsed = urlparse(url)
        host = (parsed.hostname or "").lower()
        if parsed.scheme not in ("http", "https") or host not in allowed:
            raise ValueError(f"Remote photo host not allowed: {host or url!r}")

        # Redirects are not followed; a 3xx counts as unavailable
        with httpx.Client(timeout=timeout, transport=transport) as client:
            response = client.get(url)
        response.raise_for_status()
        return response.content

    return fetch


class DocumentExporter:

    def __init__(self, photo_fetcher: Callable[[str], bytes], photo_size: int = 150):
        self.photo_fetcher = photo_fetcher
        self.photo_size = photo_size

    # ------------------------------------------------------------------
    # Paragraph builders
    # ------------------------------------------------------------------

    @staticmethod
    def _add_title(doc, text):
        heading = doc.add_heading(level=1)
        run = heading.add_run(text)
        run.bold = True
        run.font.size = Pt(16)
        heading.alignment = WD_ALIGN_PARAGRAPH.CENTER
        heading.paragraph_format.space_after = Pt(20)

    @staticmethod
    def _add_student_header(doc, entry):
        name = doc.add_paragraph()
        name.paragraph_format.space_before = Pt(10)
        name.paragraph_format.space_after = Pt(5)
        run = name.add_run(entry.name)
        run.bold = True
        run.font.size = Pt(12)

        group = doc.add_paragraph()
        group.paragraph_format.space_after = Pt(10)
        group.add_run(f"Leergroep {entry.leergroep}").font.size = Pt(10)

    @staticmethod
    def _add_placeholder(doc, text):
        paragraph = doc.add_paragraph()
        paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        paragraph.paragraph_format.space_after = Pt(20)
        run = paragraph.add_run(text)
        run.italic = True
        run.font.color.rgb = PLACEHOLDER_COLOR

    def _add_photo(self, doc, data):
        paragraph = doc.add_paragraph()
        paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        paragraph.paragraph_format.space_after = Pt(20)
        size = Emu(self.photo_size * EMU_PER_PIXEL)
        paragraph.add_run().add_picture(io.BytesIO(data), width=size, height=size)

    def _load_photo(self, entry):
        """Photo bytes python-docx can embed, or None."""
        try:
            data = self.photo_fetcher(entry.photo_url)
            DocxImage.from_blob(data)
            return data
        except _PHOTO_ERRORS as exc:
            logger.warning(f"Photo for '{entry.name}' unavailable ({entry.photo_url}): {exc}")
            return None

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export(self, cohort_name: str, entries: Iterable[ExportEntry], group="all") -> ExportResult:
        t0 = time.time()
        selected = filter_by_group(list(entries), group)

        doc = Document()
        self._add_title(doc, export_title(cohort_name, group))

        missing = 0
        for entry in selected:
            self._add_student_header(doc, entry)

            if not entry.photo_url:
                self._add_placeholder(doc, NO_PHOTO)
                missing += 1
                continue

            data = self._load_photo(entry)
            if data is None:
                self._add_placeholder(doc, PHOTO_UNAVAILABLE)
                missing += 1
            else:
                self._add_photo(doc, data)

        buffer = io.BytesIO()
        doc.save(buffer)

        logger.info(
            f"Exported '{cohort_name}' (group={group}): {len(selected)} student(s), "
            f"{missing} without photo, {time.time() - t0:.2f}s"
        )
        return ExportResult(
            data=buffer.getvalue(),
            filename=export_filename(cohort_name, group),
            student_count=len(selected),
            missing_photos=missing,
        )

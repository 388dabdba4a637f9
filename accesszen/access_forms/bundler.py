# accesszen/access_forms/bundler.py

"""
Supporting-document pages appended after the filled access form.

For every worker, in order, and every document key the estate requires, in
the estate's order, the referenced file is fetched and rendered:

- certificate PDFs get a title page followed by their own pages;
- photos and ID copies (JPEG or PNG) are drawn scaled-to-fit under a caption.

A document that is missing, unreadable or in an unsupported format is skipped
and reported. Nothing raised while handling one document reaches the caller.
"""

from io import BytesIO
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from PIL import Image, UnidentifiedImageError
from pypdf import PageObject, PdfReader
from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from accesszen.access_forms.exceptions import DocumentBundlingException
from accesszen.access_forms.utils import (
    derive_document_title, helper_attribute_key, is_certificate_document, is_helper_document,
)
from accesszen.employees.models import Employee, Helper
from accesszen.utils.logger import get_logger

logger = get_logger(__name__)

PAGE_SIZE = letter
FONT_NAME = "Helvetica"
TITLE_FONT_SIZE = 24
CAPTION_FONT_SIZE = 18
MARGIN = 50
IMAGE_FORMATS = ("JPEG", "PNG")

# Document key -> accessor. Helper keys are looked up without their "helper" prefix.
EMPLOYEE_DOCUMENTS: Dict[str, Callable[[Employee], Optional[str]]] = {
    "photoUrl": lambda e: e.photo_url,
    "idCopyUrl": lambda e: e.id_copy_url,
    "medicalCertificateUrl": lambda e: e.medical_certificate_url,
}
HELPER_DOCUMENTS: Dict[str, Callable[[Helper], Optional[str]]] = {
    "photoUrl": lambda h: h.photo_url,
    "idCopyUrl": lambda h: h.id_copy_url,
}


def _single_page(draw: Callable[[canvas.Canvas, float, float], None]) -> PageObject:
    buffer = BytesIO()
    width, height = PAGE_SIZE
    pdf_canvas = canvas.Canvas(buffer, pagesize=PAGE_SIZE)
    draw(pdf_canvas, width, height)
    pdf_canvas.showPage()
    pdf_canvas.save()
    buffer.seek(0)
    return PdfReader(buffer).pages[0]


def render_title_page(title: str) -> PageObject:
    """A blank page carrying ``title`` half way down."""
    def draw(pdf_canvas, width, height):
        pdf_canvas.setFont(FONT_NAME, TITLE_FONT_SIZE)
        pdf_canvas.drawString(MARGIN, height / 2, title)
    return _single_page(draw)


def scale_to_fit(image_width: float, image_height: float, max_width: float, max_height: float) -> Tuple[float, float]:
    """Largest size with the image's aspect ratio that fits the box."""
    scale = min(max_width / image_width, max_height / image_height)
    return image_width * scale, image_height * scale


def decode_image(data: bytes) -> Image.Image:
    """Decode as JPEG, then PNG. Raises ValueError when neither works."""
    for image_format in IMAGE_FORMATS:
        try:
            image = Image.open(BytesIO(data), formats=[image_format])
            image.load()
            return image
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
            continue
    raise ValueError("not a valid JPG/PNG")


def render_image_page(title: str, image: Image.Image) -> PageObject:
    """A page with ``title`` near the top and ``image`` centred in the margined area below it."""
    if image.mode not in ("RGB", "RGBA", "L", "CMYK"):
        image = image.convert("RGBA" if "transparency" in image.info or "A" in image.mode else "RGB")
    mask = "auto" if image.mode == "RGBA" else None

    def draw(pdf_canvas, width, height):
        pdf_canvas.setFont(FONT_NAME, CAPTION_FONT_SIZE)
        pdf_canvas.drawString(MARGIN, height - MARGIN, title)
        scaled_width, scaled_height = scale_to_fit(
            image.width, image.height, width - 2 * MARGIN, height - 3 * MARGIN
        )
        pdf_canvas.drawImage(
            ImageReader(image),
            (width - scaled_width) / 2,
            (height - scaled_height) / 2 - MARGIN,
            width=scaled_width,
            height=scaled_height,
            mask=mask,
        )
    return _single_page(draw)


class DocumentBundler:
    """
    Renders the supporting documents of a set of workers into PDF pages.
    """

    def __init__(self, storage, warnings: Optional[List[str]] = None):
        """
        Args:
            storage: Blob store exposing ``fetch_file(reference) -> bytes``.
            warnings: Optional list that skipped-document messages are appended to.
        """
        self.storage = storage
        self.warnings = warnings if warnings is not None else []

    def bundle(self, workers: Sequence[Employee], document_keys: Sequence[str]) -> List[PageObject]:
        """
        Return the supporting-document pages for ``workers`` in worker-then-key order.
        """
        pages: List[PageObject] = []
        for worker in workers:
            for document_key in document_keys:
                located = self._locate(worker, document_key)
                if located is None:
                    continue
                reference, owner_name = located
                try:
                    pages.extend(self._render(document_key, reference, owner_name))
                except Exception as e:
                    self._skip(
                        f"FAILED to embed document {document_key} for {owner_name}. Skipping. Error: {e}",
                        document_key=document_key,
                        employee_id=worker.id,
                    )
        logger.info("Supporting documents bundled", workers=len(workers), pages=len(pages))
        return pages

    def _locate(self, worker: Employee, document_key: str) -> Optional[Tuple[str, str]]:
        """Reference and owner display name for one key, or None when there is nothing to fetch."""
        if is_helper_document(document_key):
            if not worker.has_helper or worker.helper is None:
                return None
            accessor = HELPER_DOCUMENTS.get(helper_attribute_key(document_key))
            owner = worker.helper
        else:
            accessor = EMPLOYEE_DOCUMENTS.get(document_key)
            owner = worker

        if accessor is None:
            self._skip(
                f"Unsupported document key {document_key}. Skipping.",
                document_key=document_key,
                employee_id=worker.id,
            )
            return None

        reference = accessor(owner)
        if not reference:
            return None
        return reference, owner.full_name

    def _render(self, document_key: str, reference: str, owner_name: str) -> List[PageObject]:
        data = self.storage.fetch_file(reference)
        title = f"{owner_name} - {derive_document_title(document_key)}"

        if is_certificate_document(document_key):
            reader = PdfReader(BytesIO(data))
            if reader.is_encrypted:
                reader.decrypt("")
            certificate_pages = list(reader.pages)
            if not certificate_pages:
                raise DocumentBundlingException(document_key, owner_name, "certificate has no pages")
            return [render_title_page(title)] + certificate_pages

        try:
            image = decode_image(data)
        except ValueError as e:
            raise DocumentBundlingException(document_key, owner_name, str(e)) from e
        return [render_image_page(title, image)]

    def _skip(self, message: str, **context) -> None:
        logger.warning(message, **context)
        self.warnings.append(message)

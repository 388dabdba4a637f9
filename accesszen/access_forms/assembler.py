# accesszen/access_forms/assembler.py

from io import BytesIO
from typing import Iterable, Optional, Sequence

from pypdf import PageObject, PdfWriter

from accesszen.utils.logger import get_logger

logger = get_logger(__name__)


def assemble(page_groups: Iterable[Sequence[PageObject]], metadata: Optional[dict] = None) -> bytes:
    """
    Concatenate page groups, in order, into one PDF document.

    Empty groups contribute nothing.

    Args:
        page_groups: Form sheets first (sheet order), then supporting documents.
        metadata: Optional document info entries, e.g. ``{"/Title": ...}``.

    Returns:
        The serialised PDF.
    """
    writer = PdfWriter()
    group_count = 0
    for group in page_groups:
        group_count += 1
        for page in group:
            writer.add_page(page)

    if metadata:
        writer.add_metadata(metadata)

    buffer = BytesIO()
    writer.write(buffer)
    logger.info("Assembled access form", groups=group_count, pages=len(writer.pages))
    return buffer.getvalue()

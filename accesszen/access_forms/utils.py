# accesszen/access_forms/utils.py

import re
from datetime import date
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")

HELPER_PREFIX = "helper"
CERTIFICATE_MARKER = "Certificate"
OUTPUT_KEY_TEMPLATE = "generated-forms/{project_id}/combined-access-form_{generated_on}.pdf"
WHITESPACE_PATTERN = re.compile(r"\s+")


def normalize_page_size(value: Optional[int]) -> int:
    """Workers per sheet as configured, with missing or non-positive values read as 1."""
    if not value or value < 1:
        return 1
    return value


def paginate(workers: Sequence[T], page_size: int) -> List[List[T]]:
    """
    Split workers into consecutive sheets of ``page_size``, preserving order.

    The last sheet may be shorter. Callers normalise the size with
    ``normalize_page_size`` first.
    """
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")
    return [list(workers[start:start + page_size]) for start in range(0, len(workers), page_size)]


def is_helper_document(document_key: str) -> bool:
    return document_key.startswith(HELPER_PREFIX)


def is_certificate_document(document_key: str) -> bool:
    return CERTIFICATE_MARKER in document_key


def helper_attribute_key(document_key: str) -> str:
    """``helperPhotoUrl`` -> ``photoUrl``."""
    remainder = document_key[len(HELPER_PREFIX):]
    return remainder[:1].lower() + remainder[1:]


def derive_document_title(document_key: str) -> str:
    """
    Human readable label for a document key.

    ``medicalCertificateUrl`` -> ``Medical Certificate``;
    ``helperIdCopyUrl`` -> ``Helper IdCopy``.
    """
    if is_helper_document(document_key):
        return document_key.replace("Url", "", 1).replace(HELPER_PREFIX, "Helper ", 1)
    title = re.sub(r"Url$", "", document_key)
    title = re.sub(r"([A-Z])", r" \1", title)
    return title[:1].upper() + title[1:]


def build_output_key(project_id: str, generated_on: date) -> str:
    """Blob store key of the combined access form for a project and day."""
    return OUTPUT_KEY_TEMPLATE.format(project_id=project_id, generated_on=generated_on.strftime("%Y-%m-%d"))


def build_bundle_filename(estate_name: str) -> str:
    """Attachment name for an emailed access bundle, whitespace runs replaced by dashes."""
    slug = WHITESPACE_PATTERN.sub("-", estate_name.strip())
    return f"AccessBundle-{slug}.pdf"

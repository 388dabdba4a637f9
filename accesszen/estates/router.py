# accesszen/estates/router.py

"""
FastAPI router for estate form configuration lookups.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from accesszen.access_forms.exceptions import EstateNotFoundException, convert_to_http_exception
from accesszen.access_forms.field_resolver import mappable_fields, unresolvable_mapping_keys
from accesszen.access_forms.schemas import DOCUMENT_LABELS, DocumentType, EstateMappingCatalogue
from accesszen.core.db import get_db
from accesszen.estates.models import Estate
from accesszen.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["Estates"], prefix="/estates")


@router.get("/document-types", response_model=List[DocumentType])
def list_document_types():
    """
    Supporting documents an estate can require.
    """
    return [DocumentType(id=key.value, label=label) for key, label in DOCUMENT_LABELS.items()]


@router.get("/{estate_id}/mappable-fields", response_model=EstateMappingCatalogue)
def get_mappable_fields(estate_id: str, db: Session = Depends(get_db)):
    """
    Logical fields the estate's form mapping can use, plus the mapped keys
    that will never produce text.
    """
    estate = db.get(Estate, estate_id)
    if estate is None:
        logger.error("Estate lookup failed", estate_id=estate_id)
        raise convert_to_http_exception(EstateNotFoundException(estate_id))

    page_size = estate.page_size
    mappings = estate.form_field_mappings or {}
    return EstateMappingCatalogue(
        estate_id=estate.id,
        form_max_employees=page_size,
        fields=mappable_fields(page_size),
        unresolvable_keys=unresolvable_mapping_keys(mappings, page_size),
    )

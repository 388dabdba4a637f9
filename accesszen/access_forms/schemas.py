# accesszen/access_forms/schemas.py

"""
Pydantic schemas for access form generation
"""

from enum import Enum as PyEnum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class DocumentKey(str, PyEnum):
    """Supporting documents an estate can require."""
    PHOTO = "photoUrl"
    ID_COPY = "idCopyUrl"
    MEDICAL_CERTIFICATE = "medicalCertificateUrl"
    HELPER_PHOTO = "helperPhotoUrl"
    HELPER_ID_COPY = "helperIdCopyUrl"


DOCUMENT_LABELS: Dict[DocumentKey, str] = {
    DocumentKey.PHOTO: "Employee Photo",
    DocumentKey.ID_COPY: "Employee ID Copy",
    DocumentKey.MEDICAL_CERTIFICATE: "Employee Medical Certificate",
    DocumentKey.HELPER_PHOTO: "Helper Photo",
    DocumentKey.HELPER_ID_COPY: "Helper ID Copy",
}


class AccessFormRequest(BaseModel):
    """Schema for access form generation requests."""
    project_id: str = Field(..., min_length=1)
    employee_ids: List[str] = Field(default_factory=list)


class AccessFormResult(BaseModel):
    """Outcome of one access form run. Never raised, always returned."""
    success: bool
    form_url: Optional[str] = None
    error: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)


class AccessFormTaskResponse(BaseModel):
    """Schema for queued generation requests."""
    task_id: str
    status: str = "queued"


class MappableField(BaseModel):
    """One logical field the estate mapping editor can offer."""
    key: str
    label: str
    category: str


class DocumentType(BaseModel):
    """One supporting document type."""
    id: str
    label: str


class EstateMappingCatalogue(BaseModel):
    """Mappable fields for an estate plus its mapping keys that resolve to nothing."""
    estate_id: str
    form_max_employees: int
    fields: List[MappableField]
    unresolvable_keys: List[str] = Field(default_factory=list)


class AccessBundleEmailRequest(BaseModel):
    """Schema for emailing a generated access form to its estate."""
    estate_id: str = Field(..., min_length=1)
    form_url: str = Field(..., min_length=1)
    project_id: Optional[str] = None


class AccessBundleEmailResult(BaseModel):
    """Outcome of one bundle email. Never raised, always returned."""
    success: bool
    recipient: Optional[str] = None
    error: Optional[str] = None

# accesszen/estates/models.py

import uuid
from typing import Dict, List, Optional

from sqlalchemy import JSON, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from accesszen.access_forms.utils import normalize_page_size
from accesszen.core.db import AuditMixin, Base


class Estate(Base, AuditMixin):
    """
    Client site with its own access-form template and field mapping.
    """
    __tablename__ = "estates"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    name: Mapped[str] = mapped_column(String(255), nullable=False, comment="Estate display name")
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, comment="Estate access office email")

    form_template_url: Mapped[Optional[str]] = mapped_column(
        String(1024), nullable=True,
        comment="Reference to the blank fillable PDF in the blob store"
    )
    form_max_employees: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1,
        comment="Workers representable on one physical form sheet"
    )
    # Logical field name (e.g. employeeFullName_1) -> field name inside the PDF (e.g. Text Field 1)
    form_field_mappings: Mapped[Dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)
    # Ordered document keys (e.g. photoUrl, medicalCertificateUrl) bundled after the form
    required_documents: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    @property
    def page_size(self) -> int:
        """Workers per sheet, never below 1."""
        return normalize_page_size(self.form_max_employees)

    def __repr__(self):
        return f"<Estate(id={self.id}, name={self.name})>"

# accesszen/projects/models.py

import uuid
from typing import Any, Dict, Optional

from sqlalchemy import JSON, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from accesszen.core.db import AuditMixin, Base


class Project(Base, AuditMixin):
    """
    A unit of work carried out at (at most) one estate.
    """
    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="In Progress")
    company_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)

    estate_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("estates.id", ondelete="SET NULL"), nullable=True, index=True
    )
    # {"company_name", "contact_name", "phone", "email"}
    principal_contractor: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)


    def __repr__(self):
        return f"<Project(id={self.id}, name={self.name}, estate_id={self.estate_id})>"

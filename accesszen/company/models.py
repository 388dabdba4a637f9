# accesszen/company/models.py

from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from accesszen.core.db import AuditMixin, Base

COMPANY_INFO_ID = "companyInfo"


class CompanyInfo(Base, AuditMixin):
    """
    Tenant company details. A single row keyed by COMPANY_INFO_ID.
    """
    __tablename__ = "company_info"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=COMPANY_INFO_ID)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    owner_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    logo_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

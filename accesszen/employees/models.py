# accesszen/employees/models.py

import uuid
from typing import List, Optional

from sqlalchemy import JSON, Boolean, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from accesszen.core.db import AuditMixin, Base


class Employee(Base, AuditMixin):
    """
    A worker who can be registered at an estate.
    """
    __tablename__ = "employees"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    first_name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    id_number: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, comment="National ID number")
    company_number: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(32), nullable=False, default="employee")
    is_driver: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_helper: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    photo_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    id_copy_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    medical_certificate_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    # Estate ids this worker has been cleared for; treated as a set
    registered_estate_ids: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    helper: Mapped[Optional["Helper"]] = relationship(
        back_populates="employee", uselist=False, cascade="all, delete-orphan", lazy="joined"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}"

    def __repr__(self):
        return f"<Employee(id={self.id}, name={self.full_name})>"


class Helper(Base, AuditMixin):
    """
    Dependent worker attached to an employee (e.g. a driver's assistant).
    """
    __tablename__ = "helpers"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    employee_id: Mapped[str] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    first_name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    id_number: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    photo_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    id_copy_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    employee: Mapped["Employee"] = relationship(back_populates="helper")

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}"

# accesszen/access_forms/repository.py

"""
Data Access Layer for access form generation.
"""

from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session, lazyload

from accesszen.access_forms.utils import paginate
from accesszen.company.models import COMPANY_INFO_ID, CompanyInfo
from accesszen.core.config import settings
from accesszen.employees.models import Employee
from accesszen.estates.models import Estate
from accesszen.projects.models import Project
from accesszen.utils.logger import get_logger

logger = get_logger(__name__)


class AccessFormRepository:
    """
    Reads the records a form run needs and records the resulting registrations.
    """

    def __init__(self, db: Session, id_batch_size: Optional[int] = None):
        self.db = db
        self.id_batch_size = id_batch_size or settings.id_query_batch_size

    def get_project(self, project_id: str) -> Optional[Project]:
        return self.db.get(Project, project_id)

    def get_estate(self, estate_id: str) -> Optional[Estate]:
        return self.db.get(Estate, estate_id)

    def get_company_info(self) -> Optional[CompanyInfo]:
        """The tenant's company details, if they have been set up."""
        info = self.db.get(CompanyInfo, COMPANY_INFO_ID)
        if info is None:
            info = self.db.execute(select(CompanyInfo).limit(1)).scalar_one_or_none()
        return info

    def get_employees_by_ids(self, employee_ids: Sequence[str]) -> List[Employee]:
        """
        Load employees by id in batches of at most ``id_batch_size`` ids.

        Returns:
            Employees in the order their ids were requested; duplicate and
            unknown ids are dropped.
        """
        requested = list(dict.fromkeys(employee_ids))
        found: Dict[str, Employee] = {}
        for batch in paginate(requested, self.id_batch_size):
            stmt = select(Employee).where(Employee.id.in_(batch))
            for employee in self.db.execute(stmt).unique().scalars():
                found[employee.id] = employee

        missing = [employee_id for employee_id in requested if employee_id not in found]
        if missing:
            logger.warning("Requested employees not found", missing_ids=missing)
        return [found[employee_id] for employee_id in requested if employee_id in found]

    def mark_registered(self, employees: Iterable[Employee], estate_id: str) -> int:
        """
        Add ``estate_id`` to every employee's registered estates and commit once.

        Rows are re-read under a row lock so a concurrent registration for
        another estate is merged rather than overwritten.

        Returns:
            Number of employees whose registrations changed.
        """
        employee_ids = list(dict.fromkeys(employee.id for employee in employees))
        changed = 0
        try:
            for batch in paginate(employee_ids, self.id_batch_size):
                stmt = (
                    select(Employee)
                    .where(Employee.id.in_(batch))
                    .options(lazyload(Employee.helper))
                    .with_for_update()
                    .execution_options(populate_existing=True)
                )
                for employee in self.db.execute(stmt).scalars():
                    current = list(employee.registered_estate_ids or [])
                    if estate_id in current:
                        continue
                    # Assign a new list so the JSON column is flagged dirty
                    employee.registered_estate_ids = current + [estate_id]
                    changed += 1
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("Marked employees registered", estate_id=estate_id, changed=changed)
        return changed

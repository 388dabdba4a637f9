# accesszen/access_forms/tasks.py

"""
Celery tasks for access form generation.
"""

from typing import List

from celery import shared_task

from accesszen.access_forms.services import AccessFormService
from accesszen.core.db import SessionLocal
from accesszen.utils.logger import get_logger
from accesszen.utils.s3_utils import s3_utils

logger = get_logger(__name__)


@shared_task(name="access_forms.generate")
def generate_access_form_task(project_id: str, employee_ids: List[str]) -> dict:
    """
    Run access form generation in a worker with its own DB session.

    Returns:
        The serialised AccessFormResult.
    """
    db = SessionLocal()
    try:
        service = AccessFormService(db=db, storage=s3_utils)
        result = service.fill_access_form(project_id, employee_ids)
        logger.info(
            "Access form task finished",
            project_id=project_id,
            success=result.success,
            warnings=len(result.warnings),
        )
        return result.model_dump()
    finally:
        db.close()

# accesszen/access_forms/router.py

"""
FastAPI router for access form generation.
"""

from fastapi import APIRouter, Depends, status

from accesszen.access_forms.schemas import (
    AccessBundleEmailRequest, AccessBundleEmailResult,
    AccessFormRequest, AccessFormResult, AccessFormTaskResponse,
)
from accesszen.access_forms.services import AccessBundleEmailService, AccessFormService
from accesszen.access_forms.tasks import generate_access_form_task
from accesszen.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["Access Forms"], prefix="/access-forms")


@router.post("", response_model=AccessFormResult)
def generate_access_form(
    request: AccessFormRequest,
    access_form_service: AccessFormService = Depends(),
):
    """
    Generate the combined access form for a project's employees.

    Always answers 200; ``success`` tells whether a form was produced.
    """
    logger.info(
        "Generating access form",
        project_id=request.project_id,
        employee_count=len(request.employee_ids),
    )
    return access_form_service.fill_access_form(request.project_id, request.employee_ids)


@router.post("/async", response_model=AccessFormTaskResponse, status_code=status.HTTP_202_ACCEPTED)
def queue_access_form(request: AccessFormRequest):
    """
    Queue access form generation on the worker.
    """
    task = generate_access_form_task.delay(request.project_id, list(request.employee_ids))
    logger.info("Queued access form generation", project_id=request.project_id, task_id=task.id)
    return AccessFormTaskResponse(task_id=task.id)


@router.post("/email", response_model=AccessBundleEmailResult)
async def email_access_bundle(
    request: AccessBundleEmailRequest,
    email_service: AccessBundleEmailService = Depends(),
):
    """
    Email a generated access form to its estate.

    Always answers 200; ``success`` tells whether the email was sent.
    """
    logger.info("Emailing access bundle", estate_id=request.estate_id, project_id=request.project_id)
    return await email_service.email_access_bundle(request.estate_id, request.form_url, request.project_id)

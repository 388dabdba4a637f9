# accesszen/access_forms/services.py

"""
Business Logic Layer for access form generation.
"""

from datetime import date
from io import BytesIO
from typing import List, Optional, Sequence

from fastapi import Depends
from pypdf import PageObject
from sqlalchemy.orm import Session

from accesszen.access_forms.assembler import assemble
from accesszen.access_forms.bundler import DocumentBundler
from accesszen.access_forms.exceptions import (
    AccessFormBaseException, EstateNotFoundException,
    PreconditionFailedException, ProjectNotFoundException,
)
from accesszen.access_forms.field_resolver import unresolvable_mapping_keys
from accesszen.access_forms.form_filler import fill_page
from accesszen.access_forms.repository import AccessFormRepository
from accesszen.access_forms.schemas import AccessBundleEmailResult, AccessFormResult
from accesszen.access_forms.utils import build_bundle_filename, build_output_key, paginate
from accesszen.core.db import get_db
from accesszen.utils.email_service import email_service
from accesszen.utils.logger import get_logger
from accesszen.utils.s3_utils import StoragePermissionError, s3_utils

logger = get_logger(__name__)

PERMISSION_DENIED_MESSAGE = "Permission denied. Please check database and storage access rules."


def get_storage():
    """Blob store dependency."""
    return s3_utils


class AccessFormService:
    """
    Generates the combined access form for a project's workers at its estate.
    """

    def __init__(self, db: Session = Depends(get_db), storage=Depends(get_storage)):
        self.db = db
        self.repo = AccessFormRepository(db)
        self.storage = storage

    def fill_access_form(
        self, project_id: str, employee_ids: Sequence[str], today: Optional[date] = None
    ) -> AccessFormResult:
        """
        Build, store and register an access form for the given employees.

        Steps:
        1. Check the project, its estate, the template and the field mapping
        2. Load company info and the requested employees
        3. Fill one template copy per sheet of workers
        4. Append supporting documents when the estate requires any
        5. Upload the combined PDF and obtain its URL
        6. Mark every processed employee as registered at the estate

        Args:
            project_id: Project to generate the form for
            employee_ids: Employees to put on the form
            today: Generation date, stamped on every sheet and the output key

        Returns:
            AccessFormResult with ``form_url`` on success or ``error`` on failure.
            Skipped fields and documents are listed in ``warnings``.
        """
        warnings: List[str] = []
        generated_on = today or date.today()
        try:
            form_url = self._generate(project_id, employee_ids, generated_on, warnings)
            return AccessFormResult(success=True, form_url=form_url, warnings=warnings)
        except StoragePermissionError as e:
            self.db.rollback()
            logger.error("Access form generation denied", project_id=project_id, error=e.message)
            return AccessFormResult(success=False, error=PERMISSION_DENIED_MESSAGE, warnings=warnings)
        except AccessFormBaseException as e:
            self.db.rollback()
            logger.error("Access form generation failed", project_id=project_id, error=e.message, details=e.details)
            return AccessFormResult(success=False, error=e.message, warnings=warnings)
        except Exception as e:
            self.db.rollback()
            logger.error("Error in fill_access_form", project_id=project_id, error=str(e), exc_info=True)
            return AccessFormResult(success=False, error=str(e), warnings=warnings)

    def _generate(
        self, project_id: str, employee_ids: Sequence[str], generated_on: date, warnings: List[str]
    ) -> str:
        # === Preconditions ===
        project = self.repo.get_project(project_id)
        if project is None:
            raise ProjectNotFoundException(project_id)
        if not project.estate_id:
            raise PreconditionFailedException("Project is not linked to an estate.", {"project_id": project_id})

        estate = self.repo.get_estate(project.estate_id)
        if estate is None:
            raise EstateNotFoundException(project.estate_id)
        if not estate.form_template_url:
            raise PreconditionFailedException(
                "The selected estate does not have a form template.", {"estate_id": estate.id}
            )
        mappings = estate.form_field_mappings or {}
        if not mappings:
            raise PreconditionFailedException(
                "The selected estate form has not been mapped yet. Please map the fields first.",
                {"estate_id": estate.id}
            )

        # === Inputs ===
        company_info = self.repo.get_company_info()
        employees = self.repo.get_employees_by_ids(employee_ids)
        if not employees:
            raise PreconditionFailedException(
                "No employees were found for the requested IDs.", {"project_id": project_id}
            )

        page_size = estate.page_size
        for key in unresolvable_mapping_keys(mappings, page_size):
            message = f'Mapping key "{key}" is not a known form field and will stay empty.'
            logger.warning(message, estate_id=estate.id, mapping_key=key)
            warnings.append(message)

        logger.info(
            "Generating access form",
            project_id=project_id,
            estate_id=estate.id,
            employees=len(employees),
            page_size=page_size,
        )
        template_bytes = self.storage.fetch_file(estate.form_template_url)

        # === Form sheets ===
        page_groups: List[List[PageObject]] = []
        for chunk in paginate(employees, page_size):
            page_groups.append(
                fill_page(template_bytes, mappings, chunk, project, company_info, today=generated_on, warnings=warnings)
            )

        # === Supporting documents ===
        if estate.required_documents:
            bundler = DocumentBundler(self.storage, warnings=warnings)
            document_pages = bundler.bundle(employees, estate.required_documents)
            if document_pages:
                page_groups.append(document_pages)

        final_bytes = assemble(page_groups, metadata={"/Title": f"{estate.name} access form - {project.name}"})

        # === Persist ===
        output_key = build_output_key(project_id, generated_on)
        self.storage.upload_file(BytesIO(final_bytes), output_key, content_type="application/pdf")
        form_url = self.storage.generate_presigned_url(output_key)
        logger.info("Access form uploaded", project_id=project_id, key=output_key, size=len(final_bytes))

        # === Registration ===
        self.repo.mark_registered(employees, estate.id)
        return form_url


def get_email_service():
    """Mailer dependency."""
    return email_service


class AccessBundleEmailService:
    """
    Emails a generated access form to the estate it was produced for.
    """

    def __init__(
        self,
        db: Session = Depends(get_db),
        storage=Depends(get_storage),
        mailer=Depends(get_email_service),
    ):
        self.repo = AccessFormRepository(db)
        self.storage = storage
        self.mailer = mailer

    async def email_access_bundle(
        self, estate_id: str, form_url: str, project_id: Optional[str] = None
    ) -> AccessBundleEmailResult:
        """
        Send the PDF behind ``form_url`` to the estate's email address as
        ``AccessBundle-{estate name}.pdf``.

        Returns:
            AccessBundleEmailResult with the recipient on success or ``error`` on failure.
        """
        try:
            recipient = await self._send(estate_id, form_url, project_id)
            return AccessBundleEmailResult(success=True, recipient=recipient)
        except StoragePermissionError as e:
            logger.error("Access bundle email denied", estate_id=estate_id, error=e.message)
            return AccessBundleEmailResult(success=False, error=PERMISSION_DENIED_MESSAGE)
        except AccessFormBaseException as e:
            logger.error("Access bundle email failed", estate_id=estate_id, error=e.message, details=e.details)
            return AccessBundleEmailResult(success=False, error=e.message)
        except Exception as e:
            logger.error("Error in email_access_bundle", estate_id=estate_id, error=str(e), exc_info=True)
            return AccessBundleEmailResult(success=False, error=str(e))

    async def _send(self, estate_id: str, form_url: str, project_id: Optional[str]) -> str:
        estate = self.repo.get_estate(estate_id)
        if estate is None:
            raise EstateNotFoundException(estate_id)
        if not estate.email:
            raise PreconditionFailedException(
                "The selected estate does not have an email address.", {"estate_id": estate_id}
            )
        if not self.mailer.sender:
            raise PreconditionFailedException(
                "Email sending is not configured.", {"estate_id": estate_id}
            )

        project = self.repo.get_project(project_id) if project_id else None
        company_info = self.repo.get_company_info()
        pdf_bytes = self.storage.fetch_file(form_url)
        filename = build_bundle_filename(estate.name or estate.id)

        await self.mailer.send_templated_email(
            to_emails=[estate.email],
            subject=f"Access Bundle for {estate.name}",
            template_name="access_bundle.html",
            context={
                "estate_name": estate.name,
                "project_name": project.name if project else None,
                "company_name": company_info.name if company_info else None,
            },
            attachments=[{"filename": filename, "data": pdf_bytes, "subtype": "pdf"}],
        )
        logger.info("Access bundle emailed", estate_id=estate_id, recipient=estate.email, attachment=filename)
        return estate.email

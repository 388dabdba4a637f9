import logging
from io import BytesIO
from typing import Dict, Iterable, Optional

import pytest
from PIL import Image
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from accesszen.core.db import Base
from accesszen.company.models import COMPANY_INFO_ID, CompanyInfo
from accesszen.employees.models import Employee
from accesszen.estates.models import Estate
from accesszen.projects.models import Project
from accesszen.utils.s3_utils import StorageObjectNotFoundError

logging.basicConfig(level=logging.DEBUG)
logger = logging.getLogger(__name__)

TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    TEST_DATABASE_URL, connect_args={"check_same_thread": False}, poolclass=StaticPool
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session():
    """
    Fresh schema per test, dropped afterwards.
    """
    Base.metadata.create_all(bind=engine)
    db = TestSessionLocal()
    try:
        yield db
    finally:
        logger.info("Dropping tables and closing session")
        db.close()
        Base.metadata.drop_all(bind=engine)


class FakeStorage:
    """In-memory blob store with the S3Utils surface the pipeline uses."""

    def __init__(self, files=None):
        self.files = dict(files or {})
        self.uploads = {}

    def fetch_file(self, reference: str) -> bytes:
        if reference not in self.files:
            raise StorageObjectNotFoundError(f"Nothing stored at {reference}", reference)
        data = self.files[reference]
        if isinstance(data, Exception):
            raise data
        return data

    def upload_file(self, file_obj, key, content_type=None):
        self.uploads[key] = (file_obj.read(), content_type)

    def generate_presigned_url(self, key, expiration=None):
        return f"https://files.test/{key}"


@pytest.fixture()
def storage():
    return FakeStorage()


def build_template(
    text_fields: Iterable[str] = (),
    checkboxes: Iterable[str] = (),
    pages: int = 1,
    values: Optional[Dict[str, str]] = None,
    checked: Iterable[str] = (),
) -> bytes:
    """A fillable PDF whose first page carries the given fields, optionally pre-filled."""
    values = values or {}
    checked = set(checked)
    buffer = BytesIO()
    pdf_canvas = canvas.Canvas(buffer, pagesize=letter)
    for page_number in range(pages):
        pdf_canvas.drawString(72, 750, f"Access form page {page_number + 1}")
        if page_number == 0:
            y = 700
            for name in text_fields:
                pdf_canvas.acroForm.textfield(
                    name=name, tooltip=name, x=72, y=y, width=300, height=20, value=values.get(name, "")
                )
                y -= 40
            for name in checkboxes:
                pdf_canvas.acroForm.checkbox(name=name, tooltip=name, x=72, y=y, checked=name in checked)
                y -= 40
        pdf_canvas.showPage()
    pdf_canvas.save()
    return buffer.getvalue()


def build_text_pdf(*page_texts: str) -> bytes:
    """A plain PDF with one page per text."""
    buffer = BytesIO()
    pdf_canvas = canvas.Canvas(buffer, pagesize=letter)
    for text in page_texts:
        pdf_canvas.drawString(72, 700, text)
        pdf_canvas.showPage()
    pdf_canvas.save()
    return buffer.getvalue()


def build_image(image_format: str, size=(40, 20), color=(200, 30, 30)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format=image_format)
    return buffer.getvalue()


@pytest.fixture()
def jpeg_bytes():
    return build_image("JPEG")


@pytest.fixture()
def png_bytes():
    return build_image("PNG")


def make_employee(first_name, last_name, **kwargs) -> Employee:
    helper = kwargs.pop("helper", None)
    employee = Employee(
        first_name=first_name,
        last_name=last_name,
        is_driver=kwargs.pop("is_driver", False),
        has_helper=kwargs.pop("has_helper", helper is not None),
        registered_estate_ids=kwargs.pop("registered_estate_ids", []),
        **kwargs,
    )
    if helper is not None:
        employee.helper = helper
    return employee


@pytest.fixture()
def project():
    return Project(
        id="project-1",
        name="Riverside Villa",
        address="12 River Road",
        principal_contractor={
            "company_name": "Main Build Co",
            "contact_name": "Pat Contractor",
            "phone": "555-0100",
            "email": "pat@mainbuild.test",
        },
    )


@pytest.fixture()
def company_info():
    return CompanyInfo(
        id=COMPANY_INFO_ID,
        name="Zen Works",
        address="1 Works Lane",
        phone="555-0199",
        email="office@zenworks.test",
        owner_name="Olive Owner",
    )


@pytest.fixture()
def seeded(db_session, storage, company_info):
    """
    An estate with a two-worker sheet, a linked project and three employees.
    """
    storage.files["estates/estate-1/form.pdf"] = build_template(["Name1", "Name2", "Site"])
    estate = Estate(
        id="estate-1",
        name="Oak Estate",
        email="access@oak.test",
        form_template_url="estates/estate-1/form.pdf",
        form_max_employees=2,
        form_field_mappings={
            "employeeFullName_1": "Name1",
            "employeeFullName_2": "Name2",
            "projectName": "Site",
        },
        required_documents=[],
    )
    project = Project(id="project-1", name="Riverside Villa", address="12 River Road", estate_id="estate-1")
    employees = [
        make_employee("Ann", "Able", id="emp-a"),
        make_employee("Ben", "Baker", id="emp-b"),
        make_employee("Cat", "Cole", id="emp-c"),
    ]
    db_session.add_all([estate, project, company_info, *employees])
    db_session.commit()
    return {"estate": estate, "project": project, "employees": employees}


@pytest.fixture()
def template_factory():
    return build_template


@pytest.fixture()
def text_pdf_factory():
    return build_text_pdf


@pytest.fixture()
def image_factory():
    return build_image


@pytest.fixture()
def employee_factory():
    return make_employee

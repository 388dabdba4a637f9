# accesszen/access_forms/form_filler.py

"""
Fill one copy of an estate's blank form template for one sheet of workers.

Each sheet starts from the pristine template bytes, so values never leak from
one sheet to the next. Filled values are burned into the page content and the
interactive form is removed before the pages are handed on.
"""

from datetime import date
from io import BytesIO
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pypdf import PageObject, PdfReader, PdfWriter
from pypdf.errors import PyPdfError
from pypdf.generic import (
    ContentStream, DictionaryObject, FloatObject, IndirectObject, NameObject, StreamObject,
)

from accesszen.access_forms.exceptions import TemplateLoadException
from accesszen.access_forms.field_resolver import resolve_field
from accesszen.company.models import CompanyInfo
from accesszen.employees.models import Employee
from accesszen.projects.models import Project
from accesszen.utils.logger import get_logger

logger = get_logger(__name__)

TEXT_FIELD_TYPE = "/Tx"
HIDDEN_FLAG = 2
IDENTITY_MATRIX = [1, 0, 0, 1, 0, 0]
STAMP_PREFIX = "/FlatField"


def _record(warnings: Optional[List[str]], message: str, **context: Any) -> None:
    logger.warning(message, **context)
    if warnings is not None:
        warnings.append(message)


def load_pdf(data: bytes, source: str = "template") -> PdfReader:
    """Parse PDF bytes, opening unprotected encrypted files with an empty password."""
    try:
        reader = PdfReader(BytesIO(data))
        if reader.is_encrypted:
            reader.decrypt("")
        # Touch the page tree so structural damage surfaces here
        len(reader.pages)
    except (PyPdfError, ValueError, TypeError, KeyError, NotImplementedError) as e:
        raise TemplateLoadException(source, str(e)) from e
    return reader


def build_field_values(
    field_mappings: Mapping[str, str],
    chunk_workers: Sequence[Employee],
    project: Project,
    company_info: Optional[CompanyInfo],
    today: Optional[date] = None,
) -> Dict[str, str]:
    """
    Resolve every mapping entry for one sheet.

    Returns:
        PDF field name -> text, limited to entries whose text is non-empty.
    """
    values: Dict[str, str] = {}
    for logical_key, pdf_field_name in field_mappings.items():
        if not pdf_field_name:
            continue
        text = resolve_field(logical_key, project, chunk_workers, company_info, today=today)
        if text:
            values[pdf_field_name] = text
    return values


def _index_form_fields(reader: PdfReader) -> Dict[str, Any]:
    fields = reader.get_fields() or {}
    index: Dict[str, Any] = dict(fields)
    for field in fields.values():
        partial_name = field.get("/T")
        if partial_name and partial_name not in index:
            index[partial_name] = field
    return index


def _normal_appearance(annotation: DictionaryObject) -> Optional[IndirectObject]:
    """Reference to the appearance stream a viewer shows for the widget, if any."""
    if "/AP" not in annotation:
        return None
    appearance = annotation["/AP"]
    if "/N" not in appearance:
        return None
    reference = appearance.raw_get("/N")
    normal = reference.get_object()
    if not isinstance(normal, StreamObject):
        # Checkboxes and radios keep one appearance per state, picked by /AS
        state = annotation.get("/AS")
        if state is None or state not in normal:
            return None
        reference = normal.raw_get(state)
    if not isinstance(reference, IndirectObject):
        return None
    return reference


def _placement(appearance: StreamObject, rect: List[float]) -> List[float]:
    """``cm`` operands mapping the appearance's transformed bounding box onto ``rect``."""
    bbox = [float(value) for value in (appearance["/BBox"] if "/BBox" in appearance else rect)]
    matrix = [float(value) for value in (appearance["/Matrix"] if "/Matrix" in appearance else IDENTITY_MATRIX)]
    corners = [(bbox[0], bbox[1]), (bbox[2], bbox[1]), (bbox[0], bbox[3]), (bbox[2], bbox[3])]
    xs = [matrix[0] * x + matrix[2] * y + matrix[4] for x, y in corners]
    ys = [matrix[1] * x + matrix[3] * y + matrix[5] for x, y in corners]
    left, bottom = min(xs), min(ys)
    width, height = max(xs) - left, max(ys) - bottom

    rect_left, rect_bottom = min(rect[0], rect[2]), min(rect[1], rect[3])
    scale_x = abs(rect[2] - rect[0]) / width if width else 1.0
    scale_y = abs(rect[3] - rect[1]) / height if height else 1.0
    return [scale_x, 0.0, 0.0, scale_y, rect_left - left * scale_x, rect_bottom - bottom * scale_y]


def _stamp_widget_appearances(writer: PdfWriter, page: PageObject) -> int:
    """
    Draw every visible widget's current appearance into the page content.

    Returns:
        Number of widgets stamped.
    """
    if "/Annots" not in page:
        return 0

    xobjects: Dict[NameObject, IndirectObject] = {}
    stamps: List[Any] = []
    for index, annotation_ref in enumerate(page["/Annots"]):
        annotation = annotation_ref.get_object()
        if annotation.get("/Subtype") != "/Widget":
            continue
        if int(annotation.get("/F", 0)) & HIDDEN_FLAG:
            continue
        reference = _normal_appearance(annotation)
        if reference is None or "/Rect" not in annotation:
            continue
        rect = [float(value) for value in annotation["/Rect"]]
        name = NameObject(f"{STAMP_PREFIX}{index}")
        xobjects[name] = reference
        operands = [FloatObject(value) for value in _placement(reference.get_object(), rect)]
        stamps += [([], b"q"), (operands, b"cm"), ([name], b"Do"), ([], b"Q")]

    if not stamps:
        return 0

    if "/Resources" not in page:
        page[NameObject("/Resources")] = DictionaryObject()
    resources = page["/Resources"]
    if "/XObject" not in resources:
        resources[NameObject("/XObject")] = DictionaryObject()
    page_xobjects = resources["/XObject"]
    for name, reference in xobjects.items():
        page_xobjects[name] = reference

    content = page.get_contents()
    if content is None:
        content = ContentStream(None, writer)
    # Original drawing keeps its own graphics state
    content.operations = [([], b"q")] + list(content.operations) + [([], b"Q")] + stamps
    page.replace_contents(content)
    return len(xobjects)


def flatten_form(writer: PdfWriter) -> None:
    """
    Burn every widget's appearance into its page, then drop the widgets and
    the AcroForm so the document is no longer editable.
    """
    for page in writer.pages:
        stamped = _stamp_widget_appearances(writer, page)
        if stamped:
            logger.debug("Stamped form widgets", widgets=stamped)

    writer.remove_annotations(subtypes="/Widget")
    root = writer._root_object
    if "/AcroForm" in root:
        del root[NameObject("/AcroForm")]


def fill_page(
    template_bytes: bytes,
    field_mappings: Mapping[str, str],
    chunk_workers: Sequence[Employee],
    project: Project,
    company_info: Optional[CompanyInfo],
    today: Optional[date] = None,
    warnings: Optional[List[str]] = None,
) -> List[PageObject]:
    """
    Produce the flattened pages of the template filled for one sheet of workers.

    A mapping that names a field missing from the template, or a field that is
    not a text field, is skipped and reported; the rest of the sheet is still
    filled. A template that cannot be parsed raises TemplateLoadException.
    """
    reader = load_pdf(template_bytes)
    form_fields = _index_form_fields(reader)
    values = build_field_values(field_mappings, chunk_workers, project, company_info, today=today)

    writer = PdfWriter(clone_from=reader)
    for pdf_field_name, text in values.items():
        field = form_fields.get(pdf_field_name)
        if field is None:
            _record(
                warnings,
                f'PDF form field "{pdf_field_name}" not found in template. Skipping.',
                pdf_field=pdf_field_name,
            )
            continue
        if field.get("/FT") != TEXT_FIELD_TYPE:
            _record(
                warnings,
                f'PDF form field "{pdf_field_name}" is not a text field. Skipping.',
                pdf_field=pdf_field_name,
                field_type=str(field.get("/FT")),
            )
            continue
        try:
            for page in writer.pages:
                writer.update_page_form_field_values(
                    page, {pdf_field_name: text}, auto_regenerate=False
                )
        except (PyPdfError, ValueError, TypeError, KeyError, AttributeError) as e:
            _record(
                warnings,
                f'PDF form field "{pdf_field_name}" could not be set. Skipping.',
                pdf_field=pdf_field_name,
                error=str(e),
            )

    flatten_form(writer)

    # Round-trip so the returned pages no longer reference the writer's form objects
    buffer = BytesIO()
    writer.write(buffer)
    buffer.seek(0)
    return list(PdfReader(buffer).pages)

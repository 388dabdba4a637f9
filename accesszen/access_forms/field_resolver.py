# accesszen/access_forms/field_resolver.py

"""
Resolution of logical form field names into display text.

Logical names are either flat (``projectName``, ``companyPhone``) or indexed
per worker on the current sheet (``employeeFullName_2``). Anything that does
not resolve yields an empty string; resolution never raises.
"""

import re
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from accesszen.access_forms.schemas import MappableField
from accesszen.company.models import CompanyInfo
from accesszen.employees.models import Employee
from accesszen.projects.models import Project

DATE_FORMAT = "%Y-%m-%d"
INDEXED_KEY_PATTERN = re.compile(r"^([a-zA-Z]+)_(\d+)$")
NOT_AVAILABLE = "N/A"

COMPANY_FIELDS: Dict[str, Callable[[CompanyInfo], Optional[str]]] = {
    "companyName": lambda info: info.name,
    "companyAddress": lambda info: info.address,
    "companyPhone": lambda info: info.phone,
    "companyEmail": lambda info: info.email,
    "companyOwnerName": lambda info: info.owner_name,
}

PRINCIPAL_CONTRACTOR_FIELDS: Dict[str, str] = {
    "principalContractorCompanyName": "company_name",
    "principalContractorContactName": "contact_name",
    "principalContractorPhone": "phone",
    "principalContractorEmail": "email",
}


def _helper_or_none(employee: Employee):
    # has_helper gates every helper field, even when a helper row exists
    if employee.has_helper and employee.helper is not None:
        return employee.helper
    return None


def _helper_field(getter: Callable, default: str = "") -> Callable[[Employee], str]:
    def resolve_helper(employee: Employee) -> str:
        helper = _helper_or_none(employee)
        if helper is None:
            return ""
        return getter(helper) or default
    return resolve_helper


# Per-worker fields. Absent ID, company number and phone read "N/A"; names read "".
WORKER_FIELDS: Dict[str, Callable[[Employee], str]] = {
    "employeeFullName": lambda e: e.full_name,
    "employeeFirstName": lambda e: e.first_name or "",
    "employeeLastName": lambda e: e.last_name or "",
    "employeeIdNumber": lambda e: e.id_number or NOT_AVAILABLE,
    "employeeCompanyNumber": lambda e: e.company_number or NOT_AVAILABLE,
    "employeePhone": lambda e: e.phone or NOT_AVAILABLE,
    "employeeIsDriver": lambda e: "Yes" if e.is_driver else "No",
    "helperFullName": _helper_field(lambda h: h.full_name),
    "helperFirstName": _helper_field(lambda h: h.first_name),
    "helperLastName": _helper_field(lambda h: h.last_name),
    "helperIdNumber": _helper_field(lambda h: h.id_number, default=NOT_AVAILABLE),
}

FLAT_FIELD_CATALOGUE = [
    ("todaysDate", "Today's Date", "Project"),
    ("projectName", "Project Name", "Project"),
    ("projectAddress", "Project Address", "Project"),
    ("companyName", "Name", "Company Info"),
    ("companyAddress", "Address", "Company Info"),
    ("companyPhone", "Phone", "Company Info"),
    ("companyEmail", "Email", "Company Info"),
    ("companyOwnerName", "Owner Name", "Company Info"),
    ("principalContractorCompanyName", "Company Name", "Principal Contractor"),
    ("principalContractorContactName", "Contact Name", "Principal Contractor"),
    ("principalContractorPhone", "Phone", "Principal Contractor"),
    ("principalContractorEmail", "Email", "Principal Contractor"),
]

WORKER_FIELD_CATALOGUE = [
    ("employeeFullName", "Full Name", "Employee"),
    ("employeeFirstName", "First Name", "Employee"),
    ("employeeLastName", "Last Name", "Employee"),
    ("employeeIdNumber", "ID Number", "Employee"),
    ("employeeCompanyNumber", "Company Number", "Employee"),
    ("employeePhone", "Phone", "Employee"),
    ("employeeIsDriver", "Is Driver", "Employee"),
    ("helperFullName", "Full Name", "Helper"),
    ("helperFirstName", "First Name", "Helper"),
    ("helperLastName", "Last Name", "Helper"),
    ("helperIdNumber", "ID Number", "Helper"),
]


def resolve_field(
    logical_key: str,
    project: Project,
    chunk_workers: Sequence[Employee],
    company_info: Optional[CompanyInfo],
    today: Optional[date] = None,
) -> str:
    """
    Return the text a logical field should carry on the current sheet.

    Args:
        logical_key: Mapping key, e.g. ``projectName`` or ``employeeIdNumber_2``.
        project: Project the form is generated for.
        chunk_workers: Workers on this sheet; indexed keys are 1-based into this list.
        company_info: Tenant company details, if configured.
        today: Generation date for ``todaysDate``; defaults to the current date.

    Returns:
        The display text, or "" when the key does not apply.
    """
    if logical_key in COMPANY_FIELDS:
        if company_info is None:
            return ""
        return COMPANY_FIELDS[logical_key](company_info) or ""

    if logical_key in PRINCIPAL_CONTRACTOR_FIELDS:
        contractor = project.principal_contractor or {}
        return contractor.get(PRINCIPAL_CONTRACTOR_FIELDS[logical_key]) or ""

    if logical_key == "todaysDate":
        return (today or date.today()).strftime(DATE_FORMAT)
    if logical_key == "projectName":
        return project.name or ""
    if logical_key == "projectAddress":
        return project.address or ""

    match = INDEXED_KEY_PATTERN.match(logical_key)
    if not match:
        return ""

    base_name, position = match.group(1), int(match.group(2)) - 1
    if position < 0 or position >= len(chunk_workers):
        return ""

    resolver = WORKER_FIELDS.get(base_name)
    if resolver is None:
        return ""
    return resolver(chunk_workers[position])


def mappable_fields(max_employees: int) -> List[MappableField]:
    """
    List the logical fields a mapping for ``max_employees`` workers per sheet can use.
    """
    fields = [
        MappableField(key=key, label=label, category=category)
        for key, label, category in FLAT_FIELD_CATALOGUE
    ]
    for index in range(1, max(max_employees, 1) + 1):
        for base_name, label, category in WORKER_FIELD_CATALOGUE:
            fields.append(
                MappableField(key=f"{base_name}_{index}", label=label, category=f"{category} {index}")
            )
    return fields


def unresolvable_mapping_keys(mapping_keys: Iterable[str], max_employees: int) -> List[str]:
    """Return mapping keys that can never produce text for this sheet size."""
    known = {field.key for field in mappable_fields(max_employees)}
    return [key for key in mapping_keys if key not in known]

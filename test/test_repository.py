import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from accesszen.access_forms.repository import AccessFormRepository
from accesszen.company.models import CompanyInfo
from accesszen.core.db import Base
from accesszen.employees.models import Employee, Helper


@pytest.fixture()
def employees(db_session, employee_factory):
    records = [employee_factory(f"Name{i}", "Test", id=f"emp-{i}") for i in range(5)]
    records[0].helper = Helper(first_name="Sam", last_name="Aide")
    db_session.add_all(records)
    db_session.commit()
    return records


@pytest.fixture()
def employee_queries(db_session):
    """Counts SELECTs issued against the employees table."""
    statements = []

    def record(conn, cursor, statement, parameters, context, executemany):
        if statement.lstrip().upper().startswith("SELECT") and "FROM employees" in statement:
            statements.append(statement)

    engine = db_session.get_bind()
    event.listen(engine, "before_cursor_execute", record)
    yield statements
    event.remove(engine, "before_cursor_execute", record)


def test_employees_are_loaded_in_batches(db_session, employees, employee_queries):
    repo = AccessFormRepository(db_session, id_batch_size=2)
    db_session.expunge_all()

    found = repo.get_employees_by_ids(["emp-4", "emp-0", "emp-3", "emp-1", "emp-2"])

    assert [employee.id for employee in found] == ["emp-4", "emp-0", "emp-3", "emp-1", "emp-2"]
    assert len(employee_queries) == 3
    assert found[1].helper.full_name == "Sam Aide"


def test_duplicate_and_unknown_ids_are_dropped(db_session, employees):
    repo = AccessFormRepository(db_session, id_batch_size=2)

    found = repo.get_employees_by_ids(["emp-2", "ghost", "emp-2", "emp-1"])

    assert [employee.id for employee in found] == ["emp-2", "emp-1"]


def test_no_ids_means_no_query(db_session, employees, employee_queries):
    assert AccessFormRepository(db_session).get_employees_by_ids([]) == []
    assert employee_queries == []


def test_mark_registered_is_idempotent(db_session, employees):
    repo = AccessFormRepository(db_session)
    employees[0].registered_estate_ids = ["estate-0"]
    db_session.commit()

    assert repo.mark_registered(employees[:2], "estate-1") == 2
    assert repo.mark_registered(employees[:2], "estate-1") == 0

    db_session.expire_all()
    assert employees[0].registered_estate_ids == ["estate-0", "estate-1"]
    assert employees[1].registered_estate_ids == ["estate-1"]


def test_company_info_falls_back_to_first_row(db_session):
    repo = AccessFormRepository(db_session)
    assert repo.get_company_info() is None

    db_session.add(CompanyInfo(id="legacy", name="Legacy Works"))
    db_session.commit()

    assert repo.get_company_info().name == "Legacy Works"


def test_concurrent_registrations_are_merged(tmp_path, employee_factory):
    file_engine = create_engine(f"sqlite:///{tmp_path / 'registrations.db'}")
    Base.metadata.create_all(bind=file_engine)
    FileSession = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)

    with FileSession() as setup:
        setup.add(employee_factory("Ann", "Able", id="emp-1"))
        setup.commit()

    first, second = FileSession(), FileSession()
    try:
        first_view = first.get(Employee, "emp-1")
        second_view = second.get(Employee, "emp-1")
        assert first_view.registered_estate_ids == second_view.registered_estate_ids == []

        AccessFormRepository(first).mark_registered([first_view], "estate-1")
        AccessFormRepository(second).mark_registered([second_view], "estate-2")
    finally:
        first.close()
        second.close()

    with FileSession() as check:
        assert check.get(Employee, "emp-1").registered_estate_ids == ["estate-1", "estate-2"]
    file_engine.dispose()

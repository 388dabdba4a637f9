from accesszen.access_forms import tasks


def test_task_runs_generation_with_its_own_session(db_session, storage, seeded, monkeypatch):
    monkeypatch.setattr(tasks, "SessionLocal", lambda: db_session)
    monkeypatch.setattr(tasks, "s3_utils", storage)

    result = tasks.generate_access_form_task("project-1", ["emp-a", "emp-b"])

    assert result["success"] is True
    assert result["form_url"].startswith("https://files.test/generated-forms/project-1/")
    assert result["warnings"] == []
    assert len(storage.uploads) == 1


def test_task_reports_failures(db_session, storage, seeded, monkeypatch):
    monkeypatch.setattr(tasks, "SessionLocal", lambda: db_session)
    monkeypatch.setattr(tasks, "s3_utils", storage)

    result = tasks.generate_access_form_task("missing", ["emp-a"])

    assert result == {"success": False, "form_url": None, "error": "Project not found.", "warnings": []}

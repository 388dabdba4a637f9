import asyncio
from email import message_from_string

import pytest
from botocore.exceptions import ClientError

from accesszen.access_forms.services import (
    PERMISSION_DENIED_MESSAGE, AccessBundleEmailService, get_email_service,
)
from accesszen.estates.models import Estate
from accesszen.utils.email_service import EmailService
from accesszen.utils.s3_utils import StoragePermissionError

FORM_URL = "https://files.test/generated-forms/project-1/combined-access-form_2024-03-09.pdf"


class RecordingSES:
    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def send_raw_email(self, **kwargs):
        if self.error:
            raise self.error
        self.sent.append(kwargs)
        return {"MessageId": "message-1"}


@pytest.fixture()
def ses():
    return RecordingSES()


@pytest.fixture()
def mailer(ses):
    return EmailService(ses_client=ses, sender="forms@zenworks.test")


@pytest.fixture()
def bundle_service(db_session, storage, mailer):
    return AccessBundleEmailService(db=db_session, storage=storage, mailer=mailer)


def send(service, estate_id="estate-1", form_url=FORM_URL, project_id="project-1"):
    return asyncio.run(service.email_access_bundle(estate_id, form_url, project_id))


def test_bundle_is_sent_to_the_estate(bundle_service, storage, ses, seeded):
    storage.files[FORM_URL] = b"%PDF-1.4 combined form"

    result = send(bundle_service)

    assert result.success is True
    assert result.recipient == "access@oak.test"
    assert len(ses.sent) == 1
    assert ses.sent[0]["Source"] == "forms@zenworks.test"
    assert ses.sent[0]["Destinations"] == ["access@oak.test"]

    message = message_from_string(ses.sent[0]["RawMessage"]["Data"])
    assert message["Subject"] == "Access Bundle for Oak Estate"
    attachments = [part for part in message.walk() if part.get_filename()]
    assert [part.get_filename() for part in attachments] == ["AccessBundle-Oak-Estate.pdf"]
    assert attachments[0].get_content_type() == "application/pdf"
    assert attachments[0].get_payload(decode=True) == b"%PDF-1.4 combined form"
    html = next(part for part in message.walk() if part.get_content_type() == "text/html")
    body = html.get_payload(decode=True).decode()
    assert "Oak Estate" in body
    assert "Riverside Villa" in body
    assert "Zen Works" in body


def test_estate_without_email_is_reported(bundle_service, storage, ses, seeded, db_session):
    db_session.get(Estate, "estate-1").email = None
    db_session.commit()
    storage.files[FORM_URL] = b"%PDF"

    result = send(bundle_service)

    assert result.success is False
    assert result.error == "The selected estate does not have an email address."
    assert ses.sent == []


def test_unknown_estate_is_reported(bundle_service, ses, seeded):
    result = send(bundle_service, estate_id="nowhere")

    assert result.success is False
    assert result.error == "Estate not found."
    assert ses.sent == []


def test_missing_sender_is_reported(db_session, storage, ses, seeded):
    storage.files[FORM_URL] = b"%PDF"
    service = AccessBundleEmailService(db=db_session, storage=storage, mailer=EmailService(ses_client=ses))
    service.mailer.sender = None

    result = send(service)

    assert result.success is False
    assert result.error == "Email sending is not configured."
    assert ses.sent == []


def test_unreadable_form_is_reported(bundle_service, storage, ses, seeded):
    storage.files[FORM_URL] = StoragePermissionError("denied", FORM_URL)

    result = send(bundle_service)

    assert result.success is False
    assert result.error == PERMISSION_DENIED_MESSAGE
    assert ses.sent == []


def test_ses_rejection_is_reported(db_session, storage, seeded):
    storage.files[FORM_URL] = b"%PDF"
    rejected = ClientError({"Error": {"Code": "MessageRejected", "Message": "Email address is not verified."}}, "SendRawEmail")
    mailer = EmailService(ses_client=RecordingSES(error=rejected), sender="forms@zenworks.test")

    result = send(AccessBundleEmailService(db=db_session, storage=storage, mailer=mailer))

    assert result.success is False
    assert "Email address is not verified." in result.error


# accesszen/utils/email_service.py

import asyncio
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import ClientError
from jinja2 import Environment, FileSystemLoader

from accesszen.core.config import settings
from accesszen.utils.logger import get_logger

logger = get_logger(__name__)


class EmailService:
    """
    Sends emails through Amazon SES, with Jinja2 templated bodies and attachments.
    """
    def __init__(self, ses_client=None, sender: Optional[str] = None):
        self.ses_client = ses_client or boto3.client(
            "ses",
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region,
        )
        self.sender = sender or settings.aws_ses_sender_email

        template_path = Path(__file__).parent.parent / "templates" / "emails"
        self.jinja_env = Environment(loader=FileSystemLoader(template_path), autoescape=True)

    def _render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """Render an HTML email template using Jinja2."""
        try:
            template = self.jinja_env.get_template(template_name)
            return template.render(context)
        except Exception as e:
            logger.error("Error rendering email template", template=template_name, error_message=str(e))
            raise

    async def _send_email_async(
        self,
        to_emails: List[str],
        subject: str,
        html_body: str,
        attachments: Optional[List[Dict[str, Any]]] = None,
    ):
        """
        Build a multipart message and hand it to SES from a worker thread.
        """
        msg = MIMEMultipart("mixed")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = ", ".join(to_emails)

        msg_body = MIMEMultipart("alternative")
        msg_body.attach(MIMEText(html_body, "html"))
        msg.attach(msg_body)

        for attachment in attachments or []:
            part = MIMEApplication(attachment["data"], _subtype=attachment.get("subtype", "octet-stream"))
            part.add_header("Content-Disposition", "attachment", filename=attachment["filename"])
            msg.attach(part)

        try:
            await asyncio.to_thread(
                self.ses_client.send_raw_email,
                Source=self.sender,
                Destinations=to_emails,
                RawMessage={"Data": msg.as_string()},
            )
            logger.info("Email sent successfully", subject=subject, to=", ".join(to_emails))
        except ClientError as e:
            logger.error("Failed to send email", subject=subject, error_message=str(e))
            raise

    async def send_templated_email(
        self,
        *,
        to_emails: List[str],
        subject: str,
        template_name: str,
        context: Dict[str, Any],
        attachments: Optional[List[Dict[str, Any]]] = None,
    ):
        """
        Render an email from a template and send it with optional attachments.

        Args:
            to_emails: Recipient addresses.
            subject: Subject line.
            template_name: Jinja2 template under ``templates/emails``.
            context: Template variables.
            attachments: Dicts with ``filename``, ``data`` and optional MIME ``subtype``.
        """
        html_body = self._render_template(template_name, context)
        await self._send_email_async(
            to_emails=to_emails,
            subject=subject,
            html_body=html_body,
            attachments=attachments,
        )


email_service = EmailService()

"""
Email Service

Sends contact form notifications through Amazon SES. boto3 is synchronous,
so each send runs in a worker thread and two sends can proceed concurrently.
"""

import asyncio
import logging
from typing import Any, Optional

import boto3

from ..config import Settings
from ..errors import ConfigurationError
from ..models.contact import RequestMetadata

logger = logging.getLogger(__name__)


class EmailService:
    """Visitor confirmation and owner notification emails"""

    def __init__(self, settings: Settings, ses_client: Optional[Any] = None):
        self.settings = settings
        self._client = ses_client

    @property
    def configured(self) -> bool:
        return bool(self.settings.contact_sender_email and self.settings.contact_owner_email)

    def initialize(self) -> None:
        """Create the SES client; safe to call more than once"""
        if self._client is None:
            self._client = boto3.client("ses", region_name=self.settings.aws_region)
        if self.configured:
            logger.info("Email service initialized (SES region %s)", self.settings.aws_region)
        else:
            logger.warning(
                "Email service not configured - set CONTACT_SENDER_EMAIL and CONTACT_OWNER_EMAIL"
            )

    async def send_to_visitor(self, name: str, email: str) -> str:
        """Send the confirmation email to the person who filled in the form"""
        subject = "Thanks for getting in touch!"
        body = f"""
Hi {name},

Thank you for reaching out through my portfolio site. Your message has been
received and I will get back to you within two business days.

Best regards,
{self.settings.owner_name}
        """.strip()
        return await self._send(email, subject, body)

    async def send_to_owner(self, name: str, email: str, message: str, metadata: RequestMetadata) -> str:
        """Forward the submission to the site owner"""
        if not self.settings.contact_owner_email:
            raise ConfigurationError("CONTACT_OWNER_EMAIL not configured")

        subject = f"New contact form submission from {name}"
        body = f"""
New message received from the portfolio contact form:

Name: {name}
Email: {email}

Message:
{message}

---
IP address: {metadata.ip}
User agent: {metadata.user_agent}
        """.strip()
        return await self._send(self.settings.contact_owner_email, subject, body, reply_to=email)

    async def _send(self, recipient: str, subject: str, body: str, reply_to: Optional[str] = None) -> str:
        sender = self.settings.contact_sender_email
        if not sender:
            raise ConfigurationError("CONTACT_SENDER_EMAIL not configured")
        if self._client is None:
            self.initialize()

        kwargs = {
            "Source": sender,
            "Destination": {"ToAddresses": [recipient]},
            "Message": {
                "Subject": {"Data": subject, "Charset": "UTF-8"},
                "Body": {"Text": {"Data": body, "Charset": "UTF-8"}},
            },
        }
        if reply_to:
            kwargs["ReplyToAddresses"] = [reply_to]

        response = await asyncio.to_thread(self._client.send_email, **kwargs)
        logger.info("Email '%s' sent (MessageId %s)", subject, response["MessageId"])
        return response["MessageId"]

"""
Transactional email delivery.

Two providers share one call shape, send_email(from, to, subject, html):
Resend over its HTTP API (httpx), and the Gmail API for workspaces that send
from a Google account. Any non-2xx response or transport error raises
EmailDeliveryError; nothing is retried here.
"""
import base64
import json
import logging
import re
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Dict, Optional

import httpx
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from portal.config import settings
from portal.errors import EmailDeliveryError

logger = logging.getLogger(__name__)

# Gmail API scopes
SCOPES = ['https://www.googleapis.com/auth/gmail.send']


class ResendEmailService:
    """Send email through the Resend HTTP API"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key or settings.resend_api_key
        self.api_url = api_url or settings.resend_api_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

        if not self.api_key:
            logger.info("RESEND_API_KEY not set - will be required when sending emails")

    def send_email(self, from_email: str, to: str, subject: str, html: str) -> Dict[str, Optional[str]]:
        """
        Send one message.

        Returns:
            dict with 'message_id' and 'success'

        Raises:
            EmailDeliveryError if the provider did not accept the message
        """
        if not self.api_key:
            raise EmailDeliveryError("RESEND_API_KEY not configured")

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(
                    self.api_url,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json={"from": from_email, "to": to, "subject": subject, "html": html},
                )
        except httpx.HTTPError as e:
            logger.error(f"Resend request failed: {e}")
            raise EmailDeliveryError(f"Failed to send email: {e}") from e

        if not response.is_success:
            logger.error(f"Resend rejected message ({response.status_code}): {response.text[:200]}")
            raise EmailDeliveryError(f"Email provider returned {response.status_code}")

        message_id = None
        try:
            message_id = response.json().get("id")
        except ValueError:
            pass
        logger.info(f"Email sent successfully: message_id={message_id}")
        return {"message_id": message_id, "success": True}


class GmailEmailService:
    """Send email via the Gmail API using a stored authorized-user credential"""

    def __init__(self, credentials_json: Optional[str] = None, sender_email: Optional[str] = None):
        self.sender_email = sender_email or settings.gmail_sender_email
        self.service = None
        self.init_error = None

        credentials_json = credentials_json or settings.gmail_credentials_json
        logger.info(f"Gmail credentials check: "
                    f"GMAIL_CREDENTIALS_JSON={'set' if credentials_json else 'not set'}, "
                    f"GMAIL_SENDER_EMAIL={'set' if self.sender_email else 'not set'}")

        if not credentials_json:
            self.init_error = "GMAIL_CREDENTIALS_JSON not configured"
            return

        try:
            creds = Credentials.from_authorized_user_info(json.loads(credentials_json), SCOPES)
            if creds.expired and creds.refresh_token:
                creds.refresh(Request())
            self.service = build('gmail', 'v1', credentials=creds)
            logger.info("Gmail service initialized successfully")
        except Exception as e:
            self.init_error = f"Failed to build Gmail service: {e}"
            logger.error(self.init_error)

    def send_email(self, from_email: str, to: str, subject: str, html: str) -> Dict[str, Optional[str]]:
        if not self.service:
            raise EmailDeliveryError(f"Gmail service not initialized: {self.init_error}")

        message = MIMEMultipart('alternative')
        message['To'] = to
        message['From'] = from_email or self.sender_email
        message['Subject'] = subject
        message.attach(MIMEText(re.sub(r'<[^>]+>', '', html), 'plain'))
        message.attach(MIMEText(html, 'html'))

        raw_message = base64.urlsafe_b64encode(message.as_bytes()).decode('utf-8')
        try:
            sent = self.service.users().messages().send(
                userId='me',
                body={'raw': raw_message}
            ).execute()
        except HttpError as error:
            logger.error(f'Gmail API error: {error}')
            raise EmailDeliveryError(f"Failed to send email via Gmail API: {error}") from error

        logger.info(f"Email sent successfully: message_id={sent['id']}")
        return {"message_id": sent['id'], "success": True}


def get_email_service():
    """Email sender for the configured EMAIL_PROVIDER"""
    if settings.email_provider == "gmail":
        return GmailEmailService()
    return ResendEmailService()

"""
Email delivery of finished reports over SMTP.
"""

from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage
from pathlib import Path
from typing import List, Sequence

from .errors import DeliveryError

logger = logging.getLogger(__name__)

SMTP_TIMEOUT_S = 30


def build_message(
    file_path: Path,
    file_name: str,
    recipients: Sequence[str],
    sender: str,
    subject: str,
    body: str,
) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = ", ".join(recipients)
    msg["Subject"] = subject
    msg.set_content(body)
    msg.add_attachment(
        Path(file_path).read_bytes(),
        maintype="application",
        subtype="pdf",
        filename=file_name,
    )
    return msg


class SmtpMailer:
    """
    Sends a report as an email attachment.

    STARTTLS is used when the server offers it. Certificates are not
    verified: internal relays commonly present self-signed ones.
    """

    def __init__(self, smtp_class=smtplib.SMTP, timeout: float = SMTP_TIMEOUT_S):
        self.smtp_class = smtp_class
        self.timeout = timeout

    def send(
        self,
        file_path: Path,
        file_name: str,
        recipients: List[str],
        sender: str,
        subject: str,
        body: str,
        smtp_host: str,
        smtp_port: int,
    ) -> None:
        """
        Send `file_path` to `recipients`.

        Raises:
            DeliveryError: On connection, verification or send failure
        """
        try:
            msg = build_message(file_path, file_name, recipients, sender, subject, body)
            logger.info(f"[MAIL] Connecting to SMTP server at {smtp_host}:{smtp_port}...")
            with self.smtp_class(smtp_host, smtp_port, timeout=self.timeout) as smtp:
                smtp.ehlo()
                if smtp.has_extn("starttls"):
                    context = ssl.create_default_context()
                    context.check_hostname = False
                    context.verify_mode = ssl.CERT_NONE
                    smtp.starttls(context=context)
                    smtp.ehlo()
                code, _ = smtp.noop()
                if code != 250:
                    raise DeliveryError(f"SMTP server at {smtp_host}:{smtp_port} not ready (NOOP {code})")
                logger.info("[MAIL] SMTP connection established")
                refused = smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(f"Email delivery failed: {e}") from e

        if refused:
            logger.warning(f"[MAIL] Recipients refused: {sorted(refused)}")
        logger.info(f"[MAIL] Email sent to {', '.join(recipients)}")

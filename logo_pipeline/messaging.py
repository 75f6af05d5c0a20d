import logging
import mimetypes
import smtplib
from email.message import EmailMessage
from email.utils import formataddr, formatdate
from pathlib import Path
from typing import Callable, Optional, Sequence

from .errors import DeliveryError
from .records import ClientRecord

logger = logging.getLogger(__name__)

DEFAULT_BODY_TEMPLATE = (
    "Dear {{client_name}},\n\n"
    "We are pleased to share the customized product designs we prepared for "
    "{{client_company_name}}. Please find the attached images.\n\n"
    "Best regards,\n"
    "{{sender_name}}"
)


def render_template(template: str, client: ClientRecord, sender_name: str = "") -> str:
    """
    Fill the `{{...}}` placeholders of a message template.

    Supported placeholders:
    - {{client_name}}: the contact person, or a generic salutation
    - {{client_company_name}}: the client's name from the record
    - {{sender_name}}: the configured sender display name

    Unknown placeholders are left as they are.
    """
    replacements = {
        "{{client_name}}": client.salutation_name,
        "{{client_company_name}}": client.name,
        "{{sender_name}}": sender_name,
    }
    text = template
    for placeholder, value in replacements.items():
        text = text.replace(placeholder, value)
    return text


class SmtpMailer:
    """
    Sends prepared messages over SMTP with optional STARTTLS.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        use_starttls: bool = True,
        timeout: float = 30.0,
        smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_starttls = use_starttls
        self.timeout = timeout
        self.smtp_factory = smtp_factory

    def send(self, message: EmailMessage) -> None:
        try:
            with self.smtp_factory(self.host, self.port, timeout=self.timeout) as server:
                if self.use_starttls:
                    server.starttls()
                server.login(self.username, self.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError(f"Failed to send email to {message['To']}: {exc}") from exc


class Notifier:
    """
    Emails generated artifacts to a client.

    Delivery failures are logged and reported through the return value of
    `notify`; they never propagate.
    """

    def __init__(
        self,
        mailer,
        from_name: str,
        from_address: str,
        subject: str,
        body_template: Optional[str] = None,
    ) -> None:
        self.mailer = mailer
        self.from_name = from_name
        self.from_address = from_address
        self.subject = subject
        self.body_template = body_template or DEFAULT_BODY_TEMPLATE

    def build_message(
        self,
        client: ClientRecord,
        attachments: Sequence[Path],
    ) -> EmailMessage:
        if not client.email:
            raise ValueError(f"Client {client.name!r} has no email address")

        message = EmailMessage()
        message["From"] = formataddr((self.from_name, self.from_address))
        message["To"] = client.email
        message["Date"] = formatdate(localtime=True)
        message["Subject"] = render_template(self.subject, client, self.from_name)
        message.set_content(render_template(self.body_template, client, self.from_name))

        for path in attachments:
            mime, _ = mimetypes.guess_type(path.name)
            maintype, subtype = (mime or "application/octet-stream").split("/", 1)
            message.add_attachment(
                path.read_bytes(),
                maintype=maintype,
                subtype=subtype,
                filename=path.name,
            )
        return message

    def notify(self, client: ClientRecord, attachments: Sequence[Path]) -> bool:
        try:
            message = self.build_message(client, attachments)
            logger.debug("Sending %d attachment(s) to %s", len(attachments), client.email)
            self.mailer.send(message)
        except DeliveryError as exc:
            logger.error("Failed to send email to %s: %s", client.email, exc)
            return False
        except OSError as exc:
            logger.error("Could not attach files for %s: %s", client.email, exc)
            return False
        except ValueError as exc:
            logger.error("Could not build email for %s: %s", client.name, exc)
            return False

        logger.info("📧 Email sent to %s", client.email)
        return True

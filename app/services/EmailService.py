"""Template-driven email sending used by every workflow."""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from app.core.config import Settings
from app.services.ResendEmailClient import EmailTransport
from app.utils.email.render_template import render_template

logger = logging.getLogger(__name__)

SUBJECT_MARKER = re.compile(r"<!--\s*SUBJECT:\s*(.*?)\s*-->")


class EmailTemplateNotFound(Exception):
    pass


class EmailService:
    """Loads `<name>.html`, renders it and hands the result to the transport."""

    def __init__(self, settings: Settings, transport: EmailTransport, templates_dir: Optional[Path] = None):
        self.settings = settings
        self.transport = transport
        self.templates_dir = Path(templates_dir or settings.EMAIL_TEMPLATES_DIR)

    def load_template(self, template_name: str) -> str:
        path = self.templates_dir / f"{template_name}.html"
        if not path.is_file():
            raise EmailTemplateNotFound(f"Email template '{template_name}' not found in {self.templates_dir}")
        return path.read_text(encoding="utf-8")

    def default_variables(self) -> Dict[str, Any]:
        return {
            "dashboard_link": self.settings.build_url("/dashboard"),
            "dashboard_url": self.settings.build_url("/dashboard"),
            "support_email": self.settings.SUPPORT_EMAIL,
            "company_name": self.settings.COMPANY_NAME,
            "current_year": datetime.utcnow().year,
        }

    def build_subject(self, template: str, variables: Mapping[str, Any]) -> str:
        """Explicit `subject` wins, then the template's SUBJECT marker, then a generic line."""
        if variables.get("subject"):
            return str(variables["subject"])
        marker = SUBJECT_MARKER.search(template)
        if marker:
            return render_template(marker.group(1), variables)
        return f"Notification from {self.settings.COMPANY_NAME}"

    def render(self, template_name: str, variables: Mapping[str, Any]) -> Dict[str, str]:
        template = self.load_template(template_name)
        merged = {**self.default_variables(), **variables}
        subject = self.build_subject(template, merged)
        html = render_template(SUBJECT_MARKER.sub("", template, count=1), merged)
        return {"subject": subject, "html": html}

    async def send_email(self, to: str, template_name: str, variables: Optional[Mapping[str, Any]] = None) -> dict:
        """
        Render `template_name` with `variables` and deliver it to `to`.

        In testing mode every message is redirected to EMAIL_TEST_RECIPIENT,
        or to the admin inbox when that is unset.
        Raises EmailTemplateNotFound or the transport's delivery error.
        """
        rendered = self.render(template_name, variables or {})
        recipient = to
        subject = rendered["subject"]
        html = rendered["html"]

        if self.settings.EMAIL_TESTING_MODE:
            recipient = self.settings.EMAIL_TEST_RECIPIENT or self.settings.ADMIN_NOTIFICATION_EMAIL
            subject = f"[TEST] {subject}"
            html = (
                f'<p style="background:#fef3c7;padding:8px;">Testing mode: originally addressed to {to}</p>'
                + html
            )
            logger.info(f"📧 Testing mode: redirecting '{template_name}' from {to} to {recipient}")

        result = await self.transport.send(
            to=recipient,
            subject=subject,
            html=html,
            reply_to=self.settings.EMAIL_REPLY_TO,
        )
        logger.info(f"📧 Sent '{template_name}' to {recipient}")
        return result

from datetime import datetime
from typing import Any, Dict
from jinja2 import Environment, FileSystemLoader
from pathlib import Path
import smtplib
import time
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from chitledger.core.config import settings
import logging

logger = logging.getLogger(__name__)

def format_amount(paise: int) -> str:
    return f"{paise / 100:,.2f}"

class EmailService:
    max_retries = 3

    def __init__(self):
        self.template_dir = Path(__file__).resolve().parent.parent / "email-templates" / "src"
        self.env = Environment(loader=FileSystemLoader(str(self.template_dir)), autoescape=True)

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        template = self.env.get_template(template_name)
        return template.render(**context)

    def send_email(
        self,
        *,
        email_to: str,
        subject: str,
        template_name: str,
        context: Dict[str, Any] | None = None,
    ) -> bool:
        """
        Render and send an HTML email. Returns False without sending when no
        SMTP host is configured.
        """
        html_content = self.render_template(template_name, context or {})

        if not settings.SMTP_HOST:
            logger.info(f"SMTP not configured, skipping '{subject}' to {email_to}")
            return False

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{settings.EMAILS_FROM_NAME} <{settings.EMAILS_FROM_EMAIL}>"
        msg["To"] = email_to
        msg.attach(MIMEText(html_content, "html"))

        for attempt in range(self.max_retries):
            try:
                logger.info(f"Connecting to SMTP server: {settings.SMTP_HOST}:{settings.SMTP_PORT} (Attempt {attempt+1}/{self.max_retries})")
                with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=60) as server:
                    server.ehlo()
                    if settings.SMTP_TLS:
                        server.starttls()
                        server.ehlo()
                    if settings.SMTP_USER and settings.SMTP_PASSWORD:
                        server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
                    server.sendmail(settings.EMAILS_FROM_EMAIL, [email_to], msg.as_string())
                logger.info(f"Email sent to {email_to} with template: {template_name}")
                return True
            except (smtplib.SMTPServerDisconnected, smtplib.SMTPConnectError, smtplib.SMTPResponseException) as e:
                logger.warning(f"SMTP connection error on attempt {attempt+1}: {e}")
                if attempt == self.max_retries - 1:
                    logger.error(f"Failed to send email to {email_to} after {self.max_retries} attempts")
                    raise
                time.sleep(2)
        return False

    # --- Helper methods for common emails ---
    def payment_received_context(self, name: str, amount: int, fund_name: str, month_number: int) -> Dict[str, Any]:
        return {
            "project_name": settings.PROJECT_NAME,
            "name": name,
            "currency": settings.CURRENCY,
            "amount": format_amount(amount),
            "fund_name": fund_name,
            "month_number": month_number,
            "date": datetime.now().strftime("%Y-%m-%d"),
        }

    def payout_context(self, name: str, amount: int, commission: int, fund_name: str, withdrawal_month: int) -> Dict[str, Any]:
        return {
            "project_name": settings.PROJECT_NAME,
            "name": name,
            "currency": settings.CURRENCY,
            "amount": format_amount(amount),
            "commission": format_amount(commission),
            "fund_name": fund_name,
            "withdrawal_month": withdrawal_month,
        }

email_service = EmailService()

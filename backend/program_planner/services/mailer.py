"""
Program Planner - Mailer
SMTP による HTML メール送信

SMTP_HOST が未設定の場合は送信せずログに出力する（ドライラン）。
"""
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from program_planner.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class Mailer:
    def __init__(self, app_settings: Optional[Settings] = None):
        self.settings = app_settings or default_settings

    @property
    def enabled(self) -> bool:
        return self.settings.is_smtp_enabled()

    def build_message(self, to: str, subject: str, html: str) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["From"] = self.settings.smtp_from
        message["To"] = to
        message["Subject"] = subject
        message.attach(MIMEText(html, "html"))
        return message

    def send_html(self, to: str, subject: str, html: str) -> bool:
        """
        HTML メールを送信する。

        Returns:
            実際に送信した場合 True、ドライランの場合 False
        Raises:
            smtplib.SMTPException: 送信に失敗した場合
        """
        if not self.enabled:
            logger.info(
                "[DRY-RUN] email to=%s subject=%s html_length=%d",
                to,
                subject,
                len(html),
            )
            return False

        message = self.build_message(to, subject, html)
        with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port) as server:
            if self.settings.smtp_starttls:
                server.starttls()
            if self.settings.smtp_user:
                server.login(self.settings.smtp_user, self.settings.smtp_password or "")
            server.send_message(message)

        logger.info("Email sent to %s: %s", to, subject)
        return True


mailer = Mailer()

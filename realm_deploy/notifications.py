import logging
import smtplib
from datetime import datetime
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Dict, Optional

import requests

from .config import DeployConfig

logger = logging.getLogger(__name__)


class Notifier:
    """Sends deployment results via Slack and/or email"""

    def __init__(self, slack_webhook: Optional[str] = None, smtp_server: str = "smtp.gmail.com",
                 smtp_port: int = 587, smtp_username: Optional[str] = None,
                 smtp_password: Optional[str] = None, notification_email: Optional[str] = None):
        self.slack_webhook = slack_webhook
        self.smtp_server = smtp_server
        self.smtp_port = smtp_port
        self.smtp_username = smtp_username
        self.smtp_password = smtp_password
        self.notification_email = notification_email

    @classmethod
    def from_config(cls, config: DeployConfig) -> "Notifier":
        return cls(
            slack_webhook=config.slack_webhook,
            smtp_server=config.smtp_server,
            smtp_port=config.smtp_port,
            smtp_username=config.smtp_username,
            smtp_password=config.smtp_password,
            notification_email=config.notification_email,
        )

    def notify(self, title: str, message: str, contracts: Optional[Dict[str, str]] = None):
        """Delivers a message on every configured channel. Never raises."""
        contracts = contracts or {}

        if self.smtp_username and self.smtp_password and self.notification_email:
            try:
                self._send_email(title, message, contracts)
            except Exception as e:
                logger.error(f"Failed to send email notification: {e}")

        if self.slack_webhook:
            try:
                self._send_slack(title, message, contracts)
            except Exception as e:
                logger.error(f"Failed to send Slack notification: {e}")

    def _send_email(self, title, message, contracts):
        msg = MIMEMultipart()
        msg['From'] = self.smtp_username
        msg['To'] = self.notification_email
        msg['Subject'] = title

        lines = "\n".join(f"        - {name}: {address}" for name, address in contracts.items()) or "        (none)"
        body = f"""
        {title}

        Time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}
        Message: {message}

        Contracts:
{lines}
        """
        msg.attach(MIMEText(body, 'plain'))

        server = smtplib.SMTP(self.smtp_server, self.smtp_port)
        try:
            server.starttls()
            server.login(self.smtp_username, self.smtp_password)
            server.send_message(msg)
        finally:
            server.quit()

    def _send_slack(self, title, message, contracts):
        payload = {
            "text": f"{title}: {message}",
            "attachments": [
                {
                    "fields": [
                        {"title": name, "value": address, "short": False}
                        for name, address in contracts.items()
                    ]
                }
            ]
        }
        response = requests.post(self.slack_webhook, json=payload, timeout=10)
        response.raise_for_status()

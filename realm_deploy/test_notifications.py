#!/usr/bin/env python3
"""
Tests for deployment notifications
"""

import smtplib
import pytest
import requests
from unittest.mock import patch

from realm_deploy.config import DeployConfig
from realm_deploy.notifications import Notifier

CONTRACTS = {'Base64': "0xBase64", 'Realm': "0xRealm"}


class TestNotifier:
    """Test Slack and email delivery"""

    @patch('realm_deploy.notifications.smtplib.SMTP')
    @patch('realm_deploy.notifications.requests.post')
    def test_unconfigured_channels_skipped(self, mock_post, mock_smtp):
        Notifier().notify("Title", "message", CONTRACTS)

        mock_post.assert_not_called()
        mock_smtp.assert_not_called()

    @patch('realm_deploy.notifications.requests.post')
    def test_slack(self, mock_post):
        notifier = Notifier.from_config(DeployConfig(slack_webhook="https://hooks.slack.test/x"))

        notifier.notify("Realm Deployment Completed", "Deployed to development", CONTRACTS)

        mock_post.assert_called_once()
        assert mock_post.call_args.args[0] == "https://hooks.slack.test/x"
        assert mock_post.call_args.kwargs['timeout'] == 10
        payload = mock_post.call_args.kwargs['json']
        assert payload['text'] == "Realm Deployment Completed: Deployed to development"
        titles = [f['title'] for f in payload['attachments'][0]['fields']]
        assert titles == ["Base64", "Realm"]

    @patch('realm_deploy.notifications.requests.post')
    def test_slack_error_is_logged_not_raised(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError("down")
        notifier = Notifier(slack_webhook="https://hooks.slack.test/x")

        notifier.notify("Title", "message")

    @patch('realm_deploy.notifications.smtplib.SMTP')
    def test_email(self, mock_smtp):
        notifier = Notifier(smtp_server="smtp.test", smtp_port=25, smtp_username="bot@test",
                            smtp_password="secret", notification_email="ops@test")

        notifier.notify("Realm Deployment Failed", "linking failure", CONTRACTS)

        mock_smtp.assert_called_once_with("smtp.test", 25)
        server = mock_smtp.return_value
        server.login.assert_called_once_with("bot@test", "secret")
        message = server.send_message.call_args.args[0]
        assert message['Subject'] == "Realm Deployment Failed"
        assert message['To'] == "ops@test"
        server.quit.assert_called_once()

    @patch('realm_deploy.notifications.smtplib.SMTP')
    def test_email_error_is_logged_not_raised(self, mock_smtp):
        server = mock_smtp.return_value
        server.login.side_effect = smtplib.SMTPException("authentication failed")
        notifier = Notifier(smtp_username="bot@test", smtp_password="wrong", notification_email="ops@test")

        notifier.notify("Realm Deployment Failed", "linking failure", CONTRACTS)

        server.send_message.assert_not_called()
        server.quit.assert_called_once()

    @patch('realm_deploy.notifications.requests.post')
    @patch('realm_deploy.notifications.smtplib.SMTP')
    def test_email_error_does_not_block_slack(self, mock_smtp, mock_post):
        mock_smtp.return_value.starttls.side_effect = smtplib.SMTPException("no tls")
        notifier = Notifier(slack_webhook="https://hooks.slack.test/x", smtp_username="bot@test",
                            smtp_password="secret", notification_email="ops@test")

        notifier.notify("Title", "message")

        mock_post.assert_called_once()


if __name__ == "__main__":
    pytest.main([__file__])

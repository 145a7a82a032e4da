"""Tests for SesNotifier with a mocked boto3 client."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from pricealert.exceptions import NotificationFailed
from pricealert.infra.notify.ses import SesNotifier


@pytest.fixture()
def ses_client():
    client = MagicMock()
    client.send_email.return_value = {"MessageId": "msg-123"}
    return client


class TestSesNotifier:
    async def test_sends_text_and_html(self, ses_client):
        notifier = SesNotifier(ses_client, sender="alerts@example.com")

        message_id = await notifier.send("a@b.com", "Crypto Price: bitcoin", "plain body", "<p>rich</p>")

        assert message_id == "msg-123"
        kwargs = ses_client.send_email.call_args.kwargs
        assert kwargs["FromEmailAddress"] == "alerts@example.com"
        assert kwargs["Destination"] == {"ToAddresses": ["a@b.com"]}
        simple = kwargs["Content"]["Simple"]
        assert simple["Subject"]["Data"] == "Crypto Price: bitcoin"
        assert simple["Body"]["Text"]["Data"] == "plain body"
        assert simple["Body"]["Html"]["Data"] == "<p>rich</p>"

    async def test_text_only(self, ses_client):
        notifier = SesNotifier(ses_client, sender="alerts@example.com")
        await notifier.send("a@b.com", "s", "plain")
        assert "Html" not in ses_client.send_email.call_args.kwargs["Content"]["Simple"]["Body"]

    async def test_client_error_maps_to_notification_failed(self, ses_client):
        ses_client.send_email.side_effect = ClientError(
            {"Error": {"Code": "MessageRejected", "Message": "Email address is not verified."}}, "SendEmail"
        )
        notifier = SesNotifier(ses_client, sender="alerts@example.com")

        with pytest.raises(NotificationFailed):
            await notifier.send("a@b.com", "s", "plain")

    async def test_connection_error_maps_to_notification_failed(self, ses_client):
        ses_client.send_email.side_effect = EndpointConnectionError(endpoint_url="https://email.ap-southeast-2.amazonaws.com")
        notifier = SesNotifier(ses_client, sender="alerts@example.com")

        with pytest.raises(NotificationFailed):
            await notifier.send("a@b.com", "s", "plain")

"""Email delivery through AWS SES v2."""

import asyncio
import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from pricealert.exceptions import NotificationFailed

logger = logging.getLogger(__name__)

CHARSET = "UTF-8"


def build_ses_client(region: str) -> Any:
    return boto3.client("sesv2", region_name=region)


class SesNotifier:
    """Sends one email per call. boto3 is blocking, so the call runs in a worker thread."""

    def __init__(self, client: Any, sender: str) -> None:
        self._client = client
        self._sender = sender

    async def send(self, to: str, subject: str, text: str, html: str | None = None) -> str:
        """Send and return the SES message id. Any SES/botocore failure raises NotificationFailed."""
        body: dict[str, Any] = {"Text": {"Data": text, "Charset": CHARSET}}
        if html:
            body["Html"] = {"Data": html, "Charset": CHARSET}

        try:
            response = await asyncio.to_thread(
                self._client.send_email,
                FromEmailAddress=self._sender,
                Destination={"ToAddresses": [to]},
                Content={
                    "Simple": {
                        "Subject": {"Data": subject, "Charset": CHARSET},
                        "Body": body,
                    }
                },
            )
        except (BotoCoreError, ClientError) as exc:
            logger.exception("SES send_email failed")
            raise NotificationFailed() from exc

        message_id = response.get("MessageId", "")
        logger.info("Price notification sent (message id %s)", message_id)
        return message_id

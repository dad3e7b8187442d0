import asyncio
import json
import logging
import smtplib
import uuid
from email.message import EmailMessage
from email.utils import make_msgid

from . import config

logger = logging.getLogger(__name__)


def default_smtp():
    smtp = smtplib.SMTP(config.EMAIL_HOST, config.EMAIL_PORT, timeout=10)
    smtp.starttls()
    if config.EMAIL_USER and config.EMAIL_PASSWORD:
        smtp.login(config.EMAIL_USER, config.EMAIL_PASSWORD)
    return smtp


class NotificationGateway:
    """Best-effort push and email delivery.

    Push messages are published to a redis channel consumed by the push relay;
    email goes straight out over SMTP. Both calls make a single attempt, log any
    failure and return None instead of raising, so a stale token or a bad address
    never undoes the state change that triggered the notification.
    """

    def __init__(self, redis_client, smtp_factory=default_smtp,
                 channel=config.PUSH_CHANNEL, sender=config.EMAIL_FROM):
        self.redis = redis_client
        self.smtp_factory = smtp_factory
        self.channel = channel
        self.sender = sender

    async def notify_push(self, token, title, body, data=None):
        if not token:
            logger.info("[Notify] No FCM token provided")
            return None

        payload = {key: str(value) for key, value in (data or {}).items() if value is not None}
        payload["clickAction"] = "FLUTTER_NOTIFICATION_CLICK"
        message = {
            "messageId": uuid.uuid4().hex,
            "token": token,
            "title": title,
            "body": body,
            "data": payload,
        }

        try:
            await asyncio.to_thread(self.redis.publish, self.channel, json.dumps(message))
            logger.info(f"[Notify] Push notification sent: {message['messageId']}")
            return message["messageId"]
        except Exception as e:
            logger.error(f"[Notify] Error sending push notification: {e}")
            return None

    async def notify_email(self, to, subject, html):
        if not to:
            logger.info("[Notify] No email address provided")
            return None

        try:
            # Header values with CR/LF raise here, so building stays inside the guard.
            msg = EmailMessage()
            msg["From"] = self.sender
            msg["To"] = to
            msg["Subject"] = subject
            msg["Message-ID"] = make_msgid(domain="carpooling.app")
            msg.set_content("This message requires an HTML capable email client.")
            msg.add_alternative(html, subtype="html")

            await asyncio.to_thread(self._deliver, msg)
            logger.info(f"[Notify] Email sent: {msg['Message-ID']}")
            return msg["Message-ID"]
        except Exception as e:
            logger.error(f"[Notify] Error sending email: {e}")
            return None

    def _deliver(self, msg):
        with self.smtp_factory() as smtp:
            smtp.send_message(msg)


async def fan_out(*aws):
    """Await every task concurrently; one failure never cancels the others."""
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, Exception):
            logger.error(f"[Notify] Fan-out task failed: {result}")
    return results

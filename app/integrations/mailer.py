"""
Simulated mail delivery for email nodes.

Email nodes render a message and hand it to a mailer. No transport is
involved: SimulatedMailer records the message and reports it as sent.
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
import uuid

from app.config import settings


logger = logging.getLogger(__name__)


@dataclass
class EmailMessage:
    """A rendered email."""
    to: str
    sender: str
    subject: str
    body: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "to": self.to,
            "from": self.sender,
            "subject": self.subject,
            "body": self.body,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class DeliveryReceipt:
    """Outcome of handing a message to the mailer."""
    message_id: str
    status: str = "sent"
    sent: bool = True


class SimulatedMailer:
    """Mailer that keeps messages in memory instead of sending them."""

    def __init__(self, sender: Optional[str] = None):
        self.sender = sender or settings.EMAIL_SENDER
        self.outbox: List[EmailMessage] = []

    def compose(self, to: str, subject: str, body: str) -> EmailMessage:
        return EmailMessage(to=to, sender=self.sender, subject=subject, body=body)

    def send(self, message: EmailMessage) -> DeliveryReceipt:
        self.outbox.append(message)
        receipt = DeliveryReceipt(message_id=f"msg_{uuid.uuid4().hex[:16]}")
        logger.info(
            f"Simulated email {receipt.message_id} to '{message.to}': {message.subject}"
        )
        return receipt

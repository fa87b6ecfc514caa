"""
Integrations package - Outbound collaborators used by node handlers.
"""

from app.integrations.http import IntegrationClient
from app.integrations.mailer import DeliveryReceipt, EmailMessage, SimulatedMailer

__all__ = [
    "IntegrationClient",
    "DeliveryReceipt",
    "EmailMessage",
    "SimulatedMailer",
]

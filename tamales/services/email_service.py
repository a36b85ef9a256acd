"""
Transactional email through the Resend HTTP API.
Renders the verification and order emails and sends them synchronously.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

import logging

import requests
from flask import render_template

logger = logging.getLogger(__name__)


class EmailNotConfiguredError(RuntimeError):
    """Raised when no Resend API key is available."""


class EmailDeliveryError(RuntimeError):
    """Raised when Resend rejects the message or cannot be reached."""


class ResendEmailSender:
    """
    Sends one message per call through Resend.
    No retry and no queue: a failure propagates to the caller.
    """

    def __init__(self, api_key: Optional[str], from_email: str,
                 api_url: str = "https://api.resend.com/emails", timeout: float = 10):
        self.api_key = api_key
        self.from_email = from_email
        self.api_url = api_url
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': 'Tamales-Backend/1.0',
            'Content-Type': 'application/json',
            'Accept': 'application/json'
        })

    @classmethod
    def from_config(cls, config) -> "ResendEmailSender":
        return cls(
            api_key=config.get("RESEND_API_KEY"),
            from_email=config.get("FROM_EMAIL"),
            api_url=config.get("RESEND_API_URL", "https://api.resend.com/emails"),
            timeout=config.get("EMAIL_TIMEOUT", 10),
        )

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def send(self, to: Union[str, List[str]], subject: str, html: str) -> Dict[str, Any]:
        """
        Sends one HTML message.

        Args:
            to: Recipient address or list of addresses
            subject: Subject line
            html: Rendered HTML body

        Returns:
            Dict: Resend response payload (contains the message id)
        """
        if not self.api_key:
            raise EmailNotConfiguredError("RESEND_API_KEY not configured")

        recipients = to if isinstance(to, list) else [to]
        payload = {
            'from': self.from_email,
            'to': recipients,
            'subject': subject,
            'html': html,
        }
        headers = {'Authorization': f'Bearer {self.api_key}'}

        try:
            response = self.session.post(self.api_url, json=payload, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise EmailDeliveryError(f"Resend API error: {e}") from e

        if not response.ok:
            raise EmailDeliveryError(f"Resend API error: {response.text}")

        logger.info(f"Email '{subject}' sent to {', '.join(recipients)}")
        return response.json()


def _format_money(value) -> str:
    return f"{float(value or 0):.2f}"


def _order_lines(items: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    return [
        {
            'name': item.get('name', ''),
            'qty': item.get('qty', 0),
            'total': _format_money(item.get('total')),
        }
        for item in items
    ]


def send_verification_email(sender, email: str, code: str, name: Optional[str] = None):
    html = render_template('emails/verification.html', name=name or 'there', code=code)
    return sender.send(email, 'Verify Your Email - Tamales de Danely', html)


def send_order_emails(sender, order: Dict[str, Any], admin_email: str):
    """Admin notification first, then the customer confirmation."""
    lines = _order_lines(order['items'])
    grand_total = order.get('grandTotal')
    if grand_total is None:
        grand_total = sum(float(item.get('total') or 0) for item in order['items'])

    context = {
        'name': order.get('name') or '',
        'email': order['email'],
        'phone': order.get('phone') or 'Not provided',
        'lines': lines,
        'grand_total': _format_money(grand_total),
        'created_at': order.get('createdAt') or datetime.now(timezone.utc).isoformat(),
    }

    sender.send(
        admin_email,
        f"🫔 New Tamales Order from {context['name']}",
        render_template('emails/order_admin.html', **context),
    )
    sender.send(
        order['email'],
        '¡Order Confirmed! - Tamales de Danely',
        render_template('emails/order_customer.html', **context),
    )

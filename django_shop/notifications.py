"""
Best-effort outbound messages.

Senders in this module never raise: a failed delivery is logged and reported
through an ``Advisory`` so the caller's primary operation is not affected.
"""
import logging
from dataclasses import dataclass

from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string
from django.utils.html import strip_tags

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Advisory:
    """Outcome of a side effect that must not block the primary operation."""

    delivered: bool
    detail: str = ""

    def __bool__(self):
        return self.delivered


def send_templated_email(to, subject, template_name, context):
    if not to:
        return Advisory(False, "no recipient")
    try:
        html = render_to_string(template_name, context)
        sent = send_mail(
            subject,
            strip_tags(html),
            settings.DEFAULT_FROM_EMAIL,
            [to],
            html_message=html,
            fail_silently=False,
        )
    except Exception as exc:
        logger.exception("Error sending '%s' email to %s", subject, to)
        return Advisory(False, str(exc)[:300])

    if sent < 1:
        logger.error("send_mail returned 0 while sending '%s' to %s", subject, to)
        return Advisory(False, "0 delivered")

    logger.info("Email '%s' sent to %s", subject, to)
    return Advisory(True)

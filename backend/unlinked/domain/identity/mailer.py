"""Outbound email dispatch for engagement events.

`notify` is the only entry point used by the services. It renders one of the
known templates and sends it over SMTP; it never raises to its caller.
"""

from __future__ import annotations

import hashlib
import logging
from email.message import EmailMessage
from email.utils import formataddr
from html import escape
from typing import Any, Callable, Dict, Mapping, Tuple

import aiosmtplib

from unlinked.obs import metrics as obs_metrics
from unlinked.settings import settings

logger = logging.getLogger(__name__)

CONNECTION_ACCEPTED = "connection_accepted"
COMMENT = "comment"


def mask_email(email: str) -> str:
	return hashlib.sha256(email.lower().encode("utf-8")).hexdigest()[:12]


def _connection_accepted_template(payload: Mapping[str, Any]) -> Tuple[str, str]:
	accepter = escape(str(payload.get("accepter_name") or "Someone"))
	recipient = escape(str(payload.get("recipient_name") or "there"))
	profile_url = escape(str(payload.get("profile_url") or settings.client_url), quote=True)
	subject = f"{payload.get('accepter_name') or 'Someone'} accepted your connection request"
	body = f"""
	<html>
		<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;">
			<div style="max-width: 500px; margin: 0 auto; padding: 24px;">
				<h2>Connection accepted</h2>
				<p>Hi {recipient},</p>
				<p><strong>{accepter}</strong> accepted your connection request on UnLinked.</p>
				<p><a href="{profile_url}">View their profile</a></p>
			</div>
		</body>
	</html>
	"""
	return subject, body


def _comment_template(payload: Mapping[str, Any]) -> Tuple[str, str]:
	commenter = escape(str(payload.get("commenter_name") or "Someone"))
	recipient = escape(str(payload.get("recipient_name") or "there"))
	post_url = escape(str(payload.get("post_url") or settings.client_url), quote=True)
	comment = escape(str(payload.get("comment") or ""))
	subject = "New comment on your post"
	body = f"""
	<html>
		<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;">
			<div style="max-width: 500px; margin: 0 auto; padding: 24px;">
				<p>Hi {recipient},</p>
				<p><strong>{commenter}</strong> commented on your post:</p>
				<blockquote>{comment}</blockquote>
				<p><a href="{post_url}">View the conversation</a></p>
			</div>
		</body>
	</html>
	"""
	return subject, body


_TEMPLATES: Dict[str, Callable[[Mapping[str, Any]], Tuple[str, str]]] = {
	CONNECTION_ACCEPTED: _connection_accepted_template,
	COMMENT: _comment_template,
}


async def _send_email(to_email: str, subject: str, body_html: str) -> None:
	msg = EmailMessage()
	msg["From"] = formataddr((settings.smtp_from_name, settings.smtp_from_email))
	msg["To"] = to_email
	msg["Subject"] = subject
	msg.set_content(body_html, subtype="html")
	# STARTTLS on 587, implicit TLS on 465
	start_tls = bool(settings.smtp_tls) and int(settings.smtp_port) == 587
	use_tls = bool(settings.smtp_tls) and int(settings.smtp_port) == 465
	await aiosmtplib.send(
		msg,
		hostname=settings.smtp_host,
		port=settings.smtp_port,
		username=settings.smtp_user,
		password=settings.smtp_password,
		start_tls=start_tls,
		use_tls=use_tls,
	)


async def notify(recipient_email: str | None, template_kind: str, payload: Mapping[str, Any]) -> bool:
	"""Render and send a templated email. Returns True only when a message went out."""
	template = _TEMPLATES.get(template_kind)
	if template is None:
		logger.error("Unknown email template %s", template_kind)
		obs_metrics.inc_email(template_kind, "unknown_template")
		return False
	if not recipient_email:
		logger.warning("Skipping %s email: recipient has no address", template_kind)
		obs_metrics.inc_email(template_kind, "skipped")
		return False
	if not settings.smtp_host:
		logger.warning("SMTP not configured, skipping %s email to %s", template_kind, mask_email(recipient_email))
		obs_metrics.inc_email(template_kind, "skipped")
		return False
	subject, body = template(payload)
	try:
		await _send_email(recipient_email, subject, body)
	except Exception as exc:
		logger.error("Failed to send %s email to %s: %s", template_kind, mask_email(recipient_email), str(exc))
		obs_metrics.inc_email(template_kind, "error")
		return False
	logger.info("Sent %s email to %s", template_kind, mask_email(recipient_email))
	obs_metrics.inc_email(template_kind, "sent")
	return True


__all__ = ["COMMENT", "CONNECTION_ACCEPTED", "mask_email", "notify"]

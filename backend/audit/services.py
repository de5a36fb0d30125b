from __future__ import annotations

import logging
from typing import Any, Optional

from django.http import HttpRequest

from .models import AuditLog

logger = logging.getLogger(__name__)


def client_ip(request: HttpRequest) -> str:
	forwarded = (request.META.get("HTTP_X_FORWARDED_FOR") or "").strip()
	if forwarded:
		# First hop is the client.
		return forwarded.split(",")[0].strip()
	return (request.META.get("REMOTE_ADDR") or "").strip()


def log_event(
	request: HttpRequest,
	*,
	event_type: str,
	object_type: str = "",
	object_id: str | int = "",
	status_code: Optional[int] = None,
	metadata: Optional[dict[str, Any]] = None,
	actor=None,
) -> Optional[AuditLog]:
	"""Record who did what to which roster record.

	``actor`` defaults to the request user. Pass it explicitly when the user is
	known but not yet attached to the request (sign-in). Requests without a
	signed-in actor are not recorded.
	"""
	user = actor if actor is not None else getattr(request, "user", None)
	if not getattr(user, "is_authenticated", False):
		logger.debug("audit event skipped without actor", extra={"event_type": event_type})
		return None

	return AuditLog.objects.create(
		actor=user,
		event_type=event_type,
		object_type=object_type or "",
		object_id="" if object_id is None else str(object_id),
		path=(getattr(request, "path", "") or "")[:300],
		method=(getattr(request, "method", "") or ""),
		status_code=status_code,
		ip_address=client_ip(request),
		user_agent=(request.META.get("HTTP_USER_AGENT") or "")[:4000],
		metadata=metadata or {},
	)

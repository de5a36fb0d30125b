from __future__ import annotations

from django.conf import settings
from django.db import models


class AuditLog(models.Model):
	"""One row per roster write, delete attempt, export, credential sheet or sign-in.

	``event_type`` is ``<OBJECT>_<ACTION>`` (``MEMBER_CREATED``,
	``ASSIGNMENT_EXPORT_PDF``, ``AUTH_LOGIN``...). Anything else goes in
	``metadata``.
	"""

	actor = models.ForeignKey(
		settings.AUTH_USER_MODEL,
		on_delete=models.SET_NULL,
		null=True,
		blank=True,
		related_name="audit_logs",
	)

	event_type = models.CharField(max_length=80)
	object_type = models.CharField(max_length=80, blank=True, default="")
	object_id = models.CharField(max_length=80, blank=True, default="")

	path = models.CharField(max_length=300, blank=True, default="")
	method = models.CharField(max_length=10, blank=True, default="")
	status_code = models.PositiveSmallIntegerField(null=True, blank=True)

	ip_address = models.CharField(max_length=64, blank=True, default="")
	user_agent = models.TextField(blank=True, default="")

	metadata = models.JSONField(default=dict, blank=True)

	created_at = models.DateTimeField(auto_now_add=True)

	class Meta:
		ordering = ["-created_at", "-id"]
		verbose_name = "Registro de auditoría"
		verbose_name_plural = "Registros de auditoría"
		indexes = [
			models.Index(fields=["event_type", "created_at"], name="audit_event_created_idx"),
			models.Index(fields=["object_type", "object_id"], name="audit_object_idx"),
			models.Index(fields=["actor", "created_at"], name="audit_actor_created_idx"),
		]

	def __str__(self) -> str:
		target = f"{self.object_type}#{self.object_id}" if self.object_id else self.object_type or "-"
		return f"{self.event_type} {target} ({self.actor_id or '-'})"

	@property
	def action(self) -> str:
		"""Trailing verb of ``event_type`` (``CREATED``, ``EXPORT_CSV``...)."""
		prefix = f"{self.object_type.upper()}_"
		if self.object_type and self.event_type.startswith(prefix):
			return self.event_type[len(prefix):]
		return self.event_type

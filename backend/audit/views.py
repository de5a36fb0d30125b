from __future__ import annotations

from rest_framework import permissions, viewsets

from users.permissions import IsAdmin

from .filters import AuditLogFilter
from .models import AuditLog
from .serializers import AuditLogSerializer


class AuditLogViewSet(viewsets.ReadOnlyModelViewSet):
	"""Trail of roster changes, exports and sign-ins; administrators only."""

	queryset = AuditLog.objects.select_related("actor").all()
	serializer_class = AuditLogSerializer
	permission_classes = [permissions.IsAuthenticated, IsAdmin]
	filterset_class = AuditLogFilter

import django_filters

from .models import AuditLog


class AuditLogFilter(django_filters.FilterSet):
	created_after = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="gte")
	created_before = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="lt")
	event_prefix = django_filters.CharFilter(field_name="event_type", lookup_expr="startswith")

	class Meta:
		model = AuditLog
		fields = ["event_type", "object_type", "object_id", "actor"]

from django.contrib import admin

from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
	list_display = ("created_at", "event_type", "actor", "object_type", "object_id", "status_code")
	list_filter = ("object_type", "method")
	search_fields = ("event_type", "actor__username", "object_id")
	date_hierarchy = "created_at"
	list_select_related = ("actor",)

	def has_add_permission(self, request):
		return False

	def has_change_permission(self, request, obj=None):
		return False

	def has_delete_permission(self, request, obj=None):
		return False

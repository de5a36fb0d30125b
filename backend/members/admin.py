from django.contrib import admin

from .models import Member


@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    list_display = ("cedula", "name", "second_name", "member_type", "phone", "email")
    list_filter = ("member_type",)
    search_fields = ("cedula", "name", "second_name", "phone", "email")
    readonly_fields = ("created_at", "updated_at", "created_by")

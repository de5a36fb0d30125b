from django.contrib import admin

from .models import Assignment, ElectoralProcess


class AssignmentInline(admin.TabularInline):
    model = Assignment
    extra = 0
    fields = ("member", "member_type", "role", "cda_precinct")
    raw_id_fields = ("member", "cda_precinct")


@admin.register(ElectoralProcess)
class ElectoralProcessAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "start_date", "end_date", "created_at")
    search_fields = ("name",)
    inlines = [AssignmentInline]


@admin.register(Assignment)
class AssignmentAdmin(admin.ModelAdmin):
    list_display = ("id", "process", "member", "member_type", "role", "cda_precinct")
    list_filter = ("process", "member_type", "role")
    search_fields = ("member__name", "member__cedula", "cda_precinct__name")
    raw_id_fields = ("member", "cda_precinct")

from django.contrib import admin

from .models import CDAPrecinct, PrecinctContact


class PrecinctContactInline(admin.StackedInline):
    model = PrecinctContact
    can_delete = False
    extra = 0


@admin.register(CDAPrecinct)
class CDAPrecinctAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "canton", "parish", "is_enabled")
    list_filter = ("is_enabled", "canton")
    search_fields = ("code", "name", "canton", "parish")
    inlines = [PrecinctContactInline]

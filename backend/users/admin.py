from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import User


@admin.register(User)
class RosterUserAdmin(UserAdmin):
    list_display = ("username", "email", "first_name", "last_name", "role", "is_active")
    list_filter = ("role", "is_active", "is_superuser")
    fieldsets = UserAdmin.fieldsets + (("Rol en el sistema", {"fields": ("role",)}),)
    add_fieldsets = UserAdmin.add_fieldsets + (("Rol en el sistema", {"fields": ("role", "email")}),)

from __future__ import annotations

from django.conf import settings
from django.db import models


class Member(models.Model):
    class MemberType(models.TextChoices):
        CPE = "CPE", "CPE"
        CDA = "CDA", "CDA"

    cedula = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=160)
    second_name = models.CharField(max_length=160, blank=True, default="")
    member_type = models.CharField(max_length=3, choices=MemberType.choices, default=MemberType.CPE)
    phone = models.CharField(max_length=30, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    address = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="members_created",
    )

    class Meta:
        ordering = ["name", "id"]
        verbose_name = "Miembro"
        verbose_name_plural = "Miembros"

    def __str__(self) -> str:
        return f"{self.name} ({self.cedula})"

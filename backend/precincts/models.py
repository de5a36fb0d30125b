from __future__ import annotations

from django.conf import settings
from django.db import models

from .geography import DEFAULT_CANTON, default_parish


class CDAPrecinct(models.Model):
    code = models.CharField(max_length=30, unique=True)
    name = models.CharField(max_length=200)
    canton = models.CharField(max_length=80, default=DEFAULT_CANTON)
    parish = models.CharField(max_length=120, default=default_parish(DEFAULT_CANTON))
    address = models.TextField(blank=True, default="")
    is_enabled = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="precincts_created",
    )

    class Meta:
        ordering = ["code", "id"]
        verbose_name = "Recinto CDA"
        verbose_name_plural = "Recintos CDA"

    def __str__(self) -> str:
        return f"{self.code} - {self.name}"

    @property
    def location(self) -> str:
        return " / ".join(part for part in (self.canton, self.parish) if part)


class PrecinctContact(models.Model):
    precinct = models.OneToOneField(CDAPrecinct, on_delete=models.CASCADE, related_name="contact")
    rector_name = models.CharField(max_length=160, blank=True, default="")
    rector_phone = models.CharField(max_length=30, blank=True, default="")
    rector_email = models.EmailField(blank=True, default="")
    keys_name = models.CharField(max_length=160, blank=True, default="")
    keys_phone = models.CharField(max_length=30, blank=True, default="")
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Contacto de recinto"
        verbose_name_plural = "Contactos de recinto"

    def __str__(self) -> str:
        return f"Contacto {self.precinct_id}: {self.rector_name}"

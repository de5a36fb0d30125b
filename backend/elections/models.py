from __future__ import annotations

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from members.models import Member
from precincts.models import CDAPrecinct


class ElectoralProcess(models.Model):
    name = models.CharField(max_length=200)
    start_date = models.DateField()
    end_date = models.DateField()
    image = models.ImageField(upload_to="process-images/", null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="processes_created",
    )

    class Meta:
        ordering = ["-created_at", "-id"]
        verbose_name = "Proceso electoral"
        verbose_name_plural = "Procesos electorales"

    def __str__(self) -> str:
        return self.name

    def clean(self):
        super().clean()
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError({"end_date": "La fecha de fin no puede ser anterior a la fecha de inicio."})


class Assignment(models.Model):
    class CPERole(models.TextChoices):
        SUPERVISOR = "Supervisor", "Supervisor"
        REVISOR = "Revisor", "Revisor de Firmas"
        DIGITADOR = "Digitador", "Digitador"
        ARCHIVADOR = "Archivador", "Archivador de Actas"
        RECEPTOR = "Receptor", "Receptor de Actas"
        OPERADOR = "Operador", "Operador de Escáner"
        ADMINISTRADOR = "Administrador", "Administrador Técnico Provincial"

    process = models.ForeignKey(ElectoralProcess, on_delete=models.CASCADE, related_name="assignments")
    member = models.ForeignKey(Member, on_delete=models.CASCADE, related_name="assignments")
    # Copy of member.member_type at write time.
    member_type = models.CharField(max_length=3, choices=Member.MemberType.choices)
    role = models.CharField(max_length=20, choices=CPERole.choices, blank=True, default="")
    cda_precinct = models.ForeignKey(
        CDAPrecinct,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="assignments",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assignments_created",
    )

    class Meta:
        ordering = ["-created_at", "-id"]
        verbose_name = "Asignación"
        verbose_name_plural = "Asignaciones"
        constraints = [
            models.UniqueConstraint(fields=["member", "process"], name="uniq_assignment_member_process"),
            models.CheckConstraint(
                condition=(
                    Q(member_type=Member.MemberType.CPE) & ~Q(role="") & Q(cda_precinct__isnull=True)
                )
                | (Q(member_type=Member.MemberType.CDA) & Q(role="") & Q(cda_precinct__isnull=False)),
                name="assignment_detail_matches_member_type",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.member_id}@{self.process_id}:{self.member_type}"

    @property
    def detail(self):
        from .assignment_detail import detail_of  # noqa: PLC0415

        return detail_of(self)

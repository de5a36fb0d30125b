from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    ROLE_SUPERADMIN = "SUPERADMIN"
    ROLE_ADMIN = "ADMIN"
    ROLE_OPERATOR = "OPERATOR"
    ROLE_VIEWER = "VIEWER"

    ROLES = (
        (ROLE_SUPERADMIN, "Superadministrador"),
        (ROLE_ADMIN, "Administrador"),
        (ROLE_OPERATOR, "Operador"),
        (ROLE_VIEWER, "Consulta"),
    )

    MANAGER_ROLES = {ROLE_SUPERADMIN, ROLE_ADMIN, ROLE_OPERATOR}

    role = models.CharField(max_length=20, choices=ROLES, default=ROLE_OPERATOR)
    email = models.EmailField(unique=True, blank=True, null=True, verbose_name="Correo electrónico")

    REQUIRED_FIELDS = ["email", "role"]

    def __str__(self) -> str:
        return f"{self.username} ({self.get_role_display()})"

    @property
    def can_manage_roster(self) -> bool:
        return self.is_superuser or self.role in self.MANAGER_ROLES

    def save(self, *args, **kwargs):
        # Blank emails are stored as NULL so the unique index ignores them.
        if not self.email:
            self.email = None
        super().save(*args, **kwargs)

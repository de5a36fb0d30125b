from __future__ import annotations

from django.db.models import Count
from rest_framework import viewsets

from core.listing import ListSchema, SortKey
from core.views import ConfirmedDestroyMixin, SchemaListMixin, log_write
from users.permissions import CanManageRoster

from .filters import MemberFilter
from .models import Member
from .serializers import MemberSerializer
from .services import create_member, update_member

MEMBER_LIST_SCHEMA = ListSchema(
    name="members",
    columns={
        "name": "name",
        "cedula": "cedula",
        "phone": "phone",
        "email": "email",
        "member_type": "member_type",
    },
    searchable=("name", "second_name", "cedula", "phone", "member_type_label"),
    default_ordering=(SortKey("name"),),
)


class MemberViewSet(SchemaListMixin, ConfirmedDestroyMixin, viewsets.ModelViewSet):
    serializer_class = MemberSerializer
    permission_classes = [CanManageRoster]
    filterset_class = MemberFilter

    list_schema = MEMBER_LIST_SCHEMA
    audit_object_type = "Member"
    export_filename = "personal"
    export_title = "Lista de Personal"
    delete_error_message = "Error al eliminar el miembro"

    def get_queryset(self):
        return Member.objects.annotate(assignment_count=Count("assignments"))

    def export_row(self, row) -> dict:
        return {
            "Cédula": row["cedula"],
            "Nombre": row["name"],
            "Teléfono": row["phone"] or "-",
            "Email": row["email"] or "-",
        }

    def perform_create(self, serializer):
        serializer.instance = create_member(actor=self.request.user, data=serializer.validated_data)
        log_write(self.request, serializer.instance, object_type=self.audit_object_type, created=True)

    def perform_update(self, serializer):
        serializer.instance = update_member(serializer.instance, actor=self.request.user, data=serializer.validated_data)
        log_write(self.request, serializer.instance, object_type=self.audit_object_type, created=False)

    def get_delete_preview(self, instance) -> dict:
        preview = super().get_delete_preview(instance)
        assignments = instance.assignments.count()
        preview["cascades"] = {"assignments": assignments}
        preview["message"] = (
            f"¿Está seguro de eliminar a {instance.name}? "
            f"Se eliminarán también sus {assignments} asignaciones. Esta acción no se puede deshacer."
        )
        return preview

from __future__ import annotations

from django.db.models import Count
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from core.listing import ListSchema, SortKey
from core.views import ConfirmedDestroyMixin, SchemaListMixin, log_write
from users.permissions import CanManageRoster

from .filters import CDAPrecinctFilter
from .geography import DEFAULT_CANTON, catalogue, default_parish
from .models import CDAPrecinct
from .serializers import CDAPrecinctSerializer
from .services import create_precinct, update_precinct

PRECINCT_LIST_SCHEMA = ListSchema(
    name="precincts",
    columns={
        "code": "code",
        "name": "name",
        "location": lambda row: f"{row.get('canton') or ''} {row.get('parish') or ''}",
        "address": "address",
    },
    searchable=(
        "code",
        "name",
        "canton",
        "parish",
        "address",
        "contact.rector_name",
        "contact.rector_phone",
        "contact.keys_name",
        "contact.keys_phone",
    ),
    default_ordering=(SortKey("code"),),
)


def _contact_cell(row, field: str) -> str:
    contact = row.get("contact") or {}
    return contact.get(field) or "-"


class CDAPrecinctViewSet(SchemaListMixin, ConfirmedDestroyMixin, viewsets.ModelViewSet):
    serializer_class = CDAPrecinctSerializer
    permission_classes = [CanManageRoster]
    filterset_class = CDAPrecinctFilter

    list_schema = PRECINCT_LIST_SCHEMA
    audit_object_type = "CDAPrecinct"
    export_filename = "recintos-cda"
    export_title = "Recintos CDA"
    delete_error_message = "Error al eliminar el CDA"

    def get_queryset(self):
        return CDAPrecinct.objects.select_related("contact").annotate(assignment_count=Count("assignments"))

    def export_row(self, row) -> dict:
        return {
            "Código": row["code"],
            "Nombre": row["name"],
            "Cantón": row["canton"],
            "Parroquia": row["parish"],
            "Dirección": row["address"],
            "Habilitado": "Sí" if row["is_enabled"] else "No",
            "Rector - Nombre": _contact_cell(row, "rector_name"),
            "Rector - Teléfono": _contact_cell(row, "rector_phone"),
            "Rector - Email": _contact_cell(row, "rector_email"),
            "Llaves - Nombre": _contact_cell(row, "keys_name"),
            "Llaves - Teléfono": _contact_cell(row, "keys_phone"),
        }

    @action(detail=False, methods=["get"])
    def cantons(self, request):
        return Response(
            {
                "default_canton": DEFAULT_CANTON,
                "default_parish": default_parish(DEFAULT_CANTON),
                "cantons": catalogue(),
            }
        )

    def _split_contact(self, validated_data: dict) -> tuple[dict, dict | None]:
        data = dict(validated_data)
        contact_data = data.pop("contact", None)
        return data, contact_data

    def perform_create(self, serializer):
        data, contact_data = self._split_contact(serializer.validated_data)
        serializer.instance = create_precinct(actor=self.request.user, data=data, contact_data=contact_data)
        log_write(self.request, serializer.instance, object_type=self.audit_object_type, created=True)

    def perform_update(self, serializer):
        data, contact_data = self._split_contact(serializer.validated_data)
        serializer.instance = update_precinct(
            serializer.instance,
            actor=self.request.user,
            data=data,
            contact_data=contact_data,
        )
        log_write(self.request, serializer.instance, object_type=self.audit_object_type, created=False)

    def get_delete_preview(self, instance) -> dict:
        preview = super().get_delete_preview(instance)
        assignments = instance.assignments.count()
        preview["cascades"] = {"contact": 1 if hasattr(instance, "contact") else 0}
        preview["blocked_by"] = {"assignments": assignments}
        if assignments:
            preview["message"] = (
                f"El CDA {instance.name} tiene {assignments} asignaciones y no puede eliminarse "
                "mientras existan."
            )
        else:
            preview["message"] = f"¿Está seguro de eliminar el CDA {instance.name}? Esta acción no se puede deshacer."
        return preview

from __future__ import annotations

import logging
from datetime import date

from django.conf import settings
from django.db.models import Count
from django.http import HttpResponse
from django.utils import timezone
from django.utils.http import content_disposition_header
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response

from audit.services import log_event
from core.listing import ListSchema, SortKey
from core.views import ConfirmedDestroyMixin, SchemaListMixin, log_write
from members.models import Member
from reports.credentials import CredentialPerson, credentials_filename, render_credentials_pdf, resolve_logo
from reports.weasyprint_utils import WeasyPrintUnavailableError
from users.permissions import CanManageRoster

from .filters import AssignmentFilter
from .models import Assignment, ElectoralProcess
from .serializers import AssignmentSerializer, AssignmentWriteSerializer, ElectoralProcessSerializer
from .services import (
    create_assignment,
    create_process,
    delete_process,
    remove_process_image,
    update_assignment,
    update_process,
)

logger = logging.getLogger(__name__)

PROCESS_LIST_SCHEMA = ListSchema(
    name="processes",
    columns={
        "name": "name",
        "start_date": "start_date",
        "end_date": "end_date",
        "created_at": "created_at",
    },
    searchable=("name", "start_date", "end_date"),
    default_ordering=(SortKey("created_at", descending=True),),
)


def _assignment_role_sort_value(row):
    if row.get("member_type") == Member.MemberType.CPE:
        return row.get("role") or ""
    return (row.get("cda_precinct_detail") or {}).get("name") or ""


ASSIGNMENT_LIST_SCHEMA = ListSchema(
    name="assignments",
    columns={
        "member": "member_name",
        "cedula": "member_cedula",
        "type": "member_type",
        "role": _assignment_role_sort_value,
        "process": "process_name",
    },
    searchable=(
        "member_name",
        "member_second_name",
        "member_cedula",
        "member_type",
        "role_label",
        "cda_precinct_detail.name",
        "cda_precinct_detail.canton",
        "cda_precinct_detail.parish",
    ),
    default_ordering=(SortKey("member"),),
)


def _format_day(value) -> str:
    if not value:
        return "-"
    return date.fromisoformat(str(value)).strftime("%d/%m/%Y")


class ElectoralProcessViewSet(SchemaListMixin, ConfirmedDestroyMixin, viewsets.ModelViewSet):
    serializer_class = ElectoralProcessSerializer
    permission_classes = [CanManageRoster]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    list_schema = PROCESS_LIST_SCHEMA
    audit_object_type = "ElectoralProcess"
    export_filename = "procesos-electorales"
    export_title = "Lista de Procesos Electorales"
    delete_error_message = "Error al eliminar el proceso"

    def get_queryset(self):
        return ElectoralProcess.objects.annotate(assignment_count=Count("assignments"))

    def export_row(self, row) -> dict:
        return {
            "Nombre": row["name"],
            "Fecha Inicio": _format_day(row["start_date"]),
            "Fecha Fin": _format_day(row["end_date"]),
        }

    def perform_create(self, serializer):
        serializer.instance = create_process(actor=self.request.user, data=serializer.validated_data)
        log_write(self.request, serializer.instance, object_type=self.audit_object_type, created=True)

    def perform_update(self, serializer):
        serializer.instance = update_process(serializer.instance, actor=self.request.user, data=serializer.validated_data)
        log_write(self.request, serializer.instance, object_type=self.audit_object_type, created=False)

    def perform_destroy(self, instance):
        delete_process(instance, actor=self.request.user)

    def get_delete_preview(self, instance) -> dict:
        preview = super().get_delete_preview(instance)
        assignments = instance.assignments.count()
        preview["cascades"] = {"assignments": assignments, "image": 1 if instance.image else 0}
        preview["message"] = (
            f"¿Está seguro de eliminar el proceso {instance.name}? "
            f"Se eliminarán también sus {assignments} asignaciones. Esta acción no se puede deshacer."
        )
        return preview

    @action(detail=True, methods=["delete"], url_path="image")
    def remove_image(self, request, pk=None):
        process = self.get_object()
        remove_process_image(process, actor=request.user)
        log_event(
            request,
            event_type="ELECTORALPROCESS_IMAGE_REMOVED",
            object_type=self.audit_object_type,
            object_id=process.id,
            status_code=status.HTTP_200_OK,
        )
        return Response(self.get_serializer(process).data, status=status.HTTP_200_OK)


class AssignmentViewSet(SchemaListMixin, ConfirmedDestroyMixin, viewsets.ModelViewSet):
    permission_classes = [CanManageRoster]
    filterset_class = AssignmentFilter

    list_schema = ASSIGNMENT_LIST_SCHEMA
    audit_object_type = "Assignment"
    export_filename = "asignaciones"
    export_title = "Lista de Asignaciones"
    delete_error_message = "Error al eliminar la asignación"

    def get_queryset(self):
        return Assignment.objects.select_related("process", "member", "cda_precinct")

    def get_serializer_class(self):
        if self.action in {"create", "update", "partial_update"}:
            return AssignmentWriteSerializer
        return AssignmentSerializer

    def _selected_process(self, request) -> ElectoralProcess | None:
        process_id = request.query_params.get("process")
        if not process_id or not str(process_id).isdigit():
            return None
        return ElectoralProcess.objects.filter(id=int(process_id)).first()

    def get_export_title(self, request) -> str:
        process = self._selected_process(request)
        if process is None:
            return self.export_title
        return f"{self.export_title}: {process.name}"

    def export_row(self, row) -> dict:
        if row["member_type"] == Member.MemberType.CPE:
            detail = row["role_label"] or "-"
        else:
            detail = row["detail_label"]
        return {
            "Miembro": row["member_name"] or "-",
            "Cédula": row["member_cedula"] or "-",
            "Tipo": row["member_type"],
            "Rol/Recinto": detail,
        }

    def _read_response(self, instance, status_code):
        serializer = AssignmentSerializer(instance, context=self.get_serializer_context())
        return Response(serializer.data, status=status_code)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        assignment = create_assignment(actor=request.user, **serializer.validated_data)
        log_write(request, assignment, object_type=self.audit_object_type, created=True)
        return self._read_response(assignment, status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        assignment = update_assignment(instance, actor=request.user, **serializer.validated_data)
        log_write(request, assignment, object_type=self.audit_object_type, created=False)
        return self._read_response(assignment, status.HTTP_200_OK)

    def get_delete_preview(self, instance) -> dict:
        preview = super().get_delete_preview(instance)
        preview["label"] = f"{instance.member.name} - {instance.process.name}"
        preview["message"] = (
            f"¿Está seguro de eliminar la asignación de {instance.member.name} "
            f"en {instance.process.name}? Esta acción no se puede deshacer."
        )
        return preview

    @action(detail=False, methods=["get"])
    def credentials(self, request):
        process = self._selected_process(request)
        if process is None:
            return Response({"detail": "Seleccione un proceso electoral."}, status=status.HTTP_400_BAD_REQUEST)

        listing = self.get_listing(request)
        people = [
            CredentialPerson(
                name=row["member_name"],
                second_name=row["member_second_name"],
                cedula=row["member_cedula"],
                role=row["credential_role"],
            )
            for row in listing.rows
        ]
        if not people:
            return Response(
                {"detail": "No hay asignaciones para generar credenciales."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        logo = resolve_logo(process.image or None, settings.CREDENTIALS_DEFAULT_LOGO_PATH)
        try:
            pdf_bytes = render_credentials_pdf(people, logo=logo)
        except WeasyPrintUnavailableError as e:
            log_event(
                request,
                event_type="ASSIGNMENT_CREDENTIALS_PDF_FAILED",
                object_type="ElectoralProcess",
                object_id=process.id,
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                metadata={"reason": "weasyprint_unavailable"},
            )
            return Response({"detail": str(e)}, status=status.HTTP_503_SERVICE_UNAVAILABLE)

        filename = credentials_filename(process.name, timezone.localdate())
        response = HttpResponse(pdf_bytes, content_type="application/pdf")
        response["Content-Disposition"] = content_disposition_header(as_attachment=True, filename=filename)

        log_event(
            request,
            event_type="ASSIGNMENT_CREDENTIALS_PDF",
            object_type="ElectoralProcess",
            object_id=process.id,
            status_code=status.HTTP_200_OK,
            metadata={"credentials": len(people), "logo": bool(logo)},
        )
        return response

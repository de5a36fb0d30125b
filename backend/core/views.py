from __future__ import annotations

import logging

from django.db import DatabaseError
from django.db.models import ProtectedError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from audit.services import log_event
from reports.exports import build_export_response
from reports.weasyprint_utils import WeasyPrintUnavailableError

from .exceptions import StoreError
from .listing import ListResult, ListSchema, build_listing, format_ordering, parse_ordering

logger = logging.getLogger(__name__)


def log_write(request, instance, *, object_type: str, created: bool) -> None:
    log_event(
        request,
        event_type=f"{object_type.upper()}_{'CREATED' if created else 'UPDATED'}",
        object_type=object_type,
        object_id=instance.pk,
        status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
    )


class SchemaListMixin:
    """List and export endpoints driven by a :class:`ListSchema`.

    The queryset is narrowed by the view's filter backends (django-filter),
    serialized, and then searched (``?q=``) and ordered (``?ordering=``) in
    Python. Exports reuse exactly the same rows in the same order.
    """

    list_schema: ListSchema
    search_param = "q"
    ordering_param = "ordering"
    audit_object_type = ""
    export_filename = ""
    export_title = ""

    def get_listing(self, request) -> ListResult:
        queryset = self.filter_queryset(self.get_queryset())
        rows = self.get_serializer(queryset, many=True).data
        query = (request.query_params.get(self.search_param) or "").strip()
        ordering = parse_ordering(request.query_params.get(self.ordering_param), self.list_schema)
        return build_listing(rows, schema=self.list_schema, query=query, ordering=ordering)

    def list(self, request, *args, **kwargs):
        listing = self.get_listing(request)
        return Response(
            {
                "count": listing.count,
                "total": listing.total,
                "query": listing.query,
                "ordering": format_ordering(listing.ordering),
                "state": listing.state,
                "results": listing.rows,
            }
        )

    def export_row(self, row) -> dict:
        return dict(row)

    def get_export_title(self, request) -> str:
        return self.export_title

    @action(detail=False, methods=["get"], url_path=r"export/(?P<file_format>csv|xlsx|pdf)")
    def export(self, request, file_format=None):
        listing = self.get_listing(request)
        rows = [self.export_row(row) for row in listing.rows]
        event_type = f"{self.audit_object_type.upper()}_EXPORT_{file_format.upper()}"

        try:
            response = build_export_response(
                rows,
                file_format=file_format,
                filename=self.export_filename,
                title=self.get_export_title(request),
            )
        except WeasyPrintUnavailableError as e:
            log_event(
                request,
                event_type=f"{event_type}_FAILED",
                object_type=self.audit_object_type,
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                metadata={"reason": "weasyprint_unavailable"},
            )
            return Response({"detail": str(e)}, status=status.HTTP_503_SERVICE_UNAVAILABLE)

        log_event(
            request,
            event_type=event_type,
            object_type=self.audit_object_type,
            status_code=status.HTTP_200_OK,
            metadata={"rows": len(rows), "q": listing.query, "ordering": format_ordering(listing.ordering)},
        )
        return response


class ConfirmedDestroyMixin:
    """Two-step delete: ``GET {id}/delete-preview/`` then ``DELETE {id}/``."""

    audit_object_type = ""
    delete_error_message = "Error al eliminar el registro"

    def get_delete_preview(self, instance) -> dict:
        return {
            "id": instance.pk,
            "label": str(instance),
            "message": f"¿Está seguro de eliminar «{instance}»? Esta acción no se puede deshacer.",
            "cascades": {},
        }

    @action(detail=True, methods=["get"], url_path="delete-preview")
    def delete_preview(self, request, pk=None):
        return Response(self.get_delete_preview(self.get_object()))

    def _delete_failed(self, request, object_id, *, status_code, reason: str) -> None:
        log_event(
            request,
            event_type=f"{self.audit_object_type.upper()}_DELETE_FAILED",
            object_type=self.audit_object_type,
            object_id=object_id,
            status_code=status_code,
            metadata={"reason": reason},
        )

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        object_id = instance.pk
        try:
            self.perform_destroy(instance)
        except ProtectedError:
            logger.warning(
                "delete blocked by protected references",
                extra={"object_type": self.audit_object_type, "object_id": object_id},
            )
            self._delete_failed(request, object_id, status_code=status.HTTP_409_CONFLICT, reason="protected")
            return Response({"detail": self.delete_error_message}, status=status.HTTP_409_CONFLICT)
        except DatabaseError as e:
            logger.exception(
                "delete failed in the store",
                extra={"object_type": self.audit_object_type, "object_id": object_id},
            )
            self._delete_failed(request, object_id, status_code=status.HTTP_400_BAD_REQUEST, reason="store_error")
            raise StoreError(str(e)) from e
        except StoreError:
            self._delete_failed(request, object_id, status_code=status.HTTP_400_BAD_REQUEST, reason="store_error")
            raise

        log_event(
            request,
            event_type=f"{self.audit_object_type.upper()}_DELETED",
            object_type=self.audit_object_type,
            object_id=object_id,
            status_code=status.HTTP_204_NO_CONTENT,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


class DashboardSummaryAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        from elections.models import Assignment, ElectoralProcess  # noqa: PLC0415
        from members.models import Member  # noqa: PLC0415
        from precincts.models import CDAPrecinct  # noqa: PLC0415

        members = Member.objects.all()
        precincts = CDAPrecinct.objects.all()
        return Response(
            {
                "processes": ElectoralProcess.objects.count(),
                "members": members.count(),
                "members_by_type": {
                    member_type: members.filter(member_type=member_type).count()
                    for member_type in Member.MemberType.values
                },
                "assignments": Assignment.objects.count(),
                "precincts": precincts.count(),
                "precincts_enabled": precincts.filter(is_enabled=True).count(),
            }
        )

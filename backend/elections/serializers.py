from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from members.models import Member
from precincts.models import CDAPrecinct

from .assignment_detail import build_detail
from .models import Assignment, ElectoralProcess


class ElectoralProcessSerializer(serializers.ModelSerializer):
    image = serializers.ImageField(required=False, allow_null=True)
    image_url = serializers.SerializerMethodField()
    assignment_count = serializers.SerializerMethodField()

    class Meta:
        model = ElectoralProcess
        fields = [
            "id",
            "name",
            "start_date",
            "end_date",
            "image",
            "image_url",
            "assignment_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def get_image_url(self, obj):
        if not obj.image:
            return None
        request = self.context.get("request")
        url = obj.image.url
        return request.build_absolute_uri(url) if request else url

    def get_assignment_count(self, obj):
        annotated = getattr(obj, "assignment_count", None)
        if annotated is not None:
            return annotated
        return obj.assignments.count()

    def validate_name(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("El nombre es obligatorio.")
        return value

    def validate(self, attrs):
        attrs = super().validate(attrs)
        start_date = attrs.get("start_date", getattr(self.instance, "start_date", None))
        end_date = attrs.get("end_date", getattr(self.instance, "end_date", None))
        if start_date and end_date and end_date < start_date:
            raise serializers.ValidationError(
                {"end_date": "La fecha de fin no puede ser anterior a la fecha de inicio."}
            )
        return attrs


class PrecinctSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = CDAPrecinct
        fields = ["id", "code", "name", "canton", "parish"]


class AssignmentSerializer(serializers.ModelSerializer):
    process_name = serializers.CharField(source="process.name", read_only=True)
    member_name = serializers.CharField(source="member.name", read_only=True)
    member_second_name = serializers.CharField(source="member.second_name", read_only=True)
    member_cedula = serializers.CharField(source="member.cedula", read_only=True)
    role_label = serializers.SerializerMethodField()
    cda_precinct_detail = PrecinctSummarySerializer(source="cda_precinct", read_only=True)
    detail_label = serializers.SerializerMethodField()
    credential_role = serializers.SerializerMethodField()

    class Meta:
        model = Assignment
        fields = [
            "id",
            "process",
            "process_name",
            "member",
            "member_name",
            "member_second_name",
            "member_cedula",
            "member_type",
            "role",
            "role_label",
            "cda_precinct",
            "cda_precinct_detail",
            "detail_label",
            "credential_role",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_role_label(self, obj):
        if obj.member_type != Member.MemberType.CPE:
            return ""
        return obj.get_role_display() if obj.role else "Sin rol"

    def get_detail_label(self, obj):
        return obj.detail.label

    def get_credential_role(self, obj):
        return obj.detail.credential_role


class AssignmentWriteSerializer(serializers.Serializer):
    """Input for assignment writes.

    The member's category decides which detail is required; a role sent for a
    CDA member (or a precinct for a CPE member) is ignored. Uniqueness of
    (member, process) is left to the database so the conflict surfaces as a
    duplicate-assignment error.
    """

    process = serializers.PrimaryKeyRelatedField(queryset=ElectoralProcess.objects.all())
    member = serializers.PrimaryKeyRelatedField(queryset=Member.objects.all())
    role = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=20)
    cda_precinct = serializers.PrimaryKeyRelatedField(
        queryset=CDAPrecinct.objects.all(),
        required=False,
        allow_null=True,
    )

    def validate(self, attrs):
        instance = self.instance
        process = attrs.get("process", getattr(instance, "process", None))
        member = attrs.get("member", getattr(instance, "member", None))
        if process is None:
            raise serializers.ValidationError({"process": "Seleccione un proceso electoral."})
        if member is None:
            raise serializers.ValidationError({"member": "Seleccione un miembro."})

        role = attrs.get("role", getattr(instance, "role", None) if instance else None)
        precinct = attrs.get("cda_precinct", getattr(instance, "cda_precinct", None) if instance else None)

        try:
            detail = build_detail(member.member_type, role=role, precinct=precinct)
        except DjangoValidationError as e:
            raise serializers.ValidationError(e.message_dict) from e

        return {"process": process, "member": member, "detail": detail}

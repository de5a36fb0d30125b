from rest_framework import serializers
from rest_framework.validators import UniqueValidator

from .models import Member


class MemberSerializer(serializers.ModelSerializer):
    cedula = serializers.CharField(
        max_length=20,
        validators=[UniqueValidator(queryset=Member.objects.all(), message="Ya existe un miembro con esta cédula.")],
    )
    member_type_label = serializers.CharField(source="get_member_type_display", read_only=True)
    assignment_count = serializers.SerializerMethodField()

    class Meta:
        model = Member
        fields = [
            "id",
            "cedula",
            "name",
            "second_name",
            "member_type",
            "member_type_label",
            "phone",
            "email",
            "address",
            "assignment_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def get_assignment_count(self, obj):
        annotated = getattr(obj, "assignment_count", None)
        if annotated is not None:
            return annotated
        return obj.assignments.count()

    def validate_cedula(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("La cédula es obligatoria.")
        return value

    def validate_name(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("El nombre es obligatorio.")
        return value

    def validate_member_type(self, value):
        # Assignments keep a copy of the category; changing it would break them.
        if self.instance is not None and value != self.instance.member_type and self.instance.assignments.exists():
            raise serializers.ValidationError(
                "No se puede cambiar el tipo de un miembro que ya tiene asignaciones."
            )
        return value

from rest_framework import serializers
from rest_framework.validators import UniqueValidator

from .geography import DEFAULT_CANTON, default_parish, is_valid_location, parishes_for
from .models import CDAPrecinct, PrecinctContact

CONTACT_FIELDS = ["rector_name", "rector_phone", "rector_email", "keys_name", "keys_phone"]


class PrecinctContactSerializer(serializers.ModelSerializer):
    class Meta:
        model = PrecinctContact
        fields = [*CONTACT_FIELDS, "updated_at"]
        read_only_fields = ["updated_at"]


class CDAPrecinctSerializer(serializers.ModelSerializer):
    code = serializers.CharField(
        max_length=30,
        validators=[UniqueValidator(queryset=CDAPrecinct.objects.all(), message="Ya existe un CDA con este código.")],
    )
    canton = serializers.CharField(max_length=80, required=False)
    parish = serializers.CharField(max_length=120, required=False)
    location = serializers.CharField(read_only=True)
    contact = PrecinctContactSerializer(required=False, allow_null=True)
    assignment_count = serializers.SerializerMethodField()

    class Meta:
        model = CDAPrecinct
        fields = [
            "id",
            "code",
            "name",
            "canton",
            "parish",
            "location",
            "address",
            "is_enabled",
            "contact",
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

    def validate(self, attrs):
        attrs = super().validate(attrs)
        instance = self.instance

        canton = attrs.get("canton", getattr(instance, "canton", None) or DEFAULT_CANTON)
        if not parishes_for(canton):
            raise serializers.ValidationError({"canton": "Cantón no válido para Morona Santiago."})

        if "parish" in attrs:
            parish = attrs["parish"]
        elif instance is not None and "canton" not in attrs:
            parish = instance.parish
        else:
            parish = default_parish(canton)

        if not is_valid_location(canton, parish):
            raise serializers.ValidationError({"parish": "La parroquia no pertenece al cantón seleccionado."})

        attrs["canton"] = canton
        attrs["parish"] = parish
        return attrs

import django_filters

from .models import CDAPrecinct


class CDAPrecinctFilter(django_filters.FilterSet):
    STATUS_ALL = "ALL"
    STATUS_ENABLED = "ENABLED"
    STATUS_DISABLED = "DISABLED"

    status = django_filters.ChoiceFilter(
        choices=[
            (STATUS_ALL, "Todos"),
            (STATUS_ENABLED, "Habilitados"),
            (STATUS_DISABLED, "No habilitados"),
        ],
        method="filter_status",
    )
    canton = django_filters.CharFilter(field_name="canton")

    class Meta:
        model = CDAPrecinct
        fields = ["status", "canton"]

    def filter_status(self, queryset, name, value):
        if value == self.STATUS_ENABLED:
            return queryset.filter(is_enabled=True)
        if value == self.STATUS_DISABLED:
            return queryset.filter(is_enabled=False)
        return queryset

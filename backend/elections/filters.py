import django_filters

from members.models import Member

from .models import Assignment, ElectoralProcess


class AssignmentFilter(django_filters.FilterSet):
    process = django_filters.ModelChoiceFilter(queryset=ElectoralProcess.objects.all())
    member_type = django_filters.ChoiceFilter(choices=Member.MemberType.choices)

    class Meta:
        model = Assignment
        fields = ["process", "member_type", "member", "cda_precinct"]

import django_filters

from .models import Member


class MemberFilter(django_filters.FilterSet):
    member_type = django_filters.ChoiceFilter(choices=Member.MemberType.choices)

    class Meta:
        model = Member
        fields = ["member_type"]

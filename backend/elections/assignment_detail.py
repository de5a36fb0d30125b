"""Category-dependent part of an assignment.

A CPE member is assigned with a role, a CDA member with a precinct. The two
cases are separate types so code handling an assignment never has to check
which of ``role`` / ``cda_precinct`` happens to be filled.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Union

from django.core.exceptions import ValidationError

from members.models import Member
from precincts.models import CDAPrecinct

from .models import Assignment

CDA_CREDENTIAL_ROLE = "CDA"

ROLE_REQUIRED_MESSAGE = "Seleccione un rol para miembros CPE."
PRECINCT_REQUIRED_MESSAGE = "Seleccione un recinto CDA para miembros CDA."


@dataclass(frozen=True)
class CPEDetail:
    role: str
    member_type: ClassVar[str] = Member.MemberType.CPE

    @property
    def label(self) -> str:
        return dict(Assignment.CPERole.choices).get(self.role, self.role)

    @property
    def credential_role(self) -> str:
        return self.label


@dataclass(frozen=True)
class CDADetail:
    precinct: CDAPrecinct
    member_type: ClassVar[str] = Member.MemberType.CDA

    @property
    def label(self) -> str:
        location = " / ".join(part for part in (self.precinct.canton, self.precinct.parish) if part) or "-"
        return f"Recinto: {self.precinct.name or '-'} ({location})"

    @property
    def credential_role(self) -> str:
        return CDA_CREDENTIAL_ROLE


AssignmentDetail = Union[CPEDetail, CDADetail]


def build_detail(member_type: str, *, role: str | None = None, precinct: CDAPrecinct | None = None) -> AssignmentDetail:
    """Pick the detail for ``member_type``; the other case's value is ignored."""
    if member_type == Member.MemberType.CPE:
        if not role:
            raise ValidationError({"role": ROLE_REQUIRED_MESSAGE})
        if role not in Assignment.CPERole.values:
            raise ValidationError({"role": f"Rol no válido: {role}."})
        return CPEDetail(role=role)

    if member_type == Member.MemberType.CDA:
        if precinct is None:
            raise ValidationError({"cda_precinct": PRECINCT_REQUIRED_MESSAGE})
        return CDADetail(precinct=precinct)

    raise ValidationError({"member": f"Tipo de miembro no válido: {member_type}."})


def detail_of(assignment) -> AssignmentDetail:
    if assignment.member_type == Member.MemberType.CDA:
        return CDADetail(precinct=assignment.cda_precinct)
    return CPEDetail(role=assignment.role)


def apply_detail(assignment, detail: AssignmentDetail) -> None:
    assignment.member_type = detail.member_type
    if isinstance(detail, CPEDetail):
        assignment.role = detail.role
        assignment.cda_precinct = None
    else:
        assignment.role = ""
        assignment.cda_precinct = detail.precinct

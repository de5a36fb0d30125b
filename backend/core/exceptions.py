from __future__ import annotations

from rest_framework import status
from rest_framework.exceptions import APIException


class AuthenticationRequired(APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Usuario no autenticado"
    default_code = "not_authenticated"


class DuplicateAssignmentError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "El miembro ya tiene una asignación en este proceso electoral."
    default_code = "duplicate_assignment"


class StoreError(APIException):
    """Store failure whose message is shown to the user as-is."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "No se pudo guardar el registro."
    default_code = "store_error"


def require_actor(actor):
    if actor is None or not getattr(actor, "is_authenticated", False):
        raise AuthenticationRequired()
    return actor

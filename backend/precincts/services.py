"""Precinct writes.

A precinct and its contact row are written as two sequential statements
without a surrounding transaction: when the contact write fails the precinct
change is kept and the error is reported.
"""

from __future__ import annotations

import logging

from django.db import DatabaseError

from core.exceptions import StoreError, require_actor

from .models import CDAPrecinct, PrecinctContact

logger = logging.getLogger(__name__)


def _contact_values(contact_data: dict | None) -> dict:
    values = dict(contact_data or {})
    return {key: (value or "") for key, value in values.items()}


def create_precinct(*, actor, data: dict, contact_data: dict | None = None) -> CDAPrecinct:
    actor = require_actor(actor)
    try:
        precinct = CDAPrecinct.objects.create(**data, created_by=actor)
    except DatabaseError as e:
        logger.exception("precinct insert failed")
        raise StoreError(str(e)) from e

    try:
        PrecinctContact.objects.create(precinct=precinct, **_contact_values(contact_data))
    except DatabaseError as e:
        logger.exception("contact insert failed after precinct insert", extra={"precinct_id": precinct.pk})
        raise StoreError(str(e)) from e
    return precinct


def update_precinct(
    precinct: CDAPrecinct,
    *,
    actor,
    data: dict,
    contact_data: dict | None = None,
) -> CDAPrecinct:
    require_actor(actor)
    for field, value in data.items():
        setattr(precinct, field, value)
    try:
        precinct.save(update_fields=[*data.keys(), "updated_at"])
    except DatabaseError as e:
        logger.exception("precinct update failed", extra={"precinct_id": precinct.pk})
        raise StoreError(str(e)) from e

    if contact_data is not None:
        try:
            PrecinctContact.objects.update_or_create(precinct=precinct, defaults=_contact_values(contact_data))
        except DatabaseError as e:
            logger.exception("contact upsert failed after precinct update", extra={"precinct_id": precinct.pk})
            raise StoreError(str(e)) from e
        precinct.refresh_from_db()
    return precinct

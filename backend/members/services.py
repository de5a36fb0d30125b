from __future__ import annotations

import logging

from django.db import DatabaseError

from core.exceptions import StoreError, require_actor

from .models import Member

logger = logging.getLogger(__name__)


def create_member(*, actor, data: dict) -> Member:
    actor = require_actor(actor)
    try:
        return Member.objects.create(**data, created_by=actor)
    except DatabaseError as e:
        logger.exception("member insert failed")
        raise StoreError(str(e)) from e


def update_member(member: Member, *, actor, data: dict) -> Member:
    require_actor(actor)
    for field, value in data.items():
        setattr(member, field, value)
    try:
        member.save(update_fields=[*data.keys(), "updated_at"])
    except DatabaseError as e:
        logger.exception("member update failed", extra={"member_id": member.pk})
        raise StoreError(str(e)) from e
    return member

from __future__ import annotations

import logging

from django.db import DatabaseError, IntegrityError, transaction

from core.exceptions import DuplicateAssignmentError, StoreError, require_actor

from .assignment_detail import AssignmentDetail, apply_detail
from .models import Assignment, ElectoralProcess

logger = logging.getLogger(__name__)


def discard_stored_image(image) -> bool:
    """Remove an image file from storage; failures are logged, never raised."""
    if not image:
        return True
    name = image.name
    try:
        image.storage.delete(name)
    except Exception:
        logger.exception("process image removal failed", extra={"image_name": name})
        return False
    return True


def _save(instance, *, what: str):
    try:
        instance.save()
    except DatabaseError as e:
        logger.exception("%s write failed", what, extra={"object_id": instance.pk})
        raise StoreError(str(e)) from e
    return instance


def create_process(*, actor, data: dict) -> ElectoralProcess:
    actor = require_actor(actor)
    return _save(ElectoralProcess(**data, created_by=actor), what="process")


def update_process(process: ElectoralProcess, *, actor, data: dict) -> ElectoralProcess:
    require_actor(actor)
    previous_image = process.image if "image" in data else None
    previous_name = previous_image.name if previous_image else ""

    for field, value in data.items():
        setattr(process, field, value)
    _save(process, what="process")

    if previous_name and previous_name != (process.image.name if process.image else ""):
        discard_stored_image(previous_image)
    return process


def remove_process_image(process: ElectoralProcess, *, actor) -> ElectoralProcess:
    require_actor(actor)
    if not process.image:
        return process
    image = process.image
    discard_stored_image(image)
    process.image = None
    return _save(process, what="process")


def delete_process(process: ElectoralProcess, *, actor) -> None:
    """Delete a process and its assignments; the stored image goes first, best effort."""
    require_actor(actor)
    discard_stored_image(process.image)
    try:
        process.delete()
    except DatabaseError as e:
        logger.exception("process delete failed", extra={"object_id": process.pk})
        raise StoreError(str(e)) from e


def _is_duplicate(assignment: Assignment) -> bool:
    return (
        Assignment.objects.filter(process_id=assignment.process_id, member_id=assignment.member_id)
        .exclude(pk=assignment.pk)
        .exists()
    )


def _save_assignment(assignment: Assignment) -> Assignment:
    try:
        with transaction.atomic():
            assignment.save()
    except IntegrityError as e:
        if _is_duplicate(assignment):
            raise DuplicateAssignmentError() from e
        logger.exception("assignment write rejected", extra={"object_id": assignment.pk})
        raise StoreError(str(e)) from e
    except DatabaseError as e:
        logger.exception("assignment write failed", extra={"object_id": assignment.pk})
        raise StoreError(str(e)) from e
    return assignment


def create_assignment(*, actor, process, member, detail: AssignmentDetail) -> Assignment:
    actor = require_actor(actor)
    assignment = Assignment(process=process, member=member, created_by=actor)
    apply_detail(assignment, detail)
    return _save_assignment(assignment)


def update_assignment(assignment: Assignment, *, actor, process, member, detail: AssignmentDetail) -> Assignment:
    require_actor(actor)
    assignment.process = process
    assignment.member = member
    apply_detail(assignment, detail)
    return _save_assignment(assignment)

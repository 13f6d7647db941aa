"""Survey aggregate operations: listing, create, update, delete and views.

Every owner-scoped operation takes the caller's user id explicitly and checks
ownership before anything else. Writes happen in the caller's session and are
committed once per operation; on failure the session is rolled back and any
image file written along the way is removed.
"""
# app/services/surveys.py
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping

from sqlalchemy import func, select
from pydantic import TypeAdapter
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from surveyhub.app.core.config import settings
from surveyhub.app.core.errors import Conflict, Forbidden, NotFound, ValidationFailed
from surveyhub.app.core.logging import get_logs_writer_logger
from surveyhub.app.services import images, reconciler
from surveyhub.db.models import Survey

logger = get_logs_writer_logger()

SURVEY_FIELDS = ("title", "description", "status", "expire_date")
TITLE_MAX_LENGTH = 1000

_DATE = TypeAdapter(date)


@dataclass
class Page:
    items: list[Survey]
    total: int
    current_page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))


def load_survey(session: Session, survey_id: int) -> Survey:
    survey = session.get(Survey, survey_id)
    if not survey:
        raise NotFound("Survey not found")
    return survey


def ensure_owner(survey: Survey, owner_id: str) -> None:
    if survey.user_id != str(owner_id):
        raise Forbidden("Unauthorized action")


def get_for_owner(survey: Survey, owner_id: str) -> Survey:
    ensure_owner(survey, owner_id)
    return survey


def get_public(survey: Survey) -> Survey:
    return survey


def parse_expire_date(value: Any) -> date | None:
    """A date, an ISO 8601 string or None; anything else raises `ValueError`."""
    if isinstance(value, datetime):
        return value.date()
    if value is None or isinstance(value, date):
        return value
    return _DATE.validate_python(value)


def validate_survey_fields(payload: Mapping[str, Any], *, creating: bool) -> list[dict[str, Any]]:
    """Check the survey's own fields and return every violation found."""
    errors = []

    if creating or "title" in payload:
        title = payload.get("title")
        if title is not None and not isinstance(title, str):
            errors.append({"field": "title", "message": "The title must be a string."})
        elif not title or not title.strip():
            errors.append({"field": "title", "message": "The title field is required."})
        elif len(title) > TITLE_MAX_LENGTH:
            errors.append({"field": "title", "message": f"The title may not be greater than {TITLE_MAX_LENGTH} characters."})

    description = payload.get("description")
    if description is not None and not isinstance(description, str):
        errors.append({"field": "description", "message": "The description must be a string."})

    if "status" in payload and not isinstance(payload["status"], bool):
        errors.append({"field": "status", "message": "The status field must be true or false."})

    try:
        expire_date = parse_expire_date(payload.get("expire_date"))
    except ValueError:
        errors.append({"field": "expire_date", "message": "The expire date is not a valid date."})
    else:
        if expire_date is not None and expire_date <= date.today():
            errors.append({"field": "expire_date", "message": "The expire date must be a date after today."})

    return errors


def survey_values(payload: Mapping[str, Any]) -> dict[str, Any]:
    """The supplied survey columns of a validated payload, ready to assign."""
    values = {key: payload[key] for key in SURVEY_FIELDS if key in payload}
    if "expire_date" in values:
        values["expire_date"] = parse_expire_date(values["expire_date"])
    return values


def list_for_owner(session: Session, owner_id: str, page: int = 1, per_page: int | None = None) -> Page:
    """Owner's surveys, newest first."""
    per_page = per_page or settings.PAGE_SIZE
    page = max(1, page)

    total = session.scalar(
        select(func.count()).select_from(Survey).where(Survey.user_id == str(owner_id))
    ) or 0
    items = session.scalars(
        select(Survey)
        .where(Survey.user_id == str(owner_id))
        .order_by(Survey.created_at.desc(), Survey.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    ).all()
    return Page(items=list(items), total=total, current_page=page, per_page=per_page)


def create(session: Session, owner_id: str, payload: Mapping[str, Any]) -> Survey:
    """Create a survey with all of its questions.

    Args:
        session: The DB session.
        owner_id: Id of the authenticated user, recorded as the owner.
        payload: Survey fields, optional `image` data URI and `questions` list.

    Returns:
        Survey: The persisted survey.

    Raises:
        ValidationFailed: Invalid survey fields or questions; nothing is written.
        InvalidImageFormat, InvalidImageEncoding: Bad image; nothing is written.
    """
    reconcile_plan = reconciler.plan([], payload.get("questions") or [])
    errors = validate_survey_fields(payload, creating=True) + reconciler.collect_errors(reconcile_plan)
    if errors:
        raise ValidationFailed(errors)

    image = images.decode(payload["image"]) if payload.get("image") else None

    image_path = None
    try:
        if image:
            image_path = images.save(*image)
        survey = Survey(user_id=str(owner_id), image=image_path, version=1, **survey_values(payload))
        session.add(survey)
        session.flush()
        reconciler.apply(session, survey, reconcile_plan)
        session.commit()
    except Exception:
        session.rollback()
        images.delete(image_path)
        raise

    session.refresh(survey)
    logger.info("Survey %s created by %s with %d question(s)", survey.id, owner_id, len(reconcile_plan.to_create))
    return survey


def update(session: Session, survey: Survey, owner_id: str, payload: Mapping[str, Any]) -> Survey:
    """Update survey fields, cover image and question set.

    `questions` set to a list reconciles the survey's questions against it;
    leaving it out (or null) keeps the questions as they are. A `version`
    that differs from the stored one, or a concurrent update committed
    after the survey was loaded, is rejected with `Conflict`.

    Raises:
        Forbidden: `owner_id` does not own the survey.
        Conflict: Stale `version`, or the row changed under us.
        ValidationFailed: Invalid fields or questions; nothing is written.
        InvalidImageFormat, InvalidImageEncoding: Bad image; nothing is written.
    """
    ensure_owner(survey, owner_id)

    survey_id, loaded_version = survey.id, survey.version
    expected_version = payload.get("version")
    if expected_version is not None and expected_version != loaded_version:
        raise Conflict(expected_version, loaded_version)

    errors = validate_survey_fields(payload, creating=False)
    reconcile_plan = None
    if payload.get("questions") is not None:
        reconcile_plan = reconciler.plan(list(survey.questions), payload["questions"])
        errors += reconciler.collect_errors(reconcile_plan)
    if errors:
        raise ValidationFailed(errors)

    image = images.decode(payload["image"]) if payload.get("image") else None

    old_image = survey.image
    new_image = None
    try:
        if image:
            new_image = images.save(*image)
            survey.image = new_image
        for key, value in survey_values(payload).items():
            setattr(survey, key, value)
        # set before the first flush so the row UPDATE carries the version check
        survey.version = loaded_version + 1
        if reconcile_plan is not None:
            reconciler.apply(session, survey, reconcile_plan)
        session.commit()
    except StaleDataError:
        session.rollback()
        images.delete(new_image)
        current_version = session.scalar(select(Survey.version).where(Survey.id == survey_id))
        if current_version is None:
            raise NotFound("Survey not found")
        logger.info("Survey %s update by %s lost a race (version %d, now %d)", survey_id, owner_id, loaded_version, current_version)
        raise Conflict(expected_version or loaded_version, current_version)
    except Exception:
        session.rollback()
        images.delete(new_image)
        raise

    # the old file goes only once the new path is committed
    if new_image and old_image:
        images.delete(old_image)

    session.refresh(survey)
    logger.info("Survey %s updated by %s (version %d)", survey.id, owner_id, survey.version)
    return survey


def delete(session: Session, survey: Survey, owner_id: str) -> None:
    """Delete a survey with its questions and answers, then its image file."""
    ensure_owner(survey, owner_id)

    survey_id, image, loaded_version = survey.id, survey.image, survey.version
    try:
        session.delete(survey)
        session.commit()
    except StaleDataError:
        session.rollback()
        current_version = session.scalar(select(Survey.version).where(Survey.id == survey_id))
        if current_version is None:
            raise NotFound("Survey not found")
        raise Conflict(loaded_version, current_version)

    images.delete(image)
    logger.info("Survey %s deleted by %s", survey_id, owner_id)

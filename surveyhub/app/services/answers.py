"""Answer intake: storing one respondent's submission of a survey.

Every question id in the submission is checked against the survey's live
questions first; the answer and all of its per-question rows are then written
in a single commit, so an invalid id leaves no rows behind.
"""
# app/services/answers.py
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping

from sqlalchemy import select
from sqlalchemy.orm import Session

from surveyhub.app.core.errors import InvalidQuestion, ValidationFailed
from surveyhub.app.core.logging import get_logs_writer_logger
from surveyhub.db.models import Answer, Question, QuestionAnswer, Survey

logger = get_logs_writer_logger()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AnswerSubmission:
    answer: Answer
    question_answers: list[QuestionAnswer]


def serialize_value(value: Any) -> str | None:
    """Multi-select values become JSON, scalars are stored as text."""
    if value is None:
        return None
    if isinstance(value, (list, tuple, dict, bool)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _parse_question_id(raw_id: Any) -> int | None:
    try:
        return int(raw_id)
    except (TypeError, ValueError):
        return None


def submit(session: Session, survey: Survey, answers: Mapping[Any, Any]) -> AnswerSubmission:
    """Persist a submission of `survey`.

    Args:
        session: The DB session.
        survey: The survey being answered.
        answers: Mapping of question id to the answer value.

    Returns:
        AnswerSubmission: The created answer and its per-question rows.

    Raises:
        ValidationFailed: No answers were given.
        InvalidQuestion: An id does not belong to the survey, or names a
            question twice; nothing is written.
    """
    if not answers:
        raise ValidationFailed([{"field": "answers", "message": "The answers field is required."}])

    live_ids = set(session.scalars(select(Question.id).where(Question.survey_id == survey.id)).all())

    resolved = {}
    for raw_id, value in answers.items():
        question_id = _parse_question_id(raw_id)
        # "1" and "01" name the same question; one row per question
        if question_id is None or question_id not in live_ids or question_id in resolved:
            raise InvalidQuestion(raw_id)
        resolved[question_id] = value

    # elapsed time is not tracked: both stamps are the submission time
    now = utcnow()
    answer = Answer(survey_id=survey.id, start_date=now, end_date=now)
    rows = [QuestionAnswer(question_id=question_id, answer=serialize_value(value)) for question_id, value in resolved.items()]
    answer.question_answers.extend(rows)

    try:
        session.add(answer)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info("Answer %s stored for survey %s with %d question answer(s)", answer.id, survey.id, len(rows))
    return AnswerSubmission(answer=answer, question_answers=rows)

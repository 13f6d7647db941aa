"""Reconciling a survey's persisted questions with a submitted question list.

The submitted list is the desired state of the survey. Entries without an id
are new questions; entries with an id update the persisted question with that
id. Persisted questions whose id is not submitted are deleted. An id that does
not belong to the survey is treated as a request to create a question.

The work is split into pure planning (`plan`), validation of the whole plan
(`validate_plan`) and applying it to the session (`apply`), so that a single
invalid question aborts the update before anything is written.
"""
# app/services/reconciler.py
import json
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence, Union

from sqlalchemy.orm import Session

from surveyhub.app.core.errors import ValidationFailed
from surveyhub.app.core.logging import get_logs_writer_logger
from surveyhub.db.models import Question, QuestionType, Survey

logger = get_logs_writer_logger()

QUESTION_FIELDS = ("question", "type", "description", "data")
QUESTION_TYPES = {t.value for t in QuestionType}


@dataclass(frozen=True)
class QuestionFields:
    question: Any = None
    type: Any = None
    description: Any = None
    data: Any = None
    # keys the caller actually sent; absent keys keep their stored value on update
    supplied: frozenset = frozenset()

    @classmethod
    def from_mapping(cls, item: Mapping[str, Any]) -> "QuestionFields":
        values = {key: item.get(key) for key in QUESTION_FIELDS}
        return cls(**values, supplied=frozenset(key for key in QUESTION_FIELDS if key in item))


@dataclass(frozen=True)
class NewQuestion:
    fields: QuestionFields


@dataclass(frozen=True)
class ExistingQuestion:
    id: int
    fields: QuestionFields


IncomingQuestion = Union[NewQuestion, ExistingQuestion]


@dataclass
class PlannedCreate:
    position: int
    fields: QuestionFields


@dataclass
class PlannedUpdate:
    position: int
    question: Question
    fields: QuestionFields


@dataclass
class ReconcilePlan:
    to_delete: list[Question] = field(default_factory=list)
    to_create: list[PlannedCreate] = field(default_factory=list)
    to_update: list[PlannedUpdate] = field(default_factory=list)

    @property
    def delete_ids(self) -> set[int]:
        return {q.id for q in self.to_delete}

    @property
    def update_ids(self) -> set[int]:
        return {item.question.id for item in self.to_update}


def classify(incoming: Iterable[Mapping[str, Any] | IncomingQuestion]) -> list[IncomingQuestion]:
    """Tag each submitted entry as a new or an existing question."""
    result: list[IncomingQuestion] = []
    for item in incoming:
        if isinstance(item, (NewQuestion, ExistingQuestion)):
            result.append(item)
            continue
        if not isinstance(item, Mapping):
            raise TypeError(f"Unsupported question entry: {item!r}")

        fields = QuestionFields.from_mapping(item)
        raw_id = item.get("id")
        try:
            question_id = int(raw_id) if raw_id is not None else None
        except (TypeError, ValueError):
            question_id = None

        if question_id is None:
            result.append(NewQuestion(fields))
        else:
            result.append(ExistingQuestion(question_id, fields))
    return result


def plan(existing: Sequence[Question], incoming: Iterable[Mapping[str, Any] | IncomingQuestion]) -> ReconcilePlan:
    """Compute deletions, creations and updates without touching the database.

    Args:
        existing: Questions currently persisted for the survey.
        incoming: The submitted question list, in display order.

    Returns:
        ReconcilePlan: What has to change for `existing` to match `incoming`.
    """
    entries = classify(incoming)
    by_id = {q.id: q for q in existing}
    incoming_ids = {e.id for e in entries if isinstance(e, ExistingQuestion)}

    result = ReconcilePlan(to_delete=[q for q in existing if q.id not in incoming_ids])
    claimed: set[int] = set()

    for position, entry in enumerate(entries):
        if isinstance(entry, NewQuestion):
            result.to_create.append(PlannedCreate(position, entry.fields))
        elif entry.id in by_id and entry.id not in claimed:
            claimed.add(entry.id)
            result.to_update.append(PlannedUpdate(position, by_id[entry.id], entry.fields))
        else:
            # unknown, foreign or repeated id
            result.to_create.append(PlannedCreate(position, entry.fields))

    return result


def validate_question(fields: QuestionFields, *, position: int, creating: bool) -> list[dict[str, Any]]:
    """Return every violation of a single question, empty when it is valid."""
    errors = []
    prefix = f"questions.{position}"

    if not isinstance(fields.question, str) or not fields.question.strip():
        errors.append({"field": f"{prefix}.question", "message": "The question field is required."})

    if creating or "type" in fields.supplied:
        if fields.type is None:
            errors.append({"field": f"{prefix}.type", "message": "The type field is required."})
        elif not isinstance(fields.type, str) or fields.type not in QUESTION_TYPES:
            errors.append({
                "field": f"{prefix}.type",
                "message": f"The selected type is invalid. Allowed: {', '.join(t.value for t in QuestionType)}.",
            })

    if fields.description is not None and not isinstance(fields.description, str):
        errors.append({"field": f"{prefix}.description", "message": "The description must be a string."})

    if creating and "data" not in fields.supplied:
        errors.append({"field": f"{prefix}.data", "message": "The data field must be present."})

    return errors


def collect_errors(reconcile_plan: ReconcilePlan) -> list[dict[str, Any]]:
    checks = [(item.position, item.fields, True) for item in reconcile_plan.to_create]
    checks += [(item.position, item.fields, False) for item in reconcile_plan.to_update]

    errors = []
    for position, fields, creating in sorted(checks, key=lambda c: c[0]):
        errors.extend(validate_question(fields, position=position, creating=creating))
    return errors


def validate_plan(reconcile_plan: ReconcilePlan) -> None:
    errors = collect_errors(reconcile_plan)
    if errors:
        raise ValidationFailed(errors)


def encode_data(data: Any) -> str | None:
    return None if data is None else json.dumps(data, ensure_ascii=False)


def decode_data(raw: str | None) -> Any:
    return None if raw is None else json.loads(raw)


def apply(session: Session, survey: Survey, reconcile_plan: ReconcilePlan) -> None:
    """Write a validated plan: deletions, then creations, then updates.

    Runs inside the caller's transaction; committing is up to the caller.
    """
    for question in reconcile_plan.to_delete:
        survey.questions.remove(question)
    session.flush()

    for item in reconcile_plan.to_create:
        f = item.fields
        survey.questions.append(Question(
            question=f.question,
            type=QuestionType(f.type),
            description=f.description,
            data=encode_data(f.data),
            position=item.position,
        ))
    session.flush()

    for item in reconcile_plan.to_update:
        q, f = item.question, item.fields
        q.question = f.question
        if "type" in f.supplied:
            q.type = QuestionType(f.type)
        if "description" in f.supplied:
            q.description = f.description
        if "data" in f.supplied:
            q.data = encode_data(f.data)
        q.position = item.position
    session.flush()

    logger.info(
        "Reconciled survey %s: deleted=%d created=%d updated=%d",
        survey.id,
        len(reconcile_plan.to_delete),
        len(reconcile_plan.to_create),
        len(reconcile_plan.to_update),
    )


def reconcile(session: Session, survey: Survey, incoming: Iterable[Mapping[str, Any] | IncomingQuestion]) -> ReconcilePlan:
    """Plan, validate and apply in one go. Raises `ValidationFailed` before any write."""
    reconcile_plan = plan(list(survey.questions), incoming)
    validate_plan(reconcile_plan)
    apply(session, survey, reconcile_plan)
    return reconcile_plan

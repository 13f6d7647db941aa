"""REST API endpoints for surveys and their answers.

Provides:
- owner operations (list, create, read, update, delete) behind a bearer token;
- the public survey view and answer submission, no identity required.
"""
# app/routers/surveys.py
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from surveyhub.app.core.config import settings
from surveyhub.app.core.security import get_current_user_id
from surveyhub.app.schemas.answer import AnswerOut, QuestionAnswerOut, SubmitAnswersIn
from surveyhub.app.schemas.question import QuestionOut
from surveyhub.app.schemas.survey import PageMeta, SurveyCreate, SurveyOut, SurveyPageOut, SurveyUpdate
from surveyhub.app.services import answers, surveys
from surveyhub.app.services.answers import AnswerSubmission
from surveyhub.app.services.reconciler import decode_data
from surveyhub.db.models import Survey
from surveyhub.db.session import get_db

router = APIRouter(prefix="/api", tags=["surveys"])


def survey_out(survey: Survey) -> SurveyOut:
    return SurveyOut(
        id=survey.id,
        title=survey.title,
        description=survey.description,
        image_url=f"{settings.BACKEND_URL}/public/{survey.image}" if survey.image else None,
        status=survey.status,
        version=survey.version,
        expire_date=survey.expire_date,
        created_at=survey.created_at,
        updated_at=survey.updated_at,
        questions=[
            QuestionOut(
                id=q.id,
                question=q.question,
                type=q.type.value,
                description=q.description,
                data=decode_data(q.data),
                position=q.position,
            )
            for q in survey.questions
        ],
    )


def answer_out(submission: AnswerSubmission) -> AnswerOut:
    answer = submission.answer
    return AnswerOut(
        id=answer.id,
        survey_id=answer.survey_id,
        start_date=answer.start_date,
        end_date=answer.end_date,
        answers=[
            QuestionAnswerOut(id=row.id, question_id=row.question_id, answer=row.answer)
            for row in submission.question_answers
        ],
    )


def get_owned_survey(
    survey_id: int,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Survey:
    """Load a survey and check it belongs to the caller.

    Runs as a dependency so that 401/403/404 are decided before the request
    body is validated.
    """
    survey = surveys.load_survey(db, survey_id)
    return surveys.get_for_owner(survey, user_id)


@router.get("/surveys", response_model=SurveyPageOut)
def list_surveys(
    page: int = Query(1, ge=1),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Get the caller's surveys, paginated.

    Args:
        page: 1-based page number.
        user_id: The authenticated user.
        db: The DB session.

    Returns:
        SurveyPageOut: `data` with the surveys of the page and pagination `meta`.
    """
    result = surveys.list_for_owner(db, user_id, page=page)
    return SurveyPageOut(
        data=[survey_out(s) for s in result.items],
        meta=PageMeta(
            current_page=result.current_page,
            per_page=result.per_page,
            total=result.total,
            last_page=result.last_page,
        ),
    )


@router.post("/surveys", response_model=SurveyOut, status_code=status.HTTP_201_CREATED)
def create_survey(
    payload: SurveyCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Create a survey with its questions.

    Errors:
        401: Missing or invalid token.
        422: Invalid fields, questions or image.
    """
    survey = surveys.create(db, user_id, payload.model_dump(exclude_unset=True))
    return survey_out(survey)


@router.get("/surveys/{survey_id}", response_model=SurveyOut)
def show_survey(survey: Survey = Depends(get_owned_survey)):
    return survey_out(survey)


@router.api_route("/surveys/{survey_id}", methods=["PUT", "PATCH"], response_model=SurveyOut)
def update_survey(
    payload: SurveyUpdate,
    survey: Survey = Depends(get_owned_survey),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Update a survey and reconcile its questions with `questions`.

    Errors:
        401: Missing or invalid token.
        403: The survey belongs to another user.
        404: The survey was not found.
        409: `version` is stale.
        422: Invalid fields, questions or image; nothing is changed.
    """
    survey = surveys.update(db, survey, user_id, payload.model_dump(exclude_unset=True))
    return survey_out(survey)


@router.delete("/surveys/{survey_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_survey(
    survey: Survey = Depends(get_owned_survey),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    surveys.delete(db, survey, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/survey-public/{survey_id}", response_model=SurveyOut)
def show_public_survey(survey_id: int, db: Session = Depends(get_db)):
    """Guest view of a survey, used by respondents."""
    survey = surveys.load_survey(db, survey_id)
    return survey_out(surveys.get_public(survey))


@router.post("/surveys/{survey_id}/answer", response_model=AnswerOut, status_code=status.HTTP_201_CREATED)
def store_answer(survey_id: int, payload: SubmitAnswersIn, db: Session = Depends(get_db)):
    """Submit answers to a survey.

    Errors:
        400: An answer references a question outside this survey.
        404: The survey was not found.
        422: No answers given.
    """
    survey = surveys.load_survey(db, survey_id)
    submission = answers.submit(db, survey, payload.answers)
    return answer_out(submission)

from pydantic import BaseModel
from typing import Any, Dict, List
from datetime import datetime


class SubmitAnswersIn(BaseModel):
    # question id -> value; lists for checkbox/multi-select questions
    answers: Dict[str, Any]


class QuestionAnswerOut(BaseModel):
    id: int
    question_id: int
    answer: str | None = None


class AnswerOut(BaseModel):
    id: int
    survey_id: int
    start_date: datetime
    end_date: datetime
    answers: List[QuestionAnswerOut]

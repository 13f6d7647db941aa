"""Pydantic schemes for surveys.

The survey's own fields are checked by the survey service together with the
questions, so that one 422 lists every violated field; their types are loose
on purpose.
"""
# app/schemas/survey.py
from pydantic import BaseModel, Field
from typing import Any, List, Optional
from datetime import date, datetime

from surveyhub.app.schemas.question import QuestionIn, QuestionOut


class SurveyCreate(BaseModel):
    title: Any = None
    description: Any = None
    image: Optional[str] = None  # data:image/<type>;base64,...
    status: Any = None
    expire_date: Any = None  # ISO date
    questions: List[QuestionIn] = Field(default_factory=list)


class SurveyUpdate(BaseModel):
    title: Any = None
    description: Any = None
    image: Optional[str] = None
    status: Any = None
    expire_date: Any = None
    questions: Optional[List[QuestionIn]] = None
    version: Optional[int] = None


class SurveyOut(BaseModel):
    id: int
    title: str
    description: str | None = None
    image_url: str | None = None
    status: bool
    version: int
    expire_date: date | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    questions: List[QuestionOut] = Field(default_factory=list)


class PageMeta(BaseModel):
    current_page: int
    per_page: int
    total: int
    last_page: int


class SurveyPageOut(BaseModel):
    data: List[SurveyOut]
    meta: PageMeta

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict


class QuestionIn(BaseModel):
    """A submitted question; without `id` it is a new one.

    Field contents are checked by the reconciler so that every violation
    is reported at once, hence the loose types.
    """
    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    question: Any = None
    type: Any = None
    description: Any = None
    data: Any = None


class QuestionOut(BaseModel):
    id: int
    question: str
    type: str
    description: str | None = None
    data: Any = None
    position: int

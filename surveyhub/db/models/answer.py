from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Text, Integer, ForeignKey, DateTime
from surveyhub.db import Base


class Answer(Base):
    """One respondent's submission of a survey."""
    __tablename__ = "answers"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    survey_id: Mapped[int] = mapped_column(Integer, ForeignKey("surveys.id", ondelete="CASCADE"), nullable=False, index=True)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    survey = relationship("Survey", back_populates="answers")
    question_answers = relationship(
        "QuestionAnswer",
        back_populates="submission",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="QuestionAnswer.id",
    )


class QuestionAnswer(Base):
    __tablename__ = "question_answers"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    answer_id: Mapped[int] = mapped_column(Integer, ForeignKey("answers.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id: Mapped[int] = mapped_column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True)

    # scalar as text, multi-select values as JSON
    answer: Mapped[str | None] = mapped_column(Text, nullable=True)

    submission = relationship("Answer", back_populates="question_answers")
    question = relationship("Question", back_populates="answers")

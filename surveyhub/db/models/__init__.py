from .survey import Survey
from .question import Question, QuestionType
from .answer import Answer, QuestionAnswer

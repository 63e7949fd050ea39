# examinator/models/inputs.py
"""Request payloads, parsed and validated in one step."""

from typing import List, Literal

from pydantic import Field

from examinator.models.base import CamelModel


class OptionInput(CamelModel):
    option_text: str = Field(..., min_length=1)
    is_correct: bool = False


class QuestionInput(CamelModel):
    question_text: str = Field(..., min_length=1)
    points: int = Field(..., ge=0, description="Points awarded for the correct option")
    options: List[OptionInput] = Field(..., min_length=1)


class CreateExamInput(CamelModel):
    name: str = Field(..., min_length=1)
    course_id: str = Field(..., min_length=1)
    description: str = ""
    exam_questions: List[QuestionInput] = Field(..., min_length=1)
    minimum_passing_score: int = Field(..., ge=0)
    start_date: int = Field(..., description="Unix timestamp (seconds)")
    duration: int = Field(..., gt=0, description="Minutes")
    is_options_randomized: bool = False
    is_questions_randomized: bool = False


class JoinExamInput(CamelModel):
    exam_id: str = Field(..., min_length=1)


class SubmitAnswerInput(CamelModel):
    question_id: str = Field(..., min_length=1)
    option_id: str = Field(..., min_length=1)


class FinisherInput(CamelModel):
    ticket: str = Field(..., min_length=1)


class GetExamsInput(CamelModel):
    type: Literal["active", "finished"] = "active"

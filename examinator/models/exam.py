# examinator/models/exam.py
"""
Exam schemas.

``ExamDefinition`` is the public record kept in the ``exams`` collection.
``ExamContent`` is the private blob holding question text, options and the
correct option of every question.
"""

from typing import Dict, List, Literal

from pydantic import Field

from examinator.models.base import CamelModel

ExamStatus = Literal["normal", "canceled", "finished"]


class ExamOption(CamelModel):
    option_id: str
    option_text: str


class ExamQuestion(CamelModel):
    question_id: str
    question_text: str
    points: int = Field(..., ge=0)
    correct_option_id: str
    options: List[ExamOption]

    def public(self, option_order=None):
        """The question as a candidate sees it: no correctness marker."""
        options = {option.option_id: option for option in self.options}
        order = option_order or list(options)
        return {
            "questionId": self.question_id,
            "questionText": self.question_text,
            "points": self.points,
            "options": [options[oid].to_doc() for oid in order if oid in options],
        }


class ExamContent(CamelModel):
    exam_id: str
    course_id: str
    questions: List[ExamQuestion]

    def answer_key(self):
        return {q.question_id: q for q in self.questions}


class ExamDefinition(CamelModel):
    exam_id: str
    course_id: str
    exam_course: str
    exam_name: str
    exam_description: str = ""
    minimum_passing_score: int
    total_points: int
    exam_start_time: int
    exam_end_time: int
    exam_duration: int
    exam_created_at: int
    exam_created_by: str
    status: ExamStatus = "normal"
    is_questions_randomized: bool = False
    is_options_randomized: bool = False
    questions_meta_data: Dict[str, List[str]] = Field(default_factory=dict)

    def public(self):
        """Metadata safe to list to anyone allowed to see the course."""
        doc = self.to_doc()
        doc.pop("questionsMetaData")
        doc["questionCount"] = len(self.questions_meta_data)
        return doc

    def accepts(self, question_id, option_id):
        return option_id in self.questions_meta_data.get(question_id, ())

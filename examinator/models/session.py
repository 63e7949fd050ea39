# examinator/models/session.py
from typing import Dict, List, Literal, Optional

from pydantic import Field

from examinator.models.base import CamelModel


class ExamSession(CamelModel):
    """One candidate in one exam: scoped token, running answers, final grade."""

    exam_id: str
    user_id: str
    course_id: str
    exam_token: str
    answers: Dict[str, str] = Field(default_factory=dict)
    question_order: List[str] = Field(default_factory=list)
    option_order: Dict[str, List[str]] = Field(default_factory=dict)
    score: int = 0
    correct_count: int = 0
    passed: bool = False
    status: Literal["normal", "finished"] = "normal"
    joined_at: int
    graded_at: Optional[int] = None

    def verdict(self):
        return {
            "examId": self.exam_id,
            "userId": self.user_id,
            "status": self.status,
            "score": self.score,
            "correctCount": self.correct_count,
            "passed": self.passed,
            "answeredCount": len(self.answers),
            "gradedAt": self.graded_at,
        }


class ProfileExamRecord(CamelModel):
    """Per-exam summary kept inside the candidate profile under ``exams``."""

    exam_id: str
    exam_name: str
    course_id: str
    exam_course: str
    exam_start_time: int
    exam_end_time: int
    total_points: int
    minimum_passing_score: int
    status: Literal["normal", "canceled", "finished"] = "normal"
    passed: bool = False
    score: int = 0

    @classmethod
    def for_exam(cls, exam):
        return cls(
            exam_id=exam.exam_id,
            exam_name=exam.exam_name,
            course_id=exam.course_id,
            exam_course=exam.exam_course,
            exam_start_time=exam.exam_start_time,
            exam_end_time=exam.exam_end_time,
            total_points=exam.total_points,
            minimum_passing_score=exam.minimum_passing_score,
        )

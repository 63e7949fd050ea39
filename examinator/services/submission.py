# examinator/services/submission.py
import logging

from examinator.errors import auth_error, conflict, not_found, validation_error
from examinator.models.inputs import SubmitAnswerInput
from examinator.services.enrollment import load_exam
from examinator.utils.jwt_manager import verify_exam_token

logger = logging.getLogger(__name__)

CLOSED_STATUSES = ("finished", "canceled")


def submit_answer(services, identity, exam_token, payload):
    """Record one answer. Correctness is never checked or revealed here."""
    cfg = services.config
    scope = verify_exam_token(
        exam_token,
        cfg["EXAM_TOKEN_SECRET"],
        services.now(),
        leeway=cfg["EXAM_TOKEN_LEEWAY"],
    )
    if scope["userId"] != identity["userId"]:
        raise auth_error("Exam token belongs to another user")

    data = SubmitAnswerInput.model_validate(payload)

    exam = load_exam(services, scope["examId"])
    if exam.status in CLOSED_STATUSES:
        raise conflict(f"This exam is {exam.status}", examId=exam.exam_id)

    if not exam.accepts(data.question_id, data.option_id):
        raise validation_error(
            "This exam doesnt have this question or this question doesnt have this option",
            examId=exam.exam_id,
            questionId=data.question_id,
            optionId=data.option_id,
        )

    if not services.store.set_answer(
        exam.exam_id, scope["userId"], data.question_id, data.option_id
    ):
        raise not_found("You have not joined this exam", examId=exam.exam_id)

    logger.debug("Answer stored for %s in exam %s", scope["userId"], exam.exam_id)
    return {"examId": exam.exam_id, "questionId": data.question_id}

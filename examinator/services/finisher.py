# examinator/services/finisher.py
"""
Deferred grading.

Fired once by the scheduler after an exam ends. Every session is graded from
its answer map against the answer key held in the content blob; unanswered
and wrong answers score zero. Grading is a pure function of the stored
answers, so running it twice writes the same result twice.
"""

import logging

from examinator.errors import conflict
from examinator.models.inputs import FinisherInput
from examinator.models.session import ExamSession
from examinator.services.enrollment import load_content, load_exam
from examinator.utils.helpers import run_concurrently
from examinator.utils.jwt_manager import verify_finisher_ticket

logger = logging.getLogger(__name__)


def grade_answers(answers, answer_key, minimum_passing_score):
    """Return ``(score, correct_count, passed)`` for one answer map."""
    score, correct = 0, 0
    for question_id, option_id in answers.items():
        question = answer_key.get(question_id)
        if question is None:
            continue
        if option_id == question.correct_option_id:
            score += question.points
            correct += 1
    return score, correct, score >= minimum_passing_score


def finish_exam(services, payload):
    data = FinisherInput.model_validate(payload)
    now = services.now()
    ticket = verify_finisher_ticket(
        data.ticket, services.config["FINISHER_TOKEN_SECRET"], now
    )

    exam = load_exam(services, ticket["examId"])
    content = load_content(services, exam)
    answer_key = content.answer_key()

    if exam.status == "canceled":
        logger.warning("Grading exam %s although it was canceled", exam.exam_id)

    sessions = services.store.sessions_for_exam(exam.exam_id)
    if not sessions:
        raise conflict("This exam has no sessions to grade", examId=exam.exam_id)

    passed_count = 0
    for doc in sessions:
        session = ExamSession.model_validate(doc)
        score, correct, passed = grade_answers(
            session.answers, answer_key, exam.minimum_passing_score
        )
        passed_count += passed

        verdict = {"status": "finished", "passed": passed, "score": score}
        run_concurrently(
            lambda: services.store.update_profile_exam(
                session.user_id, exam.exam_id, verdict
            ),
            lambda: services.store.seal_session(
                exam.exam_id,
                session.user_id,
                {**verdict, "correctCount": correct, "gradedAt": now},
            ),
        )
        logger.debug(
            "Graded %s in exam %s: %d points, passed=%s",
            session.user_id, exam.exam_id, score, passed,
        )

    services.store.transition_exam(exam.exam_id, "finished")
    logger.info(
        "Exam %s graded: %d sessions, %d passed", exam.exam_id, len(sessions), passed_count
    )
    return {"examId": exam.exam_id, "graded": len(sessions), "passed": passed_count}

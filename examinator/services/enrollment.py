# examinator/services/enrollment.py
import logging
import random

from pymongo.errors import DuplicateKeyError

from examinator.blob_store import exam_questions_path
from examinator.errors import auth_error, conflict, not_found
from examinator.models.exam import ExamContent, ExamDefinition
from examinator.models.inputs import JoinExamInput
from examinator.models.session import ExamSession, ProfileExamRecord
from examinator.services import is_staff
from examinator.utils.helpers import format_timestamp, run_concurrently
from examinator.utils.jwt_manager import create_exam_token

logger = logging.getLogger(__name__)

_shuffle = random.SystemRandom().shuffle


def load_exam(services, exam_id):
    doc = services.store.get_exam(exam_id)
    if not doc:
        raise not_found("This exam doesnt exist", examId=exam_id)
    return ExamDefinition.model_validate(doc)


def load_content(services, exam):
    doc = services.blobs.get_json(exam_questions_path(exam.course_id, exam.exam_id))
    return ExamContent.model_validate(doc)


def check_eligibility(profile, exam, identity, now):
    if not is_staff(identity):
        course_ids = {c.get("value") for c in (profile.get("courses") or [])}
        if exam.course_id not in course_ids:
            raise auth_error(
                f"You are not enrolled in {exam.exam_course}",
                courseId=exam.course_id,
            )

    if now < exam.exam_start_time:
        raise conflict(
            f"Exam has not started yet, it starts at {format_timestamp(exam.exam_start_time)}",
            examStartTime=exam.exam_start_time,
        )
    if now >= exam.exam_end_time:
        raise conflict(
            f"Exam is over, it ended at {format_timestamp(exam.exam_end_time)}",
            examEndTime=exam.exam_end_time,
        )
    if exam.status == "canceled":
        raise conflict("This exam has been canceled", examId=exam.exam_id)


def randomized_order(exam, content):
    question_order = [q.question_id for q in content.questions]
    if exam.is_questions_randomized:
        _shuffle(question_order)

    option_order = {}
    for q in content.questions:
        ids = [opt.option_id for opt in q.options]
        if exam.is_options_randomized:
            _shuffle(ids)
        option_order[q.question_id] = ids
    return question_order, option_order


def present_questions(content, session):
    """Answer-stripped questions in the order stored on the session."""
    by_id = content.answer_key()
    return [
        by_id[qid].public(session.option_order.get(qid))
        for qid in session.question_order
        if qid in by_id
    ]


def _join_response(exam, content, session, already_joined):
    return {
        "examToken": session.exam_token,
        "questions": present_questions(content, session),
        "answers": dict(session.answers),
        "exam": exam.public(),
        "alreadyJoined": already_joined,
    }


def join_exam(services, identity, payload):
    data = JoinExamInput.model_validate(payload)
    user_id = identity["userId"]
    now = services.now()

    profile = services.store.get_profile(user_id)
    if not profile:
        raise not_found("Profile not found", userId=user_id)

    exam = load_exam(services, data.exam_id)
    check_eligibility(profile, exam, identity, now)

    existing = services.store.get_session(exam.exam_id, user_id)
    if existing:
        session = ExamSession.model_validate(existing)
        if exam.exam_id not in (profile.get("exams") or {}):
            # the first join stored its session but not the profile record
            services.store.put_profile_exam(
                user_id, exam.exam_id, ProfileExamRecord.for_exam(exam).to_doc()
            )
            logger.info("Restored profile record of %s for exam %s", user_id, exam.exam_id)
        return _join_response(exam, load_content(services, exam), session, True)

    content = load_content(services, exam)
    question_order, option_order = randomized_order(exam, content)

    cfg = services.config
    token = create_exam_token(
        exam.exam_id, exam.course_id, user_id, exam.exam_end_time, cfg["EXAM_TOKEN_SECRET"]
    )
    session = ExamSession(
        exam_id=exam.exam_id,
        user_id=user_id,
        course_id=exam.course_id,
        exam_token=token,
        question_order=question_order,
        option_order=option_order,
        joined_at=now,
    )

    try:
        run_concurrently(
            lambda: services.store.insert_session(session.to_doc()),
            lambda: services.store.put_profile_exam(
                user_id, exam.exam_id, ProfileExamRecord.for_exam(exam).to_doc()
            ),
        )
    except DuplicateKeyError:
        # a concurrent join won the insert; serve what it stored
        session = ExamSession.model_validate(services.store.get_session(exam.exam_id, user_id))
        return _join_response(exam, content, session, True)

    logger.info("User %s joined exam %s", user_id, exam.exam_id)
    return _join_response(exam, content, session, False)

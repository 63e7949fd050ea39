# examinator/services/exams.py
import logging

from examinator.courses import get_course
from examinator.errors import auth_error, conflict, not_found, validation_error
from examinator.models.exam import ExamDefinition
from examinator.models.inputs import GetExamsInput
from examinator.models.session import ExamSession
from examinator.services import is_staff
from examinator.services.enrollment import load_exam

logger = logging.getLogger(__name__)

LISTING_STATUS = {"active": "normal", "finished": "finished"}


def _profile(services, user_id):
    profile = services.store.get_profile(user_id)
    if not profile:
        raise not_found("Profile not found", userId=user_id)
    return profile


def list_my_exams(services, identity, args):
    data = GetExamsInput.model_validate(args)
    profile = _profile(services, identity["userId"])
    wanted = LISTING_STATUS[data.type]
    records = [
        record for record in (profile.get("exams") or {}).values()
        if record.get("status") == wanted
    ]
    records.sort(key=lambda r: r.get("examStartTime", 0))
    return records


def list_course_exams(services, identity, course_id):
    if get_course(course_id) is None:
        raise validation_error("Unknown course", courseId=course_id)

    if not is_staff(identity):
        profile = _profile(services, identity["userId"])
        if course_id not in {c.get("value") for c in (profile.get("courses") or [])}:
            raise auth_error("You are not enrolled in this course", courseId=course_id)

    return [
        ExamDefinition.model_validate(doc).public()
        for doc in services.store.exams_for_course(course_id)
    ]


def exam_results(services, identity, exam_id):
    exam = load_exam(services, exam_id)

    if is_staff(identity):
        sessions = [
            ExamSession.model_validate(doc).verdict()
            for doc in services.store.sessions_for_exam(exam.exam_id)
        ]
        return {"exam": exam.public(), "results": sessions}

    doc = services.store.get_session(exam.exam_id, identity["userId"])
    if not doc:
        raise not_found("You have not joined this exam", examId=exam.exam_id)
    session = ExamSession.model_validate(doc)
    if session.status != "finished":
        raise conflict("This exam has not been graded yet", examId=exam.exam_id)
    return {"exam": exam.public(), "results": [session.verdict()]}


def cancel_exam(services, identity, exam_id):
    if not is_staff(identity):
        raise auth_error("Only teachers and admins can cancel exams")

    exam = load_exam(services, exam_id)
    if not services.store.transition_exam(exam.exam_id, "canceled"):
        current = services.store.get_exam(exam.exam_id) or {}
        raise conflict(
            f"Exam is already {current.get('status', exam.status)}",
            examId=exam.exam_id,
        )

    for doc in services.store.sessions_for_exam(exam.exam_id):
        services.store.update_profile_exam(doc["userId"], exam.exam_id, {"status": "canceled"})

    logger.info("Exam %s canceled by %s", exam.exam_id, identity["userId"])
    return load_exam(services, exam.exam_id)

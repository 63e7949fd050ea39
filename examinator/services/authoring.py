# examinator/services/authoring.py
import logging

from examinator.blob_store import exam_questions_path
from examinator.courses import get_course
from examinator.errors import auth_error, validation_error
from examinator.models.exam import ExamContent, ExamDefinition, ExamOption, ExamQuestion
from examinator.models.inputs import CreateExamInput
from examinator.services import is_staff
from examinator.utils.helpers import (
    format_timestamp,
    new_exam_id,
    new_option_id,
    new_question_id,
    run_concurrently,
)
from examinator.utils.jwt_manager import create_finisher_ticket

logger = logging.getLogger(__name__)


def build_questions(question_inputs):
    """Assign fresh ids and pull the single correct option out of each question."""
    questions = []
    for index, q in enumerate(question_inputs):
        options, correct = [], []
        for opt in q.options:
            option_id = new_option_id()
            options.append(ExamOption(option_id=option_id, option_text=opt.option_text))
            if opt.is_correct:
                correct.append(option_id)

        if len(correct) != 1:
            raise validation_error(
                "Every question needs exactly one correct option",
                questionIndex=index,
                correctOptions=len(correct),
            )

        questions.append(
            ExamQuestion(
                question_id=new_question_id(),
                question_text=q.question_text,
                points=q.points,
                correct_option_id=correct[0],
                options=options,
            )
        )
    return questions


def create_exam(services, identity, payload):
    if not is_staff(identity):
        raise auth_error("Only teachers and admins can create exams")

    data = CreateExamInput.model_validate(payload)
    now = services.now()

    course = get_course(data.course_id)
    if course is None:
        raise validation_error("Unknown course", courseId=data.course_id)

    start = data.start_date
    end = start + data.duration * 60
    if end <= now:
        raise validation_error(
            f"Exam would already be over, it ends at {format_timestamp(end)}",
            examEndTime=end,
        )

    total_points = sum(q.points for q in data.exam_questions)
    if total_points < data.minimum_passing_score:
        raise validation_error(
            "Total points are lower than the minimum passing score",
            totalPoints=total_points,
            minimumPassingScore=data.minimum_passing_score,
        )

    questions = build_questions(data.exam_questions)
    exam_id = new_exam_id()

    exam = ExamDefinition(
        exam_id=exam_id,
        course_id=data.course_id,
        exam_course=course["label"],
        exam_name=data.name,
        exam_description=data.description,
        minimum_passing_score=data.minimum_passing_score,
        total_points=total_points,
        exam_start_time=start,
        exam_end_time=end,
        exam_duration=data.duration,
        exam_created_at=now,
        exam_created_by=identity["userId"],
        is_questions_randomized=data.is_questions_randomized,
        is_options_randomized=data.is_options_randomized,
        questions_meta_data={
            q.question_id: [opt.option_id for opt in q.options] for q in questions
        },
    )
    content = ExamContent(exam_id=exam_id, course_id=data.course_id, questions=questions)

    cfg = services.config
    ticket = create_finisher_ticket(
        exam_id,
        data.course_id,
        end + cfg["FINISHER_TICKET_BUFFER"],
        cfg["FINISHER_TOKEN_SECRET"],
    )

    run_concurrently(
        lambda: services.blobs.put_json(
            exam_questions_path(data.course_id, exam_id), content.to_doc()
        ),
        lambda: services.store.insert_exam(exam.to_doc()),
        lambda: services.scheduler.schedule(
            end + cfg["FINISHER_DELAY"], {"ticket": ticket, "examId": exam_id}
        ),
    )

    logger.info(
        "Exam %s created in %s by %s (%d questions, ends %s)",
        exam_id, data.course_id, identity["userId"], len(questions), format_timestamp(end),
    )
    return exam

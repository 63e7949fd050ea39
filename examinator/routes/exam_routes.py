# examinator/routes/exam_routes.py

from flask import Blueprint, current_app, jsonify, request

from examinator.services.authoring import create_exam
from examinator.services.enrollment import join_exam
from examinator.services.exams import cancel_exam, list_course_exams, list_my_exams
from examinator.services.submission import submit_answer
from examinator.utils.jwt_manager import verify_access_token

exam = Blueprint("exam", __name__)


# =====================================================
# HELPERS
# =====================================================
def services():
    return current_app.extensions["examinator"]


def identity(req):
    return verify_access_token(
        req.headers.get("Authorization", ""),
        services().config["ACCESS_TOKEN_SECRET"],
        services().now(),
    )


def ok(body=None, status=200):
    body = dict(body or {})
    body["success"] = True
    return jsonify(body), status


# =====================================================
# ✅ CREATE EXAM (TEACHER / ADMIN)
# =====================================================
@exam.post("/create")
def create():
    auth = identity(request)
    created = create_exam(services(), auth, request.get_json(silent=True) or {})
    return ok({"exam": created.to_doc()}, 201)


# =====================================================
# ✅ JOIN EXAM (CANDIDATE)
# =====================================================
@exam.post("/join")
def join():
    auth = identity(request)
    joined = join_exam(services(), auth, request.get_json(silent=True) or {})
    message = "Already joined" if joined["alreadyJoined"] else "Joined"
    return ok({"message": message, **joined})


# =====================================================
# ✅ SUBMIT ONE ANSWER
# =====================================================
@exam.post("/submit")
def submit():
    auth = identity(request)
    submit_answer(
        services(),
        auth,
        request.headers.get("Exam-Token", ""),
        request.get_json(silent=True) or {},
    )
    return ok({"message": "Answer saved"})


# =====================================================
# ✅ CANCEL EXAM (TEACHER / ADMIN)
# =====================================================
@exam.post("/<exam_id>/cancel")
def cancel(exam_id):
    auth = identity(request)
    canceled = cancel_exam(services(), auth, exam_id)
    return ok({"exam": canceled.public()})


# =====================================================
# ✅ MY EXAMS (?type=active|finished)
# =====================================================
@exam.get("/list")
def my_exams():
    auth = identity(request)
    return ok({"exams": list_my_exams(services(), auth, request.args.to_dict())})


# =====================================================
# ✅ EXAMS OF A COURSE
# =====================================================
@exam.get("/course/<course_id>")
def course_exams(course_id):
    auth = identity(request)
    return ok({"exams": list_course_exams(services(), auth, course_id)})

# examinator/routes/result_routes.py

from flask import Blueprint, request

from examinator.routes.exam_routes import identity, ok, services
from examinator.services.exams import exam_results

result = Blueprint("result", __name__)


# =====================================================
# ✅ RESULTS OF ONE EXAM
# teachers/admins: every session, candidates: their own
# =====================================================
@result.get("/<exam_id>")
def get_exam_results(exam_id):
    auth = identity(request)
    return ok(exam_results(services(), auth, exam_id))

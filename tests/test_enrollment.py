from pymongo.errors import AutoReconnect

from examinator.utils.jwt_manager import verify_exam_token
from tests.conftest import NOW, SECRETS, auth_headers


def join(client, exam_id, user_id="alice", user_type="student"):
    return client.post(
        "/exam/join", json={"examId": exam_id}, headers=auth_headers(user_id, user_type)
    )


def test_first_join_creates_session_and_profile_record(client, created_exam, store):
    exam = created_exam()

    res = join(client, exam["examId"])
    body = res.get_json()
    assert res.status_code == 200
    assert body["success"] is True
    assert body["alreadyJoined"] is False
    assert body["answers"] == {}
    assert "questionsMetaData" not in body["exam"]

    # correct-answer markers never reach the candidate
    assert "correctOptionId" not in str(body["questions"])
    assert [q["questionText"] for q in body["questions"]] == ["Q1", "Q2"]

    scope = verify_exam_token(body["examToken"], SECRETS["EXAM_TOKEN_SECRET"], NOW)
    assert scope == {"examId": exam["examId"], "courseId": "CS101", "userId": "alice"}

    session = store.get_session(exam["examId"], "alice")
    assert session["score"] == 0
    assert session["passed"] is False
    assert session["examToken"] == body["examToken"]
    assert session["questionOrder"] == [q["questionId"] for q in body["questions"]]

    record = store.get_profile("alice")["exams"][exam["examId"]]
    assert record["status"] == "normal"
    assert record["totalPoints"] == 15
    assert record["examName"] == "Midterm"


def test_exam_token_lives_until_exam_end(client, created_exam, clock):
    exam = created_exam()
    token = join(client, exam["examId"]).get_json()["examToken"]

    clock.now = exam["examEndTime"] - 1
    assert verify_exam_token(token, SECRETS["EXAM_TOKEN_SECRET"], clock.now)


def many_questions(count=6, options=4):
    return [
        {
            "questionText": f"Q{n}",
            "points": 1,
            "options": [
                {"optionText": f"Q{n}-{m}", "isCorrect": m == 0} for m in range(options)
            ],
        }
        for n in range(count)
    ]


def test_rejoin_returns_same_token_and_order(client, created_exam, store):
    exam = created_exam(
        examQuestions=many_questions(),
        minimumPassingScore=3,
        isQuestionsRandomized=True,
        isOptionsRandomized=True,
    )

    first = join(client, exam["examId"]).get_json()
    second = join(client, exam["examId"]).get_json()

    assert second["alreadyJoined"] is True
    assert second["message"] == "Already joined"
    assert second["examToken"] == first["examToken"]
    assert second["questions"] == first["questions"]

    session = store.get_session(exam["examId"], "alice")
    assert [q["questionId"] for q in second["questions"]] == session["questionOrder"]
    for q in second["questions"]:
        assert [o["optionId"] for o in q["options"]] == session["optionOrder"][q["questionId"]]


def test_rejoin_reports_answers_so_far(client, created_exam):
    exam = created_exam()
    first = join(client, exam["examId"]).get_json()
    question = first["questions"][0]
    client.post(
        "/exam/submit",
        json={"questionId": question["questionId"], "optionId": question["options"][1]["optionId"]},
        headers=auth_headers("alice", exam_token=first["examToken"]),
    )

    again = join(client, exam["examId"]).get_json()
    assert again["answers"] == {question["questionId"]: question["options"][1]["optionId"]}


def test_randomized_order_is_a_permutation(client, created_exam, blobs):
    exam = created_exam(isQuestionsRandomized=True, isOptionsRandomized=True)
    body = join(client, exam["examId"]).get_json()

    meta = exam["questionsMetaData"]
    assert sorted(q["questionId"] for q in body["questions"]) == sorted(meta)
    for q in body["questions"]:
        assert sorted(o["optionId"] for o in q["options"]) == sorted(meta[q["questionId"]])


def test_unknown_exam_is_not_found(client, profiles):
    res = join(client, "does-not-exist")
    assert res.status_code == 404


def test_missing_profile_is_not_found(client, created_exam):
    exam = created_exam()
    res = join(client, exam["examId"], user_id="ghost")
    assert res.status_code == 404
    assert res.get_json()["message"] == "Profile not found"


def test_wrong_course_is_rejected(client, created_exam, store):
    exam = created_exam()
    res = join(client, exam["examId"], user_id="mallory")
    assert res.status_code == 403
    assert "Introduction to Programming" in res.get_json()["message"]
    assert store.get_session(exam["examId"], "mallory") is None


def test_staff_bypass_course_membership(client, created_exam, store):
    exam = created_exam()
    store.profiles.update_one({"userId": "teacher1"}, {"$set": {"courses": []}})
    res = join(client, exam["examId"], user_id="teacher1", user_type="teacher")
    assert res.status_code == 200


def test_join_before_start_names_the_start(client, created_exam):
    exam = created_exam(startDate=NOW + 3600)
    res = join(client, exam["examId"])
    assert res.status_code == 400
    assert "starts at" in res.get_json()["message"]
    assert res.get_json()["examStartTime"] == NOW + 3600


def test_join_after_end_names_the_end(client, created_exam, clock):
    exam = created_exam()
    clock.now = exam["examEndTime"]
    res = join(client, exam["examId"])
    assert res.status_code == 400
    assert "ended at" in res.get_json()["message"]


def test_canceled_exam_cannot_be_joined(client, created_exam):
    exam = created_exam()
    client.post(f"/exam/{exam['examId']}/cancel", headers=auth_headers("teacher1", "teacher"))

    res = join(client, exam["examId"])
    assert res.status_code == 400
    assert "canceled" in res.get_json()["message"]


def test_rejoin_restores_a_lost_profile_record(client, created_exam, store, monkeypatch):
    exam = created_exam()
    put_profile_exam = store.put_profile_exam
    calls = []

    def fail_once(*args):
        calls.append(args)
        if len(calls) == 1:
            raise AutoReconnect("connection reset")
        return put_profile_exam(*args)

    monkeypatch.setattr(store, "put_profile_exam", fail_once)

    first = join(client, exam["examId"])
    assert first.status_code == 400
    assert store.get_session(exam["examId"], "alice") is not None
    assert exam["examId"] not in (store.get_profile("alice").get("exams") or {})

    again = join(client, exam["examId"])
    assert again.status_code == 200
    assert again.get_json()["alreadyJoined"] is True
    record = store.get_profile("alice")["exams"][exam["examId"]]
    assert record["examName"] == "Midterm"
    assert record["status"] == "normal"

    listed = client.get("/exam/list?type=active", headers=auth_headers("alice")).get_json()
    assert [e["examName"] for e in listed["exams"]] == ["Midterm"]


def test_profile_without_courses_is_not_enrolled(client, created_exam, store):
    exam = created_exam()
    store.profiles.update_one({"userId": "alice"}, {"$set": {"courses": None}})

    res = join(client, exam["examId"])
    assert res.status_code == 403
    assert "not enrolled" in res.get_json()["message"]

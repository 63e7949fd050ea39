import jwt
import mongomock
import pytest

from examinator.app import create_app
from examinator.blob_store import BlobStore
from examinator.database import RecordStore

NOW = 1_900_000_000

SECRETS = {
    "MONGO_URI": "mongodb://localhost:27017",
    "MONGO_DB": "examinator_test",
    "ACCESS_TOKEN_SECRET": "access-secret-for-tests-0123456789abcdef",
    "EXAM_TOKEN_SECRET": "exam-secret-for-tests-0123456789abcdefgh",
    "FINISHER_TOKEN_SECRET": "finisher-secret-for-tests-0123456789abcd",
    "FINISHER_DELAY": 60,
    "FINISHER_TICKET_BUFFER": 600,
    "EXAM_TOKEN_LEEWAY": 30,
    "LOG_LEVEL": "WARNING",
}


class FakeClock:
    def __init__(self, now=NOW):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def access_token(user_id, user_type="student"):
    payload = {"userId": user_id, "userType": user_type, "exp": NOW + 7 * 86400}
    return jwt.encode(payload, SECRETS["ACCESS_TOKEN_SECRET"], algorithm="HS256")


def auth_headers(user_id, user_type="student", exam_token=None):
    headers = {"Authorization": f"Bearer {access_token(user_id, user_type)}"}
    if exam_token:
        headers["Exam-Token"] = exam_token
    return headers


def exam_payload(**overrides):
    payload = {
        "name": "Midterm",
        "courseId": "CS101",
        "description": "Loops and functions",
        "minimumPassingScore": 10,
        "startDate": NOW - 60,
        "duration": 30,
        "isQuestionsRandomized": False,
        "isOptionsRandomized": False,
        "examQuestions": [
            {
                "questionText": "Q1",
                "points": 10,
                "options": [
                    {"optionText": "A", "isCorrect": True},
                    {"optionText": "B"},
                ],
            },
            {
                "questionText": "Q2",
                "points": 5,
                "options": [
                    {"optionText": "C", "isCorrect": True},
                    {"optionText": "D"},
                ],
            },
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def store():
    record_store = RecordStore(mongomock.MongoClient(), SECRETS["MONGO_DB"])
    record_store.ensure_indexes()
    return record_store


@pytest.fixture()
def blobs(tmp_path):
    return BlobStore(tmp_path / "blobs")


@pytest.fixture()
def app(store, blobs, clock):
    flask_app = create_app(SECRETS, store=store, blobs=blobs, clock=clock)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def services(app):
    return app.extensions["examinator"]


def add_profile(store, user_id, user_type="student", courses=("CS101",)):
    store.profiles.insert_one({
        "userId": user_id,
        "userType": user_type,
        "email": f"{user_id}@example.com",
        "firstName": user_id.title(),
        "lastName": "Tester",
        "courses": [{"label": c, "value": c} for c in courses],
    })


@pytest.fixture()
def profiles(store):
    add_profile(store, "teacher1", "teacher")
    add_profile(store, "alice")
    add_profile(store, "bob")
    add_profile(store, "mallory", courses=("MATH210",))
    return store


@pytest.fixture()
def created_exam(client, profiles):
    """Create the default two-question exam and return its public record."""

    def _create(**overrides):
        res = client.post(
            "/exam/create",
            json=exam_payload(**overrides),
            headers=auth_headers("teacher1", "teacher"),
        )
        assert res.status_code == 201, res.get_json()
        return res.get_json()["exam"]

    return _create

# examinator/database.py
import logging

from pymongo import ASCENDING, MongoClient, ReturnDocument

logger = logging.getLogger(__name__)

NORMAL = "normal"


class RecordStore:
    """Exam records, exam sessions, profiles and scheduled tasks in MongoDB."""

    def __init__(self, client, db_name):
        self.client = client
        db = client[db_name]

        # COLLECTIONS
        self.profiles = db["profiles"]           # owned by the identity service
        self.exams = db["exams"]
        self.exam_sessions = db["exam_sessions"]
        self.tasks = db["scheduled_tasks"]

    @classmethod
    def from_uri(cls, uri, db_name):
        return cls(MongoClient(uri), db_name)

    def ensure_indexes(self):
        self.profiles.create_index("userId", unique=True)
        self.exams.create_index("examId", unique=True)
        self.exams.create_index("courseId")
        self.exam_sessions.create_index(
            [("examId", ASCENDING), ("userId", ASCENDING)], unique=True
        )
        self.tasks.create_index("taskId", unique=True)
        self.tasks.create_index([("status", ASCENDING), ("fireAt", ASCENDING)])
        logger.info("Record store indexes ensured")

    # =====================================================
    # PROFILES
    # =====================================================
    def get_profile(self, user_id):
        return self.profiles.find_one({"userId": user_id}, {"_id": 0})

    def put_profile_exam(self, user_id, exam_id, record):
        self.profiles.update_one(
            {"userId": user_id},
            {"$set": {f"exams.{exam_id}": record}},
        )

    def update_profile_exam(self, user_id, exam_id, fields):
        changes = {f"exams.{exam_id}.{key}": value for key, value in fields.items()}
        self.profiles.update_one({"userId": user_id}, {"$set": changes})

    # =====================================================
    # EXAMS
    # =====================================================
    def insert_exam(self, exam_doc):
        self.exams.insert_one(dict(exam_doc))

    def get_exam(self, exam_id):
        return self.exams.find_one({"examId": exam_id}, {"_id": 0})

    def exams_for_course(self, course_id):
        cursor = self.exams.find({"courseId": course_id}, {"_id": 0})
        return list(cursor.sort("examStartTime", ASCENDING))

    def transition_exam(self, exam_id, status):
        """Move an exam out of ``normal``. Returns False when it already left it."""
        result = self.exams.update_one(
            {"examId": exam_id, "status": NORMAL},
            {"$set": {"status": status}},
        )
        return result.modified_count == 1

    # =====================================================
    # EXAM SESSIONS
    # =====================================================
    def get_session(self, exam_id, user_id):
        return self.exam_sessions.find_one(
            {"examId": exam_id, "userId": user_id}, {"_id": 0}
        )

    def insert_session(self, session_doc):
        # DuplicateKeyError when the candidate already joined
        self.exam_sessions.insert_one(dict(session_doc))

    def set_answer(self, exam_id, user_id, question_id, option_id):
        result = self.exam_sessions.update_one(
            {"examId": exam_id, "userId": user_id},
            {"$set": {f"answers.{question_id}": option_id}},
        )
        return result.matched_count == 1

    def sessions_for_exam(self, exam_id):
        return list(self.exam_sessions.find({"examId": exam_id}, {"_id": 0}))

    def seal_session(self, exam_id, user_id, fields):
        return self.exam_sessions.find_one_and_update(
            {"examId": exam_id, "userId": user_id},
            {"$set": fields},
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER,
        )

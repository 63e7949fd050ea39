# examinator/blob_store.py
import json
import logging
import os

from examinator.errors import not_found, validation_error

logger = logging.getLogger(__name__)


def exam_questions_path(course_id, exam_id):
    return f"exams/{course_id}/{exam_id}/questions.json"


class BlobStore:
    """Immutable blobs kept as files under a root folder, addressed by path."""

    def __init__(self, root):
        self.root = os.path.abspath(root)
        os.makedirs(self.root, exist_ok=True)

    def _resolve(self, path):
        full = os.path.abspath(os.path.join(self.root, path))
        if os.path.commonpath([self.root, full]) != self.root:
            raise validation_error("Invalid blob path", path=path)
        return full

    def put(self, path, data):
        full = self._resolve(path)
        os.makedirs(os.path.dirname(full), exist_ok=True)
        tmp = full + ".tmp"
        with open(tmp, "wb") as f:
            f.write(data)
        os.replace(tmp, full)
        logger.debug("Stored blob %s (%d bytes)", path, len(data))

    def get(self, path):
        full = self._resolve(path)
        if not os.path.exists(full):
            raise not_found("Blob not found", path=path)
        with open(full, "rb") as f:
            return f.read()

    # JSON helpers
    def put_json(self, path, doc):
        self.put(path, json.dumps(doc, indent=2).encode("utf-8"))

    def get_json(self, path):
        return json.loads(self.get(path).decode("utf-8"))

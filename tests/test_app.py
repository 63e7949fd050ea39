import pytest

from examinator.app import create_app
from examinator.blob_store import BlobStore
from examinator.errors import ExaminatorError
from tests.conftest import SECRETS


def test_health(client):
    assert client.get("/health").get_json() == {"success": True, "status": "ok"}


@pytest.mark.parametrize("path", ["/exam/create", "/exam/join", "/exam/submit", "/result/abc"])
def test_preflight_short_circuits(client, path):
    res = client.options(path, headers={"Origin": "http://example.com"})
    assert res.status_code == 200
    assert res.get_json() == {"success": True}
    assert res.headers["Access-Control-Allow-Origin"] in ("*", "http://example.com")


def test_unknown_route_has_uniform_shape(client):
    res = client.get("/nowhere")
    assert res.status_code == 404
    assert res.get_json()["success"] is False


def test_missing_secrets_fail_at_start(store, blobs):
    overrides = dict(SECRETS, EXAM_TOKEN_SECRET="")
    with pytest.raises(RuntimeError, match="EXAM_TOKEN_SECRET"):
        create_app(overrides, store=store, blobs=blobs)


def test_blob_store_refuses_paths_outside_root(tmp_path):
    blobs = BlobStore(tmp_path)
    with pytest.raises(ExaminatorError):
        blobs.put("../escape.json", b"{}")


def test_missing_blob_is_not_found(tmp_path):
    with pytest.raises(ExaminatorError) as excinfo:
        BlobStore(tmp_path).get("exams/CS101/x/questions.json")
    assert excinfo.value.status_code == 404


def test_concurrent_writes_all_run_before_the_error_surfaces():
    from examinator.utils.helpers import run_concurrently

    done = []

    def fail():
        raise ValueError("store down")

    with pytest.raises(ValueError, match="store down"):
        run_concurrently(fail, lambda: done.append("blob"), lambda: done.append("timer"))
    assert sorted(done) == ["blob", "timer"]

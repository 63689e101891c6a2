import json

from quill.api.envelope import error_envelope, lifecycle_error_envelope, list_envelope, success_envelope
from quill.domain.content.errors import ContentItemNotFound, RevisionConflict


def test_success_envelope_shape() -> None:
    response = success_envelope({"value": 1})
    body = json.loads(response.body.decode("utf-8"))
    assert body["ok"] is True
    assert body["data"] == {"value": 1}
    assert isinstance(body.get("meta"), dict)


def test_error_envelope_shape() -> None:
    response = error_envelope(code="bad_request", message="Invalid", status_code=400, details={"field": "x"})
    body = json.loads(response.body.decode("utf-8"))
    assert body["ok"] is False
    assert body["error"]["code"] == "bad_request"
    assert body["error"]["message"] == "Invalid"


def test_domain_errors_carry_code_and_status() -> None:
    missing = ContentItemNotFound(7)
    assert missing.status_code == 404
    assert missing.to_detail()["code"] == "content_item_not_found"
    assert missing.to_detail()["item_id"] == 7

    conflict = RevisionConflict(7, expected=2, actual=3)
    assert conflict.status_code == 409
    assert conflict.details == {"item_id": 7, "expected_revision": 2, "actual_revision": 3}


def test_list_envelope_counts_items() -> None:
    response = list_envelope(item for item in [{"id": 1}, {"id": 2}])
    body = json.loads(response.body.decode("utf-8"))
    assert body["data"] == {"items": [{"id": 1}, {"id": 2}], "total": 2}


def test_lifecycle_error_envelope_maps_status() -> None:
    response = lifecycle_error_envelope(ContentItemNotFound(3), path="/api/v1/content/3")
    body = json.loads(response.body.decode("utf-8"))
    assert response.status_code == 404
    assert body["error"]["code"] == "content_item_not_found"
    assert body["error"]["details"] == {"item_id": 3}
    assert body["meta"]["path"] == "/api/v1/content/3"

from __future__ import annotations

import json

import httpx
import pytest
from httpx import MockTransport

from fleetfuel.core.errors import (
    NotFoundError,
    PartialSuccessWarning,
    PermissionDeniedError,
    StoreError,
    ValidationError,
)
from fleetfuel.domain.approval import ApprovalEngine
from fleetfuel.domain.attachments import (
    AttachmentRepository,
    FilesystemBlobStore,
    HttpBlobStore,
    UploadedFile,
    sanitize_filename,
    validate_upload,
)
from fleetfuel.domain.identity import Role
from fleetfuel.domain.requests import FuelRequestRepository, RequestStatus

from tests.fixtures.factories import make_identity, request_fields
from tests.fixtures.failing_blob_store import FailingBlobStore

RECEIPT = UploadedFile(filename="receipt.pdf", content_type="application/pdf", content=b"%PDF-1.4 receipt")
PHOTO = UploadedFile(filename="odometer.jpg", content_type="image/jpeg", content=b"\xff\xd8\xff photo")


def test_submit_stores_attachments(approval_engine, db, blob_store, driver, vehicle) -> None:
    result = approval_engine.submit_request(driver, **request_fields(vehicle), attachments=[RECEIPT, PHOTO])

    assert not result.is_partial
    assert [a.filename for a in result.attachments] == ["receipt.pdf", "odometer.jpg"]
    assert len(blob_store) == 2
    stored = AttachmentRepository(db).get_for_request(result.request.id)
    assert {a.size for a in stored} == {RECEIPT.size, PHOTO.size}


def test_failed_attachment_keeps_the_request(db, driver, vehicle) -> None:
    # Arrange
    engine = ApprovalEngine(db, blob_store=FailingBlobStore(fail_on={"odometer.jpg"}))
    script = UploadedFile(filename="notes.exe", content_type="application/x-msdownload", content=b"MZ")

    # Act
    result = engine.submit_request(driver, **request_fields(vehicle), attachments=[RECEIPT, PHOTO, script])

    # Assert
    assert result.request.status == RequestStatus.PENDING
    assert result.is_partial
    assert isinstance(result.warning, PartialSuccessWarning)
    assert result.warning.request_id == result.request.id
    assert [a.filename for a in result.attachments] == ["receipt.pdf"]
    assert len(result.failed_attachments) == 2
    assert result.failed_attachments[0].startswith("odometer.jpg")
    assert result.failed_attachments[1].startswith("notes.exe")


def test_only_the_requester_attaches_files(approval_engine, db, driver, supervisor, vehicle) -> None:
    request = approval_engine.submit_request(driver, **request_fields(vehicle)).request

    attachment = approval_engine.attach_justification(request.id, driver, RECEIPT)
    assert attachment.request_id == request.id

    with pytest.raises(PermissionDeniedError):
        approval_engine.attach_justification(request.id, supervisor, PHOTO)

    other_driver = make_identity(db, Role.DRIVER)
    with pytest.raises(NotFoundError):
        approval_engine.attach_justification(request.id, other_driver, PHOTO)


def test_read_attachment_returns_content(approval_engine, driver, supervisor, vehicle) -> None:
    result = approval_engine.submit_request(driver, **request_fields(vehicle), attachments=[RECEIPT])
    attachment_id = result.attachments[0].id

    attachment, content = approval_engine.read_attachment(result.request.id, attachment_id, supervisor)

    assert attachment.content_type == "application/pdf"
    assert content == RECEIPT.content
    with pytest.raises(NotFoundError):
        approval_engine.read_attachment(result.request.id, "missing", supervisor)


@pytest.mark.parametrize(
    "upload",
    [
        UploadedFile(filename="a.gif", content_type="image/gif", content=b"GIF89a"),
        UploadedFile(filename="empty.pdf", content_type="application/pdf", content=b""),
        UploadedFile(filename="big.png", content_type="image/png", content=b"x" * 11),
    ],
)
def test_validate_upload_rejects(upload) -> None:
    with pytest.raises(ValidationError):
        validate_upload(upload, max_bytes=10)


def test_sanitize_filename_strips_paths_and_odd_characters() -> None:
    assert sanitize_filename("../../etc/passwd") == "passwd"
    assert sanitize_filename("C:\\Users\\me\\scan 01.pdf") == "scan 01.pdf"
    assert sanitize_filename("re;ceipt$.jpg") == "re_ceipt_.jpg"
    assert sanitize_filename("   ") == "file"


def test_filesystem_blob_store_round_trip(tmp_path) -> None:
    store = FilesystemBlobStore(base_dir=tmp_path)

    url = store.put("req-1", RECEIPT)

    assert url.startswith("file://")
    assert url.endswith(".pdf")
    assert store.get(url) == RECEIPT.content
    assert len(list((tmp_path / "req-1").iterdir())) == 1


def test_filesystem_blob_store_refuses_foreign_paths(tmp_path) -> None:
    store = FilesystemBlobStore(base_dir=tmp_path / "blobs")
    outside = tmp_path / "secret.txt"
    outside.write_text("nope")

    with pytest.raises(NotFoundError):
        store.get(outside.as_uri())
    with pytest.raises(NotFoundError):
        store.get("https://example.com/file.pdf")


def test_http_blob_store_put_and_get() -> None:
    # Arrange: fake storage service
    stored: dict[str, bytes] = {}

    def storage(request: httpx.Request) -> httpx.Response:
        if request.method == "PUT":
            stored[str(request.url)] = request.content
            return httpx.Response(201, json={"url": str(request.url)})
        if str(request.url) in stored:
            return httpx.Response(200, content=stored[str(request.url)])
        return httpx.Response(404, json={"detail": "not found"})

    client = httpx.Client(transport=MockTransport(storage))
    store = HttpBlobStore(base_url="http://storage.test/v1/blobs/", client=client)

    # Act
    url = store.put("req-9", PHOTO)

    # Assert
    assert url.startswith("http://storage.test/v1/blobs/req-9/")
    assert url.endswith(".jpg")
    assert store.get(url) == PHOTO.content
    with pytest.raises(NotFoundError):
        store.get("http://storage.test/v1/blobs/req-9/missing.jpg")


def test_http_blob_store_maps_failures_to_store_error() -> None:
    def broken(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith(".pdf"):
            return httpx.Response(500, text="boom")
        return httpx.Response(200, content=json.dumps({"no_url": True}).encode())

    def offline(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    broken_store = HttpBlobStore(base_url="http://storage.test", client=httpx.Client(transport=MockTransport(broken)))
    offline_store = HttpBlobStore(base_url="http://storage.test", client=httpx.Client(transport=MockTransport(offline)))

    with pytest.raises(StoreError):
        broken_store.put("req-1", RECEIPT)
    with pytest.raises(StoreError):
        broken_store.put("req-1", PHOTO)
    with pytest.raises(StoreError):
        offline_store.put("req-1", RECEIPT)


def test_http_blob_store_put_404_is_a_store_error() -> None:
    def no_bucket(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"detail": "bucket not found"})

    store = HttpBlobStore(base_url="http://storage.test", client=httpx.Client(transport=MockTransport(no_bucket)))

    with pytest.raises(StoreError):
        store.put("req-1", RECEIPT)
    with pytest.raises(NotFoundError):
        store.get("http://storage.test/req-1/receipt.pdf")
    store.delete("http://storage.test/req-1/receipt.pdf")


def test_submit_is_partial_when_storage_bucket_is_missing(db, driver, vehicle) -> None:
    # Arrange
    client = httpx.Client(transport=MockTransport(lambda request: httpx.Response(404)))
    engine = ApprovalEngine(db, blob_store=HttpBlobStore(base_url="http://storage.test", client=client))

    # Act
    result = engine.submit_request(driver, **request_fields(vehicle), attachments=[RECEIPT])

    # Assert
    assert result.is_partial
    assert result.failed_attachments[0].startswith("receipt.pdf")
    assert FuelRequestRepository(db).get(result.request.id).status == RequestStatus.PENDING
    assert AttachmentRepository(db).get_for_request(result.request.id) == []


def test_failed_attachment_row_removes_the_blob(approval_engine, blob_store, driver, vehicle, monkeypatch) -> None:
    request = approval_engine.submit_request(driver, **request_fields(vehicle)).request

    def refuse(attachment):
        raise StoreError("attachments table unavailable")

    monkeypatch.setattr(approval_engine._attachments, "create", refuse)

    with pytest.raises(StoreError):
        approval_engine.attach_justification(request.id, driver, RECEIPT)
    assert len(blob_store) == 0

    result = approval_engine.submit_request(driver, **request_fields(vehicle), attachments=[PHOTO])
    assert result.is_partial
    assert len(blob_store) == 0


def test_filesystem_blob_store_delete(tmp_path) -> None:
    store = FilesystemBlobStore(base_dir=tmp_path)
    url = store.put("req-1", RECEIPT)

    store.delete(url)
    store.delete(url)

    with pytest.raises(NotFoundError):
        store.get(url)

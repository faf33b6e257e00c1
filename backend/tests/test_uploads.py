"""
Upload service tests.

Verifies content sniffing, the declared/sniffed allow-list, key format,
ordering of results and fail-fast behaviour on storage errors.
"""

import io
import re

import pytest
from PIL import Image

from safetyhub.errors import StorageError, UnsupportedFileTypeError, ValidationError
from safetyhub.services.storage_service import StorageBackend, SupabaseStorage, split_key
from safetyhub.services.upload_service import IncomingFile, UploadService, sniff_content_type


def _image_bytes(fmt: str) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color=(200, 30, 30)).save(buf, format=fmt)
    return buf.getvalue()


PNG = _image_bytes("PNG")
JPEG = _image_bytes("JPEG")
WEBP = _image_bytes("WEBP")
PDF = b"%PDF-1.7\n1 0 obj\n<< /Type /Catalog >>\nendobj\n"
TEXT = b"just some notes, definitely not an image\n"


@pytest.fixture
def uploads(container, storage):
    return container.uploads


class TestSniffing:
    @pytest.mark.parametrize("data,expected", [
        (PNG, "image/png"),
        (JPEG, "image/jpeg"),
        (WEBP, "image/webp"),
        (PDF, "application/pdf"),
        (TEXT, "text/plain"),
        (b"\xff\xfe\x00\x81\x93garbage", "application/octet-stream"),
    ])
    def test_sniff(self, data, expected):
        assert sniff_content_type(data) == expected


class TestValidation:
    def test_text_declared_as_png_is_rejected(self, uploads, storage):
        with pytest.raises(UnsupportedFileTypeError):
            uploads.upload([IncomingFile("notes.png", TEXT, "image/png")], "catalog")
        assert storage.objects == {}

    def test_png_declared_as_text_is_rejected(self, uploads):
        with pytest.raises(UnsupportedFileTypeError):
            uploads.upload([IncomingFile("logo.png", PNG, "text/plain")], "catalog")

    def test_declared_type_parameters_are_ignored(self, uploads):
        (result,) = uploads.upload([IncomingFile("doc.pdf", PDF, "application/pdf; charset=binary")], "catalog")
        assert result.content_type == "application/pdf"

    @pytest.mark.parametrize("declared", ["application/octet-stream", "Binary/Octet-Stream", ""])
    def test_generic_declared_type_defers_to_sniffing(self, uploads, declared):
        (result,) = uploads.upload([IncomingFile("logo", PNG, declared)], "catalog")
        assert result.content_type == "image/png"

    def test_generic_declared_type_still_needs_allowed_content(self, uploads, storage):
        with pytest.raises(UnsupportedFileTypeError):
            uploads.upload([IncomingFile("notes", TEXT, "application/octet-stream")], "catalog")
        assert storage.objects == {}

    def test_missing_declared_type_uses_sniffed(self, uploads):
        (result,) = uploads.upload([IncomingFile("photo", JPEG, None)], "catalog")
        assert result.content_type == "image/jpeg"
        assert result.key.endswith(".jpg")

    def test_one_bad_file_rejects_the_batch_before_uploading(self, uploads, storage):
        with pytest.raises(UnsupportedFileTypeError):
            uploads.upload([
                IncomingFile("a.png", PNG, "image/png"),
                IncomingFile("b.txt", TEXT, "text/plain"),
            ], "catalog")
        assert storage.objects == {}

    @pytest.mark.parametrize("bucket", ["", "Catalog", "../etc", "a" * 64, "has space"])
    def test_bucket_name(self, uploads, bucket):
        with pytest.raises(ValidationError):
            uploads.upload([IncomingFile("a.png", PNG, "image/png")], bucket)

    def test_empty_file(self, uploads):
        with pytest.raises(ValidationError):
            uploads.upload([IncomingFile("empty.png", b"", "image/png")], "catalog")

    def test_no_files(self, uploads):
        with pytest.raises(ValidationError):
            uploads.upload([], "catalog")


class TestUpload:
    def test_results_keep_input_order_and_unique_keys(self, uploads, storage):
        files = [
            IncomingFile("a.png", PNG, "image/png"),
            IncomingFile("b.pdf", PDF, "application/pdf"),
            IncomingFile("c.webp", WEBP, "image/webp"),
            IncomingFile("d.png", PNG + b"", "image/png"),
            IncomingFile("e.jpg", JPEG, "image/jpeg"),
        ]
        results = uploads.upload(files, "catalog")

        assert [r.content_type for r in results] == [
            "image/png", "application/pdf", "image/webp", "image/png", "image/jpeg",
        ]
        assert [r.size for r in results] == [len(f.data) for f in files]
        for result in results:
            assert re.fullmatch(r"catalog/\d+\.(png|pdf|webp|jpg)", result.key)
            assert result.url == f"https://storage.test/{result.key}"
        assert len({r.key for r in results}) == len(files)
        assert set(storage.objects) == {r.key for r in results}

    def test_keys_are_monotonic(self, uploads):
        keys = [uploads.build_key("catalog", "image/png") for _ in range(50)]
        stamps = [int(k.split("/")[1].split(".")[0]) for k in keys]
        assert stamps == sorted(stamps)
        assert len(set(stamps)) == 50

    def test_any_storage_failure_fails_the_request(self, uploads, storage):
        storage.fail_when = lambda key, data: data == PDF

        with pytest.raises(StorageError):
            uploads.upload([
                IncomingFile("a.png", PNG, "image/png"),
                IncomingFile("b.pdf", PDF, "application/pdf"),
                IncomingFile("c.png", PNG, "image/png"),
            ], "catalog")

    def test_worker_pool_is_bounded(self, storage):
        service = UploadService(storage, max_workers=0)
        assert service.max_workers == 1
        results = service.upload([IncomingFile("a.png", PNG), IncomingFile("b.png", PNG)], "catalog")
        assert len(results) == 2


class TestHttp:
    def test_multipart_upload(self, client, seller_headers, storage):
        resp = client.post(
            "/v1/uploads",
            data={
                "bucket": "catalog",
                "file": [
                    (io.BytesIO(PNG), "logo.png", "image/png"),
                    (io.BytesIO(PDF), "sheet.pdf", "application/pdf"),
                ],
            },
            headers=seller_headers,
            content_type="multipart/form-data",
        )
        assert resp.status_code == 201
        files = resp.get_json()["files"]
        assert [f["content_type"] for f in files] == ["image/png", "application/pdf"]
        assert len(storage.objects) == 2

    def test_octet_stream_part_is_sniffed(self, client, seller_headers, storage):
        resp = client.post(
            "/v1/uploads",
            data={"bucket": "catalog", "file": (io.BytesIO(PNG), "logo", "application/octet-stream")},
            headers=seller_headers,
            content_type="multipart/form-data",
        )
        assert resp.status_code == 201
        assert resp.get_json()["files"][0]["content_type"] == "image/png"

    def test_text_disguised_as_png(self, client, seller_headers, storage):
        resp = client.post(
            "/v1/uploads",
            data={"bucket": "catalog", "file": (io.BytesIO(TEXT), "evil.png", "image/png")},
            headers=seller_headers,
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "unsupported_type"
        assert storage.objects == {}

    def test_storage_outage_is_502(self, client, seller_headers, storage):
        storage.fail_when = lambda key, data: True
        resp = client.post(
            "/v1/uploads",
            data={"bucket": "catalog", "file": (io.BytesIO(PNG), "logo.png", "image/png")},
            headers=seller_headers,
            content_type="multipart/form-data",
        )
        assert resp.status_code == 502
        assert resp.get_json()["code"] == "storage_error"

    def test_customer_cannot_upload(self, client, customer_headers):
        resp = client.post(
            "/v1/uploads",
            data={"bucket": "catalog", "file": (io.BytesIO(PNG), "logo.png", "image/png")},
            headers=customer_headers,
            content_type="multipart/form-data",
        )
        assert resp.status_code == 403


class TestSupabaseStorage:
    def test_backend_must_implement_put(self):
        class Incomplete(StorageBackend):
            pass

        with pytest.raises(TypeError):
            Incomplete()

    def test_disabled_without_credentials(self):
        backend = SupabaseStorage("", "")
        assert backend.enabled is False
        with pytest.raises(StorageError):
            backend.put("catalog/1.png", PNG, "image/png")

    @pytest.mark.parametrize("key", ["nobucket", "/path.png", "bucket/"])
    def test_split_key_rejects_bad_keys(self, key):
        with pytest.raises(StorageError):
            split_key(key)

    def test_split_key(self):
        assert split_key("catalog/123.png") == ("catalog", "123.png")

"""Tests for the DocumentStorageGateway over the fake Drive API."""

import json

import pytest

from delivery.errors import APIError, MissingFolder, MissingToken, ReadError
from delivery.storage import get_drive_api, new_gateway, reset_storage
from delivery.storage.credentials import FakeCredentialProvider
from delivery.storage.fake_adapter import FakeDriveApi
from delivery.storage.folders import FolderRef, SubfolderKey
from delivery.storage.gateway import DocumentStorageGateway, build_multipart_body, with_share_marker


@pytest.fixture
def credentials():
    return FakeCredentialProvider()


@pytest.fixture
def gateway(drive, credentials):
    return DocumentStorageGateway(drive, credentials)


class TestShareLink:
    def test_remote_link_is_normalized(self, gateway, drive):
        drive.add_folder("fld1", "https://drive.google.com/drive/folders/fld1?usp=drive_link&foo=bar")
        assert gateway.share_link("fld1") == "https://drive.google.com/drive/folders/fld1?usp=share_link&foo=bar"

    def test_cached_per_folder(self, gateway, drive):
        drive.add_folder("fld1")
        first = gateway.share_link("fld1")
        second = gateway.share_link("fld1")

        assert first == second
        assert len(drive.calls_to("get_file")) == 1

    def test_cache_is_per_gateway_instance(self, drive, credentials):
        drive.add_folder("fld1")
        DocumentStorageGateway(drive, credentials).share_link("fld1")
        DocumentStorageGateway(drive, credentials).share_link("fld1")

        assert len(drive.calls_to("get_file")) == 2

    def test_fallback_url_containing_the_id(self, gateway):
        link = gateway.share_link("unknown", "https://drive.google.com/drive/folders/unknown?usp=sharing")
        assert link == "https://drive.google.com/drive/folders/unknown?usp=share_link"

    def test_fallback_url_without_folder_id(self, gateway, drive):
        link = gateway.share_link("", "https://drive.google.com/drive/folders/zzz")
        assert link == "https://drive.google.com/drive/folders/zzz?usp=share_link"
        assert drive.calls_to("get_file") == []

    def test_canonical_url_when_remote_fails(self, gateway):
        link = gateway.share_link("unknown", "https://example.com/other")
        assert link == "https://drive.google.com/drive/folders/unknown?usp=share_link"

    def test_nothing_to_link(self, gateway):
        assert gateway.share_link("", "") == ""

    def test_no_access_token_skips_remote(self, drive):
        drive.add_folder("fld1")
        gateway = DocumentStorageGateway(drive, FakeCredentialProvider(token=None))

        assert gateway.share_link("fld1").endswith("/folders/fld1?usp=share_link")
        assert drive.calls_to("get_file") == []

    def test_with_share_marker_drops_fragment(self):
        assert with_share_marker("https://x.test/a?b=1#c") == "https://x.test/a?usp=share_link&b=1"

    def test_resource_key_survives(self):
        url = "https://drive.google.com/drive/folders/fld9?resourcekey=0-AbC_dEf&usp=sharing"
        expected = "https://drive.google.com/drive/folders/fld9?usp=share_link&resourcekey=0-AbC_dEf"
        assert with_share_marker(url) == expected

    def test_marker_is_not_duplicated(self):
        url = "https://drive.google.com/drive/folders/fld9?usp=share_link&usp=drive_link"
        assert with_share_marker(url) == "https://drive.google.com/drive/folders/fld9?usp=share_link"


class TestEnsurePublicReadable:
    def test_grants_and_patches_once(self, gateway, drive):
        gateway.ensure_public_readable("fld1")
        gateway.ensure_public_readable("fld1")

        assert len(drive.calls_to("create_permission")) == 1
        assert len(drive.calls_to("update_file")) == 1
        permission = drive.permissions["fld1"][0]
        assert (permission["type"], permission["role"]) == ("anyone", "reader")

    def test_failures_are_swallowed(self, gateway, drive):
        drive.configure(should_succeed=False)
        gateway.ensure_public_readable("fld1")

        assert len(drive.calls_to("create_permission")) == 1

    def test_empty_folder_id(self, gateway, drive):
        gateway.ensure_public_readable("")
        assert drive.calls == []


class TestResolveSubfolder:
    def test_reads_order_meta(self, gateway, make_order):
        order = make_order(to_client="fld_x")
        ref = gateway.resolve_subfolder(order.id, SubfolderKey.TO_CLIENT)

        assert ref.id == "fld_x"
        assert gateway.resolve_subfolder(order.id, SubfolderKey.SOURCE) == FolderRef(id="fld_source")

    def test_missing_subfolder(self, gateway, make_order):
        order = make_order(to_client=None)
        assert not gateway.resolve_subfolder(order.id, SubfolderKey.TO_CLIENT)

    def test_missing_order(self, gateway):
        assert not gateway.resolve_subfolder("missing", SubfolderKey.TO_CLIENT)


class TestUploadFile:
    def test_uploads_with_metadata(self, gateway, drive, tmp_path):
        path = tmp_path / "doc.pdf"
        path.write_bytes(b"%PDF-1.4 test")

        uploaded = gateway.upload_file("fld1", str(path), "doc.pdf")

        assert uploaded.name == "doc.pdf"
        assert uploaded.id.startswith("file_")
        assert drive.uploads[0]["parents"] == ["fld1"]
        assert drive.uploads[0]["mimeType"] == "application/pdf"

    def test_missing_folder(self, gateway, tmp_path):
        with pytest.raises(MissingFolder):
            gateway.upload_file("", str(tmp_path / "x.pdf"), "x.pdf")

    def test_missing_token(self, drive, tmp_path):
        gateway = DocumentStorageGateway(drive, FakeCredentialProvider(token=None))
        with pytest.raises(MissingToken):
            gateway.upload_file("fld1", str(tmp_path / "x.pdf"), "x.pdf")

    def test_unreadable_file(self, gateway, tmp_path):
        with pytest.raises(ReadError):
            gateway.upload_file("fld1", str(tmp_path / "nope.pdf"), "nope.pdf")

    def test_remote_error_propagates(self, gateway, drive, tmp_path):
        path = tmp_path / "doc.pdf"
        path.write_bytes(b"data")
        drive.configure(should_succeed=False, failure_reason="Quota exceeded")

        with pytest.raises(APIError, match="Quota exceeded"):
            gateway.upload_file("fld1", str(path), "doc.pdf")

    def test_multipart_body(self):
        boundary, body = build_multipart_body({"name": "a.txt"}, b"hello", "text/plain")

        assert body.startswith(f"--{boundary}\r\n".encode())
        assert body.endswith(f"--{boundary}--\r\n".encode())
        assert json.dumps({"name": "a.txt"}).encode() in body
        assert b"Content-Type: text/plain\r\n\r\nhello\r\n" in body

    def test_boundaries_are_random(self):
        first, _ = build_multipart_body({}, b"", "text/plain")
        second, _ = build_multipart_body({}, b"", "text/plain")
        assert first != second


class TestFactory:
    def test_new_gateway_uses_active_adapters(self, drive):
        assert new_gateway().api is drive

    def test_defaults_to_fake_without_token(self):
        reset_storage()
        assert isinstance(get_drive_api(), FakeDriveApi)

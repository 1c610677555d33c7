"""
Unit tests for LocalStorageBackend.
"""

import os
from urllib.parse import parse_qs, urlparse
from unittest.mock import patch

import pytest

from storefront.domain.errors import (
    AccessTokenError,
    ObjectNotFoundError,
    StorageFailureError,
)
from storefront.domain.file_storage.entities import SignedUrlOptions
from storefront.infrastructure.local_storage_backend import PARTIAL_PREFIX, LocalStorageBackend


def _split_signed_url(url):
    parsed = urlparse(url)
    temp_key = parsed.path.rsplit("/", 1)[1]
    token = parse_qs(parsed.query)["token"][0]
    return parsed.path, temp_key, token


class TestInitialization:
    def test_creates_both_roots(self, local_backend, storage_dirs):
        upload_dir, temp_dir = storage_dirs
        assert upload_dir.is_dir()
        assert temp_dir.is_dir()

    def test_describe(self, local_backend, storage_dirs):
        info = local_backend.describe()
        assert info["provider"] == "local"
        assert info["supports_temp_cleanup"] is True
        assert info["upload_dir"] == str(storage_dirs[0].resolve())


class TestUpload:
    def test_round_trip(self, local_backend, storage_dirs):
        stored = local_backend.upload(b"%PDF-1.4 body", "report.pdf", "application/pdf")

        assert stored.key.endswith(".pdf")
        assert stored.url == f"/uploads/{stored.key}"
        assert stored.size == len(b"%PDF-1.4 body")
        assert stored.mime_type == "application/pdf"
        assert (storage_dirs[0] / stored.key).read_bytes() == b"%PDF-1.4 body"
        assert local_backend.read(stored.key) == b"%PDF-1.4 body"

    def test_mime_type_inferred_when_missing(self, local_backend):
        assert local_backend.upload(b"\x89PNG", "cover.PNG", None).mime_type == "image/png"

    def test_empty_upload(self, local_backend):
        stored = local_backend.upload(b"", "empty.txt", "text/plain")
        assert stored.size == 0
        assert local_backend.read(stored.key) == b""

    def test_custom_url_prefix(self, storage_dirs, signed_url_service, recording_scheduler):
        backend = LocalStorageBackend(
            str(storage_dirs[0]), str(storage_dirs[1]), signed_url_service,
            uploads_url_prefix="media/files/", deletion_scheduler=recording_scheduler,
        )
        assert backend.upload(b"x", "a.txt", None).url.startswith("/media/files/")

    def test_no_partial_files_left_behind(self, local_backend, storage_dirs):
        local_backend.upload(b"data", "a.bin", None)
        assert not [p for p in os.listdir(storage_dirs[0]) if p.startswith(PARTIAL_PREFIX)]

    def test_write_failure_is_storage_failure_and_cleans_up(self, local_backend, storage_dirs):
        with patch(
            "storefront.infrastructure.local_storage_backend.os.replace",
            side_effect=OSError("disk full"),
        ):
            with pytest.raises(StorageFailureError):
                local_backend.upload(b"data", "a.bin", None)
        assert os.listdir(storage_dirs[0]) == []


class TestDelete:
    def test_delete_then_delete_again(self, local_backend):
        stored = local_backend.upload(b"x", "a.txt", None)
        local_backend.delete(stored.key)
        local_backend.delete(stored.key)
        assert not local_backend.exists(stored.key)

    def test_delete_never_existing_key(self, local_backend):
        local_backend.delete("1700000000000-deadbeef.pdf")

    def test_delete_malformed_key_is_noop(self, local_backend, tmp_path):
        outside = tmp_path / "outside.txt"
        outside.write_text("keep")
        local_backend.delete("../outside.txt")
        assert outside.exists()

    def test_delete_failure_is_storage_failure(self, local_backend):
        stored = local_backend.upload(b"x", "a.txt", None)
        with patch(
            "storefront.infrastructure.local_storage_backend.remove_file_if_present",
            side_effect=PermissionError("denied"),
        ):
            with pytest.raises(StorageFailureError):
                local_backend.delete(stored.key)


class TestReadAndExists:
    def test_read_missing_raises_not_found(self, local_backend):
        with pytest.raises(ObjectNotFoundError):
            local_backend.read("1700000000000-missing.pdf")

    @pytest.mark.parametrize("key", ["", "..", "../etc/passwd"])
    def test_exists_is_false_for_malformed_keys(self, local_backend, key):
        assert local_backend.exists(key) is False


class TestSignedUrl:
    def test_missing_key_raises_not_found(self, local_backend):
        with pytest.raises(ObjectNotFoundError):
            local_backend.signed_url("1700000000000-missing.pdf")

    def test_traversal_key_raises_not_found(self, local_backend):
        with pytest.raises(ObjectNotFoundError):
            local_backend.signed_url("../secret.pdf")

    def test_report_pdf_scenario(self, local_backend, storage_dirs, recording_scheduler):
        stored = local_backend.upload(b"%PDF", "report.pdf", "application/pdf")

        url = local_backend.signed_url(stored.key, SignedUrlOptions(expires_in=60))

        path, temp_key, token = _split_signed_url(url)
        assert path.startswith("/temp/")
        assert temp_key != stored.key
        assert temp_key.endswith(".pdf")
        assert (storage_dirs[1] / temp_key).read_bytes() == b"%PDF"
        recording_scheduler.schedule.assert_called_once_with(temp_key, 60)

        claims = local_backend.verify_access_token(token)
        assert claims.storage_key == temp_key

    def test_each_call_makes_distinct_temp_copy(self, local_backend, storage_dirs):
        stored = local_backend.upload(b"abc", "a.zip", None)

        first = _split_signed_url(local_backend.signed_url(stored.key))[1]
        second = _split_signed_url(local_backend.signed_url(stored.key))[1]

        assert first != second
        assert sorted(os.listdir(storage_dirs[1])) == sorted([first, second])

    def test_response_headers_travel_in_token(self, local_backend):
        stored = local_backend.upload(b"abc", "a.pdf", None)
        url = local_backend.signed_url(
            stored.key,
            SignedUrlOptions(expires_in=30, content_type="application/pdf", content_disposition="attachment"),
        )
        claims = local_backend.verify_access_token(_split_signed_url(url)[2])
        assert claims.content_type == "application/pdf"
        assert claims.content_disposition == "attachment"

    def test_source_deleted_during_copy_raises_not_found(self, local_backend):
        stored = local_backend.upload(b"abc", "a.pdf", None)
        with patch(
            "storefront.infrastructure.local_storage_backend.shutil.copyfile",
            side_effect=FileNotFoundError("gone"),
        ):
            with pytest.raises(ObjectNotFoundError):
                local_backend.signed_url(stored.key)

    def test_copy_failure_is_storage_failure(self, local_backend, recording_scheduler):
        stored = local_backend.upload(b"abc", "a.pdf", None)
        with patch(
            "storefront.infrastructure.local_storage_backend.shutil.copyfile",
            side_effect=OSError("io error"),
        ):
            with pytest.raises(StorageFailureError):
                local_backend.signed_url(stored.key)
        recording_scheduler.schedule.assert_not_called()


class TestTempCopies:
    def test_open_temp_copy(self, local_backend):
        stored = local_backend.upload(b"abc", "a.pdf", None)
        _, temp_key, token = _split_signed_url(local_backend.signed_url(stored.key))

        path, claims = local_backend.open_temp_copy(temp_key, token)

        assert path.read_bytes() == b"abc"
        assert claims.storage_key == temp_key

    def test_token_is_bound_to_its_temp_key(self, local_backend):
        stored = local_backend.upload(b"abc", "a.pdf", None)
        _, first_key, first_token = _split_signed_url(local_backend.signed_url(stored.key))
        _, second_key, _ = _split_signed_url(local_backend.signed_url(stored.key))

        with pytest.raises(AccessTokenError):
            local_backend.open_temp_copy(second_key, first_token)

    def test_token_does_not_open_durable_object(self, local_backend):
        stored = local_backend.upload(b"abc", "a.pdf", None)
        _, _, token = _split_signed_url(local_backend.signed_url(stored.key))
        with pytest.raises(AccessTokenError):
            local_backend.open_temp_copy(stored.key, token)

    def test_open_removed_copy_raises_not_found(self, local_backend):
        stored = local_backend.upload(b"abc", "a.pdf", None)
        _, temp_key, token = _split_signed_url(local_backend.signed_url(stored.key))
        assert local_backend.delete_temp_copy(temp_key) is True

        with pytest.raises(ObjectNotFoundError):
            local_backend.open_temp_copy(temp_key, token)

    def test_delete_temp_copy_is_idempotent(self, local_backend):
        stored = local_backend.upload(b"abc", "a.pdf", None)
        _, temp_key, _ = _split_signed_url(local_backend.signed_url(stored.key))

        assert local_backend.delete_temp_copy(temp_key) is True
        assert local_backend.delete_temp_copy(temp_key) is False
        assert local_backend.delete_temp_copy("../escape") is False

    def test_deleting_durable_object_keeps_issued_copy(self, local_backend):
        stored = local_backend.upload(b"abc", "a.pdf", None)
        _, temp_key, token = _split_signed_url(local_backend.signed_url(stored.key))

        local_backend.delete(stored.key)

        path, _ = local_backend.open_temp_copy(temp_key, token)
        assert path.read_bytes() == b"abc"

    def test_cleanup_temp_files_sweeps_stale_copies(self, local_backend, storage_dirs):
        stale = storage_dirs[1] / "1600000000000-stale.pdf"
        stale.write_bytes(b"old")
        os.utime(stale, (1, 1))

        stats = local_backend.cleanup_temp_files()

        assert stats.removed == 1
        assert not stale.exists()

    def test_default_scheduler_is_threading(self, storage_dirs, signed_url_service):
        from storefront.infrastructure.deletion_scheduler import ThreadingDeletionScheduler

        backend = LocalStorageBackend(str(storage_dirs[0]), str(storage_dirs[1]), signed_url_service)
        assert isinstance(backend.deletion_scheduler, ThreadingDeletionScheduler)

    def test_hour_long_link_leaves_original_intact(self, local_backend):
        stored = local_backend.upload(b"original", "a.pdf", None)

        url = local_backend.signed_url(stored.key, SignedUrlOptions(expires_in=3600))

        temp_key = _split_signed_url(url)[1]
        assert temp_key != stored.key
        assert local_backend.read(stored.key) == b"original"
        local_backend.delete(stored.key)
        assert not local_backend.exists(stored.key)

"""Media host and media cleanup task tests."""

from unittest.mock import MagicMock, patch

import pytest
from cloudinary.exceptions import Error as CloudinaryError

from eventhub.domain import MediaUpload
from eventhub.errors import ValidationFailedError
from eventhub.services.media import (
    CloudinaryMediaHost,
    LocalMediaHost,
    MediaError,
    generate_public_id,
    validate_image,
)
from eventhub.tasks.media import purge_media, schedule_media_deletion

SECURE_URL = "https://res.cloudinary.com/demo/image/upload/v1/events/event_1_poster.png"
POSTER = MediaUpload(filename="Summer Poster.png", content_type="image/png", data=b"\x89PNG")


def test_validate_image_accepts_supported_types():
    """Test every supported content type passes."""
    for content_type in ("image/jpeg", "image/png", "image/gif", "image/webp", "image/tiff"):
        validate_image(MediaUpload("a", content_type, b"x"), max_bytes=10)


def test_validate_image_rejects_unsupported_type():
    """Test that non-images are rejected with a readable message."""
    with pytest.raises(ValidationFailedError) as exc_info:
        validate_image(MediaUpload("flyer.pdf", "application/pdf", b"%PDF"), max_bytes=10)
    assert exc_info.value.message.startswith("PDF format is not supported")


def test_validate_image_rejects_empty_and_oversized():
    """Test size limits."""
    with pytest.raises(ValidationFailedError):
        validate_image(MediaUpload("a.png", "image/png", b""), max_bytes=10)
    with pytest.raises(ValidationFailedError, match="too large"):
        validate_image(MediaUpload("a.png", "image/png", b"x" * 11), max_bytes=10)


def test_generate_public_id():
    """Test public ids are prefixed and stripped of unsafe characters."""
    public_id = generate_public_id("Summer Poster!.png")
    assert public_id.startswith("event_")
    assert public_id.endswith("_Summer_Poster")


class TestLocalMediaHost:
    """Tests for the local directory host."""

    def test_store_and_delete(self, tmp_path):
        host = LocalMediaHost(tmp_path, "/uploads")

        stored = host.store(POSTER)
        assert stored.key.startswith("event_")
        assert stored.key.endswith(".png")
        assert stored.url == f"/uploads/{stored.key}"
        assert (tmp_path / stored.key).read_bytes() == POSTER.data

        host.delete(stored.key)
        assert not (tmp_path / stored.key).exists()

    def test_delete_missing_file_is_noop(self, tmp_path):
        host = LocalMediaHost(tmp_path, "/uploads")
        host.delete("event_1_gone.png")

    @pytest.mark.parametrize("key", ["../secrets.txt", "nested/event_1.png", "", ".."])
    def test_delete_rejects_keys_outside_root(self, tmp_path, key):
        host = LocalMediaHost(tmp_path, "/uploads")
        with pytest.raises(MediaError):
            host.delete(key)


class TestCloudinaryMediaHost:
    """Tests for the Cloudinary host with the SDK calls patched out."""

    @pytest.fixture
    def host(self):
        return CloudinaryMediaHost("demo", "key123", "secret456", "events")

    def test_store_returns_url_and_public_id(self, host):
        result = {"public_id": "events/event_1_Summer_Poster", "secure_url": SECURE_URL}
        with patch("cloudinary.uploader.upload", return_value=result) as mock_upload:
            stored = host.store(POSTER)

        assert stored.url == SECURE_URL
        assert stored.key == "events/event_1_Summer_Poster"
        options = mock_upload.call_args.kwargs
        assert options["folder"] == "events"
        assert options["public_id"].startswith("event_")
        assert options["public_id"].endswith("_Summer_Poster")
        assert mock_upload.call_args.args[0].read() == POSTER.data

    def test_store_failure_raises_media_error(self, host):
        with patch("cloudinary.uploader.upload", side_effect=CloudinaryError("boom")):
            with pytest.raises(MediaError):
                host.store(POSTER)

    def test_store_without_url_raises_media_error(self, host):
        with patch("cloudinary.uploader.upload", return_value={"public_id": "events/x"}):
            with pytest.raises(MediaError):
                host.store(POSTER)

    def test_delete_by_public_id(self, host):
        with patch("cloudinary.uploader.destroy", return_value={"result": "ok"}) as mock_destroy:
            host.delete("events/event_1_Summer_Poster")

        mock_destroy.assert_called_once()
        assert mock_destroy.call_args.args == ("events/event_1_Summer_Poster",)

    def test_delete_tolerates_already_removed(self, host):
        with patch("cloudinary.uploader.destroy", return_value={"result": "not found"}):
            host.delete("events/event_2")

    def test_delete_refused(self, host):
        with patch("cloudinary.uploader.destroy", return_value={"result": "error"}):
            with pytest.raises(MediaError):
                host.delete("events/event_3")

    def test_delete_failure_raises_media_error(self, host):
        with patch("cloudinary.uploader.destroy", side_effect=CloudinaryError("down")):
            with pytest.raises(MediaError):
                host.delete("events/event_4")


class TestPurgeMediaTask:
    """Tests for the background media cleanup task."""

    def test_purge_media_deletes(self):
        host = MagicMock()
        with patch("eventhub.tasks.media.get_media_host", return_value=host):
            result = purge_media("event_1_poster.png")

        host.delete.assert_called_once_with("event_1_poster.png")
        assert result == {"media_key": "event_1_poster.png", "deleted": True}

    def test_purge_media_failure_propagates_for_retry(self):
        host = MagicMock()
        host.delete.side_effect = MediaError("unavailable")
        with patch("eventhub.tasks.media.get_media_host", return_value=host):
            with pytest.raises(MediaError):
                purge_media("event_1_poster.png")

    def test_schedule_media_deletion_queues_task(self):
        with patch("eventhub.tasks.media.purge_media.delay") as mock_task:
            schedule_media_deletion("event_1_poster.png")

        mock_task.assert_called_once_with("event_1_poster.png")

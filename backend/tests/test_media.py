"""Tests for MediaStore."""
import base64
import re
from pathlib import Path
from unittest.mock import patch

import pytest

from studio.services.media import MediaStore

FILE_NAME_RE = re.compile(r"^(image|video)_\d{14}_[0-9a-f]{6}\.(png|jpg|webp|mp4)$")


class TestMediaStoreFile:
    """Tests for file delivery."""

    def test_saves_bytes_to_media_dir(self, media_store: MediaStore) -> None:
        media = media_store.save(b"png_data", "image", "image/png")
        saved = media_store.media_dir / media.file_name
        assert saved.read_bytes() == b"png_data"

    def test_returns_media_url(self, media_store: MediaStore) -> None:
        media = media_store.save(b"png_data", "image", "image/png")
        assert media.file_path == f"/media/{media.file_name}"
        assert media.mime_type == "image/png"

    def test_file_name_format(self, media_store: MediaStore) -> None:
        media = media_store.save(b"mp4_data", "video", "video/mp4")
        assert FILE_NAME_RE.match(media.file_name)
        assert media.file_name.endswith(".mp4")

    def test_jpeg_extension(self, media_store: MediaStore) -> None:
        media = media_store.save(b"jpg", "image", "image/jpeg")
        assert media.file_name.endswith(".jpg")

    def test_names_are_unique(self, media_store: MediaStore) -> None:
        names = {media_store.save(b"x", "image", "image/png").file_name for _ in range(5)}
        assert len(names) == 5

    def test_no_partial_file_left_on_failure(self, tmp_path: Path) -> None:
        store = MediaStore(tmp_path / "media")
        with patch.object(Path, "replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                store.save(b"data", "image", "image/png")
        assert list((tmp_path / "media").iterdir()) == []


def test_data_url_delivery(tmp_path: Path) -> None:
    """data_url mode returns the bytes inline and writes nothing."""
    store = MediaStore(tmp_path / "media", delivery="data_url")
    media = store.save(b"png_data", "image", "image/png")
    prefix = "data:image/png;base64,"
    assert media.file_path.startswith(prefix)
    assert base64.b64decode(media.file_path[len(prefix):]) == b"png_data"
    assert not (tmp_path / "media").exists()

"""Persistence of rendered images and videos."""
import base64
import contextlib
import logging
import secrets
from datetime import datetime
from pathlib import Path
from typing import Literal, Optional, Union

from studio.models.generation import GeneratedMedia

logger = logging.getLogger(__name__)

MEDIA_URL_PREFIX = "/media"

_EXTENSIONS: dict[str, str] = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
    "video/mp4": "mp4",
}


class MediaStore:
    """Writes generated media under ``media_dir`` and returns caller-facing references.

    In ``file`` mode the reference is a URL path served by the ``/media`` static
    mount; in ``data_url`` mode nothing touches the disk and the bytes are
    returned inline as a ``data:`` URL.
    """

    def __init__(
        self,
        media_dir: Optional[Union[str, Path]] = None,
        delivery: Literal["file", "data_url"] = "file",
    ) -> None:
        self.media_dir = Path(media_dir) if media_dir is not None else Path("data/media")
        self.delivery = delivery

    def save(self, data: bytes, kind: Literal["image", "video"], mime_type: str) -> GeneratedMedia:
        """Store one rendered file.

        File name format: {kind}_{YYYYMMDDHHMMSS}_{6 hex chars}.{ext}
        """
        timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
        ext = _EXTENSIONS.get(mime_type, "png" if kind == "image" else "mp4")
        file_name = f"{kind}_{timestamp}_{secrets.token_hex(3)}.{ext}"

        if self.delivery == "data_url":
            encoded = base64.b64encode(data).decode("ascii")
            return GeneratedMedia(
                file_path=f"data:{mime_type};base64,{encoded}",
                file_name=file_name,
                mime_type=mime_type,
            )

        self.media_dir.mkdir(parents=True, exist_ok=True)
        final_path = self.media_dir / file_name
        # Only complete files are renamed into place; partial ones are removed.
        part_path = final_path.with_name(file_name + ".part")
        try:
            part_path.write_bytes(data)
            part_path.replace(final_path)
        except OSError:
            with contextlib.suppress(OSError):
                part_path.unlink()
            raise
        logger.info("Saved %s (%d bytes) to %s", kind, len(data), final_path)
        return GeneratedMedia(
            file_path=f"{MEDIA_URL_PREFIX}/{file_name}",
            file_name=file_name,
            mime_type=mime_type,
        )

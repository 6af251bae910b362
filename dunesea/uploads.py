"""Image uploads for inventory items and gallery photos.

Browsers send images as base64 data URLs inside the JSON body. They are
decoded into DATA_DIR/uploads and referenced by "/uploads/<name>" paths.
Anything that can't be decoded falls back to the default placeholder.
"""
import base64
import binascii
import re
import time
import uuid
from pathlib import Path
from typing import Any, Optional

from dunesea import config
from dunesea.input_sanitizer import InputSanitizer
from dunesea.logging_config import get_logger
from dunesea.models import default_image_path

logger = get_logger(__name__)

DATA_URL_PATTERN = re.compile(r'^data:([^;]+);base64,(.*)$', re.IGNORECASE | re.DOTALL)

HINT_EXTENSIONS = {".png": ".png", ".jpg": ".jpg", ".jpeg": ".jpg", ".webp": ".webp", ".gif": ".gif"}

CONTENT_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
}

# 1x1 transparent PNG
PLACEHOLDER_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


def content_type_for(ext: str) -> str:
    return CONTENT_TYPES.get(str(ext or "").lower(), "application/octet-stream")


def extension_for(mime: str, filename_hint: Any = "") -> str:
    """Pick a file extension from the data URL mime type, then the file name."""
    mime = (mime or "").lower()
    if "png" in mime:
        return ".png"
    if "jpeg" in mime or "jpg" in mime:
        return ".jpg"
    if "webp" in mime:
        return ".webp"
    if "gif" in mime:
        return ".gif"

    hinted = Path(str(filename_hint or "")).suffix.lower()
    return HINT_EXTENSIONS.get(hinted, ".png")


class UploadStore:
    """Files under the uploads directory."""

    def __init__(self, uploads_dir: Path):
        self.uploads_dir = Path(uploads_dir)
        self.uploads_dir.mkdir(parents=True, exist_ok=True)

    @property
    def default_image(self) -> Path:
        return self.uploads_dir / config.DEFAULT_IMAGE_FILE

    def ensure_default_image(self) -> None:
        """Write the placeholder image if the deployment didn't ship one."""
        if not self.default_image.exists():
            self.default_image.write_bytes(PLACEHOLDER_PNG)

    def save_data_url(
        self,
        data_url: Any,
        filename_hint: Any = "",
        item_id: Any = None,
        prefix: str = "inv"
    ) -> str:
        """
        Decode and store an uploaded image.

        Args:
            data_url: "data:image/png;base64,..." or bare base64
            filename_hint: Original file name, used when the mime type is unknown
            item_id: Record the image belongs to (part of the file name)
            prefix: "inv" for inventory, "gal" for gallery

        Returns:
            "/uploads/<name>", or the default image path if nothing usable arrived
        """
        if not data_url:
            return default_image_path()

        text = str(data_url)
        match = DATA_URL_PATTERN.match(text)
        if match:
            mime, payload = match.group(1), match.group(2)
        else:
            mime, payload = "", text

        try:
            data = base64.b64decode(payload)
        except (binascii.Error, ValueError) as e:
            logger.warning("upload.decode_failed", error=str(e))
            return default_image_path()

        if len(data) < 8:
            return default_image_path()

        safe_id = InputSanitizer.safe_file_token(item_id) or uuid.uuid4().hex
        safe_prefix = InputSanitizer.safe_file_token(prefix) or "inv"
        name = f"{safe_prefix}_{safe_id}_{int(time.time() * 1000)}{extension_for(mime, filename_hint)}"

        try:
            (self.uploads_dir / name).write_bytes(data)
        except OSError as e:
            logger.warning("upload.save_failed", name=name, error=str(e))
            return default_image_path()

        return f"/uploads/{name}"

    def remove(self, image_path: Any) -> bool:
        """Delete an uploaded image. The default image is never deleted."""
        path = str(image_path or "")
        if not path.startswith("/uploads/") or path == default_image_path():
            return False

        name = InputSanitizer.safe_upload_name(path[len("/uploads/"):])
        if not name or name == config.DEFAULT_IMAGE_FILE:
            return False

        try:
            (self.uploads_dir / name).unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning("upload.remove_failed", name=name, error=str(e))
            return False

    def resolve(self, name: Any) -> Optional[Path]:
        """File to serve for /uploads/<name>, falling back to the default image."""
        safe_name = InputSanitizer.safe_upload_name(name) or config.DEFAULT_IMAGE_FILE
        full = self.uploads_dir / safe_name
        if full.is_file():
            return full
        if self.default_image.is_file():
            return self.default_image
        return None

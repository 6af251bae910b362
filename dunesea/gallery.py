"""Photo gallery of past jobs, newest first."""
import threading
from typing import Any, List

from pydantic import ValidationError

from dunesea import config
from dunesea.errors import MissingFieldError, NotFoundError
from dunesea.logging_config import get_logger
from dunesea.models import GalleryPhoto, make_id
from dunesea.store import JsonStore
from dunesea.uploads import UploadStore

logger = get_logger(__name__)


class Gallery:

    def __init__(self, store: JsonStore, uploads: UploadStore):
        self.store = store
        self.uploads = uploads
        self.lock = threading.RLock()
        self.photos: List[GalleryPhoto] = []

        for raw in store.load_list(config.GALLERY_FILE):
            try:
                self.photos.append(GalleryPhoto.model_validate(raw))
            except ValidationError as e:
                logger.warning("gallery.skipped_record", error=str(e))

    def _persist(self):
        self.store.save(config.GALLERY_FILE, [photo.to_wire() for photo in self.photos])

    def list(self) -> List[GalleryPhoto]:
        with self.lock:
            return list(self.photos)

    def add(self, caption: Any, image_data_url: Any, image_name: Any = None) -> GalleryPhoto:
        """
        Store a new photo at the top of the gallery.

        Raises:
            MissingFieldError: No image was sent
        """
        if not image_data_url:
            raise MissingFieldError("Missing imageDataUrl")

        photo_id = make_id()
        image_path = self.uploads.save_data_url(image_data_url, image_name, photo_id, prefix="gal")
        photo = GalleryPhoto(id=photo_id, image_path=image_path, caption=caption)

        with self.lock:
            self.photos.insert(0, photo)
            self._persist()

        logger.info("gallery.add", id=photo.id, image_path=photo.image_path)
        return photo

    def delete(self, photo_id: Any) -> None:
        photo_id = str(photo_id or "").strip()
        if not photo_id:
            raise MissingFieldError("Missing id")

        with self.lock:
            removed = next((p for p in self.photos if p.id == photo_id), None)
            if removed is None:
                raise NotFoundError("Not found")
            self.photos = [p for p in self.photos if p.id != photo_id]
            self._persist()

        self.uploads.remove(removed.image_path)
        logger.info("gallery.delete", id=photo_id)

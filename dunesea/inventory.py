"""Appliance inventory shown on the "for sale / rent" page."""
import threading
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from dunesea import config
from dunesea.errors import MissingFieldError, NotFoundError
from dunesea.logging_config import get_logger
from dunesea.models import InventoryItem
from dunesea.store import JsonStore
from dunesea.uploads import UploadStore

logger = get_logger(__name__)


class Inventory:
    """Inventory items persisted in inventory.json, in display order."""

    def __init__(self, store: JsonStore, uploads: UploadStore):
        self.store = store
        self.uploads = uploads
        self.lock = threading.RLock()
        self.items: List[InventoryItem] = []

        for raw in store.load_list(config.INVENTORY_FILE):
            try:
                self.items.append(InventoryItem.model_validate(raw))
            except ValidationError as e:
                logger.warning("inventory.skipped_record", error=str(e))

    def _persist(self):
        self.store.save(config.INVENTORY_FILE, [item.to_wire() for item in self.items])

    def list(self) -> List[InventoryItem]:
        with self.lock:
            return list(self.items)

    def in_stock(self) -> bool:
        """Whether anything is currently marked available."""
        with self.lock:
            return any(item.status == "available" for item in self.items)

    def upsert(
        self,
        item: Optional[Dict[str, Any]],
        image_data_url: Any = None,
        image_name: Any = None
    ) -> InventoryItem:
        """
        Create an item or replace the one with the same id.

        Args:
            item: Item fields (camelCase or snake_case keys)
            image_data_url: Optional new photo as a data URL
            image_name: Original file name of the photo

        Returns:
            The stored item
        """
        incoming = InventoryItem.model_validate(item if isinstance(item, dict) else {})

        if image_data_url:
            saved = self.uploads.save_data_url(image_data_url, image_name, incoming.id, prefix="inv")
            incoming = incoming.model_copy(update={"image_path": saved})

        with self.lock:
            index = next((i for i, existing in enumerate(self.items) if existing.id == incoming.id), None)
            if index is None:
                self.items.append(incoming)
            else:
                self.items[index] = incoming
            self._persist()

        logger.info("inventory.upsert", id=incoming.id, created=index is None, status=incoming.status)
        return incoming

    def delete(self, item_id: Any) -> None:
        """Remove an item and its uploaded photo."""
        item_id = str(item_id or "").strip()
        if not item_id:
            raise MissingFieldError("Missing id")

        with self.lock:
            removed = next((item for item in self.items if item.id == item_id), None)
            if removed is None:
                raise NotFoundError("Not found")
            self.items = [item for item in self.items if item.id != item_id]
            self._persist()

        self.uploads.remove(removed.image_path)
        logger.info("inventory.delete", id=item_id)

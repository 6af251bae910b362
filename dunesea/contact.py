"""Contact form submissions: stored in messages.json and forwarded by email."""
import threading
from typing import Any, Dict, Optional

from dunesea import config
from dunesea.logging_config import get_logger
from dunesea.mailer import Mailer
from dunesea.models import ContactMessage
from dunesea.store import JsonStore

logger = get_logger(__name__)


class ContactInbox:

    def __init__(self, store: JsonStore, mailer: Optional[Mailer] = None, background: bool = True):
        """
        Args:
            store: Where messages.json lives
            mailer: Forwards each message; None disables email
            background: Send email on a worker thread so the response isn't held up
        """
        self.store = store
        self.mailer = mailer
        self.background = background
        self.lock = threading.Lock()

    def receive(self, payload: Optional[Dict[str, Any]]) -> ContactMessage:
        payload = payload or {}
        message = ContactMessage(
            name=payload.get("name"),
            email=payload.get("email"),
            message_type=payload.get("type"),
            description=payload.get("description"),
        )

        with self.lock:
            messages = self.store.load_list(config.MESSAGES_FILE)
            messages.insert(0, message.to_wire())
            self.store.save(config.MESSAGES_FILE, messages)

        logger.info("contact.received", id=message.id, type=message.message_type)

        if self.mailer is not None:
            if self.background:
                threading.Thread(target=self.mailer.send_contact, args=(message,), daemon=True).start()
            else:
                self.mailer.send_contact(message)
        return message
